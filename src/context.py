"""Application context - every component built once at process start and shared by reference."""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from src.config import Settings, SettingsYaml, get_env, load_config
from src.drive.client import DriveClient, build_credentials
from src.drive.provisioner import FolderProvisioner
from src.integrations.issue_actions import ActionRegistry, build_registry
from src.scheduler.coordinator import CoordinatorLock
from src.scheduler.deferred import DeferredScheduler
from src.webhooks.pipeline import WebhookPipeline

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: SettingsYaml
    env: Settings
    drive: DriveClient
    provisioner: FolderProvisioner
    registry: ActionRegistry
    scheduler: DeferredScheduler
    pipeline: WebhookPipeline
    coordinator_lock: CoordinatorLock

    def start(self) -> None:
        """Elect the coordinator and start its timers. Call from inside the event loop."""
        self.scheduler.coordinator = self.coordinator_lock.acquire()
        self.scheduler.start()

    def stop(self) -> None:
        self.scheduler.stop()
        self.coordinator_lock.release()


def build_context(
    project_root: Path | None = None,
    drive: DriveClient | None = None,
    backend: AsyncIOScheduler | None = None,
    clock: Callable[[], datetime] | None = None,
) -> AppContext:
    """Wire the application. The Drive client, timer backend and clock can be injected for tests."""
    root = project_root or Path(__file__).parent.parent
    settings = load_config(root)
    env = get_env(root)
    if not env.github_secret:
        logger.warning("No GitHub webhook secret configured; every delivery will fail verification")

    if drive is None:
        credentials_file = settings.google.credentials_file
        if credentials_file and not Path(credentials_file).is_absolute():
            credentials_file = str(root / credentials_file)
        credentials = build_credentials(
            client_email=env.google_client_email,
            private_key=env.google_private_key,
            scopes=settings.google.scopes,
            credentials_file=credentials_file,
        )
        drive = DriveClient.from_credentials(credentials)

    root_parents = [settings.google.root_id] if settings.google.root_id else []
    provisioner = FolderProvisioner(drive, settings.google.work_dir, root_parents, page_size=settings.google.page_size)
    registry = build_registry(provisioner)
    scheduler_kwargs = {"clock": clock} if clock is not None else {}
    scheduler = DeferredScheduler(
        registry,
        delay=timedelta(seconds=settings.scheduler.delay_seconds),
        tz=settings.scheduler.timezone,
        backend=backend,
        coordinator=False,
        **scheduler_kwargs,
    )
    pipeline = WebhookPipeline(env.github_secret, registry, scheduler, event=settings.github.event)

    data_dir = Path(settings.data_dir)
    if not data_dir.is_absolute():
        data_dir = root / data_dir
    lock = CoordinatorLock(data_dir / settings.scheduler.lock_file)

    return AppContext(
        settings=settings,
        env=env,
        drive=drive,
        provisioner=provisioner,
        registry=registry,
        scheduler=scheduler,
        pipeline=pipeline,
        coordinator_lock=lock,
    )
