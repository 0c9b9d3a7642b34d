"""Folder provisioner - make sure a named folder exists under the workspace, creating it only if absent.

Creation is check-then-act against Drive, which has no create-if-absent call.
Within one process, concurrent ensure_folder() calls for the same name and
parents share one in-flight task. Separate processes can still race and create
duplicates.
"""
import asyncio
import logging

from src.drive.client import DriveClient, RemoteStoreError
from src.drive.models import Folder, FolderResult, FolderStatus

logger = logging.getLogger(__name__)


class FolderProvisioner:
    """Find-or-create folders by exact name, plus the lazily created workspace root."""

    def __init__(
        self,
        client: DriveClient,
        work_dir: str,
        root_parents: list[str] | None = None,
        page_size: int = 100,
    ):
        self.client = client
        self.work_dir = work_dir
        self.root_parents = list(root_parents or [])
        self.page_size = page_size
        self._inflight: dict[tuple[str, tuple[str, ...]], asyncio.Task] = {}

    async def workspace(self) -> FolderResult:
        """The workspace root, created on first use."""
        return await self.ensure_folder(self.work_dir, self.root_parents)

    async def lookup_folder(self, name: str, parent_ids: list[str] | None = None) -> FolderResult:
        """Exact-name lookup. NOT_FOUND and ERROR are distinct."""
        if not name:
            return FolderResult.not_found()
        try:
            files = await self.client.list_folders(name, parent_ids, page_size=self.page_size)
            match = next((f for f in files if f.get("name") == name), None)
            if match is None:
                return FolderResult.not_found()
            record = await self.client.get_folder(match["id"])
        except RemoteStoreError as exc:
            logger.warning("Folder lookup for '%s' failed: %s", name, exc)
            return FolderResult.failed(exc)
        return FolderResult.found(Folder(**record))

    async def ensure_folder(self, name: str, parent_ids: list[str] | None = None) -> FolderResult:
        """Return the folder named name under parent_ids, creating it if absent."""
        if not name:
            raise ValueError("Folder name is required")
        parents = list(parent_ids or [])
        key = (name, tuple(parents))
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._find_or_create(name, parents))
            self._inflight[key] = task
            task.add_done_callback(lambda _t: self._inflight.pop(key, None))
        # Shielded so one cancelled caller does not cancel the creation for the others
        return await asyncio.shield(task)

    async def _find_or_create(self, name: str, parents: list[str]) -> FolderResult:
        existing = await self.lookup_folder(name, parents)
        if existing.status is not FolderStatus.NOT_FOUND:
            return existing
        try:
            data = await self.client.create_folder(name, parents)
        except RemoteStoreError as exc:
            logger.error("Could not create folder '%s': %s", name, exc)
            return FolderResult.failed(exc)
        folder = Folder(id=data["id"], name=data.get("name", name), parents=data.get("parents") or parents)
        logger.info("Created folder '%s' (%s)", folder.name, folder.id)
        return FolderResult.created(folder)
