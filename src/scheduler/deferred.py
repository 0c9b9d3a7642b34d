"""Deferred scheduler - one-shot jobs that run an action handler a fixed delay after a delivery."""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from src.integrations.issue_actions import ActionRegistry
from src.logging_config import delivery_id as current_delivery

logger = logging.getLogger(__name__)

DEFAULT_DELAY = timedelta(minutes=1)
DEFAULT_TIMEZONE = "America/New_York"


class JobState(str, Enum):
    ARMED = "armed"
    FIRED = "fired"
    DISPOSED = "disposed"


class InvalidTransition(RuntimeError):
    """A job was asked to move to a state it cannot reach from its current one."""


_TRANSITIONS = {
    (JobState.ARMED, "fire"): JobState.FIRED,
    (JobState.ARMED, "dispose"): JobState.DISPOSED,
    (JobState.FIRED, "dispose"): JobState.DISPOSED,
}


@dataclass
class ScheduledJob:
    id: str
    action: str
    fires_at: datetime
    payload: dict[str, Any]
    state: JobState = JobState.ARMED
    history: list[JobState] = field(default_factory=lambda: [JobState.ARMED])

    def transition(self, event: str) -> JobState:
        """Apply 'fire' or 'dispose'. Raises InvalidTransition for anything else."""
        target = _TRANSITIONS.get((self.state, event))
        if target is None:
            raise InvalidTransition(f"job {self.id}: cannot {event} while {self.state.value}")
        self.state = target
        self.history.append(target)
        return target

    def is_due(self, now: datetime) -> bool:
        return now >= self.fires_at


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _issue_number(payload: dict[str, Any]) -> Any:
    issue = payload.get("issue")
    return issue.get("number") if isinstance(issue, dict) else None


class DeferredScheduler:
    """Arms one APScheduler DateTrigger per accepted delivery.

    Only the coordinating process arms timers; elsewhere schedule() returns None.
    The clock and the backend can be swapped so tests simulate time instead of sleeping.
    """

    def __init__(
        self,
        registry: ActionRegistry,
        delay: timedelta = DEFAULT_DELAY,
        tz: str = DEFAULT_TIMEZONE,
        backend: AsyncIOScheduler | None = None,
        clock: Callable[[], datetime] = _utcnow,
        coordinator: bool = True,
    ):
        self.registry = registry
        self.delay = delay
        self.timezone = ZoneInfo(tz)
        self.coordinator = coordinator
        self._clock = clock
        self._backend = backend or AsyncIOScheduler(timezone=self.timezone)
        self._jobs: dict[str, ScheduledJob] = {}
        self._started = False

    def start(self) -> None:
        """Start the timer backend. Needs a running event loop."""
        if self.coordinator and not self._started:
            self._backend.start()
            self._started = True

    def stop(self) -> None:
        """Shut the backend down and dispose every job still armed. Armed jobs are lost."""
        if self._started:
            self._backend.shutdown(wait=False)
            self._started = False
        for job in list(self._jobs.values()):
            if job.state is JobState.ARMED:
                logger.warning("Discarding armed job '%s' for delivery %s", job.action, job.id)
                job.transition("dispose")
        self._jobs.clear()

    @property
    def pending(self) -> list[ScheduledJob]:
        return [j for j in self._jobs.values() if j.state is JobState.ARMED]

    def get(self, job_id: str) -> ScheduledJob | None:
        return self._jobs.get(job_id)

    def schedule(self, action: str, payload: dict[str, Any], delivery_id: str) -> ScheduledJob | None:
        """Arm a one-shot job for delivery_id. Returns None when this process is not the coordinator."""
        if action not in self.registry:
            raise KeyError(f"No handler registered for action: {action}")
        if not self.coordinator:
            logger.info("Not the coordinating process, '%s' job for delivery %s not armed", action, delivery_id)
            return None
        existing = self._jobs.get(delivery_id)
        if existing is not None:
            logger.info("Delivery %s already has an armed '%s' job", delivery_id, existing.action)
            return existing

        fires_at = self._clock() + self.delay
        job = ScheduledJob(id=delivery_id, action=action, fires_at=fires_at, payload=payload)
        self._arm(job)
        self._jobs[job.id] = job
        local = fires_at.astimezone(self.timezone)
        logger.info(
            "...scheduling '%s' job for issue: %s will run at %s",
            action,
            _issue_number(payload),
            local.strftime("%Y-%m-%d %H:%M:%S %Z"),
        )
        return job

    def _arm(self, job: ScheduledJob, replace: bool = False) -> None:
        self._backend.add_job(
            self.run_job,
            DateTrigger(run_date=job.fires_at, timezone=self.timezone),
            args=[job.id],
            id=job.id,
            replace_existing=replace,
            misfire_grace_time=None,
        )

    async def run_job(self, job_id: str) -> bool:
        """Fire a due job once, then dispose of it. Returns True if the handler ran.

        A job woken before fires_at is armed again for fires_at.
        """
        job = self._jobs.get(job_id)
        if job is None or job.state is not JobState.ARMED:
            return False
        if not job.is_due(self._clock()):
            logger.warning("Job %s woke before %s, re-arming", job.id, job.fires_at.isoformat())
            self._arm(job, replace=True)
            return False
        job.transition("fire")
        handler = self.registry.get(job.action)
        token = current_delivery.set(job.id)
        try:
            await handler(job.payload)
            logger.info("Job '%s' for delivery %s completed", job.action, job.id)
        except Exception:
            logger.exception("Job '%s' for delivery %s failed", job.action, job.id)
        finally:
            current_delivery.reset(token)
            job.transition("dispose")
            self._jobs.pop(job.id, None)
        return True
