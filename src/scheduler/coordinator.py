"""Coordinator election - one process per host arms timers when uvicorn runs several workers."""
import logging
import os
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


class CoordinatorLock:
    """Exclusive, non-blocking lock on a file. The holder is the coordinating process.

    The lock lives as long as the open file descriptor, so it is released when
    the process exits even if release() never runs.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._fd: int | None = None

    @property
    def held(self) -> bool:
        return self._fd is not None

    def acquire(self) -> bool:
        """Try to become the coordinator. Returns True if this process holds the lock."""
        if self._fd is not None:
            return True
        if sys.platform == "win32":
            # No flock on Windows; run a single worker there.
            self._fd = -1
            return True
        import fcntl
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o644)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            os.close(fd)
            logger.info("Scheduler lock %s held by another process", self.path)
            return False
        os.ftruncate(fd, 0)
        os.write(fd, str(os.getpid()).encode())
        self._fd = fd
        logger.info("Process %s is the scheduling coordinator", os.getpid())
        return True

    def release(self) -> None:
        if self._fd is None:
            return
        if self._fd >= 0:
            import fcntl
            fcntl.flock(self._fd, fcntl.LOCK_UN)
            os.close(self._fd)
        self._fd = None
