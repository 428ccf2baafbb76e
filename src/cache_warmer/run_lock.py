"""
Single-instance run lock.

The lock is a file holding its creation time in epoch milliseconds. A lock
younger than the staleness threshold means another invocation is running; an
older one is left over from a killed process and is replaced.
"""

import logging
import time
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator, Optional

from .constants import DEFAULT_LOCK_STALE_HOURS
from .exceptions import FatalStartupError, LockHeldError

logger = logging.getLogger(__name__)


class LockState(str, Enum):
    """Result of a lock acquisition attempt."""
    ACQUIRED = "acquired"
    ALREADY_HELD = "already_held"


class RunLock:
    """File-based mutual exclusion between cache warmer invocations."""

    def __init__(
        self,
        path: str,
        stale_after_seconds: float = DEFAULT_LOCK_STALE_HOURS * 3600,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the lock.

        Args:
            path: Lock file location
            stale_after_seconds: Age at which an existing lock is considered abandoned
            clock: Returns the current time in seconds since the epoch
        """
        self.path = Path(path)
        self.stale_after_seconds = stale_after_seconds
        self._clock = clock
        self._held = False

    def age_seconds(self) -> Optional[float]:
        """
        Age of the existing lock file.

        Returns:
            Seconds since the lock was created, None if there is no lock,
            or infinity if its content is unreadable
        """
        try:
            content = self.path.read_text().strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Cannot read lock file {self.path}: {e}")
            return float("inf")

        try:
            created_ms = int(content)
        except ValueError:
            return float("inf")
        return self._clock() - created_ms / 1000

    def check(self) -> None:
        """Raise LockHeldError if a fresh lock exists."""
        age = self.age_seconds()
        if age is not None and age < self.stale_after_seconds:
            raise LockHeldError(str(self.path), age)

    def acquire(self) -> LockState:
        """
        Take the lock unless a fresh one exists.

        Returns:
            ACQUIRED, or ALREADY_HELD without touching the existing file

        Raises:
            FatalStartupError: If the lock file cannot be written
        """
        try:
            self.check()
        except LockHeldError as e:
            logger.info(f"Lock file exists ({e.age_seconds / 3600:.2f} h). Aborting.")
            return LockState.ALREADY_HELD

        age = self.age_seconds()
        try:
            if age is not None:
                logger.info(f"Removing stale lock file ({age / 3600:.2f} h).")
                self.path.unlink(missing_ok=True)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(str(int(self._clock() * 1000)))
        except OSError as e:
            raise FatalStartupError(f"Cannot create lock file {self.path}: {e}") from e

        self._held = True
        logger.info("Lock file created")
        return LockState.ACQUIRED

    def release(self) -> None:
        """Remove the lock file if this instance holds it."""
        if not self._held:
            return
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Cannot remove lock file {self.path}: {e}")
        self._held = False
        logger.info("Lock file removed")

    @contextmanager
    def hold(self) -> Iterator[LockState]:
        """
        Acquire for the duration of a block.

        Usage:
            with lock.hold() as state:
                if state is LockState.ACQUIRED:
                    ...

        The lock is released on every exit path, exceptions included. A lock
        held by another invocation is never touched.
        """
        state = self.acquire()
        try:
            yield state
        finally:
            if state is LockState.ACQUIRED:
                self.release()

    @property
    def is_held(self) -> bool:
        return self._held
