from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, Optional, TypeVar

from .errors import ConflictError


logger = logging.getLogger("feedletter.jobs")

T = TypeVar("T")


class GuardedJob(Generic[T]):
    """A named job that refuses to start while a previous run is in flight.

    Scheduled runs and on-demand API runs share the same instance, so at
    most one run of each job executes at a time.
    """

    def __init__(self, name: str, func: Callable[[], T]) -> None:
        self.name = name
        self._func = func
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    def run(self) -> T:
        if not self._lock.acquire(blocking=False):
            raise ConflictError(f"Job {self.name} is already running", error="job_running")
        try:
            return self._func()
        finally:
            self._lock.release()

    def run_scheduled(self) -> Optional[T]:
        """Entry point for the scheduler: never raises."""
        try:
            return self.run()
        except ConflictError:
            logger.warning("job_skipped name=%s reason=already_running", self.name)
        except Exception:
            logger.exception("job_failed name=%s", self.name)
        return None
