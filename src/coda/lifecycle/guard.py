"""Execution guard: only one orchestrated run at a time."""

from __future__ import annotations

import threading
from types import TracebackType

from coda.core.logging import get_logger

_logger = get_logger("guard")


class ExecutionGuard:
    """Binary mutual-exclusion gate held for a whole run or worker loop.

    Use it as a context manager so release happens on every exit path:

        with guard:
            ...
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    def acquire(self, timeout: float | None = None) -> bool:
        """Block until the guard is free.

        Returns False only when ``timeout`` elapsed first.
        """
        if self._lock.acquire(blocking=False):
            return True
        _logger.debug("guard.waiting", thread=threading.current_thread().name)
        return self._lock.acquire(timeout=-1 if timeout is None else timeout)

    def release(self) -> None:
        self._lock.release()

    def __enter__(self) -> ExecutionGuard:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
