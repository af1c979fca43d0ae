"""Cancellation tokens and timeout composition.

A CancelToken is a node in a tree. The orchestrator creates one root per
run (canceled by a caught signal) and derives phase tokens from it with
``child(timeout=...)``. Phases that must not inherit the root's
cancellation (cleanup, worker iterations) use ``CancelToken.detached()``.

Cancellation is cooperative: canceling a token never interrupts running
code, it only becomes observable through ``cancelled``, ``wait()``,
``wait_blocking()`` and ``raise_if_cancelled()``.

Tokens may be observed from worker threads (phase operations that are
plain functions run via ``asyncio.to_thread``), so state changes are
guarded by a lock and waiters are woken with ``call_soon_threadsafe``.
"""

from __future__ import annotations

import asyncio
import threading
import time
from datetime import timedelta
from enum import Enum

from coda.core.errors import Cancelled, DeadlineExceeded


class CancelReason(str, Enum):
    """Why a token was canceled."""

    CANCELLED = "cancelled"
    DEADLINE_EXCEEDED = "deadline_exceeded"


def to_seconds(duration: float | timedelta) -> float:
    """Normalize a duration given as seconds or timedelta."""
    if isinstance(duration, timedelta):
        return duration.total_seconds()
    return float(duration)


def _wake(fut: asyncio.Future[None]) -> None:
    if not fut.done():
        fut.set_result(None)


class CancelToken:
    """Cooperative, optionally time-bounded cancellation scope.

    Args:
        name: Label used in logs and reprs.
        parent: Token whose cancellation propagates to this one.
        timeout: Seconds (or timedelta) after which this token cancels itself
            with ``CancelReason.DEADLINE_EXCEEDED``. Requires a running loop.
    """

    def __init__(
        self,
        name: str = "root",
        *,
        parent: CancelToken | None = None,
        timeout: float | timedelta | None = None,
    ) -> None:
        self.name = name
        self._parent = parent
        self._lock = threading.Lock()
        self._event = threading.Event()
        self._reason: CancelReason | None = None
        self._detail: str | None = None
        self._children: set[CancelToken] = set()
        self._waiters: list[asyncio.Future[None]] = []
        self._timer: asyncio.TimerHandle | None = None
        self.deadline: float | None = None

        if parent is not None:
            parent._attach(self)

        if timeout is not None:
            seconds = to_seconds(timeout)
            loop = asyncio.get_running_loop()
            self.deadline = time.monotonic() + seconds
            if seconds <= 0:
                self._expire()
            elif not self.cancelled:
                self._timer = loop.call_later(seconds, self._expire)

    @classmethod
    def detached(
        cls,
        timeout: float | timedelta | None = None,
        name: str = "detached",
    ) -> CancelToken:
        """Create a fresh token linked to no other token."""
        return cls(name, timeout=timeout)

    def child(
        self,
        timeout: float | timedelta | None = None,
        name: str | None = None,
    ) -> CancelToken:
        """Derive a token canceled with this one or when ``timeout`` elapses."""
        return CancelToken(name or f"{self.name}.child", parent=self, timeout=timeout)

    # ─── State ────────────────────────────────────────────────────────

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> CancelReason | None:
        return self._reason

    @property
    def detail(self) -> str | None:
        return self._detail

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None without a deadline."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def error(self) -> Cancelled | DeadlineExceeded | None:
        """Return the exception matching the cancel reason, or None."""
        if self._reason is None:
            return None
        message = f"{self.name}: {self._detail or self._reason.value}"
        if self._reason is CancelReason.DEADLINE_EXCEEDED:
            return DeadlineExceeded(message)
        return Cancelled(message)

    def raise_if_cancelled(self) -> None:
        err = self.error()
        if err is not None:
            raise err

    # ─── Cancellation ─────────────────────────────────────────────────

    def cancel(
        self,
        reason: CancelReason = CancelReason.CANCELLED,
        detail: str | None = None,
    ) -> bool:
        """Cancel this token and its live children.

        Returns True if this call canceled the token, False if it already was.
        """
        with self._lock:
            if self._reason is not None:
                return False
            self._reason = reason
            self._detail = detail
            children = list(self._children)
            self._children.clear()
            waiters = self._waiters[:]
            self._waiters.clear()
            timer, self._timer = self._timer, None
            self._event.set()

        if timer is not None:
            timer.cancel()
        for fut in waiters:
            fut.get_loop().call_soon_threadsafe(_wake, fut)
        for child in children:
            child.cancel(reason, detail)
        if self._parent is not None:
            self._parent._detach(self)
        return True

    def _expire(self) -> None:
        self.cancel(CancelReason.DEADLINE_EXCEEDED, detail="timeout elapsed")

    def _attach(self, child: CancelToken) -> None:
        with self._lock:
            if self._reason is None:
                self._children.add(child)
                return
            reason, detail = self._reason, self._detail
        child.cancel(reason, detail)

    def _detach(self, child: CancelToken) -> None:
        with self._lock:
            self._children.discard(child)

    # ─── Waiting ──────────────────────────────────────────────────────

    async def wait(self) -> None:
        """Suspend until the token is canceled."""
        fut = asyncio.get_running_loop().create_future()
        with self._lock:
            if self._reason is not None:
                return
            self._waiters.append(fut)
        try:
            await fut
        finally:
            with self._lock:
                if fut in self._waiters:
                    self._waiters.remove(fut)

    def wait_blocking(self, timeout: float | None = None) -> bool:
        """Block the calling thread until canceled; returns ``cancelled``."""
        return self._event.wait(timeout)

    def __repr__(self) -> str:
        state = self._reason.value if self._reason is not None else "active"
        return f"CancelToken(name={self.name!r}, state={state})"


async def sleep(token: CancelToken, seconds: float | timedelta) -> None:
    """Sleep for ``seconds`` or until ``token`` is canceled.

    Raises the token's error (Cancelled or DeadlineExceeded) if it is
    canceled by the time the sleep ends.
    """
    try:
        await asyncio.wait_for(token.wait(), timeout=to_seconds(seconds))
    except TimeoutError:
        pass
    token.raise_if_cancelled()


__all__ = ["CancelReason", "CancelToken", "sleep", "to_seconds"]
