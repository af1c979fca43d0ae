"""Bridge OS termination signals into a run's root cancellation token.

The listener registers handlers on the running event loop. The first
configured signal it catches cancels the root token, removes every
handler it installed (so a repeat of the signal gets default handling,
which lets a user force-quit a stuck cleanup) and invokes the work
unit's optional ``on_signal`` callback.

Signal names are normalized here as well so that configuration, the CLI
and ``set_signals()`` accept "SIGTERM", "term" or 15 interchangeably.
"""

from __future__ import annotations

import asyncio
import signal
import sys
from collections.abc import Callable, Iterable
from typing import Any

from coda.core.logging import get_logger
from coda.lifecycle.tokens import CancelToken

_logger = get_logger("signals")

DEFAULT_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)

SignalLike = signal.Signals | int | str


def parse_signal(value: SignalLike) -> signal.Signals:
    """Normalize a signal given as enum member, number or name.

    Raises:
        ValueError: If the value does not name a signal on this platform.
    """
    if isinstance(value, signal.Signals):
        return value
    if isinstance(value, int):
        return signal.Signals(value)
    name = value.strip().upper()
    if not name.startswith("SIG"):
        name = f"SIG{name}"
    try:
        return signal.Signals[name]
    except KeyError:
        raise ValueError(f"Unknown signal: {value!r}") from None


def parse_signals(values: Iterable[SignalLike]) -> list[signal.Signals]:
    """Normalize and de-duplicate a signal list, preserving order."""
    result: list[signal.Signals] = []
    for value in values:
        sig = parse_signal(value)
        if sig not in result:
            result.append(sig)
    return result


class SignalListener:
    """Cancels a token on the first caught termination signal.

    Args:
        token: Root token to cancel.
        signals: Signals to intercept; copied at construction so later
            changes to the caller's list do not affect this listener.
        on_signal: Optional callback invoked synchronously with the signal.
    """

    def __init__(
        self,
        token: CancelToken,
        signals: Iterable[signal.Signals],
        on_signal: Callable[[signal.Signals], None] | None = None,
    ) -> None:
        self._token = token
        self._signals = tuple(signals)
        self._on_signal = on_signal
        self._loop: asyncio.AbstractEventLoop | None = None
        self._installed: list[signal.Signals] = []
        # Dispositions in place before install(), restored by remove()
        self._previous: dict[signal.Signals, Any] = {}
        self._caught: signal.Signals | None = None

    @property
    def caught(self) -> signal.Signals | None:
        """The signal that canceled the token, if any."""
        return self._caught

    @property
    def active(self) -> bool:
        return bool(self._installed)

    def install(self) -> bool:
        """Register handlers on the running loop.

        Returns False (and logs a warning) when handlers cannot be
        installed, e.g. when the loop runs outside the main thread.
        """
        if sys.platform == "win32":
            _logger.warning("signals.unavailable", reason="platform")
            return False

        self._loop = asyncio.get_running_loop()
        try:
            for sig in self._signals:
                previous = signal.getsignal(sig)
                self._loop.add_signal_handler(sig, self._handle, sig)
                self._installed.append(sig)
                self._previous[sig] = previous
        except (RuntimeError, NotImplementedError, ValueError) as exc:
            # add_signal_handler only works for the main thread's loop
            self.remove()
            _logger.warning("signals.unavailable", reason=str(exc))
            return False

        _logger.debug("signals.installed", signals=[s.name for s in self._signals])
        return True

    def remove(self) -> None:
        """Uninstall any handlers still registered and restore the
        dispositions that were in place before ``install()``. Idempotent.
        """
        self._uninstall()
        previous, self._previous = self._previous, {}
        for sig, handler in previous.items():
            # None: installed from C, cannot be reinstated from Python
            if handler is not None:
                signal.signal(sig, handler)

    def _uninstall(self) -> None:
        if self._loop is None:
            return
        installed, self._installed = self._installed, []
        for sig in installed:
            try:
                self._loop.remove_signal_handler(sig)
            except (RuntimeError, ValueError):
                # Loop already closed
                pass

    def _handle(self, sig: signal.Signals) -> None:
        if self._caught is not None:
            return
        self._caught = sig
        self._uninstall()
        # remove_signal_handler reinstates default_int_handler for SIGINT,
        # which cannot stop a phase blocked in a worker thread
        for intercepted in self._previous:
            signal.signal(intercepted, signal.SIG_DFL)
        self._token.cancel(detail=f"received {sig.name}")
        _logger.info("signals.received", signal=sig.name)

        if self._on_signal is None:
            return
        try:
            self._on_signal(sig)
        except Exception:
            _logger.exception("signals.callback_failed", signal=sig.name)


__all__ = [
    "DEFAULT_SIGNALS",
    "SignalLike",
    "SignalListener",
    "parse_signal",
    "parse_signals",
]
