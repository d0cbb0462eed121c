"""Frame-coalesced redraw requests and a hover throttle."""
from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional

from PySide6.QtCore import QTimer

logger = logging.getLogger(__name__)

FRAME_INTERVAL_MS = 16

Callback = Callable[[], None]


def _qt_request_frame(flush: Callback) -> None:  # pragma: no cover - needs a running event loop
    QTimer.singleShot(FRAME_INTERVAL_MS, flush)


def _qt_schedule(delay_ms: int, func: Callback) -> None:  # pragma: no cover - needs a running event loop
    QTimer.singleShot(max(0, int(delay_ms)), func)


class RenderScheduler:
    """Run each scheduled callback at most once per frame.

    Requests are keyed by callback identity (bound methods compare by their
    instance and function), so any number of mutations inside one frame
    interval produce a single call.
    """

    def __init__(self, request_frame: Optional[Callable[[Callback], None]] = None):
        self._request_frame = request_frame or _qt_request_frame
        self._pending: Dict[Callback, None] = {}
        self._frame_requested = False
        self.frames_flushed = 0

    def schedule(self, callback: Callback) -> bool:
        """Queue ``callback``; returns False when it was already queued."""
        if callback in self._pending:
            return False
        self._pending[callback] = None
        if not self._frame_requested:
            self._frame_requested = True
            self._request_frame(self.flush)
        return True

    def cancel(self, callback: Callback) -> None:
        self._pending.pop(callback, None)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def frame_requested(self) -> bool:
        return self._frame_requested

    def flush(self) -> None:
        callbacks = list(self._pending)
        self._pending.clear()
        self._frame_requested = False
        if not callbacks:
            return
        self.frames_flushed += 1
        for callback in callbacks:
            callback()


class Throttle:
    """Call ``func`` at most once per ``interval_ms``.

    Calls arriving inside the interval replace each other; the most recent
    one runs when the interval elapses.
    """

    def __init__(
        self,
        func: Callable[..., None],
        interval_ms: float = 16,
        clock: Callable[[], float] = time.monotonic,
        schedule: Optional[Callable[[int, Callback], None]] = None,
    ):
        self._func = func
        self._interval = interval_ms / 1000.0
        self._clock = clock
        self._schedule = schedule or _qt_schedule
        self._last_call: Optional[float] = None
        self._pending_args: Optional[tuple] = None
        self._token = 0

    def __call__(self, *args) -> bool:
        """Returns True when ``func`` ran immediately."""
        now = self._clock()
        if self._last_call is None or now - self._last_call >= self._interval:
            self._last_call = now
            self._pending_args = None
            self._token += 1
            self._func(*args)
            return True
        self._pending_args = args
        self._token += 1
        token = self._token
        remaining_ms = int(round((self._interval - (now - self._last_call)) * 1000.0))
        self._schedule(remaining_ms, lambda: self._fire(token))
        return False

    def _fire(self, token: int) -> None:
        if token != self._token or self._pending_args is None:
            return
        args, self._pending_args = self._pending_args, None
        self._last_call = self._clock()
        self._func(*args)

    def cancel(self) -> None:
        self._pending_args = None
        self._token += 1

    @property
    def has_pending(self) -> bool:
        return self._pending_args is not None
