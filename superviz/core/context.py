"""
Cancellation and deadline propagation for network-facing calls
"""
from __future__ import annotations

import threading
import time
from typing import Callable, List, Optional

from .exceptions import Cancelled, ContextError, DeadlineExceeded


class Context:
    """
    Thread-safe cancellation token with an optional deadline.

    Children derived with `with_timeout` inherit the parent's deadline (the
    earlier one wins) and are cancelled together with the parent.
    """

    def __init__(self, deadline: Optional[float] = None, parent: Optional[Context] = None):
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self.deadline = deadline
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []
        self._error: Optional[ContextError] = None
        self._detach: Optional[Callable[[], None]] = None

        if parent is not None:
            self._detach = parent.on_done(self._cancel_from_parent)

    @classmethod
    def background(cls) -> Context:
        """Context that never expires unless cancelled"""
        return cls()

    def with_timeout(self, seconds: float) -> Context:
        """Derive a child context expiring after `seconds`"""
        return Context(deadline=time.monotonic() + seconds, parent=self)

    # --------------------
    # State
    # --------------------
    def remaining(self) -> Optional[float]:
        """Seconds until the deadline, None when there is no deadline"""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def error(self) -> Optional[ContextError]:
        if self._cancelled.is_set():
            return self._error or Cancelled()
        if self.deadline is not None and time.monotonic() >= self.deadline:
            return DeadlineExceeded()
        return None

    def done(self) -> bool:
        return self.error() is not None

    def check(self) -> None:
        """Raise the context error if the context is finished"""
        err = self.error()
        if err is not None:
            raise err

    # --------------------
    # Cancellation
    # --------------------
    def cancel(self) -> None:
        self._finish(Cancelled())

    def _cancel_from_parent(self) -> None:
        self._finish(None)

    def _finish(self, error: Optional[ContextError]) -> None:
        with self._lock:
            if self._cancelled.is_set():
                return
            self._error = error
            self._cancelled.set()
            callbacks, self._callbacks = self._callbacks, []
        if self._detach is not None:
            self._detach()
        for callback in callbacks:
            callback()

    def on_done(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Register a callback fired once on cancellation.

        Fires immediately if already cancelled. Returns an unregister function.
        """
        with self._lock:
            if not self._cancelled.is_set():
                self._callbacks.append(callback)

                def unregister() -> None:
                    with self._lock:
                        if callback in self._callbacks:
                            self._callbacks.remove(callback)

                return unregister
        callback()
        return lambda: None

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or `timeout` elapses; True if cancelled"""
        return self._cancelled.wait(timeout)
