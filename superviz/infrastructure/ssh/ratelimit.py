"""
Rate limiting for SSH connection attempts

Sliding-window counter per host: at most `max_attempts` recorded attempts in
any `window` seconds. Each host gets its own lock, created once under a coarse
lock, so unrelated hosts never serialise each other.
"""
import threading
import time
from collections import deque
from typing import Deque, Dict, Optional, Tuple

from ...core.constants import DEFAULT_RATE_LIMIT_ATTEMPTS, DEFAULT_RATE_LIMIT_WINDOW
from ...core.context import Context
from ...core.interfaces import RateLimiter
from ...core.logging import get_logger

logger = get_logger(__name__)


class _HostState:
    """Attempt timestamps for one host"""

    __slots__ = ("attempts", "last_used", "lock")

    def __init__(self, now: float):
        self.attempts: Deque[float] = deque()
        self.last_used = now
        self.lock = threading.Lock()


class TokenBucketRateLimiter(RateLimiter):
    """
    Per-host attempt limiter guarding against brute force.

    Example:
        >>> limiter = TokenBucketRateLimiter(3, 60.0)
        >>> limiter.allow(Context.background(), "example.com")
        True
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_RATE_LIMIT_ATTEMPTS,
        window: float = DEFAULT_RATE_LIMIT_WINDOW,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be positive")
        if window <= 0:
            raise ValueError("window must be positive")
        self.max_attempts = max_attempts
        self.window = window
        self.cleanup_interval = window * 2
        self._hosts: Dict[str, _HostState] = {}
        self._hosts_lock = threading.Lock()
        self._last_cleanup = time.monotonic()
        self._metrics_lock = threading.Lock()
        self._requests = 0
        self._limited = 0

    def allow(self, ctx: Context, host: str) -> bool:
        if not host:
            raise ValueError("host cannot be empty")

        with self._metrics_lock:
            self._requests += 1

        ctx.check()

        now = time.monotonic()
        cutoff = now - self.window
        state = self._state_for(host, now)

        with state.lock:
            state.last_used = now
            while state.attempts and state.attempts[0] <= cutoff:
                state.attempts.popleft()

            if len(state.attempts) >= self.max_attempts:
                with self._metrics_lock:
                    self._limited += 1
                logger.warning("Rate limit reached for %s (%d attempts in %.0fs)", host, self.max_attempts, self.window)
                return False

            state.attempts.append(now)

        self._cleanup_if_needed(now)
        return True

    def _state_for(self, host: str, now: float) -> _HostState:
        state = self._hosts.get(host)
        if state is not None:
            return state
        with self._hosts_lock:
            state = self._hosts.get(host)
            if state is None:
                state = _HostState(now)
                self._hosts[host] = state
            return state

    def _cleanup_if_needed(self, now: float) -> None:
        """Drop hosts idle for twice the window"""
        if now - self._last_cleanup < self.cleanup_interval:
            return
        with self._hosts_lock:
            if now - self._last_cleanup < self.cleanup_interval:
                return
            idle_cutoff = now - 2 * self.window
            for host in [h for h, s in self._hosts.items() if s.last_used < idle_cutoff]:
                del self._hosts[host]
            self._last_cleanup = now

    def metrics(self) -> Tuple[int, int]:
        """(total requests, rate-limited requests)"""
        with self._metrics_lock:
            return self._requests, self._limited

    def reset_metrics(self) -> None:
        with self._metrics_lock:
            self._requests = 0
            self._limited = 0


class NoOpRateLimiter(RateLimiter):
    """Always admits; for tests and trusted environments"""

    def allow(self, ctx: Context, host: str) -> bool:
        return True


_shared_limiter: Optional[TokenBucketRateLimiter] = None
_shared_lock = threading.Lock()


def default_rate_limiter() -> TokenBucketRateLimiter:
    """Process-wide limiter shared by all clients"""
    global _shared_limiter
    with _shared_lock:
        if _shared_limiter is None:
            _shared_limiter = TokenBucketRateLimiter()
        return _shared_limiter
