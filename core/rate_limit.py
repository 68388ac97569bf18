"""
Sliding-window rate limiter keyed by client token
"""

import time
from typing import Callable, Dict, List, Optional, Tuple


class SlidingWindowRateLimiter:
    """
    Allow at most ``limit`` hits per ``window_seconds`` for each token.

    Time is passed in explicitly (or taken from ``clock``) so tests can
    drive the window without sleeping.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock
        self._hits: Dict[str, List[float]] = {}

    def check(self, token: str, now: Optional[float] = None) -> Tuple[bool, int]:
        """
        Record a hit for ``token`` if it is within the limit.

        Returns:
            (allowed, remaining) where remaining is the number of hits left
            in the current window
        """
        now = self.clock() if now is None else now
        valid = [t for t in self._hits.get(token, []) if now - t < self.window_seconds]

        if len(valid) >= self.limit:
            self._hits[token] = valid
            return False, 0

        valid.append(now)
        self._hits[token] = valid
        return True, self.limit - len(valid)

    def reset(self) -> None:
        self._hits.clear()
