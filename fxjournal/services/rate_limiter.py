"""
Sliding window rate limiting for proxied third-party APIs.
"""
from collections import defaultdict
from typing import Dict, List, Tuple
import logging
import threading
import time

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)


class RateLimitExceeded(HTTPException):
    """Raised when a client has used up its window"""

    def __init__(self, limit: int, window: int, retry_after: int, detail: str = None):
        self.limit = limit
        self.window = window
        self.retry_after = retry_after
        super().__init__(
            status_code=429,
            detail=detail or f"Rate limit exceeded: {limit} requests per {window} seconds",
            headers={
                "Retry-After": str(retry_after),
                "X-RateLimit-Limit": str(limit),
                "X-RateLimit-Remaining": "0",
            },
        )


class RateLimiter:
    """
    In-memory sliding window limiter.

    Args:
        requests: Requests allowed per window
        window_seconds: Window size in seconds
        message: Detail returned with the 429 response
    """

    def __init__(self, requests: int, window_seconds: int, message: str = None, clock=time.time):
        self.requests = requests
        self.window_seconds = window_seconds
        self.message = message
        self._clock = clock
        self._windows: Dict[str, List[float]] = defaultdict(list)
        self._lock = threading.Lock()

    def check(self, key: str) -> Tuple[bool, int, int]:
        """
        Record a request for `key`.

        Returns:
            (allowed, remaining, retry_after_seconds)
        """
        now = self._clock()
        cutoff = now - self.window_seconds
        with self._lock:
            timestamps = [ts for ts in self._windows[key] if ts > cutoff]
            if len(timestamps) >= self.requests:
                self._windows[key] = timestamps
                retry_after = int(timestamps[0] + self.window_seconds - now) + 1
                return False, 0, max(retry_after, 1)
            timestamps.append(now)
            self._windows[key] = timestamps
            return True, self.requests - len(timestamps), 0

    def reset(self):
        with self._lock:
            self._windows.clear()

    def __call__(self, request: Request):
        """FastAPI dependency: limit by client IP"""
        client_ip = request.client.host if request.client else "unknown"
        allowed, _, retry_after = self.check(client_ip)
        if not allowed:
            logger.warning(f"Rate limit exceeded for {client_ip} on {request.url.path}")
            raise RateLimitExceeded(self.requests, self.window_seconds, retry_after, self.message)
