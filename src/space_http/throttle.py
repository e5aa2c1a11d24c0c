"""Rolling-window request throttle with FIFO admission."""

from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import Deque

import httpx

from .hooks import Handler
from .logging import LogHandler, default_log_handler

DEFAULT_INTERVAL_SECONDS = 1.0


class RateLimitThrottle:
    """Admits at most ``limit`` requests per rolling ``interval``.

    An admitted request also holds one of ``limit`` slots until its response
    (or error) comes back, so no more than ``limit`` requests are ever in
    flight. Waiters hold the admission lock while sleeping, so requests are
    released strictly in arrival order. The backlog is unbounded.
    """

    def __init__(
        self,
        limit: int,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        log_handler: LogHandler = default_log_handler,
    ) -> None:
        if limit <= 0 or interval <= 0:
            raise ValueError("Throttle limit and interval must be positive.")
        self.limit = limit
        self.interval = interval
        self._admissions: Deque[float] = deque()
        self._lock = asyncio.Lock()
        self._slots = asyncio.Semaphore(limit)
        log_handler("info", f"Throttle request to {limit}/{interval:g}s")

    def _prune(self, now: float) -> None:
        while self._admissions and now - self._admissions[0] >= self.interval:
            self._admissions.popleft()

    async def acquire(self) -> None:
        """Wait for a free slot and a window admission. Pair with ``release``."""
        async with self._lock:
            await self._slots.acquire()
            try:
                while True:
                    now = time.monotonic()
                    self._prune(now)
                    if len(self._admissions) < self.limit:
                        self._admissions.append(now)
                        return
                    await asyncio.sleep(self._admissions[0] + self.interval - now)
            except BaseException:
                self._slots.release()
                raise

    def release(self) -> None:
        self._slots.release()

    async def __call__(self, request: httpx.Request, call_next: Handler) -> httpx.Response:
        await self.acquire()
        try:
            return await call_next(request)
        finally:
            self.release()


__all__ = ["DEFAULT_INTERVAL_SECONDS", "RateLimitThrottle"]
