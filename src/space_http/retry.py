"""Retry stage for transient network, rate-limit and server failures."""

from __future__ import annotations

import asyncio
import math
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

import httpx

from .errors import RateLimitError, RequestError, ServerError, TransientNetworkError
from .hooks import Handler
from .logging import LogHandler, default_log_handler

DEFAULT_RETRY_LIMIT = 5
WAIT_HINT_HEADERS = ("X-RateLimit-Reset", "Retry-After")
# Longer server hints fall back to exponential backoff.
MAX_WAIT_HINT_SECONDS = 300.0


def exponential_backoff(attempt: int) -> float:
    """Seconds to wait before retry number ``attempt`` (1-based)."""
    return math.sqrt(2) ** attempt + 0.5 + random.uniform(0, 0.2)


def _hint_seconds(raw: str) -> Optional[float]:
    try:
        seconds = float(raw)
    except ValueError:
        try:
            when = parsedate_to_datetime(raw)
        except (TypeError, ValueError):
            return None
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        seconds = (when - datetime.now(timezone.utc)).total_seconds()
    if not math.isfinite(seconds) or seconds > MAX_WAIT_HINT_SECONDS:
        return None
    return max(0.0, seconds)


def wait_hint(response: Optional[httpx.Response]) -> Optional[float]:
    """Server-provided delay in seconds, if the response carries a usable one.

    Values that are not finite or exceed ``MAX_WAIT_HINT_SECONDS`` are ignored.
    """
    if response is None:
        return None
    for name in WAIT_HINT_HEADERS:
        raw = response.headers.get(name)
        if not raw:
            continue
        hint = _hint_seconds(raw.strip())
        if hint is not None:
            return hint
    return None


def describe(error: RequestError) -> str:
    if isinstance(error, TransientNetworkError):
        return "Connection"
    if isinstance(error, RateLimitError):
        return "Rate limit"
    if isinstance(error, ServerError):
        return f"Server {error.status_code}"
    return type(error).__name__


@dataclass
class RetryState:
    request: httpx.Request
    attempt: int = 0
    last_error: Optional[RequestError] = None

    def exhausted(self, limit: int) -> bool:
        return self.attempt >= limit


class RetryOnError:
    """Re-dispatches retry-eligible failures with backoff.

    Everything nested below this stage, including throttling, runs again on
    each attempt. 401 and other non-429 client errors pass straight through.
    """

    def __init__(
        self,
        retry_limit: int = DEFAULT_RETRY_LIMIT,
        log_handler: LogHandler = default_log_handler,
    ) -> None:
        self.retry_limit = retry_limit
        self._log = log_handler

    def delay_for(self, error: RequestError, attempt: int) -> float:
        if isinstance(error, RateLimitError):
            hint = wait_hint(error.response)
            if hint is not None:
                return hint
        return exponential_backoff(attempt)

    async def __call__(self, request: httpx.Request, call_next: Handler) -> httpx.Response:
        state: Optional[RetryState] = None
        while True:
            try:
                return await call_next(request)
            except RequestError as error:
                if state is not None:
                    error.attempts = state.attempt + 1
                if not error.retryable:
                    raise
                if state is None:
                    state = RetryState(request=request)
                state.last_error = error
                if state.exhausted(self.retry_limit):
                    raise
                state.attempt += 1
                wait = self.delay_for(error, state.attempt)
                self._log(
                    "warning",
                    f"{describe(error)} error occurred. Waiting for {wait * 1000:.0f} ms before retrying...",
                )
                await asyncio.sleep(wait)


__all__ = [
    "DEFAULT_RETRY_LIMIT",
    "MAX_WAIT_HINT_SECONDS",
    "RetryOnError",
    "RetryState",
    "WAIT_HINT_HEADERS",
    "exponential_backoff",
    "wait_hint",
]
