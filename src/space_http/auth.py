"""Bearer credentials and the per-request token injection stage."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Union

import httpx

from .errors import AuthTokenError
from .hooks import Handler, maybe_await

TokenProducer = Callable[[], Union[str, Awaitable[str]]]


@dataclass(frozen=True)
class StaticCredential:
    token: str

    def header_value(self) -> str:
        return f"Bearer {self.token}"


@dataclass(frozen=True)
class DynamicCredential:
    producer: TokenProducer


Credential = Union[StaticCredential, DynamicCredential]


def credential_from(access_token: Union[str, TokenProducer, None]) -> Credential | None:
    """Tag an ``access_token`` option, or return ``None`` when it is unusable."""
    if callable(access_token):
        return DynamicCredential(producer=access_token)
    if isinstance(access_token, str) and access_token:
        return StaticCredential(token=access_token)
    return None


class AuthTokenInjector:
    """Fetches a token for every request and sets the Authorization header.

    Concurrent requests each call the producer; any caching or single-flight
    behaviour belongs to the producer itself.
    """

    def __init__(self, producer: TokenProducer) -> None:
        self._producer = producer

    async def __call__(self, request: httpx.Request, call_next: Handler) -> httpx.Response:
        try:
            token = await maybe_await(self._producer())
        except Exception as exc:
            raise AuthTokenError(f"Access token producer failed: {exc}", request=request) from exc
        if not token:
            raise AuthTokenError("Access token producer returned an empty token", request=request)
        request.headers["Authorization"] = f"Bearer {token}"
        return await call_next(request)


__all__ = [
    "AuthTokenInjector",
    "Credential",
    "DynamicCredential",
    "StaticCredential",
    "TokenProducer",
    "credential_from",
]
