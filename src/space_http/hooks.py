"""Stages wrapping the user-supplied request and error hooks."""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Optional, Union

import httpx

from .errors import SpaceHttpError

Handler = Callable[[httpx.Request], Awaitable[httpx.Response]]
BeforeRequestHook = Callable[[httpx.Request], Union[Optional[httpx.Request], Awaitable[Optional[httpx.Request]]]]
ErrorHook = Callable[[SpaceHttpError], Any]
RequestLogger = Callable[[httpx.Request], Any]
ResponseLogger = Callable[[Any], Any]


async def maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class BeforeRequestStage:
    """Runs ``on_before_request`` ahead of every other request-side stage.

    The hook may mutate the request in place (returning ``None``) or return a
    replacement request.
    """

    def __init__(self, hook: BeforeRequestHook) -> None:
        self._hook = hook

    async def __call__(self, request: httpx.Request, call_next: Handler) -> httpx.Response:
        replacement = await maybe_await(self._hook(request))
        if isinstance(replacement, httpx.Request):
            request = replacement
        return await call_next(request)


class ErrorStage:
    """Hands the final, post-retry error to ``on_error``.

    A returned ``httpx.Response`` resolves the call with it; any other return
    value re-raises the original error.
    """

    def __init__(self, hook: ErrorHook) -> None:
        self._hook = hook

    async def __call__(self, request: httpx.Request, call_next: Handler) -> httpx.Response:
        try:
            return await call_next(request)
        except SpaceHttpError as error:
            outcome = await maybe_await(self._hook(error))
            if isinstance(outcome, httpx.Response):
                return outcome
            raise


__all__ = [
    "BeforeRequestHook",
    "BeforeRequestStage",
    "ErrorHook",
    "ErrorStage",
    "Handler",
    "RequestLogger",
    "ResponseLogger",
    "maybe_await",
]
