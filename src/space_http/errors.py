"""Error taxonomy for the space HTTP client."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, Field


class RequestSummary(BaseModel):
    url: str
    method: str
    headers: Dict[str, str] = Field(default_factory=dict)


class ErrorDetails(BaseModel):
    """Structured description of a failed request, safe to log."""

    status: Optional[int] = None
    status_text: Optional[str] = None
    error_id: Optional[str] = None
    message: Optional[str] = None
    request_id: Optional[str] = None
    details: Optional[Any] = None
    request: Optional[RequestSummary] = None

    @classmethod
    def from_exchange(cls, request: httpx.Request, response: Optional[httpx.Response] = None) -> "ErrorDetails":
        summary = RequestSummary(
            url=str(request.url),
            method=request.method,
            headers=mask_headers(request.headers),
        )
        if response is None:
            return cls(request=summary)

        body = _json_body(response)
        sys_info = body.get("sys") if isinstance(body.get("sys"), dict) else {}
        return cls(
            status=response.status_code,
            status_text=response.reason_phrase,
            error_id=sys_info.get("id"),
            message=body.get("message"),
            request_id=response.headers.get("X-Request-Id") or body.get("requestId"),
            details=body.get("details"),
            request=summary,
        )


def mask_token(value: str) -> str:
    # Keep only the tail of the token so logs can still correlate credentials.
    scheme, _, token = value.partition(" ")
    if not token:
        scheme, token = "", scheme
    masked = f"...{token[-5:]}"
    return f"{scheme} {masked}" if scheme else masked


def mask_headers(headers: httpx.Headers) -> Dict[str, str]:
    masked = dict(headers.items())
    for key in list(masked):
        if key.lower() == "authorization":
            masked[key] = mask_token(masked[key])
    return masked


def _json_body(response: httpx.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except (ValueError, httpx.ResponseNotRead):
        return {}
    return data if isinstance(data, dict) else {}


class SpaceHttpError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(SpaceHttpError):
    """A required option is missing or invalid. Raised at construction."""


class PayloadTooLargeError(SpaceHttpError):
    def __init__(self, message: str, *, limit: int, size: int) -> None:
        super().__init__(message)
        self.limit = limit
        self.size = size


class AuthTokenError(SpaceHttpError):
    """The credential producer failed for a specific request."""

    def __init__(self, message: str, *, request: httpx.Request) -> None:
        super().__init__(message)
        self.request = request
        self.response: Optional[httpx.Response] = None


class RequestError(SpaceHttpError):
    retryable = False

    def __init__(
        self,
        message: str,
        *,
        request: httpx.Request,
        response: Optional[httpx.Response] = None,
        details: Optional[ErrorDetails] = None,
    ) -> None:
        super().__init__(message)
        self.request = request
        self.response = response
        self.details = details or ErrorDetails.from_exchange(request, response)
        self.attempts = 1

    @property
    def status_code(self) -> Optional[int]:
        return self.response.status_code if self.response is not None else None


class TransientNetworkError(RequestError):
    """No response was received."""

    retryable = True


class ResponseError(RequestError):
    pass


class RateLimitError(ResponseError):
    retryable = True


class ServerError(ResponseError):
    retryable = True


class ClientError(ResponseError):
    pass


def error_from_response(request: httpx.Request, response: httpx.Response) -> ResponseError:
    details = ErrorDetails.from_exchange(request, response)
    status = response.status_code
    if status == 429:
        error_cls: type[ResponseError] = RateLimitError
    elif 500 <= status < 600:
        error_cls = ServerError
    else:
        error_cls = ClientError

    message = f"{status} {response.reason_phrase}"
    if details.message:
        message += f": {details.message}"
    return error_cls(message, request=request, response=response, details=details)


def error_from_transport(request: httpx.Request, exc: httpx.TransportError) -> TransientNetworkError:
    message = f"{type(exc).__name__} while requesting {request.method} {request.url}"
    return TransientNetworkError(message, request=request)


__all__ = [
    "AuthTokenError",
    "ClientError",
    "ConfigurationError",
    "ErrorDetails",
    "PayloadTooLargeError",
    "RateLimitError",
    "RequestError",
    "RequestSummary",
    "ResponseError",
    "ServerError",
    "SpaceHttpError",
    "TransientNetworkError",
    "error_from_response",
    "error_from_transport",
    "mask_headers",
    "mask_token",
]
