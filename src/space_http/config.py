"""Client options, defaults and the pure configuration resolver."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, fields
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

import httpx

from .auth import Credential, StaticCredential, TokenProducer, credential_from
from .errors import ConfigurationError
from .hooks import BeforeRequestHook, ErrorHook, RequestLogger, ResponseLogger
from .logging import LogHandler, default_log_handler
from .retry import DEFAULT_RETRY_LIMIT
from .throttle import DEFAULT_INTERVAL_SECONDS

# 'sub.host:port' or 'host:port'; no scheme, no whitespace, no bare colon.
HOST_RE = re.compile(r"(?!\w+://)([^\s:]+\.?[^\s:]+)(?::(\d+))?")

DEFAULT_USER_AGENT = "space-http-python/0.1.0"
ONE_GIB = 1024 ** 3

DEFAULTS: Mapping[str, Any] = MappingProxyType(
    {
        "insecure": False,
        "retry_on_error": True,
        "retry_limit": DEFAULT_RETRY_LIMIT,
        "log_handler": default_log_handler,
        "headers": {},
        "http_agent": None,
        "https_agent": None,
        "timeout": 30.0,
        "throttle": 0,
        "throttle_interval": DEFAULT_INTERVAL_SECONDS,
        "base_path": "",
        "adapter": None,
        "max_content_length": ONE_GIB,
        "max_body_length": ONE_GIB,
        "user_agent": DEFAULT_USER_AGENT,
    }
)


@dataclass(frozen=True)
class ClientOptions:
    """User-facing construction options. ``None`` means "not supplied"."""

    access_token: Union[str, TokenProducer, None] = None
    host: Optional[str] = None
    default_hostname: Optional[str] = None
    space: Optional[str] = None
    base_path: Optional[str] = None
    base_url: Optional[str] = None
    insecure: Optional[bool] = None
    headers: Optional[Dict[str, str]] = None
    timeout: Optional[float] = None
    throttle: Optional[int] = None
    throttle_interval: Optional[float] = None
    retry_limit: Optional[int] = None
    retry_on_error: Optional[bool] = None
    log_handler: Optional[LogHandler] = None
    on_before_request: Optional[BeforeRequestHook] = None
    on_error: Optional[ErrorHook] = None
    request_logger: Optional[RequestLogger] = None
    response_logger: Optional[ResponseLogger] = None
    user_agent: Optional[str] = None
    http_agent: Optional[httpx.AsyncBaseTransport] = None
    https_agent: Optional[httpx.AsyncBaseTransport] = None
    proxy: Any = None
    max_content_length: Optional[int] = None
    max_body_length: Optional[int] = None
    adapter: Optional[httpx.AsyncBaseTransport] = None

    @classmethod
    def from_env(cls, prefix: str = "SPACE_HTTP_", **overrides: Any) -> "ClientOptions":
        env = os.environ

        def read(name: str, convert: Callable[[str], Any] = str) -> Any:
            raw = env.get(prefix + name)
            if raw is None or not raw.strip():
                return None
            return convert(raw.strip())

        values = dict(
            access_token=read("ACCESS_TOKEN"),
            host=read("HOST"),
            space=read("SPACE"),
            base_path=read("BASE_PATH"),
            insecure=read("INSECURE", lambda raw: raw.lower() in {"1", "true", "yes", "on"}),
            timeout=read("TIMEOUT", float),
            throttle=read("THROTTLE", int),
            retry_limit=read("RETRY_LIMIT", int),
        )
        values.update(overrides)
        return cls(**values)

    def supplied(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


@dataclass(frozen=True)
class ClientConfiguration:
    credential: Credential
    base_url: str
    hostname: Optional[str]
    port: Optional[int]
    space: Optional[str]
    base_path: str
    insecure: bool
    headers: Mapping[str, str]
    timeout: float
    throttle: int
    throttle_interval: float
    retry_limit: int
    retry_on_error: bool
    log_handler: LogHandler
    max_content_length: int
    max_body_length: int
    on_before_request: Optional[BeforeRequestHook] = None
    on_error: Optional[ErrorHook] = None
    request_logger: Optional[RequestLogger] = None
    response_logger: Optional[ResponseLogger] = None
    http_agent: Optional[httpx.AsyncBaseTransport] = None
    https_agent: Optional[httpx.AsyncBaseTransport] = None
    proxy: Any = None
    adapter: Optional[httpx.AsyncBaseTransport] = None

    @property
    def scheme(self) -> str:
        return "http" if self.insecure else "https"


def coerce_options(options: Union[ClientOptions, Mapping[str, Any], None]) -> ClientOptions:
    if options is None:
        return ClientOptions()
    if isinstance(options, ClientOptions):
        return options
    return ClientOptions(**dict(options))


def parse_host(host: Optional[str]) -> Optional[Tuple[str, Optional[int]]]:
    """Split ``host[:port]``; ``None`` when the value is not a bare host."""
    if not host:
        return None
    match = HOST_RE.fullmatch(host)
    if not match:
        return None
    hostname, port = match.groups()
    return hostname, int(port) if port else None


def normalize_base_path(base_path: Optional[str]) -> str:
    segments = [segment for segment in (base_path or "").split("/") if segment]
    return "/" + "/".join(segments) if segments else ""


def derive_base_url(*, insecure: bool, hostname: str, port: int, base_path: str, space: Optional[str]) -> str:
    scheme = "http" if insecure else "https"
    space_segment = f"{space}/" if space else ""
    return f"{scheme}://{hostname}:{port}{base_path}/spaces/{space_segment}"


def _set_default_header(headers: Dict[str, str], name: str, value: str) -> None:
    # Keys differing only in case would be sent as separate header lines.
    wanted = name.lower()
    existing = [key for key in headers if key.lower() == wanted]
    if any(headers[key] for key in existing):
        return
    for key in existing:
        del headers[key]
    headers[name] = value


def _fail(log_handler: LogHandler, message: str) -> None:
    error = ConfigurationError(message)
    log_handler("error", error)
    raise error


def resolve_config(
    options: Union[ClientOptions, Mapping[str, Any], None],
    defaults: Mapping[str, Any] = DEFAULTS,
) -> ClientConfiguration:
    """Merge ``options`` over ``defaults`` and derive every computed setting."""
    merged: Dict[str, Any] = {**defaults, **coerce_options(options).supplied()}
    log_handler: LogHandler = merged.get("log_handler") or default_log_handler

    credential = credential_from(merged.get("access_token"))
    if credential is None:
        _fail(log_handler, "Expected parameter access_token")
    if merged["throttle"] < 0:
        _fail(log_handler, f"Expected parameter throttle to be >= 0, got {merged['throttle']}")
    if merged["retry_limit"] < 0:
        _fail(log_handler, f"Expected parameter retry_limit to be >= 0, got {merged['retry_limit']}")

    insecure = bool(merged["insecure"])
    hostname: Optional[str] = merged.get("default_hostname")
    port: Optional[int] = 80 if insecure else 443
    parsed = parse_host(merged.get("host"))
    if parsed:
        hostname, parsed_port = parsed
        if parsed_port is not None:
            port = parsed_port

    base_path = normalize_base_path(merged["base_path"])
    space = merged.get("space") or None

    base_url = merged.get("base_url")
    if not base_url:
        if not hostname:
            _fail(log_handler, "Expected parameter host or default_hostname")
        base_url = derive_base_url(insecure=insecure, hostname=hostname, port=port, base_path=base_path, space=space)

    headers = {str(key): str(value) for key, value in merged["headers"].items()}
    if isinstance(credential, StaticCredential):
        _set_default_header(headers, "Authorization", credential.header_value())
    if merged.get("user_agent"):
        _set_default_header(headers, "User-Agent", merged["user_agent"])

    return ClientConfiguration(
        credential=credential,
        base_url=base_url,
        hostname=hostname,
        port=port,
        space=space,
        base_path=base_path,
        insecure=insecure,
        headers=MappingProxyType(headers),
        timeout=float(merged["timeout"]),
        throttle=int(merged["throttle"]),
        throttle_interval=float(merged["throttle_interval"]),
        retry_limit=int(merged["retry_limit"]),
        retry_on_error=bool(merged["retry_on_error"]),
        log_handler=log_handler,
        max_content_length=int(merged["max_content_length"]),
        max_body_length=int(merged["max_body_length"]),
        on_before_request=merged.get("on_before_request"),
        on_error=merged.get("on_error"),
        request_logger=merged.get("request_logger"),
        response_logger=merged.get("response_logger"),
        http_agent=merged.get("http_agent"),
        https_agent=merged.get("https_agent"),
        proxy=merged.get("proxy"),
        adapter=merged.get("adapter"),
    )


__all__ = [
    "ClientConfiguration",
    "ClientOptions",
    "DEFAULTS",
    "HOST_RE",
    "coerce_options",
    "derive_base_url",
    "normalize_base_path",
    "parse_host",
    "resolve_config",
]
