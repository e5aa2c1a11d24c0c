"""Pre-configured async HTTP client for space-scoped REST APIs."""

from .auth import AuthTokenInjector, DynamicCredential, StaticCredential
from .client import HttpClient, create_http_client
from .config import ClientConfiguration, ClientOptions, resolve_config
from .errors import (
    AuthTokenError,
    ClientError,
    ConfigurationError,
    ErrorDetails,
    PayloadTooLargeError,
    RateLimitError,
    RequestError,
    ServerError,
    SpaceHttpError,
    TransientNetworkError,
)
from .pipeline import STAGE_ORDER, Pipeline
from .retry import RetryOnError
from .throttle import RateLimitThrottle

__version__ = "0.1.0"

__all__ = [
    "AuthTokenError",
    "AuthTokenInjector",
    "ClientConfiguration",
    "ClientError",
    "ClientOptions",
    "ConfigurationError",
    "DynamicCredential",
    "ErrorDetails",
    "HttpClient",
    "PayloadTooLargeError",
    "Pipeline",
    "RateLimitError",
    "RateLimitThrottle",
    "RequestError",
    "RetryOnError",
    "STAGE_ORDER",
    "ServerError",
    "SpaceHttpError",
    "StaticCredential",
    "TransientNetworkError",
    "create_http_client",
    "resolve_config",
]
