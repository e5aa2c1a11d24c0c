"""Pre-configured async HTTP client for space-scoped REST APIs."""

from __future__ import annotations

import copy
import dataclasses
from typing import Any, Dict, Mapping, Type, Union

import httpx

from .auth import AuthTokenInjector, DynamicCredential
from .config import ClientConfiguration, ClientOptions, coerce_options, resolve_config
from .errors import PayloadTooLargeError, RequestError, error_from_response, error_from_transport
from .hooks import BeforeRequestStage, ErrorStage
from .pipeline import Pipeline
from .retry import RetryOnError
from .throttle import RateLimitThrottle

_PLAIN_TYPES = (str, bytes, int, float, bool, type(None), dict, list, tuple, set)


class HttpClient(httpx.AsyncClient):
    """``httpx.AsyncClient`` that runs every send through its pipeline."""

    def __init__(
        self,
        *,
        configuration: ClientConfiguration,
        http_client_params: ClientOptions,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.configuration = configuration
        self.http_client_params = http_client_params
        self.pipeline = Pipeline()

    async def send(self, request: httpx.Request, **kwargs: Any) -> httpx.Response:
        async def dispatch(outgoing: httpx.Request) -> httpx.Response:
            return await self._dispatch(outgoing, **kwargs)

        return await self.pipeline.compose(dispatch)(request)

    async def _dispatch(self, request: httpx.Request, **kwargs: Any) -> httpx.Response:
        # Loggers run per send attempt, after throttling has admitted it.
        request_logger = self.configuration.request_logger
        response_logger = self.configuration.response_logger
        if request_logger is not None:
            request_logger(request)
        try:
            response = await self._send_checked(request, **kwargs)
        except RequestError as error:
            if response_logger is not None:
                response_logger(error)
            raise
        if response_logger is not None:
            response_logger(response)
        return response

    async def _send_checked(self, request: httpx.Request, **kwargs: Any) -> httpx.Response:
        self._check_body_length(request)
        try:
            response = await super().send(request, **kwargs)
        except httpx.TransportError as exc:
            raise error_from_transport(request, exc) from exc

        await self._check_content_length(response)
        if response.is_error:
            await response.aread()
            raise error_from_response(request, response)
        return response

    def _check_body_length(self, request: httpx.Request) -> None:
        limit = self.configuration.max_body_length
        declared = request.headers.get("Content-Length")
        if declared and declared.isdigit() and int(declared) > limit:
            raise PayloadTooLargeError(
                f"Request body of {declared} bytes exceeds max_body_length={limit}",
                limit=limit,
                size=int(declared),
            )

    async def _check_content_length(self, response: httpx.Response) -> None:
        limit = self.configuration.max_content_length
        try:
            size = len(response.content)
        except httpx.ResponseNotRead:
            declared = response.headers.get("Content-Length", "")
            size = int(declared) if declared.isdigit() else 0
        if size > limit:
            await response.aclose()
            raise PayloadTooLargeError(
                f"Response body of {size} bytes exceeds max_content_length={limit}",
                limit=limit,
                size=size,
            )

    def clone_with_new_params(self, **new_params: Any) -> "HttpClient":
        """Build an independent client from a copy of this one's options."""
        options = dataclasses.replace(clone_options(self.http_client_params), **new_params)
        return create_http_client(options, client_cls=type(self))


def clone_options(options: ClientOptions) -> ClientOptions:
    # Plain data is deep-copied; callables and transports are shared.
    memo: Dict[int, Any] = {}
    for field in dataclasses.fields(options):
        value = getattr(options, field.name)
        if not isinstance(value, _PLAIN_TYPES):
            memo[id(value)] = value
    return copy.deepcopy(options, memo)


def transport_options(configuration: ClientConfiguration) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {
        "base_url": configuration.base_url,
        "headers": dict(configuration.headers),
        "timeout": httpx.Timeout(configuration.timeout),
    }
    if configuration.adapter is not None:
        kwargs["transport"] = configuration.adapter
    mounts: Dict[str, httpx.AsyncBaseTransport] = {}
    if configuration.http_agent is not None:
        mounts["http://"] = configuration.http_agent
    if configuration.https_agent is not None:
        mounts["https://"] = configuration.https_agent
    if mounts:
        kwargs["mounts"] = mounts
    if configuration.proxy is not None:
        kwargs["proxy"] = configuration.proxy
    return kwargs


def create_http_client(
    options: Union[ClientOptions, Mapping[str, Any], None],
    client_cls: Type[HttpClient] = HttpClient,
) -> HttpClient:
    """Create a pre-configured client.

    Stages are attached in a fixed order: ``on_before_request``, token
    injection for producer credentials, throttling when ``throttle > 0``,
    retries unless ``retry_on_error`` is false, then ``on_error``.
    """
    params = coerce_options(options)
    configuration = resolve_config(params)
    client = client_cls(
        configuration=configuration,
        http_client_params=params,
        **transport_options(configuration),
    )

    if configuration.on_before_request is not None:
        client.pipeline.use("on_before_request", BeforeRequestStage(configuration.on_before_request))

    if isinstance(configuration.credential, DynamicCredential):
        client.pipeline.use("auth", AuthTokenInjector(configuration.credential.producer))

    if configuration.throttle:
        client.pipeline.use(
            "throttle",
            RateLimitThrottle(
                configuration.throttle,
                interval=configuration.throttle_interval,
                log_handler=configuration.log_handler,
            ),
        )

    if configuration.retry_on_error:
        client.pipeline.use(
            "retry",
            RetryOnError(configuration.retry_limit, log_handler=configuration.log_handler),
        )

    if configuration.on_error is not None:
        client.pipeline.use("on_error", ErrorStage(configuration.on_error))

    return client


__all__ = ["HttpClient", "clone_options", "create_http_client", "transport_options"]
