from __future__ import annotations

from typing import Any, Callable, List, Tuple

import httpx
import pytest

from space_http import HttpClient, create_http_client
from space_http import retry as retry_module


@pytest.fixture()
def no_backoff(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(retry_module, "exponential_backoff", lambda attempt: 0.0)


@pytest.fixture()
def log_calls() -> List[Tuple[str, Any]]:
    return []


@pytest.fixture()
def make_client(log_calls: List[Tuple[str, Any]]) -> Callable[..., HttpClient]:
    def factory(handler: Callable[[httpx.Request], Any], **overrides: Any) -> HttpClient:
        options = dict(
            access_token="test-token",
            default_hostname="api.example.com",
            space="space-1",
            adapter=httpx.MockTransport(handler),
            log_handler=lambda level, data: log_calls.append((level, data)),
        )
        options.update(overrides)
        return create_http_client(options)

    return factory
