from __future__ import annotations

import httpx
import pytest

from space_http.errors import (
    ClientError,
    ErrorDetails,
    RateLimitError,
    ServerError,
    TransientNetworkError,
    error_from_response,
    error_from_transport,
    mask_token,
)


def make_request() -> httpx.Request:
    return httpx.Request(
        "GET",
        "https://api.example.com/spaces/s1/entries",
        headers={"Authorization": "Bearer secret-token-12345"},
    )


@pytest.mark.parametrize(
    ("status", "error_cls", "retryable"),
    [
        (429, RateLimitError, True),
        (500, ServerError, True),
        (503, ServerError, True),
        (400, ClientError, False),
        (401, ClientError, False),
        (404, ClientError, False),
    ],
)
def test_error_from_response_classifies_status(status: int, error_cls: type, retryable: bool) -> None:
    request = make_request()
    error = error_from_response(request, httpx.Response(status, request=request))
    assert type(error) is error_cls
    assert error.retryable is retryable
    assert error.status_code == status
    assert error.attempts == 1


def test_error_details_parse_body_and_mask_token() -> None:
    request = make_request()
    response = httpx.Response(
        404,
        json={
            "sys": {"type": "Error", "id": "NotFound"},
            "message": "The resource could not be found.",
            "details": {"type": "Entry", "id": "abc"},
            "requestId": "req-1",
        },
        request=request,
    )

    error = error_from_response(request, response)

    assert str(error) == "404 Not Found: The resource could not be found."
    assert error.details.error_id == "NotFound"
    assert error.details.request_id == "req-1"
    assert error.details.details == {"type": "Entry", "id": "abc"}
    assert error.details.status_text == "Not Found"
    assert error.details.request.method == "GET"
    assert error.details.request.headers["authorization"] == "Bearer ...12345"


def test_request_id_header_wins_over_body() -> None:
    request = make_request()
    response = httpx.Response(500, headers={"X-Request-Id": "hdr"}, json={"requestId": "body"}, request=request)
    assert ErrorDetails.from_exchange(request, response).request_id == "hdr"


def test_non_json_body_is_tolerated() -> None:
    request = make_request()
    error = error_from_response(request, httpx.Response(502, text="<html>bad gateway</html>", request=request))
    assert error.details.message is None
    assert str(error) == "502 Bad Gateway"


def test_transport_errors_become_transient_network_errors() -> None:
    request = make_request()
    error = error_from_transport(request, httpx.ReadTimeout("timed out", request=request))
    assert isinstance(error, TransientNetworkError)
    assert error.retryable
    assert error.status_code is None
    assert error.details.status is None
    assert "ReadTimeout" in str(error)


@pytest.mark.parametrize(
    ("value", "expected"),
    [("Bearer abcdefghij", "Bearer ...fghij"), ("rawtoken", "...token")],
)
def test_mask_token(value: str, expected: str) -> None:
    assert mask_token(value) == expected
