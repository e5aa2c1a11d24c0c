from __future__ import annotations

import logging

import pytest

from space_http.errors import ConfigurationError
from space_http.logging import default_log_handler


def test_default_handler_forwards_levels(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="space_http"):
        default_log_handler("warning", "Rate limit error occurred.")
        default_log_handler("info", "Throttle request to 2/1s")

    assert [(r.levelno, r.getMessage()) for r in caplog.records] == [
        (logging.WARNING, "[warning] Rate limit error occurred."),
        (logging.INFO, "[info] Throttle request to 2/1s"),
    ]


def test_default_handler_logs_exceptions_with_title(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR, logger="space_http"):
        default_log_handler("error", ConfigurationError("Expected parameter access_token"))

    record = caplog.records[0]
    assert record.getMessage() == "[error] ConfigurationError - Expected parameter access_token"
    assert record.exc_info is not None
