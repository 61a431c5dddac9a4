"""Unit tests for request ids and structured logging (shhoook/utils/)."""

from __future__ import annotations

import json
from typing import Any

import structlog
from ulid import ULID

from shhoook.utils.logger import (
    clear_request_id,
    configure_logging,
    get_logger,
    set_request_id,
)
from shhoook.utils.ulid import generate_request_id

_CROCKFORD = set("0123456789ABCDEFGHJKMNPQRSTVWXYZ")


class TestGenerateRequestId:
    def test_format(self) -> None:
        request_id = generate_request_id()
        assert len(request_id) == 26
        assert set(request_id) <= _CROCKFORD
        assert str(ULID.from_str(request_id)) == request_id

    def test_unique(self) -> None:
        assert len({generate_request_id() for _ in range(1000)}) == 1000


class TestLogger:
    def test_request_id_bound_into_log_lines(self, capsys: Any) -> None:
        configure_logging(log_level="INFO", json_output=True)
        set_request_id("01TESTREQUESTID0000000000A")
        try:
            get_logger("test").info("something_happened", detail=1)
        finally:
            clear_request_id()
        line = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert line["event"] == "something_happened"
        assert line["detail"] == 1
        assert line["level"] == "info"
        assert line["request_id"] == "01TESTREQUESTID0000000000A"
        assert "request_id" not in structlog.contextvars.get_contextvars()

    def test_level_filtering(self, capsys: Any) -> None:
        configure_logging(log_level="ERROR", json_output=True)
        try:
            get_logger("test").info("hidden_event")
            assert "hidden_event" not in capsys.readouterr().out
        finally:
            configure_logging()

    def test_unknown_level_falls_back_to_info(self, capsys: Any) -> None:
        configure_logging(log_level="chatty", json_output=True)
        try:
            get_logger("test").info("visible_event")
            assert "visible_event" in capsys.readouterr().out
        finally:
            configure_logging()
