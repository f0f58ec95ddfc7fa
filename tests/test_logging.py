"""Tests for expo_floor.core.logging."""

import json
import logging

from expo_floor.core import logging as log_setup


def _payload(line: str) -> dict:
    prefix, body = line.split(" ", 1)
    assert prefix == "request_log"
    return json.loads(body)


class TestRequestLog:
    def test_line_carries_fixed_keys(self):
        line = log_setup.format_request_log(
            method="PUT", path="/api/floor-plans/3", status=409,
            duration_ms=12.345, request_id="r1", caller="owner-1",
        )
        assert _payload(line) == {
            "method": "PUT",
            "path": "/api/floor-plans/3",
            "status": 409,
            "duration_ms": 12.3,
            "request_id": "r1",
            "caller": "owner-1",
        }

    def test_server_errors_logged_as_warning(self, caplog):
        with caplog.at_level(logging.INFO, logger="expo_floor.access"):
            log_setup.log_request(method="GET", path="/a", status=200, duration_ms=1, request_id="x")
            log_setup.log_request(method="GET", path="/b", status=503, duration_ms=1, request_id="y")
        levels = {_payload(r.getMessage())["path"]: r.levelno for r in caplog.records}
        assert levels == {"/a": logging.INFO, "/b": logging.WARNING}


class TestRequestId:
    def test_incoming_id_kept(self):
        assert log_setup.request_id_from({"X-Request-ID": "abc"}) == "abc"

    def test_missing_id_generated(self):
        first = log_setup.request_id_from({})
        assert first and first != log_setup.request_id_from({})


def test_configure_logging_runs_once(monkeypatch):
    root = logging.getLogger()
    monkeypatch.setattr(log_setup, "_configured", False)
    monkeypatch.setattr(root, "level", root.level)

    log_setup.configure_logging("DEBUG")
    assert root.level == logging.DEBUG
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    log_setup.configure_logging("ERROR")
    assert root.level == logging.DEBUG
