"""Tests for bearer token handling."""

import time

from starlette.requests import Request

from expo_floor import auth
from expo_floor.domain.enums import Role


def _request(headers: dict) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/api/floor-plans",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "query_string": b"",
    }
    return Request(scope)


def test_round_trip():
    token = auth.create_token("u1", "admin", name="Ada")
    payload = auth.decode_token(token)
    assert payload["sub"] == "u1"
    assert payload["role"] == "admin"
    assert payload["name"] == "Ada"
    assert payload["exp"] > time.time()


def test_tampered_token_rejected():
    token = auth.create_token("u1", "viewer")
    payload_b64, sig = token.split(".", 1)
    forged = auth.create_token("u1", "admin").split(".", 1)[0]
    assert auth.decode_token(f"{forged}.{sig}") is None
    assert auth.decode_token("garbage") is None


def test_expired_token_rejected():
    token = auth.create_token("u1", "viewer", ttl_seconds=-10)
    assert auth.decode_token(token) is None


def test_get_caller_from_bearer_header():
    token = auth.create_token("u7", "exhibitor")
    caller = auth.get_caller(_request({"Authorization": f"Bearer {token}"}))
    assert caller.id == "u7"
    assert caller.role == Role.EXHIBITOR


def test_get_caller_without_header():
    assert auth.get_caller(_request({})) is None
    assert auth.get_caller(_request({"Authorization": "Basic abc"})) is None
