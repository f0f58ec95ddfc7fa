"""
Caller identity for the floor plan service.

Identity is issued by an external provider.  Callers present it as

    Authorization: Bearer <payload_b64>.<sig>

where the payload is base64url JSON ``{sub, role, name?, exp}`` and the
signature is HMAC-SHA256 over the payload with ``config.AUTH_SECRET``.
``create_token`` exists so development tooling and tests can mint tokens.

Routes pull the caller in through the ``require_caller`` / ``optional_caller``
dependencies.
"""

import time
import json
import hmac
import hashlib
import base64
import binascii
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request

from expo_floor import config
from expo_floor.core.errors import NotAuthenticated
from expo_floor.domain.enums import Role
from expo_floor.domain.models import CallerIdentity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


# ---------------------------------------------------------------------------
# HMAC-signed tokens (no external JWT dependency)
# ---------------------------------------------------------------------------

def _sign(payload_bytes: bytes) -> str:
    """Create HMAC-SHA256 signature."""
    return hmac.new(config.AUTH_SECRET.encode(), payload_bytes, hashlib.sha256).hexdigest()


def create_token(
    user_id: str,
    role: str = Role.VIEWER.value,
    name: Optional[str] = None,
    ttl_seconds: Optional[int] = None,
) -> str:
    """Create a signed identity token."""
    ttl = config.AUTH_TOKEN_TTL_SECONDS if ttl_seconds is None else ttl_seconds
    payload = {
        "sub": str(user_id),
        "role": Role(role).value,
        "name": name,
        "exp": int(time.time()) + int(ttl),
    }
    payload_b64 = base64.urlsafe_b64encode(json.dumps(payload).encode()).decode()
    sig = _sign(payload_b64.encode())
    return f"{payload_b64}.{sig}"


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify a signed token.  None if forged, malformed or expired."""
    parts = token.split(".", 1)
    if len(parts) != 2:
        return None
    payload_b64, sig = parts
    expected_sig = _sign(payload_b64.encode())
    if not hmac.compare_digest(sig, expected_sig):
        return None
    try:
        payload = json.loads(base64.urlsafe_b64decode(payload_b64))
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    if not isinstance(payload, dict) or payload.get("exp", 0) < time.time():
        return None
    return payload


def get_caller(request: Request) -> Optional[CallerIdentity]:
    """Extract the caller from the Bearer token, if a valid one is present."""
    auth_header = request.headers.get("authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    payload = decode_token(auth_header[7:].strip())
    if not payload or not payload.get("sub"):
        return None
    try:
        role = Role(payload.get("role", Role.VIEWER.value))
    except ValueError:
        logger.warning("Token for %s carries unknown role %r", payload.get("sub"), payload.get("role"))
        return None
    return CallerIdentity(id=str(payload["sub"]), role=role, name=payload.get("name"))


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------

def optional_caller(request: Request) -> Optional[CallerIdentity]:
    caller = get_caller(request)
    request.state.caller = caller.id if caller else None
    return caller


def require_caller(request: Request) -> CallerIdentity:
    caller = optional_caller(request)
    if caller is None:
        raise NotAuthenticated("Authentication required")
    return caller


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.get("/me")
async def me(caller: CallerIdentity = Depends(require_caller)):
    """Return the identity behind the presented token, or 401."""
    return {
        "success": True,
        "data": {"id": caller.id, "role": caller.role.value, "name": caller.name},
    }
