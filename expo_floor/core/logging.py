"""
Exhibition floor plan service — logging.

Two things live here:

* ``configure_logging()`` sets up the root logger for the service process.
  ``expo_floor.app`` calls it once at import time; later calls are no-ops.
* The access log.  Every HTTP request produces exactly one line on the
  ``expo_floor.access`` logger::

      request_log {"method": "GET", "path": "/api/floor-plans/3", "status": 200,
                   "duration_ms": 4.2, "request_id": "…", "caller": "owner-1"}

  The JSON payload is what log shippers parse; keep the key set stable.
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from typing import Any, Mapping, Optional

from expo_floor import config

REQUEST_ID_HEADER = "X-Request-ID"
REQUEST_LOG_PREFIX = "request_log"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Libraries that log every connection or statement at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "uvicorn.access")

access_logger = logging.getLogger("expo_floor.access")

_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    """Send service logs to stdout at ``level`` (default ``config.LOG_LEVEL``).

    Handlers that uvicorn installed before us are left alone.
    """
    global _configured
    if _configured:
        return

    name = (level or config.LOG_LEVEL).upper()
    resolved = logging.getLevelName(name)
    if not isinstance(resolved, int):
        resolved = logging.INFO

    root = logging.getLogger()
    root.setLevel(resolved)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
        root.addHandler(handler)

    for noisy in _QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    _configured = True


def request_id_from(headers: Mapping[str, str]) -> str:
    """The caller's request id, or a fresh one."""
    return headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex


def format_request_log(
    method: str,
    path: str,
    status: int,
    duration_ms: float,
    request_id: str,
    caller: Optional[Any] = None,
) -> str:
    payload = {
        "method": method,
        "path": path,
        "status": status,
        "duration_ms": round(duration_ms, 1),
        "request_id": request_id,
        "caller": caller,
    }
    return f"{REQUEST_LOG_PREFIX} {json.dumps(payload)}"


def log_request(**fields: Any) -> None:
    """Emit the access-log line; 5xx responses are logged as warnings."""
    level = logging.WARNING if fields.get("status", 0) >= 500 else logging.INFO
    access_logger.log(level, format_request_log(**fields))
