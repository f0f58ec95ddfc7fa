"""
expo_floor.exhibitors — Lookup of exhibitor profiles.

The exhibitor directory is an external service; this module only needs an
exhibitor's id, booth number and company name.  Two implementations:

* ``HttpExhibitorDirectory`` talks to ``config.EXHIBITOR_DIRECTORY_URL``
  (``GET /exhibitors/{id}`` and ``GET /exhibitors?boothNumber=``).
* ``StaticExhibitorDirectory`` holds an in-memory map, used when no URL is
  configured and in tests.

Lookups fail open: an unreachable directory is logged and treated as
"unknown exhibitor", so views degrade to no highlighted booth.

Typical usage::

    from expo_floor.exhibitors import get_exhibitor_directory
    exhibitor = get_exhibitor_directory().get_by_id("42")
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Iterable, Optional

import httpx

from expo_floor import config
from expo_floor.domain.models import Exhibitor

logger = logging.getLogger(__name__)


class ExhibitorDirectory:
    def get_by_id(self, exhibitor_id: str) -> Optional[Exhibitor]:
        raise NotImplementedError

    def get_by_booth_number(self, booth_number: str) -> Optional[Exhibitor]:
        raise NotImplementedError


class StaticExhibitorDirectory(ExhibitorDirectory):
    def __init__(self, exhibitors: Iterable[Exhibitor] = ()) -> None:
        self._by_id: Dict[str, Exhibitor] = {str(e.id): e for e in exhibitors}

    def add(self, exhibitor: Exhibitor) -> None:
        self._by_id[str(exhibitor.id)] = exhibitor

    def get_by_id(self, exhibitor_id: str) -> Optional[Exhibitor]:
        return self._by_id.get(str(exhibitor_id))

    def get_by_booth_number(self, booth_number: str) -> Optional[Exhibitor]:
        for exhibitor in self._by_id.values():
            if exhibitor.booth_number == booth_number:
                return exhibitor
        return None


class HttpExhibitorDirectory(ExhibitorDirectory):
    """Directory client with a bounded timeout.

    Parameters
    ----------
    base_url:
        Root of the directory API.
    timeout:
        Seconds before a lookup is abandoned.
    transport:
        Optional httpx transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _get(self, path: str, params: Optional[dict] = None) -> Optional[dict]:
        try:
            with httpx.Client(
                base_url=self._base_url, timeout=self._timeout, transport=self._transport,
            ) as client:
                resp = client.get(path, params=params)
        except httpx.HTTPError as exc:
            logger.warning("Exhibitor directory unreachable (%s): %s", path, exc)
            return None
        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            logger.warning("Exhibitor directory returned HTTP %d for %s", resp.status_code, path)
            return None
        try:
            body = resp.json()
        except ValueError:
            logger.warning("Exhibitor directory sent invalid JSON for %s", path)
            return None
        # Accept both a bare object and the {success, data} envelope.
        if isinstance(body, dict) and isinstance(body.get("data"), (dict, list)):
            body = body["data"]
        if isinstance(body, list):
            body = body[0] if body else None
        return body if isinstance(body, dict) else None

    def get_by_id(self, exhibitor_id: str) -> Optional[Exhibitor]:
        data = self._get(f"/exhibitors/{exhibitor_id}")
        return Exhibitor.from_dict(data) if data else None

    def get_by_booth_number(self, booth_number: str) -> Optional[Exhibitor]:
        data = self._get("/exhibitors", params={"boothNumber": booth_number})
        return Exhibitor.from_dict(data) if data else None


_directory_singleton: Optional[ExhibitorDirectory] = None
_directory_lock = threading.Lock()


def get_exhibitor_directory() -> ExhibitorDirectory:
    global _directory_singleton
    if _directory_singleton is not None:
        return _directory_singleton

    with _directory_lock:
        if _directory_singleton is not None:
            return _directory_singleton
        if config.EXHIBITOR_DIRECTORY_URL:
            _directory_singleton = HttpExhibitorDirectory(
                config.EXHIBITOR_DIRECTORY_URL,
                timeout=config.EXHIBITOR_DIRECTORY_TIMEOUT_SECONDS,
            )
        else:
            _directory_singleton = StaticExhibitorDirectory()
        return _directory_singleton


def set_exhibitor_directory(directory: Optional[ExhibitorDirectory]) -> None:
    """Install a directory (or clear it with None so the next call rebuilds)."""
    global _directory_singleton
    with _directory_lock:
        _directory_singleton = directory
