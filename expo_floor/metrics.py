"""
Lightweight runtime metrics for health/observability.

Uses in-process counters so it works without extra dependencies.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Deque, Dict

RENDER_OUTCOMES = ("ok", "failed", "timeout")


class _RuntimeMetrics:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._share_links_issued = 0
        self._renders: Dict[str, int] = {o: 0 for o in RENDER_OUTCOMES}
        self._master_conflicts = 0
        self._error_timestamps: Deque[float] = deque()

    def record_share_link_issued(self) -> None:
        with self._lock:
            self._share_links_issued += 1

    def record_render(self, outcome: str) -> None:
        if outcome not in self._renders:
            raise ValueError(f"Unknown render outcome: {outcome}")
        with self._lock:
            self._renders[outcome] += 1

    def record_master_conflict(self) -> None:
        with self._lock:
            self._master_conflicts += 1

    def record_error(self, ts: float | None = None) -> None:
        now = ts if ts is not None else time.time()
        with self._lock:
            self._error_timestamps.append(now)
            self._prune_locked(now)

    def snapshot(self) -> Dict[str, object]:
        now = time.time()
        with self._lock:
            self._prune_locked(now)
            return {
                "share_links_issued": self._share_links_issued,
                "renders": dict(self._renders),
                "master_conflicts_retried": self._master_conflicts,
                "errors_last_hour": len(self._error_timestamps),
            }

    def reset_for_tests(self) -> None:
        with self._lock:
            self._share_links_issued = 0
            self._renders = {o: 0 for o in RENDER_OUTCOMES}
            self._master_conflicts = 0
            self._error_timestamps.clear()

    def _prune_locked(self, now: float) -> None:
        cutoff = now - 3600.0
        while self._error_timestamps and self._error_timestamps[0] < cutoff:
            self._error_timestamps.popleft()


_METRICS = _RuntimeMetrics()


def record_share_link_issued() -> None:
    _METRICS.record_share_link_issued()


def record_render(outcome: str) -> None:
    _METRICS.record_render(outcome)


def record_master_conflict() -> None:
    _METRICS.record_master_conflict()


def record_error(ts: float | None = None) -> None:
    _METRICS.record_error(ts)


def metrics_snapshot() -> Dict[str, object]:
    return _METRICS.snapshot()


def reset_metrics_for_tests() -> None:
    _METRICS.reset_for_tests()
