"""
Exhibition floor plan service — Centralised router registration.

This module is the single place where every APIRouter is mounted onto the
FastAPI application.  Import and call ``register_routes(app)`` once in
``expo_floor.app``.

Routers with fixed paths under ``/api/floor-plans`` (master, statistics,
shared links) are mounted before the ``/{id}`` routes.

  GET  /api/health               — DB connectivity and runtime counters
"""

from __future__ import annotations

import asyncio
import logging
import time

from fastapi import APIRouter, FastAPI

from expo_floor import __version__
from expo_floor.api.schemas import HealthResponse
from expo_floor.metrics import metrics_snapshot

logger = logging.getLogger(__name__)

# Module-level start time for uptime reporting
_START_TIME: float = time.time()


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

system_router = APIRouter(prefix="/api", tags=["system"])


def _ping_db() -> bool:
    from expo_floor.database import check_connection, get_db

    db = get_db()
    try:
        return check_connection(db)
    finally:
        db.close()


@system_router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health_check():
    db_connected = await asyncio.to_thread(_ping_db)
    snapshot = metrics_snapshot()
    return HealthResponse(
        status="ok" if db_connected else "degraded",
        version=__version__,
        db_connected=db_connected,
        uptime_seconds=round(time.time() - _START_TIME, 1),
        share_links_issued=snapshot["share_links_issued"],
        renders=snapshot["renders"],
        master_conflicts_retried=snapshot["master_conflicts_retried"],
        errors_last_hour=snapshot["errors_last_hour"],
    )


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

def register_routes(app: FastAPI) -> None:
    """Mount all routers onto ``app``.

    Call this once from ``expo_floor.app`` after creating the FastAPI instance.
    """
    from expo_floor.auth import router as auth_router
    from expo_floor.routers import master, analytics, sharing, floor_plans, booths

    app.include_router(auth_router)
    app.include_router(master.router)
    app.include_router(analytics.router)
    app.include_router(sharing.router)
    app.include_router(floor_plans.router)
    app.include_router(booths.router)
    app.include_router(system_router)

    logger.info("Routes registered: %d total endpoints", len(app.routes))
