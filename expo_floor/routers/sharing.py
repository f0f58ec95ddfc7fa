"""
Sharing and Export Endpoints
POST /api/floor-plans/{id}/share          - issue a time-limited share link
GET  /api/floor-plans/shared/{token}      - read a plan through a share link, no auth
GET  /api/floor-plans/{id}/export         - download as json, pdf or png
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import Response

from expo_floor.api.schemas import ShareLinkRequest, envelope
from expo_floor.auth import optional_caller, require_caller
from expo_floor.database import get_db
from expo_floor.domain.models import CallerIdentity, dump_plan
from expo_floor.routers.floor_plans import load_plan_for_read
from expo_floor.sharing.export import RenderClient, export_floor_plan
from expo_floor.sharing.share_links import generate_share_link, resolve_share_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/floor-plans", tags=["sharing"])


def get_renderer() -> RenderClient:
    """Rasterizer client; tests override this dependency."""
    return RenderClient()


@router.post("/{plan_id:int}/share", status_code=201)
async def share_plan(
    plan_id: int,
    body: Optional[ShareLinkRequest] = Body(None),
    caller: CallerIdentity = Depends(require_caller),
):
    expires_in = body.expires_in if body else None

    def _sync():
        db = get_db()
        try:
            link = generate_share_link(db, plan_id, expires_in, caller)
            return envelope(
                {
                    "token": link.token,
                    "floorPlanId": link.floor_plan_id,
                    "expiresAt": link.expires_at.isoformat(),
                    "path": f"/api/floor-plans/shared/{link.token}",
                },
                "Share link created",
            )
        finally:
            db.close()

    return await asyncio.to_thread(_sync)


@router.get("/shared/{token}")
async def get_shared_plan(token: str):
    def _sync():
        db = get_db()
        try:
            return envelope(dump_plan(resolve_share_token(db, token), include_transient=False))
        finally:
            db.close()

    return await asyncio.to_thread(_sync)


@router.get("/{plan_id:int}/export")
async def export_plan(
    plan_id: int,
    fmt: str = Query("json", alias="format", description="json, pdf or png"),
    caller: Optional[CallerIdentity] = Depends(optional_caller),
    renderer: RenderClient = Depends(get_renderer),
):
    def _load():
        db = get_db()
        try:
            return load_plan_for_read(db, plan_id, caller)
        finally:
            db.close()

    plan = await asyncio.to_thread(_load)
    result = await export_floor_plan(plan, fmt, renderer)
    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )
