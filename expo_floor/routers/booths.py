"""
Booth Endpoints
GET    /api/floor-plans/{id}/booths                          - list booths (filters)
POST   /api/floor-plans/{id}/booths                          - add a booth
PUT    /api/floor-plans/{id}/booths/{shapeId}                - update a booth
PATCH  /api/floor-plans/{id}/booths/{shapeId}/status         - change status
PATCH  /api/floor-plans/{id}/booths/{shapeId}/position       - move / resize
DELETE /api/floor-plans/{id}/booths/{shapeId}                - remove a booth
GET    /api/floor-plans/{id}/booths/{number}/neighbors       - nearby booths

Every write re-reads the plan, applies a pure transform from
``expo_floor.booths.state_machine`` and stores the result against the
revision it read.
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from expo_floor.api.schemas import BoothCreate, BoothUpdate, PositionUpdate, StatusUpdate, envelope
from expo_floor.auth import optional_caller, require_caller
from expo_floor.booths.neighbors import get_neighboring_booths
from expo_floor.booths.state_machine import (
    add_booth,
    list_booths,
    move_booth,
    remove_booth,
    update_booth,
)
from expo_floor.database import get_db
from expo_floor.domain.models import CallerIdentity, dump_shape
from expo_floor.routers.floor_plans import load_plan_for_read, load_plan_for_write, save_shapes

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/floor-plans/{plan_id:int}/booths", tags=["booths"])


@router.get("")
async def get_booths(
    plan_id: int,
    status: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    exhibitor_id: Optional[str] = Query(None, alias="exhibitorId"),
    search: Optional[str] = Query(None),
    caller: Optional[CallerIdentity] = Depends(optional_caller),
):
    def _sync():
        db = get_db()
        try:
            plan = load_plan_for_read(db, plan_id, caller)
            booths = list_booths(
                plan, status=status, category=category, exhibitor_id=exhibitor_id, search=search,
            )
            return envelope([dump_shape(b) for b in booths])
        finally:
            db.close()

    return await asyncio.to_thread(_sync)


@router.post("", status_code=201)
async def create_booth(
    plan_id: int,
    body: BoothCreate,
    caller: CallerIdentity = Depends(require_caller),
):
    def _sync():
        db = get_db()
        try:
            plan = load_plan_for_write(db, plan_id, caller)
            updated, booth = add_booth(plan, body.model_dump(exclude_none=True))
            save_shapes(db, plan, updated.shapes, caller)
            logger.info("Booth %s added to floor plan %s", booth.metadata.booth_number, plan_id)
            return envelope(dump_shape(booth), "Booth added")
        finally:
            db.close()

    return await asyncio.to_thread(_sync)


@router.put("/{shape_id}")
async def put_booth(
    plan_id: int,
    shape_id: str,
    body: BoothUpdate,
    caller: CallerIdentity = Depends(require_caller),
):
    def _sync():
        db = get_db()
        try:
            plan = load_plan_for_write(db, plan_id, caller)
            updated, booth = update_booth(plan, shape_id, body.model_dump(exclude_unset=True, exclude_none=True))
            save_shapes(db, plan, updated.shapes, caller)
            return envelope(dump_shape(booth), "Booth updated")
        finally:
            db.close()

    return await asyncio.to_thread(_sync)


@router.patch("/{shape_id}/status")
async def patch_booth_status(
    plan_id: int,
    shape_id: str,
    body: StatusUpdate,
    caller: CallerIdentity = Depends(require_caller),
):
    def _sync():
        db = get_db()
        try:
            plan = load_plan_for_write(db, plan_id, caller)
            # Unknown or non-booth shape ids are a 404 here.
            updated, booth = update_booth(plan, shape_id, {"status": body.status})
            save_shapes(db, plan, updated.shapes, caller)
            return envelope(dump_shape(booth), f"Booth status set to {booth.metadata.status.value}")
        finally:
            db.close()

    return await asyncio.to_thread(_sync)


@router.patch("/{shape_id}/position")
async def patch_booth_position(
    plan_id: int,
    shape_id: str,
    body: PositionUpdate,
    caller: CallerIdentity = Depends(require_caller),
):
    def _sync():
        db = get_db()
        try:
            plan = load_plan_for_write(db, plan_id, caller)
            updated, booth = move_booth(plan, shape_id, body.model_dump(exclude_none=True))
            save_shapes(db, plan, updated.shapes, caller)
            return envelope(dump_shape(booth), "Booth moved")
        finally:
            db.close()

    return await asyncio.to_thread(_sync)


@router.delete("/{shape_id}")
async def delete_booth(
    plan_id: int,
    shape_id: str,
    caller: CallerIdentity = Depends(require_caller),
):
    def _sync():
        db = get_db()
        try:
            plan = load_plan_for_write(db, plan_id, caller)
            updated = remove_booth(plan, shape_id)
            save_shapes(db, plan, updated.shapes, caller)
            return envelope({"id": shape_id}, "Booth removed")
        finally:
            db.close()

    return await asyncio.to_thread(_sync)


@router.get("/{booth_number}/neighbors")
async def get_neighbors(
    plan_id: int,
    booth_number: str,
    radius: Optional[int] = Query(None, description="Search radius in grid cells"),
    limit: Optional[int] = Query(None, ge=0),
    caller: Optional[CallerIdentity] = Depends(optional_caller),
):
    def _sync():
        db = get_db()
        try:
            plan = load_plan_for_read(db, plan_id, caller)
            neighbors = get_neighboring_booths(plan, booth_number, radius_cells=radius, limit=limit)
            return envelope([
                {**dump_shape(n.shape), "distance": round(n.distance, 2)}
                for n in neighbors
            ])
        finally:
            db.close()

    return await asyncio.to_thread(_sync)
