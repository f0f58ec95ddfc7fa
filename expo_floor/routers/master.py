"""
Master Plan Endpoints
GET      /api/floor-plans/master   - the master plan (404 if none yet)
POST|PUT /api/floor-plans/master   - create it, or update it in place
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Response

from expo_floor.access import authorize_create, authorize_mutation
from expo_floor.api.schemas import FloorPlanCreate, envelope
from expo_floor.auth import require_caller
from expo_floor.booths.state_machine import merge_shapes
from expo_floor.core.errors import NotFound
from expo_floor.database import get_db
from expo_floor.domain.models import CallerIdentity, dump_plan, dump_shape
from expo_floor.master import create_or_update_master, get_master

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/floor-plans/master", tags=["master"])


@router.get("")
async def get_master_plan():
    def _sync():
        db = get_db()
        try:
            plan = get_master(db)
            if plan is None:
                raise NotFound("No master floor plan has been created yet")
            return envelope(dump_plan(plan))
        finally:
            db.close()

    return await asyncio.to_thread(_sync)


@router.api_route("", methods=["POST", "PUT"])
async def save_master_plan(
    body: FloorPlanCreate,
    response: Response,
    caller: CallerIdentity = Depends(require_caller),
):
    """201 when this call created the master, 200 when it updated it."""
    authorize_create(caller.role)
    data = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    if data.get("shapes") is not None:
        data["shapes"] = [dump_shape(s) for s in merge_shapes([], data["shapes"])]

    def _sync():
        db = get_db()
        try:
            existing = get_master(db)
            if existing is not None:
                authorize_mutation(existing, caller.id, caller.role)
            plan = create_or_update_master(db, data, caller_id=caller.id)
            if existing is None:
                response.status_code = 201
                return envelope(dump_plan(plan), "Master floor plan created")
            return envelope(dump_plan(plan), "Master floor plan saved")
        finally:
            db.close()

    return await asyncio.to_thread(_sync)
