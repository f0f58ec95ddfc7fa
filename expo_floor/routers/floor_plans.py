"""
Floor Plan Endpoints
GET    /api/floor-plans                        - plans visible to the caller
POST   /api/floor-plans                        - create a plan (admin, editor)
GET    /api/floor-plans/public                 - public plans, no auth
GET    /api/floor-plans/public/{id}            - one public plan, no auth
GET    /api/floor-plans/find-booth/{number}    - locate a booth across plans
GET    /api/floor-plans/{id}                   - one plan
PUT    /api/floor-plans/{id}                   - update a plan
DELETE /api/floor-plans/{id}                   - delete a plan
PATCH  /api/floor-plans/{id}/quick-save        - merge the editor's shapes
POST   /api/floor-plans/{id}/duplicate         - private copy for the caller
POST   /api/floor-plans/{id}/reset             - remove every shape
GET    /api/floor-plans/{id}/exhibitor-view    - shapes with the caller's booths flagged
"""

import asyncio
import logging
import math
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from expo_floor import config
from expo_floor.access import authorize_create, authorize_delete, authorize_mutation, authorize_read
from expo_floor.api.schemas import FloorPlanCreate, FloorPlanUpdate, QuickSaveRequest, envelope
from expo_floor.auth import optional_caller, require_caller
from expo_floor.booths.resolver import find_booth_by_number, resolve_for_exhibitor
from expo_floor.booths.state_machine import merge_shapes
from expo_floor.core.errors import Forbidden, NotAuthenticated
from expo_floor.database import (
    get_db,
    create_floor_plan,
    get_floor_plan,
    find_floor_plans,
    update_floor_plan,
    delete_floor_plan,
)
from expo_floor.domain.enums import Role
from expo_floor.domain.models import CallerIdentity, FloorPlan, Shape, dump_plan, dump_shape
from expo_floor.exhibitors import get_exhibitor_directory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/floor-plans", tags=["floor-plans"])

# Fields a client may clear by sending null.
_NULLABLE = {"description", "floor", "background_image_ref", "thumbnail_ref"}


# ---------------------------------------------------------------------------
# Shared helpers (also used by the booth, sharing and analytics routers)
# ---------------------------------------------------------------------------

def load_plan_for_read(db: Session, plan_id: int, caller: Optional[CallerIdentity]) -> FloorPlan:
    plan = get_floor_plan(db, plan_id)
    if plan.is_public:
        return plan
    if caller is None:
        raise NotAuthenticated("Authentication required")
    authorize_read(plan, caller.id, caller.role)
    return plan


def load_plan_for_write(db: Session, plan_id: int, caller: CallerIdentity) -> FloorPlan:
    plan = get_floor_plan(db, plan_id)
    authorize_mutation(plan, caller.id, caller.role)
    return plan


def save_shapes(
    db: Session,
    plan: FloorPlan,
    shapes: List[Shape],
    caller: CallerIdentity,
    expected_revision: Optional[int] = None,
) -> FloorPlan:
    """Persist ``shapes`` onto ``plan`` unless someone else wrote it meanwhile."""
    return update_floor_plan(
        db,
        plan.id,
        {"shapes": [dump_shape(s) for s in shapes]},
        updated_by=caller.id,
        expected_revision=plan.revision if expected_revision is None else expected_revision,
    )


def plan_summary(plan: FloorPlan) -> Dict[str, Any]:
    return {"id": plan.id, "name": plan.name, "floor": plan.floor}


def _partial(body: FloorPlanCreate) -> Dict[str, Any]:
    data = body.model_dump(exclude_unset=True)
    data.pop("revision", None)
    return {k: v for k, v in data.items() if v is not None or k in _NULLABLE}


def _page(items: List[FloorPlan], total: int, page: int, limit: int) -> Dict[str, Any]:
    return {
        "items": [dump_plan(p) for p in items],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if limit else 0,
        },
    }


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------

@router.get("")
async def list_floor_plans(
    search: Optional[str] = Query(None),
    floor: Optional[str] = Query(None),
    is_public: Optional[bool] = Query(None, alias="isPublic"),
    created_by: Optional[str] = Query(None, alias="createdBy"),
    page: int = Query(1, ge=1),
    limit: int = Query(config.DEFAULT_PAGE_LIMIT, ge=1, le=config.MAX_PAGE_LIMIT),
    caller: CallerIdentity = Depends(require_caller),
):
    """Plans the caller can see (all of them for admins), newest first."""
    def _sync():
        db = get_db()
        try:
            items, total = find_floor_plans(
                db,
                search=search,
                floor=floor,
                is_public=is_public,
                created_by=created_by,
                visible_to=None if caller.is_admin else caller.id,
                page=page,
                limit=limit,
            )
            return envelope(_page(items, total, page, limit))
        finally:
            db.close()

    return await asyncio.to_thread(_sync)


@router.get("/public")
async def list_public_floor_plans(
    search: Optional[str] = Query(None),
    floor: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(config.DEFAULT_PAGE_LIMIT, ge=1, le=config.MAX_PAGE_LIMIT),
):
    def _sync():
        db = get_db()
        try:
            items, total = find_floor_plans(
                db, search=search, floor=floor, is_public=True, page=page, limit=limit,
            )
            return envelope(_page(items, total, page, limit))
        finally:
            db.close()

    return await asyncio.to_thread(_sync)


@router.get("/public/{plan_id:int}")
async def get_public_floor_plan(plan_id: int):
    def _sync():
        db = get_db()
        try:
            plan = get_floor_plan(db, plan_id)
            if not plan.is_public:
                raise Forbidden("This floor plan is not public")
            return envelope(dump_plan(plan))
        finally:
            db.close()

    return await asyncio.to_thread(_sync)


@router.get("/find-booth/{booth_number}")
async def find_booth(booth_number: str, caller: Optional[CallerIdentity] = Depends(optional_caller)):
    """First booth with this number on a plan the caller may see."""
    def _sync():
        db = get_db()
        try:
            booth, plan = find_booth_by_number(db, booth_number, caller.id if caller else None)
            return envelope({"booth": dump_shape(booth), "floorPlan": plan_summary(plan)})
        finally:
            db.close()

    return await asyncio.to_thread(_sync)


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

@router.post("", status_code=201)
async def create_plan(body: FloorPlanCreate, caller: CallerIdentity = Depends(require_caller)):
    authorize_create(caller.role)
    data = _partial(body)
    if data.get("shapes"):
        data["shapes"] = [dump_shape(s) for s in merge_shapes([], data["shapes"])]

    def _sync():
        db = get_db()
        try:
            plan = create_floor_plan(db, data, created_by=caller.id)
            return envelope(dump_plan(plan), "Floor plan created")
        finally:
            db.close()

    return await asyncio.to_thread(_sync)


@router.get("/{plan_id:int}")
async def get_plan(plan_id: int, caller: Optional[CallerIdentity] = Depends(optional_caller)):
    def _sync():
        db = get_db()
        try:
            return envelope(dump_plan(load_plan_for_read(db, plan_id, caller)))
        finally:
            db.close()

    return await asyncio.to_thread(_sync)


@router.put("/{plan_id:int}")
async def update_plan(
    plan_id: int,
    body: FloorPlanUpdate,
    caller: CallerIdentity = Depends(require_caller),
):
    data = _partial(body)

    def _sync():
        db = get_db()
        try:
            plan = load_plan_for_write(db, plan_id, caller)
            if data.get("shapes") is not None:
                data["shapes"] = [dump_shape(s) for s in merge_shapes([], data["shapes"])]
            updated = update_floor_plan(
                db, plan_id, data,
                updated_by=caller.id,
                expected_revision=body.revision if body.revision is not None else plan.revision,
            )
            return envelope(dump_plan(updated), "Floor plan updated")
        finally:
            db.close()

    return await asyncio.to_thread(_sync)


@router.delete("/{plan_id:int}")
async def delete_plan(plan_id: int, caller: CallerIdentity = Depends(require_caller)):
    def _sync():
        db = get_db()
        try:
            plan = get_floor_plan(db, plan_id)
            authorize_delete(plan, caller.id, caller.role)
            delete_floor_plan(db, plan_id)
            return envelope({"id": plan_id}, "Floor plan deleted")
        finally:
            db.close()

    return await asyncio.to_thread(_sync)


# ---------------------------------------------------------------------------
# Editor helpers
# ---------------------------------------------------------------------------

@router.patch("/{plan_id:int}/quick-save")
async def quick_save(
    plan_id: int,
    body: QuickSaveRequest,
    caller: CallerIdentity = Depends(require_caller),
):
    """Replace the shape list, keeping metadata keys the editor did not send."""
    def _sync():
        db = get_db()
        try:
            plan = load_plan_for_write(db, plan_id, caller)
            shapes = merge_shapes(plan.shapes, body.shapes)
            updated = save_shapes(db, plan, shapes, caller, expected_revision=body.revision)
            return envelope(
                {"id": updated.id, "revision": updated.revision, "shapeCount": len(updated.shapes)},
                "Floor plan saved",
            )
        finally:
            db.close()

    return await asyncio.to_thread(_sync)


@router.post("/{plan_id:int}/duplicate", status_code=201)
async def duplicate_plan(plan_id: int, caller: CallerIdentity = Depends(require_caller)):
    """Private copy of a readable plan, owned by the caller."""
    authorize_create(caller.role)

    def _sync():
        db = get_db()
        try:
            source = load_plan_for_read(db, plan_id, caller)
            data = source.model_dump(exclude={"id", "created_by", "updated_by", "created_at", "updated_at", "revision"})
            data.update(name=f"Copy of {source.name}", is_public=False, is_master=False)
            copy = create_floor_plan(db, data, created_by=caller.id)
            return envelope(dump_plan(copy), "Floor plan duplicated")
        finally:
            db.close()

    return await asyncio.to_thread(_sync)


@router.post("/{plan_id:int}/reset")
async def reset_plan(plan_id: int, caller: CallerIdentity = Depends(require_caller)):
    def _sync():
        db = get_db()
        try:
            plan = load_plan_for_write(db, plan_id, caller)
            updated = save_shapes(db, plan, [], caller)
            logger.info("Floor plan %s reset by %s", plan_id, caller.id)
            return envelope(dump_plan(updated), "Floor plan reset")
        finally:
            db.close()

    return await asyncio.to_thread(_sync)


@router.get("/{plan_id:int}/exhibitor-view")
async def exhibitor_view(plan_id: int, caller: CallerIdentity = Depends(require_caller)):
    """The plan as the calling exhibitor sees it: own booths carry isUserBooth."""
    def _sync():
        db = get_db()
        try:
            plan = load_plan_for_read(db, plan_id, caller)
            exhibitor = None
            if caller.role == Role.EXHIBITOR:
                exhibitor = get_exhibitor_directory().get_by_id(caller.id)
            shapes = resolve_for_exhibitor(plan.shapes, exhibitor)
            view = plan.model_copy(update={"shapes": shapes})
            return envelope({
                "floorPlan": dump_plan(view),
                "exhibitor": {
                    "id": exhibitor.id,
                    "boothNumber": exhibitor.booth_number,
                    "companyName": exhibitor.company_name,
                } if exhibitor else None,
            })
        finally:
            db.close()

    return await asyncio.to_thread(_sync)
