"""
Analytics Endpoints
GET /api/floor-plans/statistics                 - overview across visible plans
GET /api/floor-plans/{id}/analytics             - booth statistics and heatmap
GET /api/floor-plans/{id}/analytics/booths      - booth statistics
GET /api/floor-plans/{id}/analytics/heatmap     - occupancy heatmap
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends

from expo_floor import config
from expo_floor.analytics.heatmap import compute_occupancy_heatmap
from expo_floor.analytics.statistics import compute_booth_statistics, compute_portfolio_overview
from expo_floor.api.schemas import envelope
from expo_floor.auth import optional_caller, require_caller
from expo_floor.database import get_db, find_floor_plans
from expo_floor.domain.models import CallerIdentity, FloorPlan
from expo_floor.routers.floor_plans import load_plan_for_read, plan_summary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/floor-plans", tags=["analytics"])


def _all_visible(db, caller: CallerIdentity) -> List[FloorPlan]:
    visible_to = None if caller.is_admin else caller.id
    plans: List[FloorPlan] = []
    page = 1
    while True:
        items, total = find_floor_plans(
            db, visible_to=visible_to, page=page, limit=config.MAX_PAGE_LIMIT,
        )
        plans.extend(items)
        if page * config.MAX_PAGE_LIMIT >= total:
            return plans
        page += 1


@router.get("/statistics")
async def get_statistics(caller: CallerIdentity = Depends(require_caller)):
    def _sync():
        db = get_db()
        try:
            return envelope(compute_portfolio_overview(_all_visible(db, caller)))
        finally:
            db.close()

    return await asyncio.to_thread(_sync)


@router.get("/{plan_id:int}/analytics")
async def get_plan_analytics(plan_id: int, caller: Optional[CallerIdentity] = Depends(optional_caller)):
    def _sync():
        db = get_db()
        try:
            plan = load_plan_for_read(db, plan_id, caller)
            return envelope({
                "floorPlan": plan_summary(plan),
                "booths": compute_booth_statistics(plan),
                "heatmap": compute_occupancy_heatmap(plan),
            })
        finally:
            db.close()

    return await asyncio.to_thread(_sync)


@router.get("/{plan_id:int}/analytics/booths")
async def get_booth_statistics(plan_id: int, caller: Optional[CallerIdentity] = Depends(optional_caller)):
    def _sync():
        db = get_db()
        try:
            return envelope(compute_booth_statistics(load_plan_for_read(db, plan_id, caller)))
        finally:
            db.close()

    return await asyncio.to_thread(_sync)


@router.get("/{plan_id:int}/analytics/heatmap")
async def get_heatmap(plan_id: int, caller: Optional[CallerIdentity] = Depends(optional_caller)):
    def _sync():
        db = get_db()
        try:
            return envelope(compute_occupancy_heatmap(load_plan_for_read(db, plan_id, caller)))
        finally:
            db.close()

    return await asyncio.to_thread(_sync)
