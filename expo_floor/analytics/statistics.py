"""
Booth statistics for one plan and an overview across many.
"""

from typing import Any, Dict, Iterable

from expo_floor.core.constants import UNCATEGORIZED
from expo_floor.domain.enums import BoothStatus
from expo_floor.domain.models import BoothShape, FloorPlan


def _status_of(booth: BoothShape) -> str:
    return (booth.metadata.status or BoothStatus.AVAILABLE).value


def _is_occupied(booth: BoothShape) -> bool:
    meta = booth.metadata
    return meta.exhibitor_id not in (None, "") or bool(meta.company_name)


def _empty_by_status() -> Dict[str, int]:
    return {s: 0 for s in BoothStatus.values()}


def _occupancy_rate(by_status: Dict[str, int], total: int) -> float:
    if total == 0:
        return 0.0
    taken = by_status[BoothStatus.BOOKED.value] + by_status[BoothStatus.RESERVED.value]
    return round(taken / total, 4)


def compute_booth_statistics(plan: FloorPlan) -> Dict[str, Any]:
    """Counts of a plan's booths by status and category.

    ``byStatus`` always carries all four statuses.  ``occupancyRate`` is
    (booked + reserved) / total, 0 for a plan with no booths.
    """
    by_status = _empty_by_status()
    by_category: Dict[str, int] = {}
    occupied = 0

    booths = plan.booths()
    for booth in booths:
        by_status[_status_of(booth)] += 1
        category = booth.metadata.category or UNCATEGORIZED
        by_category[category] = by_category.get(category, 0) + 1
        if _is_occupied(booth):
            occupied += 1

    total = len(booths)
    return {
        "total": total,
        "byStatus": by_status,
        "byCategory": by_category,
        "occupied": occupied,
        "occupancyRate": _occupancy_rate(by_status, total),
    }


def compute_portfolio_overview(plans: Iterable[FloorPlan]) -> Dict[str, Any]:
    """Totals across several plans, e.g. everything a caller can see."""
    by_status = _empty_by_status()
    total_plans = public_plans = total_booths = 0
    master_id = None

    for plan in plans:
        total_plans += 1
        if plan.is_public:
            public_plans += 1
        if plan.is_master:
            master_id = plan.id
        for booth in plan.booths():
            total_booths += 1
            by_status[_status_of(booth)] += 1

    return {
        "totalPlans": total_plans,
        "publicPlans": public_plans,
        "masterPlanId": master_id,
        "totalBooths": total_booths,
        "byStatus": by_status,
        "occupancyRate": _occupancy_rate(by_status, total_booths),
    }
