"""
Exhibitor binding resolver.

Decorates a plan's shapes for one viewing exhibitor and locates booths by
their human-readable number across the plans a caller can see.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from expo_floor import config
from expo_floor.core.errors import NotFound
from expo_floor.database import find_floor_plans
from expo_floor.domain.models import BoothShape, Exhibitor, FloorPlan, Shape, is_booth

logger = logging.getLogger(__name__)


def resolve_for_exhibitor(shapes: List[Shape], exhibitor: Optional[Exhibitor]) -> List[Shape]:
    """Deep copies of ``shapes`` with the exhibitor's own booths flagged.

    Every booth whose number equals the exhibitor's booth number gets
    ``metadata.isUserBooth = True``.  An exhibitor without a booth number
    gets nothing flagged.  Order is preserved and the input is untouched.
    """
    target = exhibitor.booth_number if exhibitor else None
    out = []
    for shape in shapes:
        copy = shape.model_copy(deep=True)
        if target and is_booth(copy) and copy.metadata.booth_number == target:
            copy.metadata.is_user_booth = True
        out.append(copy)
    return out


def find_booth_by_number(
    db: Session,
    booth_number: str,
    scope_owner_id: Optional[str] = None,
) -> Tuple[BoothShape, FloorPlan]:
    """First booth numbered ``booth_number`` on a plan visible to the caller.

    Plans are scanned newest first and shapes in array order.  With no
    ``scope_owner_id`` only public plans are searched.
    """
    page = 1
    while True:
        if scope_owner_id is not None:
            plans, total = find_floor_plans(
                db, visible_to=scope_owner_id, page=page, limit=config.MAX_PAGE_LIMIT,
            )
        else:
            plans, total = find_floor_plans(
                db, is_public=True, page=page, limit=config.MAX_PAGE_LIMIT,
            )
        for plan in plans:
            for booth in plan.booths():
                if booth.metadata.booth_number == booth_number:
                    return booth, plan
        if page * config.MAX_PAGE_LIMIT >= total:
            break
        page += 1

    logger.debug("Booth %s not found for owner=%s", booth_number, scope_owner_id)
    raise NotFound(f"Booth {booth_number} not found")
