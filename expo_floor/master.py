"""
Master plan singleton manager.

At most one floor plan carries ``is_master``.  The database enforces it with
a partial unique index (``uq_floor_plans_single_master``); when two callers
race to create the master, the loser's insert fails with ``IntegrityError``,
is rolled back and retried, and the retry finds and updates the winner's row.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from expo_floor import config
from expo_floor.core.errors import Conflict
from expo_floor.database import create_floor_plan, find_master_plan, update_floor_plan
from expo_floor.domain.models import FloorPlan
from expo_floor.metrics import record_master_conflict

logger = logging.getLogger(__name__)

DEFAULT_MASTER_NAME = "Main Exhibition Floor"


def get_master(db: Session) -> Optional[FloorPlan]:
    """The master plan, or None.  Never creates one."""
    return find_master_plan(db)


def create_or_update_master(
    db: Session,
    data: Dict[str, Any],
    caller_id: Optional[str] = None,
) -> FloorPlan:
    """Update the master plan in place, or create it if there is none.

    The master is always public.  An existing one keeps its id and creator;
    a new one is owned by ``caller_id``.
    """
    fields = {k: v for k, v in data.items() if k not in ("is_master", "is_public", "id")}
    attempts = max(1, config.MASTER_RETRY_ATTEMPTS)

    for attempt in range(1, attempts + 1):
        master = find_master_plan(db)
        if master is not None:
            plan = update_floor_plan(db, master.id, fields, updated_by=caller_id)
            logger.info("Updated master floor plan %s", plan.id)
            return plan

        try:
            plan = create_floor_plan(
                db,
                {
                    **fields,
                    "name": fields.get("name") or DEFAULT_MASTER_NAME,
                    "is_master": True,
                    "is_public": True,
                },
                created_by=caller_id,
            )
        except IntegrityError:
            record_master_conflict()
            logger.warning(
                "Master floor plan created concurrently (attempt %d/%d), retrying",
                attempt, attempts,
            )
            continue
        logger.info("Created master floor plan %s", plan.id)
        return plan

    raise Conflict("Could not save the master floor plan due to concurrent updates; retry")
