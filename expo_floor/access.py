"""
Access control guard.

Three predicates over (plan, caller id, caller role).  Each returns None when
the call may proceed and raises ``Forbidden`` otherwise; routes call them
before any write.
"""

import logging
from typing import Any, Optional

from expo_floor.core.errors import Forbidden
from expo_floor.domain.enums import Role
from expo_floor.domain.models import FloorPlan

logger = logging.getLogger(__name__)


def _role_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(getattr(value, "value", value))


def _is_admin(caller_role: Any) -> bool:
    return _role_value(caller_role) == Role.ADMIN.value


def _is_owner(plan: FloorPlan, caller_id: Optional[str]) -> bool:
    return caller_id is not None and plan.created_by is not None and str(caller_id) == plan.created_by


def authorize_mutation(plan: FloorPlan, caller_id: Optional[str], caller_role: Any) -> None:
    """Admins and the plan's creator may modify it."""
    if _is_admin(caller_role) or _is_owner(plan, caller_id):
        return
    logger.info("Denied write on floor plan %s to %s (%s)", plan.id, caller_id, caller_role)
    raise Forbidden("You are not allowed to modify this floor plan")


authorize_delete = authorize_mutation


def authorize_read(plan: FloorPlan, caller_id: Optional[str], caller_role: Any) -> None:
    """Public plans are readable by anyone; private ones by owner or admin."""
    if plan.is_public:
        return
    if _is_admin(caller_role):
        return
    if _is_owner(plan, caller_id):
        return
    raise Forbidden("You are not allowed to view this floor plan")


def authorize_create(caller_role: Any) -> None:
    """Only admins and editors create plans."""
    if _role_value(caller_role) in (Role.ADMIN.value, Role.EDITOR.value):
        return
    raise Forbidden("Only admins and editors can create floor plans")
