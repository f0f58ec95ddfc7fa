"""
Time-limited, unauthenticated read access to a floor plan.

A share link is an opaque 256-bit token bound to one plan.  It resolves
while ``now < expires_at`` and never afterwards.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional, Union

from sqlalchemy.orm import Session

from expo_floor import config
from expo_floor.access import authorize_mutation
from expo_floor.core.errors import ShareLinkNotFoundOrExpired, ValidationError
from expo_floor.core.utils import parse_duration, utcnow
from expo_floor.database import get_floor_plan, get_share_link, save_share_link
from expo_floor.domain.models import CallerIdentity, FloorPlan, ShareLink
from expo_floor.metrics import record_share_link_issued

logger = logging.getLogger(__name__)

# 32 bytes of entropy, 43 url-safe characters.
TOKEN_BYTES = 32


def generate_share_link(
    db: Session,
    plan_id: int,
    expires_in: Union[int, str, None],
    caller: CallerIdentity,
    now: Optional[datetime] = None,
) -> ShareLink:
    """Issue a share link for ``plan_id``.  Only the owner or an admin may.

    ``expires_in`` is a number of seconds or a duration string such as
    ``"24h"``; None means ``SHARE_LINK_DEFAULT_TTL``.
    """
    plan = get_floor_plan(db, plan_id)
    authorize_mutation(plan, caller.id, caller.role)

    ttl = parse_duration(config.SHARE_LINK_DEFAULT_TTL if expires_in is None else expires_in)
    if ttl <= 0:
        raise ValidationError("Share link lifetime must be positive")
    if ttl > config.SHARE_LINK_MAX_TTL_SECONDS:
        raise ValidationError(
            f"Share link lifetime cannot exceed {config.SHARE_LINK_MAX_TTL_SECONDS} seconds"
        )

    issued_at = now or utcnow()
    link = save_share_link(db, ShareLink(
        token=secrets.token_urlsafe(TOKEN_BYTES),
        floor_plan_id=plan.id,
        expires_at=issued_at + timedelta(seconds=ttl),
        created_by=caller.id,
        created_at=issued_at,
    ))
    record_share_link_issued()
    logger.info("Share link issued for floor plan %s by %s (ttl=%ss)", plan.id, caller.id, ttl)
    return link


def resolve_share_token(db: Session, token: str, now: Optional[datetime] = None) -> FloorPlan:
    """The plan behind ``token``, or ``ShareLinkNotFoundOrExpired``."""
    link = get_share_link(db, token) if token else None
    current = now or utcnow()
    if link is None or not current < link.expires_at:
        raise ShareLinkNotFoundOrExpired("Share link not found or expired")
    return get_floor_plan(db, link.floor_plan_id)
