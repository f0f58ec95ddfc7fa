"""
SQLite Database Layer for the exhibition floor plan service.
Stores floor plans (with their shapes) and share links.

Shapes, tags and plan metadata live in JSON columns.  They are converted to
and from the typed models in ``expo_floor.domain.models`` here and nowhere
else, so the rest of the package never sees raw JSON.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

import pydantic
from sqlalchemy import (
    create_engine, Column, Integer, Float, String, Boolean,
    DateTime, Text, Index, ForeignKey, JSON, CheckConstraint, event,
    or_, text, update,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from expo_floor import config
from expo_floor.core.errors import Conflict, NotFound, StoreUnavailable, ValidationError
from expo_floor.core.utils import utcnow
from expo_floor.domain.models import FloorPlan, ShareLink, Shape, dump_shape, parse_shapes

logger = logging.getLogger(__name__)


def build_engine(url: Optional[str] = None):
    """Create an engine; SQLite URLs get WAL, foreign keys and a busy timeout."""
    url = url or config.DATABASE_URL
    kwargs: Dict[str, Any] = {}
    is_sqlite = url.startswith("sqlite")
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    eng = create_engine(url, **kwargs)

    if is_sqlite:
        @event.listens_for(eng, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute(f"PRAGMA busy_timeout={int(config.SQLITE_BUSY_TIMEOUT_MS)}")
            cursor.close()

    return eng


engine = build_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False)
Base = declarative_base()


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class FloorPlanRecord(Base):
    """One floor plan aggregate; shapes are stored inline as JSON."""
    __tablename__ = "floor_plans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    floor = Column(String(100), nullable=True, index=True)
    version = Column(String(20), nullable=False, default="1.0")
    background_image_ref = Column(Text, nullable=True)   # opaque blob-store reference
    thumbnail_ref = Column(String(500), nullable=True)

    shapes = Column(JSON, nullable=False, default=list)
    scale = Column(Float, nullable=False, default=0.1)
    grid_size = Column(Integer, nullable=False, default=20)
    show_grid = Column(Boolean, nullable=False, default=True)

    is_public = Column(Boolean, nullable=False, default=False, index=True)
    is_master = Column(Boolean, nullable=False, default=False)
    tags = Column(JSON, nullable=False, default=list)
    # "metadata" is reserved on declarative classes
    plan_metadata = Column("metadata", JSON, nullable=False, default=dict)

    created_by = Column(String(64), nullable=True, index=True)
    updated_by = Column(String(64), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    revision = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        # At most one master plan system-wide.
        Index(
            "uq_floor_plans_single_master",
            "is_master",
            unique=True,
            sqlite_where=text("is_master = 1"),
            postgresql_where=text("is_master"),
        ),
        CheckConstraint("scale > 0", name="ck_floor_plans_scale_positive"),
        CheckConstraint("grid_size > 0", name="ck_floor_plans_grid_positive"),
    )


class ShareLinkRecord(Base):
    """Expiring bearer capability granting read access to one plan."""
    __tablename__ = "floor_plan_share_links"

    token = Column(String(128), primary_key=True)
    floor_plan_id = Column(
        Integer,
        ForeignKey("floor_plans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_by = Column(String(64), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    expires_at = Column(DateTime, nullable=False, index=True)


# ---------------------------------------------------------------------------
# Database initialization
# ---------------------------------------------------------------------------

def init_db():
    """Create all tables if they don't exist."""
    Base.metadata.create_all(bind=engine)


def get_db() -> Session:
    """Get a database session. Caller must close it."""
    return SessionLocal()


def check_connection(db: Session) -> bool:
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as exc:
        logger.warning("Database ping failed: %s", exc)
        return False


@contextmanager
def _store_errors(db: Session) -> Iterator[None]:
    """Roll back on driver errors and hide their text from callers.

    ``IntegrityError`` is re-raised untouched: the master plan manager
    retries on it.
    """
    try:
        yield
    except IntegrityError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Floor plan store failure: %s", exc)
        raise StoreUnavailable("Floor plan storage is temporarily unavailable") from exc


# ---------------------------------------------------------------------------
# Serialisation boundary
# ---------------------------------------------------------------------------

def shapes_to_json(shapes: List[Shape]) -> List[dict]:
    """Dump shapes for storage, dropping viewer-specific keys."""
    return [dump_shape(s, include_transient=False) for s in shapes]


def _to_model(row: FloorPlanRecord) -> FloorPlan:
    return FloorPlan(
        id=row.id,
        name=row.name,
        description=row.description,
        floor=row.floor,
        version=row.version,
        background_image_ref=row.background_image_ref,
        thumbnail_ref=row.thumbnail_ref,
        shapes=parse_shapes(row.shapes),
        scale=row.scale,
        grid_size=row.grid_size,
        show_grid=row.show_grid,
        is_public=row.is_public,
        is_master=row.is_master,
        tags=row.tags or [],
        created_by=row.created_by,
        updated_by=row.updated_by,
        created_at=row.created_at,
        updated_at=row.updated_at,
        metadata=row.plan_metadata or {},
        revision=row.revision,
    )


def _column_values(plan: FloorPlan) -> Dict[str, Any]:
    return {
        "name": plan.name,
        "description": plan.description,
        "floor": plan.floor,
        "version": plan.version,
        "background_image_ref": plan.background_image_ref,
        "thumbnail_ref": plan.thumbnail_ref,
        "shapes": shapes_to_json(plan.shapes),
        "scale": plan.scale,
        "grid_size": plan.grid_size,
        "show_grid": plan.show_grid,
        "is_public": plan.is_public,
        "is_master": plan.is_master,
        "tags": list(plan.tags),
        "plan_metadata": dict(plan.metadata),
    }


def _validate_plan(data: Dict[str, Any]) -> FloorPlan:
    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Floor plan name is required")
    try:
        return FloorPlan.model_validate({**data, "name": name.strip()})
    except pydantic.ValidationError as exc:
        first = exc.errors()[0]
        where = ".".join(str(p) for p in first.get("loc", ()))
        raise ValidationError(f"Invalid floor plan field '{where}': {first.get('msg')}") from exc


# ---------------------------------------------------------------------------
# Floor plan queries
# ---------------------------------------------------------------------------

def _get_row(db: Session, plan_id: int) -> FloorPlanRecord:
    row = db.query(FloorPlanRecord).filter(FloorPlanRecord.id == plan_id).first()
    if row is None:
        raise NotFound(f"Floor plan {plan_id} not found")
    return row


def create_floor_plan(
    db: Session,
    data: Dict[str, Any],
    created_by: Optional[str] = None,
) -> FloorPlan:
    """Insert a new floor plan.  ``data`` is keyed by model field name."""
    fields = {k: v for k, v in data.items() if k not in ("id", "revision", "created_at", "updated_at")}
    plan = _validate_plan({**fields, "created_by": created_by, "updated_by": created_by})

    with _store_errors(db):
        now = utcnow()
        row = FloorPlanRecord(
            **_column_values(plan),
            created_by=plan.created_by,
            updated_by=plan.updated_by,
            created_at=now,
            updated_at=now,
            revision=1,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        logger.info("Created floor plan %s (%s) for %s", row.id, row.name, created_by)
        return _to_model(row)


def get_floor_plan(db: Session, plan_id: int) -> FloorPlan:
    with _store_errors(db):
        return _to_model(_get_row(db, plan_id))


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def find_floor_plans(
    db: Session,
    search: Optional[str] = None,
    floor: Optional[str] = None,
    is_public: Optional[bool] = None,
    created_by: Optional[str] = None,
    visible_to: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> Tuple[List[FloorPlan], int]:
    """Filtered, paged listing, newest first.  Returns ``(items, total)``.

    ``visible_to`` restricts results to plans that are public or owned by
    that caller.
    """
    page = max(1, int(page))
    limit = max(1, int(limit))
    with _store_errors(db):
        q = db.query(FloorPlanRecord)
        if search:
            pattern = f"%{_escape_like(search.strip())}%"
            q = q.filter(or_(
                FloorPlanRecord.name.ilike(pattern, escape="\\"),
                FloorPlanRecord.description.ilike(pattern, escape="\\"),
            ))
        if floor:
            q = q.filter(FloorPlanRecord.floor == floor)
        if is_public is not None:
            q = q.filter(FloorPlanRecord.is_public == bool(is_public))
        if created_by is not None:
            q = q.filter(FloorPlanRecord.created_by == str(created_by))
        if visible_to is not None:
            q = q.filter(or_(
                FloorPlanRecord.is_public.is_(True),
                FloorPlanRecord.created_by == str(visible_to),
            ))
        total = q.count()
        rows = (
            q.order_by(FloorPlanRecord.created_at.desc(), FloorPlanRecord.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return [_to_model(r) for r in rows], total


def update_floor_plan(
    db: Session,
    plan_id: int,
    partial: Dict[str, Any],
    updated_by: Optional[str] = None,
    expected_revision: Optional[int] = None,
) -> FloorPlan:
    """Apply ``partial`` (keyed by field name) to a stored plan.

    When ``expected_revision`` is given the write only lands if the stored
    revision still matches; otherwise ``Conflict`` is raised.
    """
    with _store_errors(db):
        current = _to_model(_get_row(db, plan_id))
        merged = current.model_dump()
        for key, value in partial.items():
            if key in ("id", "created_by", "created_at", "updated_at", "revision"):
                continue
            merged[key] = value
        plan = _validate_plan(merged)

        values = _column_values(plan)
        values.update(
            updated_by=str(updated_by) if updated_by is not None else current.updated_by,
            updated_at=utcnow(),
            revision=FloorPlanRecord.revision + 1,
        )
        stmt = update(FloorPlanRecord).where(FloorPlanRecord.id == plan_id)
        if expected_revision is not None:
            stmt = stmt.where(FloorPlanRecord.revision == int(expected_revision))
        result = db.execute(
            stmt.values({getattr(FloorPlanRecord, k): v for k, v in values.items()})
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            if expected_revision is not None:
                raise Conflict(
                    f"Floor plan {plan_id} was modified by someone else "
                    f"(expected revision {expected_revision}); reload and retry"
                )
            raise NotFound(f"Floor plan {plan_id} not found")
        db.commit()
        db.expire_all()
        return _to_model(_get_row(db, plan_id))


def delete_floor_plan(db: Session, plan_id: int) -> None:
    with _store_errors(db):
        row = _get_row(db, plan_id)
        db.query(ShareLinkRecord).filter(ShareLinkRecord.floor_plan_id == plan_id).delete()
        db.delete(row)
        db.commit()
        logger.info("Deleted floor plan %s", plan_id)


def find_master_plan(db: Session) -> Optional[FloorPlan]:
    with _store_errors(db):
        row = db.query(FloorPlanRecord).filter(FloorPlanRecord.is_master.is_(True)).first()
        return _to_model(row) if row else None


# ---------------------------------------------------------------------------
# Share links
# ---------------------------------------------------------------------------

def save_share_link(db: Session, link: ShareLink) -> ShareLink:
    with _store_errors(db):
        row = ShareLinkRecord(
            token=link.token,
            floor_plan_id=link.floor_plan_id,
            created_by=link.created_by,
            created_at=link.created_at or utcnow(),
            expires_at=link.expires_at,
        )
        db.add(row)
        db.commit()
        return link


def get_share_link(db: Session, token: str) -> Optional[ShareLink]:
    with _store_errors(db):
        row = db.query(ShareLinkRecord).filter(ShareLinkRecord.token == token).first()
        if row is None:
            return None
        return ShareLink(
            token=row.token,
            floor_plan_id=row.floor_plan_id,
            created_by=row.created_by,
            created_at=row.created_at,
            expires_at=row.expires_at,
        )
