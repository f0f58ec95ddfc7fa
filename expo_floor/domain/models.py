"""
expo_floor.domain.models — Canonical Pydantic / dataclass models.

These are the single source of truth for data structures flowing through
the service.  Field names are snake_case in Python and camelCase on the
wire (``boothNumber``, ``gridSize`` …); every model accepts either.

Shapes are a discriminated union on ``type``::

    from expo_floor.domain.models import FloorPlan, Shape, BoothShape
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from expo_floor.core.constants import (
    DEFAULT_GRID_SIZE,
    DEFAULT_PLAN_VERSION,
    DEFAULT_SCALE,
    SHAPE_ID_PREFIX,
)
from expo_floor.core.utils import new_id
from expo_floor.domain.enums import BoothStatus, Role, ShapeType


# ---------------------------------------------------------------------------
# Shapes
# ---------------------------------------------------------------------------

class ShapeMetadata(BaseModel):
    """
    Semantic overlay of a shape.  Open: keys not declared here (amenities,
    restrictions, …) are kept verbatim.

    ``is_user_booth`` is computed per viewer by the exhibitor resolver and is
    stripped before anything is persisted.
    """
    booth_number: Optional[str] = Field(None, alias="boothNumber")
    exhibitor_id: Optional[Union[int, str]] = Field(None, alias="exhibitorId")
    status: Optional[BoothStatus] = None
    category: Optional[str] = None
    company_name: Optional[str] = Field(None, alias="companyName")
    is_user_booth: Optional[bool] = Field(None, alias="isUserBooth")

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class _ShapeBase(BaseModel):
    id: str = Field(default_factory=lambda: new_id(SHAPE_ID_PREFIX))

    # Geometry
    x: float = 0.0
    y: float = 0.0
    width: float = Field(0.0, ge=0)
    height: float = Field(0.0, ge=0)
    rotation: float = 0.0

    # Visual
    color: Optional[str] = None
    border_color: Optional[str] = Field(None, alias="borderColor")
    border_width: Optional[float] = Field(None, alias="borderWidth")
    z_index: int = Field(0, alias="zIndex")
    is_locked: bool = Field(False, alias="isLocked")

    metadata: ShapeMetadata = Field(default_factory=ShapeMetadata)

    model_config = ConfigDict(populate_by_name=True)

    @property
    def center(self) -> tuple:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)


class BoothShape(_ShapeBase):
    """A rentable exhibition space."""
    type: Literal["booth"] = "booth"


class TextShape(_ShapeBase):
    """A free-standing label."""
    type: Literal["text"] = "text"
    text: str = ""
    font_size: Optional[float] = Field(None, alias="fontSize", gt=0)


class PrimitiveShape(_ShapeBase):
    """Décor drawn with a basic primitive."""
    type: Literal["rectangle", "square", "circle"]


class FixtureShape(_ShapeBase):
    """Furniture and doors."""
    type: Literal["table", "chair", "door"]


Shape = Annotated[
    Union[BoothShape, TextShape, PrimitiveShape, FixtureShape],
    Field(discriminator="type"),
]

_SHAPE_ADAPTER = TypeAdapter(Shape)
_SHAPES_ADAPTER = TypeAdapter(List[Shape])


def parse_shape(data: Any) -> Shape:
    """Validate a single raw shape dict into its concrete variant."""
    return _SHAPE_ADAPTER.validate_python(data)


def parse_shapes(data: Any) -> List[Shape]:
    return _SHAPES_ADAPTER.validate_python(data or [])


def dump_shape(shape: Shape, include_transient: bool = True) -> dict:
    """Wire form of a shape (camelCase keys, unset optionals omitted).

    With ``include_transient=False`` viewer-specific keys such as
    ``isUserBooth`` are dropped, which is what gets persisted.
    """
    d = shape.model_dump(mode="json", by_alias=True, exclude_none=True)
    if not include_transient:
        d.get("metadata", {}).pop("isUserBooth", None)
    return d


def is_booth(shape: Shape) -> bool:
    return shape.type == ShapeType.BOOTH.value


def describe_shape(shape: Shape) -> Optional[str]:
    """The text a renderer prints on the shape, if any.

    Exhaustive over the shape union: a new variant must be handled here.
    """
    if isinstance(shape, BoothShape):
        return shape.metadata.booth_number
    if isinstance(shape, TextShape):
        return shape.text or None
    if isinstance(shape, (PrimitiveShape, FixtureShape)):
        return None
    raise TypeError(f"Unhandled shape variant: {type(shape).__name__}")


# ---------------------------------------------------------------------------
# Floor plan aggregate
# ---------------------------------------------------------------------------

class FloorPlan(BaseModel):
    """A floor plan and every shape drawn on it."""

    id: Optional[int] = None
    name: str
    description: Optional[str] = None
    floor: Optional[str] = None
    version: str = DEFAULT_PLAN_VERSION
    background_image_ref: Optional[str] = Field(None, alias="backgroundImageRef")
    thumbnail_ref: Optional[str] = Field(None, alias="thumbnailRef")

    shapes: List[Shape] = Field(default_factory=list)

    scale: float = Field(DEFAULT_SCALE, gt=0)
    grid_size: int = Field(DEFAULT_GRID_SIZE, gt=0, alias="gridSize")
    show_grid: bool = Field(True, alias="showGrid")

    is_public: bool = Field(False, alias="isPublic")
    is_master: bool = Field(False, alias="isMaster")
    tags: List[str] = Field(default_factory=list)

    created_by: Optional[str] = Field(None, alias="createdBy")
    updated_by: Optional[str] = Field(None, alias="updatedBy")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    metadata: Dict[str, Any] = Field(default_factory=dict)
    # Optimistic concurrency token, bumped on every write.
    revision: int = 1

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("tags", mode="before")
    @classmethod
    def _normalise_tags(cls, value: Any) -> List[str]:
        # Tags behave as a set; keep them sorted so output is stable.
        if not value:
            return []
        if isinstance(value, str):
            value = value.split(",")
        return sorted({str(t).strip() for t in value if str(t).strip()})

    @field_validator("created_by", "updated_by", mode="before")
    @classmethod
    def _stringify_user(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)

    def booths(self) -> List[BoothShape]:
        return [s for s in self.shapes if is_booth(s)]

    def find_shape(self, shape_id: str) -> Optional[Shape]:
        for shape in self.shapes:
            if shape.id == shape_id:
                return shape
        return None


def dump_plan(plan: FloorPlan, include_transient: bool = True) -> dict:
    """Wire form of a floor plan, shapes included."""
    d = plan.model_dump(mode="json", by_alias=True, exclude={"shapes"})
    d["shapes"] = [dump_shape(s, include_transient) for s in plan.shapes]
    return d


# ---------------------------------------------------------------------------
# Sharing
# ---------------------------------------------------------------------------

class ShareLink(BaseModel):
    token: str
    floor_plan_id: int = Field(alias="floorPlanId")
    expires_at: datetime = Field(alias="expiresAt")
    created_by: Optional[str] = Field(None, alias="createdBy")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Caller and exhibitor context (resolved once per API request)
# ---------------------------------------------------------------------------

@dataclass
class CallerIdentity:
    """Who is calling, as vouched for by the identity provider."""
    id: str
    role: Role = Role.VIEWER
    name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass
class Exhibitor:
    """An exhibitor as known to the exhibitor directory."""
    id: str
    booth_number: Optional[str] = None
    company_name: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "Exhibitor":
        return cls(
            id=str(d.get("id", "")),
            booth_number=d.get("boothNumber", d.get("booth_number")) or None,
            company_name=d.get("companyName", d.get("company_name")) or None,
        )
