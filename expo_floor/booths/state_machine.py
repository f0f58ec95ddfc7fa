"""
Booth state machine and shape edits.

Every function here is a pure transform: it validates its input, returns
new ``Shape`` / ``FloorPlan`` objects and never mutates what it was given.
Persisting the result is the caller's job.

Booth status may move from any state to any other; only membership in the
status domain is checked.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple, Type

import pydantic

from expo_floor.core.constants import BOOTH_ID_PREFIX, BOOTH_NUMBER_PREFIX
from expo_floor.core.errors import InvalidStatus, NotFound, ValidationError
from expo_floor.core.utils import booth_number_suffix, new_id
from expo_floor.domain.enums import BoothStatus
from expo_floor.domain.models import (
    BoothShape,
    FloorPlan,
    Shape,
    ShapeMetadata,
    dump_shape,
    is_booth,
    parse_shape,
)

_GEOMETRY_KEYS = ("x", "y", "width", "height")

# Booth keys callers may pass at the top level; they belong in metadata.
_METADATA_SHORTCUTS = (
    "boothNumber", "booth_number",
    "exhibitorId", "exhibitor_id",
    "companyName", "company_name",
    "category",
)


def _aliases(model: Type[pydantic.BaseModel]) -> Dict[str, str]:
    return {name: f.alias for name, f in model.model_fields.items() if f.alias}


def _to_wire(model: Type[pydantic.BaseModel], data: Dict[str, Any]) -> Dict[str, Any]:
    """Rename snake_case field names to the model's camelCase aliases."""
    aliases = _aliases(model)
    return {aliases.get(k, k): v for k, v in data.items()}


def _describe(exc: pydantic.ValidationError) -> str:
    first = exc.errors()[0]
    where = ".".join(str(p) for p in first.get("loc", ()))
    return f"'{where}': {first.get('msg')}" if where else str(first.get("msg"))


# ---------------------------------------------------------------------------
# Status and metadata
# ---------------------------------------------------------------------------

def coerce_status(value: Any) -> BoothStatus:
    """Return ``value`` as a BoothStatus or raise ``InvalidStatus``."""
    if isinstance(value, BoothStatus):
        return value
    try:
        return BoothStatus(str(value).strip())
    except ValueError:
        raise InvalidStatus(
            f"Invalid booth status '{value}'. "
            f"Expected one of: {', '.join(BoothStatus.values())}"
        ) from None


def set_status(shape: Shape, new_status: Any) -> Shape:
    """Return a copy of the booth with ``metadata.status`` set."""
    status = coerce_status(new_status)
    if not is_booth(shape):
        raise ValidationError(f"Shape {shape.id} is a {shape.type}, only booths carry a status")
    updated = shape.model_copy(deep=True)
    updated.metadata.status = status
    return updated


def merge_metadata(shape: Shape, patch: Dict[str, Any]) -> Shape:
    """Shallow-merge ``patch`` into the shape's metadata.

    Keys in ``patch`` win; keys it does not mention are kept.  The existing
    metadata is never replaced wholesale.
    """
    if not isinstance(patch, dict):
        raise ValidationError("Metadata patch must be an object")
    patch = _to_wire(ShapeMetadata, patch)
    if patch.get("status") is not None:
        patch["status"] = coerce_status(patch["status"]).value

    current = shape.metadata.model_dump(mode="json", by_alias=True, exclude_none=True)
    try:
        metadata = ShapeMetadata.model_validate({**current, **patch})
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid metadata {_describe(exc)}") from exc
    return shape.model_copy(update={"metadata": metadata}, deep=True)


def with_default_status(shapes: Iterable[Shape]) -> List[Shape]:
    """Copy of ``shapes`` where every booth without a status is available."""
    out = []
    for shape in shapes:
        if is_booth(shape) and shape.metadata.status is None:
            shape = set_status(shape, BoothStatus.AVAILABLE)
        out.append(shape)
    return out


# ---------------------------------------------------------------------------
# Booth lookup helpers
# ---------------------------------------------------------------------------

def _find_booth(plan: FloorPlan, shape_id: str) -> BoothShape:
    shape = plan.find_shape(shape_id)
    if shape is None or not is_booth(shape):
        raise NotFound(f"Booth {shape_id} not found on floor plan {plan.id}")
    return shape


def _replace_shape(plan: FloorPlan, updated: Shape) -> FloorPlan:
    shapes = [updated if s.id == updated.id else s for s in plan.shapes]
    return plan.model_copy(update={"shapes": shapes}, deep=True)


def _check_size(shape: Shape) -> None:
    if shape.width <= 0 or shape.height <= 0:
        raise ValidationError("Booth width and height must be greater than zero")


def next_booth_number(plan: FloorPlan) -> str:
    """``B<n+1>`` where ``n`` is the largest numeric booth number in use."""
    highest = max(
        (booth_number_suffix(b.metadata.booth_number) for b in plan.booths()),
        default=0,
    )
    return f"{BOOTH_NUMBER_PREFIX}{highest + 1}"


def _split_booth_data(data: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any], Any]:
    """Separate shape fields, metadata and status from a booth payload."""
    fields = dict(data)
    fields.pop("id", None)
    fields.pop("type", None)
    status = fields.pop("status", None)
    metadata = dict(fields.pop("metadata", None) or {})
    for key in _METADATA_SHORTCUTS:
        if key in fields:
            value = fields.pop(key)
            if value is not None:
                metadata[key] = value
    return fields, metadata, status


# ---------------------------------------------------------------------------
# Booth edits
# ---------------------------------------------------------------------------

def add_booth(plan: FloorPlan, booth_data: Dict[str, Any]) -> Tuple[FloorPlan, BoothShape]:
    """Append a new booth.  Returns ``(updated_plan, new_booth)``.

    Geometry (x, y, width, height) is mandatory.  Status defaults to
    available and a missing booth number is allocated as ``B<next>``.
    """
    missing = [k for k in _GEOMETRY_KEYS if booth_data.get(k) is None]
    if missing:
        raise ValidationError(f"Booth geometry is required (missing: {', '.join(missing)})")

    fields, metadata, status = _split_booth_data(booth_data)
    metadata = _to_wire(ShapeMetadata, metadata)
    if status is None:
        status = metadata.pop("status", None)
    metadata["status"] = coerce_status(status if status is not None else BoothStatus.AVAILABLE).value
    if not metadata.get("boothNumber"):
        metadata["boothNumber"] = next_booth_number(plan)

    try:
        booth = BoothShape.model_validate({
            **_to_wire(BoothShape, fields),
            "id": new_id(BOOTH_ID_PREFIX),
            "type": "booth",
            "metadata": metadata,
        })
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid booth {_describe(exc)}") from exc
    _check_size(booth)

    updated = plan.model_copy(update={"shapes": [*plan.shapes, booth]}, deep=True)
    return updated, booth


def remove_booth(plan: FloorPlan, shape_id: str) -> FloorPlan:
    _find_booth(plan, shape_id)
    shapes = [s for s in plan.shapes if s.id != shape_id]
    return plan.model_copy(update={"shapes": shapes}, deep=True)


def move_booth(
    plan: FloorPlan,
    shape_id: str,
    geometry: Dict[str, Any],
) -> Tuple[FloorPlan, BoothShape]:
    """Reposition and/or resize a booth.  Locked booths cannot move."""
    booth = _find_booth(plan, shape_id)
    if booth.is_locked:
        raise ValidationError(f"Booth {shape_id} is locked")
    changes = {
        k: geometry[k] for k in ("x", "y", "width", "height", "rotation")
        if geometry.get(k) is not None
    }
    if not changes:
        raise ValidationError("No position or size given")
    try:
        moved = BoothShape.model_validate({**booth.model_dump(by_alias=True), **changes})
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid booth geometry {_describe(exc)}") from exc
    _check_size(moved)
    return _replace_shape(plan, moved), moved


def update_booth(
    plan: FloorPlan,
    shape_id: str,
    patch: Dict[str, Any],
) -> Tuple[FloorPlan, BoothShape]:
    """Booth-level merge: shape fields are overwritten, metadata is merged
    and ``status`` goes through ``set_status``."""
    booth = _find_booth(plan, shape_id)
    fields, metadata, status = _split_booth_data(patch)

    updated: Shape = booth
    if fields:
        try:
            updated = BoothShape.model_validate({
                **booth.model_dump(by_alias=True),
                **_to_wire(BoothShape, fields),
            })
        except pydantic.ValidationError as exc:
            raise ValidationError(f"Invalid booth {_describe(exc)}") from exc
        _check_size(updated)
    if metadata:
        updated = merge_metadata(updated, metadata)
    if status is not None:
        updated = set_status(updated, status)
    return _replace_shape(plan, updated), updated


def merge_shapes(existing: List[Shape], incoming: List[Any]) -> List[Shape]:
    """Quick-save: ``incoming`` becomes the shape list, in its order.

    A shape whose id already exists is overlaid on the stored one and its
    metadata merged, so keys the editor did not send survive the save.
    """
    by_id = {s.id: s for s in existing}
    merged: List[Shape] = []
    for raw in incoming:
        data = dump_shape(raw) if isinstance(raw, pydantic.BaseModel) else dict(raw)
        previous = by_id.get(data.get("id")) if data.get("id") else None
        try:
            if previous is not None:
                base = dump_shape(previous)
                meta = {**base.get("metadata", {}), **_to_wire(ShapeMetadata, data.get("metadata") or {})}
                shape = parse_shape({**base, **data, "metadata": meta})
            else:
                shape = parse_shape(data)
        except pydantic.ValidationError as exc:
            raise ValidationError(f"Invalid shape {_describe(exc)}") from exc
        merged.append(shape)
    return with_default_status(merged)


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------

def list_booths(
    plan: FloorPlan,
    status: Optional[str] = None,
    category: Optional[str] = None,
    exhibitor_id: Optional[str] = None,
    search: Optional[str] = None,
) -> List[BoothShape]:
    """Booths of ``plan`` in array order, optionally filtered."""
    wanted_status = coerce_status(status) if status else None
    needle = search.strip().lower() if search else None
    out = []
    for booth in plan.booths():
        meta = booth.metadata
        if wanted_status is not None and (meta.status or BoothStatus.AVAILABLE) != wanted_status:
            continue
        if category is not None and meta.category != category:
            continue
        if exhibitor_id is not None and str(meta.exhibitor_id) != str(exhibitor_id):
            continue
        if needle:
            haystack = f"{meta.booth_number or ''} {meta.company_name or ''}".lower()
            if needle not in haystack:
                continue
        out.append(booth)
    return out
