"""
Exhibition floor plan service — API request/response schemas (Pydantic).

Request bodies accept camelCase (the wire format) or snake_case field names.
Handlers turn them into partial dicts keyed by model field name with
``model_dump(exclude_unset=True)`` before handing them to the core.

Every JSON response is wrapped in the envelope built by ``envelope``:

    {"success": true, "data": ..., "message": "..."}
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


def envelope(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    return body


def error_envelope(error: str, message: str, **extra: Any) -> Dict[str, Any]:
    return {"success": False, "error": error, "message": message, **extra}


# ---------------------------------------------------------------------------
# Floor plans
# ---------------------------------------------------------------------------

class FloorPlanCreate(BaseModel):
    """Body of ``POST /floor-plans``.  ``isMaster`` is not accepted here."""
    name: Optional[str] = None
    description: Optional[str] = None
    floor: Optional[str] = None
    version: Optional[str] = None
    background_image_ref: Optional[str] = Field(None, alias="backgroundImageRef")
    thumbnail_ref: Optional[str] = Field(None, alias="thumbnailRef")
    shapes: Optional[List[Dict[str, Any]]] = None
    scale: Optional[float] = None
    grid_size: Optional[int] = Field(None, alias="gridSize")
    show_grid: Optional[bool] = Field(None, alias="showGrid")
    is_public: Optional[bool] = Field(None, alias="isPublic")
    tags: Optional[List[str]] = None
    metadata: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(populate_by_name=True)


class FloorPlanUpdate(FloorPlanCreate):
    """Body of ``PUT /floor-plans/{id}``.

    ``revision`` is the value last read by the client; a stale one is
    rejected with 409.
    """
    revision: Optional[int] = None


class QuickSaveRequest(BaseModel):
    shapes: List[Dict[str, Any]]
    revision: Optional[int] = None


# ---------------------------------------------------------------------------
# Booths
# ---------------------------------------------------------------------------

class BoothCreate(BaseModel):
    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    rotation: Optional[float] = None
    color: Optional[str] = None
    border_color: Optional[str] = Field(None, alias="borderColor")
    border_width: Optional[float] = Field(None, alias="borderWidth")
    z_index: Optional[int] = Field(None, alias="zIndex")
    is_locked: Optional[bool] = Field(None, alias="isLocked")

    booth_number: Optional[str] = Field(None, alias="boothNumber")
    status: Optional[str] = None
    category: Optional[str] = None
    exhibitor_id: Optional[Union[int, str]] = Field(None, alias="exhibitorId")
    company_name: Optional[str] = Field(None, alias="companyName")
    metadata: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(populate_by_name=True)


class BoothUpdate(BoothCreate):
    pass


class StatusUpdate(BaseModel):
    status: str


class PositionUpdate(BaseModel):
    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    rotation: Optional[float] = None


# ---------------------------------------------------------------------------
# Sharing
# ---------------------------------------------------------------------------

class ShareLinkRequest(BaseModel):
    """``expiresIn`` is seconds or a duration string ("30m", "24h", "7d")."""
    expires_in: Optional[Union[int, str]] = Field(None, alias="expiresIn")

    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

class HealthResponse(BaseModel):
    status: str
    version: str = "1.0.0"
    db_connected: bool = True
    uptime_seconds: float = 0.0
    share_links_issued: int = 0
    renders: Dict[str, int] = Field(default_factory=dict)
    master_conflicts_retried: int = 0
    errors_last_hour: int = 0
    timestamp: datetime = Field(default_factory=datetime.utcnow)
