"""
expo_floor.domain.enums — All enumerations used across the service.

Keep this module import-clean (stdlib only).
"""

from enum import Enum


class ShapeType(str, Enum):
    """Every kind of element that can be drawn on a floor plan."""
    RECTANGLE = "rectangle"
    SQUARE    = "square"
    CIRCLE    = "circle"
    BOOTH     = "booth"
    TABLE     = "table"
    CHAIR     = "chair"
    DOOR      = "door"
    TEXT      = "text"


class BoothStatus(str, Enum):
    """
    Occupancy state of a booth.  Any status may follow any other; the
    state graph is complete.
    """
    AVAILABLE   = "available"
    BOOKED      = "booked"
    RESERVED    = "reserved"
    MAINTENANCE = "maintenance"

    @classmethod
    def values(cls) -> list:
        return [s.value for s in cls]


class Role(str, Enum):
    """Caller roles supplied by the identity provider."""
    ADMIN     = "admin"
    EDITOR    = "editor"
    VIEWER    = "viewer"
    EXHIBITOR = "exhibitor"


class ExportFormat(str, Enum):
    JSON = "json"
    PDF  = "pdf"
    PNG  = "png"

    @property
    def media_type(self) -> str:
        return {
            "json": "application/json",
            "pdf": "application/pdf",
            "png": "image/png",
        }[self.value]
