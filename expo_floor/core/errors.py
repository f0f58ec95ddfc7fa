"""
Exhibition floor plan service — error taxonomy.

Every failure the core raises derives from ``FloorPlanError``.  The FastAPI
exception handlers in ``expo_floor.app`` translate them into the response
envelope using ``status_code`` and ``error``; the ``message`` is always safe
to show to the caller.
"""

from __future__ import annotations


class FloorPlanError(Exception):
    status_code: int = 500
    error: str = "Internal Server Error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.error)
        self.message = message or self.error


class ValidationError(FloorPlanError):
    """Malformed input, status or geometry."""
    status_code = 400
    error = "Validation Error"


class InvalidStatus(ValidationError):
    """A booth status outside the booth status domain."""


class NotAuthenticated(FloorPlanError):
    status_code = 401
    error = "Not Authenticated"


class Forbidden(FloorPlanError):
    status_code = 403
    error = "Forbidden"


class NotFound(FloorPlanError):
    """Missing floor plan, shape or share token."""
    status_code = 404
    error = "Not Found"


class ShareLinkNotFoundOrExpired(NotFound):
    pass


class Conflict(FloorPlanError):
    """Master-uniqueness race lost after retries, or a stale revision."""
    status_code = 409
    error = "Conflict"


class RenderFailure(FloorPlanError):
    status_code = 502
    error = "Render Failure"


class RenderTimeout(FloorPlanError):
    status_code = 504
    error = "Render Timeout"


class StoreUnavailable(FloorPlanError):
    status_code = 503
    error = "Store Unavailable"
