"""
Centralized configuration for the exhibition floor plan service.
All settings come from environment variables for 12-factor deployment.
"""

import os
import secrets


def _env_bool(name: str, default: bool = False) -> bool:
    val = os.environ.get(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "on"}


BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------
DATABASE_URL = os.environ.get(
    "DATABASE_URL",
    f"sqlite:///{os.path.join(BASE_DIR, 'floorplans.db')}",
)
# Milliseconds SQLite waits on a locked database before failing.
SQLITE_BUSY_TIMEOUT_MS = int(os.environ.get("SQLITE_BUSY_TIMEOUT_MS", "5000"))

# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------
AUTH_SECRET = os.environ.get("AUTH_SECRET", "") or secrets.token_hex(32)
AUTH_TOKEN_TTL_SECONDS = int(os.environ.get("AUTH_TOKEN_TTL_SECONDS", str(7 * 24 * 3600)))

# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------
PORT = int(os.environ.get("PORT", "8002"))
# Development diagnostic mode: unhandled errors carry their traceback.
DEBUG = _env_bool("DEBUG", False)
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
CORS_ORIGINS = ["*"]

# ---------------------------------------------------------------------------
# Listing and search
# ---------------------------------------------------------------------------
DEFAULT_PAGE_LIMIT = int(os.environ.get("DEFAULT_PAGE_LIMIT", "20"))
MAX_PAGE_LIMIT = int(os.environ.get("MAX_PAGE_LIMIT", "100"))

# Neighbor search radius, in grid cells (distance <= gridSize * K).
NEIGHBOR_RADIUS_CELLS = int(os.environ.get("NEIGHBOR_RADIUS_CELLS", "3"))

# ---------------------------------------------------------------------------
# Master plan
# ---------------------------------------------------------------------------
# Attempts made by create_or_update_master when the single-master index fires.
MASTER_RETRY_ATTEMPTS = int(os.environ.get("MASTER_RETRY_ATTEMPTS", "3"))

# ---------------------------------------------------------------------------
# Sharing
# ---------------------------------------------------------------------------
SHARE_LINK_DEFAULT_TTL = os.environ.get("SHARE_LINK_DEFAULT_TTL", "7d")
SHARE_LINK_MAX_TTL_SECONDS = int(os.environ.get("SHARE_LINK_MAX_TTL_SECONDS", str(30 * 24 * 3600)))

# ---------------------------------------------------------------------------
# External collaborators
# ---------------------------------------------------------------------------
# Rasterizer used for pdf/png exports (empty = exports other than json fail).
RENDERER_URL = os.environ.get("RENDERER_URL", "").strip()
RENDER_TIMEOUT_SECONDS = float(os.environ.get("RENDER_TIMEOUT_SECONDS", "10"))
EXHIBITOR_DIRECTORY_URL = os.environ.get("EXHIBITOR_DIRECTORY_URL", "").strip()
EXHIBITOR_DIRECTORY_TIMEOUT_SECONDS = float(
    os.environ.get("EXHIBITOR_DIRECTORY_TIMEOUT_SECONDS", "5")
)
