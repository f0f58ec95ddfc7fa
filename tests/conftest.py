"""
Pytest configuration and shared fixtures.

Fixtures available to all tests:
  • db_session            — session on a fresh in-memory SQLite database
  • api_db                — routes ``expo_floor.database.get_db`` to that database
  • make_booth(...)       — build a BoothShape
  • make_plan(...)        — build an unsaved FloorPlan
  • auth_header(...)      — Authorization header for a given caller
"""

from __future__ import annotations

import os
import sys
from typing import List, Optional

import pytest

# Keep the module-level engine off disk during tests.
os.environ.setdefault("DATABASE_URL", "sqlite://")

# Ensure the project root is on the path so all expo_floor imports resolve.
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from sqlalchemy.orm import sessionmaker  # noqa: E402

from expo_floor import database  # noqa: E402
from expo_floor.auth import create_token  # noqa: E402
from expo_floor.domain.models import BoothShape, FloorPlan, ShapeMetadata  # noqa: E402
from expo_floor.metrics import reset_metrics_for_tests  # noqa: E402


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
def db_engine():
    engine = database.build_engine("sqlite://")
    database.Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """Create an in-memory SQLite database for testing."""
    Session = sessionmaker(bind=db_engine, autoflush=False)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def api_db(db_engine, monkeypatch):
    """Point request handlers at the in-memory test database."""
    Session = sessionmaker(bind=db_engine, autoflush=False)
    monkeypatch.setattr(database, "SessionLocal", Session)
    return Session


@pytest.fixture(autouse=True)
def _clean_metrics():
    reset_metrics_for_tests()
    yield


# ---------------------------------------------------------------------------
# Plan / booth factories
# ---------------------------------------------------------------------------

def _booth(
    number: Optional[str] = "B1",
    x: float = 0.0,
    y: float = 0.0,
    width: float = 20.0,
    height: float = 20.0,
    status: Optional[str] = "available",
    shape_id: Optional[str] = None,
    **meta,
) -> BoothShape:
    kwargs = {"x": x, "y": y, "width": width, "height": height}
    if shape_id:
        kwargs["id"] = shape_id
    return BoothShape(
        **kwargs,
        metadata=ShapeMetadata(booth_number=number, status=status, **meta),
    )


@pytest.fixture
def make_booth():
    return _booth


@pytest.fixture
def make_plan():
    def _factory(shapes: Optional[List] = None, **kwargs) -> FloorPlan:
        data = {"id": 1, "name": "Hall A", "grid_size": 20, "created_by": "owner-1"}
        data.update(kwargs)
        return FloorPlan(shapes=shapes or [], **data)
    return _factory


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

@pytest.fixture
def auth_header():
    def _factory(user_id: str = "owner-1", role: str = "editor") -> dict:
        return {"Authorization": f"Bearer {create_token(user_id, role)}"}
    return _factory
