"""Tests for the database layer."""

from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from expo_floor.core.errors import Conflict, NotFound, ValidationError
from expo_floor.core.utils import utcnow
from expo_floor.database import (
    FloorPlanRecord,
    create_floor_plan,
    delete_floor_plan,
    find_floor_plans,
    find_master_plan,
    get_floor_plan,
    get_share_link,
    save_share_link,
    update_floor_plan,
)
from expo_floor.domain.models import ShareLink


class TestCreateAndGet:
    def test_create_assigns_id_and_defaults(self, db_session):
        plan = create_floor_plan(db_session, {"name": "Hall A"}, created_by="u1")
        assert plan.id is not None
        assert plan.created_by == "u1"
        assert plan.grid_size == 20
        assert plan.scale == 0.1
        assert plan.shapes == []
        assert plan.revision == 1
        assert plan.is_master is False

    def test_blank_name_rejected(self, db_session):
        with pytest.raises(ValidationError):
            create_floor_plan(db_session, {"name": "   "})
        with pytest.raises(ValidationError):
            create_floor_plan(db_session, {})

    def test_invalid_grid_size_rejected(self, db_session):
        with pytest.raises(ValidationError):
            create_floor_plan(db_session, {"name": "x", "grid_size": 0})

    def test_shapes_round_trip_through_json_column(self, db_session, make_booth):
        booth = make_booth("B7", x=10, y=20, category="tech")
        plan = create_floor_plan(db_session, {"name": "Hall", "shapes": [booth.model_dump()]})
        loaded = get_floor_plan(db_session, plan.id)
        assert loaded.shapes[0].id == booth.id
        assert loaded.shapes[0].metadata.booth_number == "B7"
        assert loaded.shapes[0].metadata.category == "tech"

    def test_transient_flag_never_persisted(self, db_session, make_booth):
        booth = make_booth("B1", is_user_booth=True)
        plan = create_floor_plan(db_session, {"name": "Hall", "shapes": [booth]})
        row = db_session.get(FloorPlanRecord, plan.id)
        assert "isUserBooth" not in row.shapes[0]["metadata"]

    def test_get_missing_raises_not_found(self, db_session):
        with pytest.raises(NotFound):
            get_floor_plan(db_session, 999)


class TestFind:
    def _seed(self, db_session):
        a = create_floor_plan(db_session, {"name": "North Hall", "is_public": True}, created_by="u1")
        b = create_floor_plan(db_session, {"name": "South", "description": "near the NORTH gate"}, created_by="u2")
        c = create_floor_plan(db_session, {"name": "Annex", "floor": "2"}, created_by="u1")
        # Make created_at strictly ordered a < b < c.
        base = utcnow() - timedelta(hours=1)
        for i, plan_id in enumerate((a.id, b.id, c.id)):
            db_session.get(FloorPlanRecord, plan_id).created_at = base + timedelta(minutes=i)
        db_session.commit()
        return a, b, c

    def test_newest_first(self, db_session):
        a, b, c = self._seed(db_session)
        items, total = find_floor_plans(db_session)
        assert total == 3
        assert [p.id for p in items] == [c.id, b.id, a.id]

    def test_search_is_case_insensitive_over_name_and_description(self, db_session):
        a, b, _ = self._seed(db_session)
        items, total = find_floor_plans(db_session, search="north")
        assert total == 2
        assert {p.id for p in items} == {a.id, b.id}

    def test_search_wildcards_match_literally(self, db_session):
        self._seed(db_session)
        pct = create_floor_plan(db_session, {"name": "100% booked"})
        under = create_floor_plan(db_session, {"name": "hall_b"})
        assert find_floor_plans(db_session, search="%")[1] == 1
        assert [p.id for p in find_floor_plans(db_session, search="%")[0]] == [pct.id]
        assert [p.id for p in find_floor_plans(db_session, search="_")[0]] == [under.id]

    def test_visible_to_limits_to_public_or_own(self, db_session):
        a, b, c = self._seed(db_session)
        items, _ = find_floor_plans(db_session, visible_to="u2")
        assert {p.id for p in items} == {a.id, b.id}

    def test_paging(self, db_session):
        _, b, _ = self._seed(db_session)
        items, total = find_floor_plans(db_session, page=2, limit=1)
        assert total == 3
        assert [p.id for p in items] == [b.id]


class TestUpdate:
    def test_update_bumps_revision_and_keeps_creator(self, db_session):
        plan = create_floor_plan(db_session, {"name": "Hall"}, created_by="u1")
        updated = update_floor_plan(db_session, plan.id, {"name": "Hall 2", "created_by": "evil"}, updated_by="u9")
        assert updated.name == "Hall 2"
        assert updated.created_by == "u1"
        assert updated.updated_by == "u9"
        assert updated.revision == 2

    def test_stale_revision_conflicts(self, db_session):
        plan = create_floor_plan(db_session, {"name": "Hall"})
        update_floor_plan(db_session, plan.id, {"name": "first"}, expected_revision=1)
        with pytest.raises(Conflict):
            update_floor_plan(db_session, plan.id, {"name": "second"}, expected_revision=1)
        assert get_floor_plan(db_session, plan.id).name == "first"

    def test_update_missing_raises_not_found(self, db_session):
        with pytest.raises(NotFound):
            update_floor_plan(db_session, 42, {"name": "x"})


class TestDeleteAndShareLinks:
    def test_delete_removes_share_links(self, db_session):
        plan = create_floor_plan(db_session, {"name": "Hall"})
        save_share_link(db_session, ShareLink(
            token="tok", floor_plan_id=plan.id, expires_at=utcnow() + timedelta(days=1),
        ))
        assert get_share_link(db_session, "tok") is not None

        delete_floor_plan(db_session, plan.id)
        assert get_share_link(db_session, "tok") is None
        with pytest.raises(NotFound):
            delete_floor_plan(db_session, plan.id)


class TestMasterIndex:
    def test_second_master_violates_unique_index(self, db_session):
        create_floor_plan(db_session, {"name": "M1", "is_master": True})
        with pytest.raises(IntegrityError):
            create_floor_plan(db_session, {"name": "M2", "is_master": True})
        # Non-master plans are unaffected by the partial index.
        create_floor_plan(db_session, {"name": "Plain"})
        create_floor_plan(db_session, {"name": "Plain 2"})
        assert find_master_plan(db_session).name == "M1"
