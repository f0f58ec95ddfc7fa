"""End-to-end tests of the HTTP surface through FastAPI's TestClient."""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from expo_floor import exhibitors
from expo_floor.app import app
from expo_floor.domain.models import Exhibitor
from expo_floor.routers.sharing import get_renderer
from expo_floor.sharing.export import RenderClient


@pytest.fixture
def client(api_db):
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def owner(auth_header):
    return auth_header("owner-1", "editor")


def _create_plan(client, headers, **body):
    body.setdefault("name", "Hall A")
    resp = client.post("/api/floor-plans", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def _add_booth(client, headers, plan_id, **body):
    body = {"x": 0, "y": 0, "width": 20, "height": 20, **body}
    resp = client.post(f"/api/floor-plans/{plan_id}/booths", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


class TestFloorPlans:
    def test_create_returns_envelope(self, client, owner):
        resp = client.post("/api/floor-plans", json={"name": "Hall A", "gridSize": 25}, headers=owner)
        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        assert body["data"]["gridSize"] == 25
        assert body["data"]["createdBy"] == "owner-1"
        assert body["data"]["isMaster"] is False

    def test_is_master_not_settable_on_create(self, client, owner):
        data = _create_plan(client, owner, isMaster=True)
        assert data["isMaster"] is False

    def test_missing_name_is_400(self, client, owner):
        resp = client.post("/api/floor-plans", json={"description": "x"}, headers=owner)
        assert resp.status_code == 400
        assert resp.json() == {
            "success": False,
            "error": "Validation Error",
            "message": "Floor plan name is required",
        }

    def test_auth_and_role_checks(self, client, auth_header):
        assert client.post("/api/floor-plans", json={"name": "x"}).status_code == 401
        resp = client.post("/api/floor-plans", json={"name": "x"}, headers=auth_header("v1", "viewer"))
        assert resp.status_code == 403
        assert resp.json()["success"] is False

    def test_private_plan_visibility(self, client, owner, auth_header):
        plan = _create_plan(client, owner)
        other = auth_header("someone", "editor")
        assert client.get(f"/api/floor-plans/{plan['id']}", headers=owner).status_code == 200
        assert client.get(f"/api/floor-plans/{plan['id']}", headers=other).status_code == 403
        assert client.get(f"/api/floor-plans/{plan['id']}").status_code == 401
        assert client.get(f"/api/floor-plans/public/{plan['id']}").status_code == 403
        assert client.get("/api/floor-plans/999", headers=owner).status_code == 404

    def test_list_and_public_list(self, client, owner, auth_header):
        _create_plan(client, owner, name="Private")
        _create_plan(client, owner, name="Open", isPublic=True)

        mine = client.get("/api/floor-plans", headers=owner).json()["data"]
        assert mine["pagination"]["total"] == 2
        assert [p["name"] for p in mine["items"]] == ["Open", "Private"]

        theirs = client.get("/api/floor-plans", headers=auth_header("x", "viewer")).json()["data"]
        assert [p["name"] for p in theirs["items"]] == ["Open"]

        public = client.get("/api/floor-plans/public").json()["data"]
        assert [p["name"] for p in public["items"]] == ["Open"]

    def test_update_with_stale_revision_conflicts(self, client, owner):
        plan = _create_plan(client, owner)
        url = f"/api/floor-plans/{plan['id']}"
        first = client.put(url, json={"name": "v2", "revision": plan["revision"]}, headers=owner)
        assert first.status_code == 200
        assert first.json()["data"]["revision"] == plan["revision"] + 1

        stale = client.put(url, json={"name": "v3", "revision": plan["revision"]}, headers=owner)
        assert stale.status_code == 409
        assert stale.json()["error"] == "Conflict"

    def test_update_by_non_owner_forbidden(self, client, owner, auth_header):
        plan = _create_plan(client, owner)
        resp = client.put(f"/api/floor-plans/{plan['id']}", json={"name": "x"}, headers=auth_header("u2", "editor"))
        assert resp.status_code == 403

    def test_delete(self, client, owner):
        plan = _create_plan(client, owner)
        assert client.delete(f"/api/floor-plans/{plan['id']}", headers=owner).status_code == 200
        assert client.get(f"/api/floor-plans/{plan['id']}", headers=owner).status_code == 404

    def test_duplicate_and_reset(self, client, owner, auth_header):
        plan = _create_plan(client, owner, isPublic=True)
        _add_booth(client, owner, plan["id"])

        copier = auth_header("u2", "editor")
        copy = client.post(f"/api/floor-plans/{plan['id']}/duplicate", headers=copier).json()["data"]
        assert copy["id"] != plan["id"]
        assert copy["createdBy"] == "u2"
        assert copy["isPublic"] is False
        assert len(copy["shapes"]) == 1

        reset = client.post(f"/api/floor-plans/{plan['id']}/reset", headers=owner)
        assert reset.status_code == 200
        assert reset.json()["data"]["shapes"] == []

    def test_quick_save_keeps_unsent_metadata(self, client, owner):
        plan = _create_plan(client, owner)
        booth = _add_booth(client, owner, plan["id"], companyName="Acme")
        current = client.get(f"/api/floor-plans/{plan['id']}", headers=owner).json()["data"]

        resp = client.patch(
            f"/api/floor-plans/{plan['id']}/quick-save",
            json={"shapes": [{"id": booth["id"], "type": "booth", "x": 50}], "revision": current["revision"]},
            headers=owner,
        )
        assert resp.status_code == 200
        saved = client.get(f"/api/floor-plans/{plan['id']}", headers=owner).json()["data"]["shapes"][0]
        assert saved["x"] == 50
        assert saved["metadata"]["companyName"] == "Acme"


class TestBooths:
    def test_booth_lifecycle(self, client, owner):
        plan = _create_plan(client, owner)
        pid = plan["id"]
        booth = _add_booth(client, owner, pid, category="tech")
        assert booth["metadata"]["boothNumber"] == "B1"
        assert booth["metadata"]["status"] == "available"

        resp = client.patch(f"/api/floor-plans/{pid}/booths/{booth['id']}/status", json={"status": "booked"}, headers=owner)
        assert resp.status_code == 200
        assert resp.json()["data"]["metadata"]["status"] == "booked"

        resp = client.patch(f"/api/floor-plans/{pid}/booths/{booth['id']}/position", json={"x": 40}, headers=owner)
        assert resp.json()["data"]["x"] == 40

        resp = client.put(f"/api/floor-plans/{pid}/booths/{booth['id']}", json={"companyName": "Acme"}, headers=owner)
        assert resp.json()["data"]["metadata"]["companyName"] == "Acme"
        assert resp.json()["data"]["metadata"]["category"] == "tech"

        listed = client.get(f"/api/floor-plans/{pid}/booths?status=booked", headers=owner).json()["data"]
        assert [b["id"] for b in listed] == [booth["id"]]

        assert client.delete(f"/api/floor-plans/{pid}/booths/{booth['id']}", headers=owner).status_code == 200
        assert client.get(f"/api/floor-plans/{pid}/booths", headers=owner).json()["data"] == []

    def test_invalid_status_is_400(self, client, owner):
        plan = _create_plan(client, owner)
        booth = _add_booth(client, owner, plan["id"])
        resp = client.patch(
            f"/api/floor-plans/{plan['id']}/booths/{booth['id']}/status",
            json={"status": "sold-out"},
            headers=owner,
        )
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    def test_missing_geometry_is_400(self, client, owner):
        plan = _create_plan(client, owner)
        resp = client.post(f"/api/floor-plans/{plan['id']}/booths", json={"x": 1}, headers=owner)
        assert resp.status_code == 400

    def test_unknown_booth_is_404(self, client, owner):
        plan = _create_plan(client, owner)
        resp = client.delete(f"/api/floor-plans/{plan['id']}/booths/booth-nope", headers=owner)
        assert resp.status_code == 404

    def test_neighbors(self, client, owner):
        plan = _create_plan(client, owner, gridSize=20)
        for i in range(4):
            _add_booth(client, owner, plan["id"], x=i * 20)
        resp = client.get(f"/api/floor-plans/{plan['id']}/booths/B1/neighbors?radius=2", headers=owner)
        data = resp.json()["data"]
        assert [b["metadata"]["boothNumber"] for b in data] == ["B2", "B3"]
        assert data[0]["distance"] == 20.0

        resp = client.get(f"/api/floor-plans/{plan['id']}/booths/B1/neighbors?radius=0", headers=owner)
        assert resp.status_code == 400

    def test_find_booth(self, client, owner):
        plan = _create_plan(client, owner, isPublic=True)
        _add_booth(client, owner, plan["id"], boothNumber="Z9")
        resp = client.get("/api/floor-plans/find-booth/Z9")
        assert resp.json()["data"]["floorPlan"]["id"] == plan["id"]
        assert client.get("/api/floor-plans/find-booth/NOPE").status_code == 404


class TestMaster:
    def test_master_get_or_create(self, client, auth_header):
        admin = auth_header("root", "admin")
        assert client.get("/api/floor-plans/master").status_code == 404

        resp = client.post("/api/floor-plans/master", json={"name": "Main"}, headers=admin)
        assert resp.status_code == 201
        created = resp.json()["data"]
        assert created["isMaster"] is True
        assert created["isPublic"] is True

        resp = client.put("/api/floor-plans/master", json={"name": "Main v2", "isPublic": False}, headers=admin)
        assert resp.status_code == 200
        updated = resp.json()["data"]
        assert updated["isPublic"] is True
        assert updated["id"] == created["id"]
        assert client.get("/api/floor-plans/master").json()["data"]["name"] == "Main v2"


class TestSharingAndExport:
    def test_share_link_flow(self, client, owner, auth_header):
        plan = _create_plan(client, owner)
        resp = client.post(f"/api/floor-plans/{plan['id']}/share", json={"expiresIn": "24h"}, headers=owner)
        assert resp.status_code == 201
        token = resp.json()["data"]["token"]

        shared = client.get(f"/api/floor-plans/shared/{token}")
        assert shared.status_code == 200
        assert shared.json()["data"]["id"] == plan["id"]

        assert client.get("/api/floor-plans/shared/bogus").status_code == 404
        forbidden = client.post(f"/api/floor-plans/{plan['id']}/share", json={}, headers=auth_header("u2", "editor"))
        assert forbidden.status_code == 403

    def test_share_ttl_too_long(self, client, owner):
        plan = _create_plan(client, owner)
        resp = client.post(f"/api/floor-plans/{plan['id']}/share", json={"expiresIn": "90d"}, headers=owner)
        assert resp.status_code == 400

    def test_json_export(self, client, owner):
        plan = _create_plan(client, owner, name="Hall A")
        resp = client.get(f"/api/floor-plans/{plan['id']}/export?format=json", headers=owner)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("application/json")
        assert "attachment" in resp.headers["content-disposition"]
        assert resp.json()["name"] == "Hall A"

    def test_render_timeout_is_504(self, client, owner):
        def _handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        app.dependency_overrides[get_renderer] = lambda: RenderClient(
            "http://renderer.local", transport=httpx.MockTransport(_handler),
        )
        plan = _create_plan(client, owner)
        resp = client.get(f"/api/floor-plans/{plan['id']}/export?format=png", headers=owner)
        assert resp.status_code == 504
        assert resp.json()["error"] == "Render Timeout"

    def test_unsupported_export_format(self, client, owner):
        plan = _create_plan(client, owner)
        assert client.get(f"/api/floor-plans/{plan['id']}/export?format=svg", headers=owner).status_code == 400


class TestAnalyticsAndViews:
    def test_plan_analytics(self, client, owner):
        plan = _create_plan(client, owner)
        _add_booth(client, owner, plan["id"], status="booked")
        _add_booth(client, owner, plan["id"], x=40)

        data = client.get(f"/api/floor-plans/{plan['id']}/analytics", headers=owner).json()["data"]
        assert data["booths"]["total"] == 2
        assert data["booths"]["occupancyRate"] == 0.5
        assert data["heatmap"]["maxWeight"] == 1.0

        booths = client.get(f"/api/floor-plans/{plan['id']}/analytics/booths", headers=owner).json()["data"]
        assert booths["byStatus"]["booked"] == 1
        heat = client.get(f"/api/floor-plans/{plan['id']}/analytics/heatmap", headers=owner).json()["data"]
        assert heat["gridSize"] == 20

    def test_statistics_overview(self, client, owner):
        _create_plan(client, owner)
        _create_plan(client, owner, isPublic=True)
        data = client.get("/api/floor-plans/statistics", headers=owner).json()["data"]
        assert data["totalPlans"] == 2
        assert data["publicPlans"] == 1

    def test_exhibitor_view_flags_own_booth(self, client, owner, auth_header):
        plan = _create_plan(client, owner, isPublic=True)
        _add_booth(client, owner, plan["id"], boothNumber="B1")
        _add_booth(client, owner, plan["id"], boothNumber="B2", x=40)

        exhibitors.set_exhibitor_directory(
            exhibitors.StaticExhibitorDirectory([Exhibitor(id="ex-1", booth_number="B2", company_name="Acme")])
        )
        try:
            resp = client.get(f"/api/floor-plans/{plan['id']}/exhibitor-view", headers=auth_header("ex-1", "exhibitor"))
        finally:
            exhibitors.set_exhibitor_directory(None)

        data = resp.json()["data"]
        flags = [s["metadata"].get("isUserBooth") for s in data["floorPlan"]["shapes"]]
        assert flags == [None, True]
        assert data["exhibitor"]["companyName"] == "Acme"

        stored = client.get(f"/api/floor-plans/{plan['id']}", headers=owner).json()["data"]
        assert all("isUserBooth" not in s["metadata"] for s in stored["shapes"])


class TestSystem:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["db_connected"] is True
        assert set(body["renders"]) == {"ok", "failed", "timeout"}

    def test_request_id_header(self, client):
        resp = client.get("/api/health", headers={"X-Request-ID": "abc123"})
        assert resp.headers["X-Request-ID"] == "abc123"

    def test_auth_me(self, client, auth_header):
        resp = client.get("/api/auth/me", headers=auth_header("u5", "viewer"))
        assert resp.json()["data"] == {"id": "u5", "role": "viewer", "name": None}
        assert client.get("/api/auth/me").status_code == 401

    @pytest.mark.parametrize("debug", [False, True])
    def test_unhandled_error_is_500_envelope(self, api_db, owner, monkeypatch, debug):
        monkeypatch.setattr("expo_floor.config.DEBUG", debug)

        def _boom(plan):
            raise RuntimeError("kaboom")

        monkeypatch.setattr("expo_floor.routers.analytics.compute_booth_statistics", _boom)
        with TestClient(app, raise_server_exceptions=False) as c:
            plan = _create_plan(c, owner)
            resp = c.get(f"/api/floor-plans/{plan['id']}/analytics/booths", headers=owner)
        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert "kaboom" not in body["message"]
        assert ("traceback" in body) is debug
