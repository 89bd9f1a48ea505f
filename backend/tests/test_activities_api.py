from fastapi.testclient import TestClient
from habitlog.main import app
import pytest

@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c

def settle(client, user):
    live = app.state.live_sessions.get(user.id)
    client.portal.call(live.coordinator.wait_idle)

def test_empty_board(client, auth_headers):
    r = client.get("/activities", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["templates"] == []
    assert r.json()["daily_goal"] == 0

def test_toggle_and_dashboard(client, user, auth_headers):
    H = auth_headers
    r = client.post("/activities/templates", headers=H, json={"name": "Walk", "icon": "shoe"})
    assert r.status_code == 201
    tid = r.json()["id"]

    board = client.get("/activities", headers=H).json()
    assert board["daily_goal"] == 1
    assert board["templates"][0]["completed"] is False

    r = client.post(f"/activities/{tid}/toggle", headers=H)
    assert r.status_code == 200
    assert r.json() == {"template_id": tid, "completed": True}
    settle(client, user)

    stats = client.get("/dashboard/stats", headers=H).json()
    assert stats["current_month"]["activities"] == 1
    assert stats["daily_goal"] == 1
    assert stats["daily_breakdown"][0]["percentage"] == 100

def test_toggle_unknown(client, auth_headers):
    assert client.post("/activities/4242/toggle", headers=auth_headers).status_code == 404

def test_template_edit_and_delete(client, auth_headers):
    H = auth_headers
    tid = client.post("/activities/templates", headers=H, json={"name": "Stretch"}).json()["id"]

    r = client.put(f"/activities/templates/{tid}", headers=H, json={"name": "Yoga", "description": "20 min"})
    assert r.status_code == 200
    assert r.json()["name"] == "Yoga"
    assert client.put("/activities/templates/4242", headers=H, json={"name": "x"}).status_code == 404

    assert client.delete(f"/activities/templates/{tid}", headers=H).status_code == 204
    assert client.get("/activities", headers=H).json()["templates"] == []
    assert client.delete(f"/activities/templates/{tid}", headers=H).status_code == 404

def test_template_name_required(client, auth_headers):
    r = client.post("/activities/templates", headers=auth_headers, json={"name": "  "})
    assert r.status_code == 422
