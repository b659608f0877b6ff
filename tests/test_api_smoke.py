import pytest

from fakes import visit_payload
from ops_portal.main import create_app


@pytest.fixture
def client(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container=container)
    return app.test_client()


def _login(client, username="user2", password="secret123"):
    return client.post("/api/auth/login", json={"username": username, "password": password})


def test_requires_login(client):
    resp = client.get("/api/auth/me")

    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "message": "Please sign in to continue"}


def test_login_and_me(client):
    assert _login(client, password="nope").status_code == 401

    resp = _login(client)
    assert resp.status_code == 200
    assert resp.get_json()["data"]["role"] == "employee"

    me = client.get("/api/auth/me").get_json()["data"]
    assert me["username"] == "user2"
    assert me["department"] == "marketing"
    assert "password_hash" not in me


def test_site_visit_round_trip(client):
    _login(client)

    resp = client.post("/api/site-visits", json=visit_payload())
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["message"] == "Site visit started"
    visit = body["data"]
    assert visit["department"] == "marketing"
    assert visit["customer"]["name"] == "Lakshmi Traders"
    assert visit["marketing_data"]["configs"]["on_grid"]["panelCount"] == 6

    again = client.post("/api/site-visits", json=visit_payload())
    assert again.status_code == 409

    mine = client.get("/api/site-visits/mine").get_json()["data"]
    assert [v["visit_id"] for v in mine] == [visit["visit_id"]]


def test_validation_errors_are_json(client):
    _login(client)

    resp = client.post("/api/site-visits", json=visit_payload(site_in_location=None))

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Please allow location detection to start a site visit"


def test_admin_routes_need_admin_role(client):
    _login(client)

    assert client.post("/api/site-visits/auto-close/run").status_code == 403
