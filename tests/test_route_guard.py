from __future__ import annotations

from conftest import make_user
from labor_app.core.security import create_refresh_token


def test_hub_requires_authentication(client):
    res = client.get("/api/v1/management/hub")
    assert res.status_code == 401
    assert res.json()["detail"]["redirect_to"] == "/login"
    assert res.headers["www-authenticate"] == "Bearer"


def test_invalid_token_is_rejected(client):
    res = client.get("/api/v1/management/hub", headers={"Authorization": "Bearer not-a-token"})
    assert res.status_code == 401


def test_wrong_scheme_is_rejected(client):
    res = client.get("/api/v1/management/hub", headers={"Authorization": "Basic abc"})
    assert res.status_code == 401


def test_refresh_token_cannot_authenticate(client):
    token = create_refresh_token({"sub": "64b000000000000000000000"})
    res = client.get("/api/v1/permissions/me", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401
    assert "token type" in res.json()["detail"]["message"]


def test_hub_forbidden_for_role_outside_required_set(client, login_as):
    login_as(make_user("SE"))
    res = client.get("/api/v1/management/hub")
    assert res.status_code == 403
    body = res.json()["detail"]
    assert body["redirect_to"] == "/unauthorized"
    assert "SE" not in body["required_roles"]


def test_hub_for_foreman(client, login_as):
    login_as(make_user("FM"))
    res = client.get("/api/v1/management/hub")
    assert res.status_code == 200
    body = res.json()
    assert body["state"] == "available"
    assert [s["key"] for s in body["sections"]] == ["daily-contractors"]


def test_hub_no_access_state_for_managing_director(client, login_as):
    login_as(make_user("MD"))
    body = client.get("/api/v1/management/hub").json()
    assert body["state"] == "no_access"
    assert body["sections"] == []
    assert body["message"]


def test_super_user_bypasses_role_check(client, login_as):
    login_as(make_user("GOD"))
    body = client.get("/api/v1/management/hub").json()
    assert [s["key"] for s in body["sections"]] == ["projects", "members", "daily-contractors"]


def test_permissions_me(client, login_as):
    login_as(make_user("PD"))
    body = client.get("/api/v1/permissions/me").json()
    assert body["role_code"] == "PD"
    assert body["is_department_restricted"] is True
    assert body["can_access_member_management"] is False


def test_member_management_requires_capability(client, login_as):
    login_as(make_user("PM"))
    res = client.get("/api/v1/users/")
    assert res.status_code == 403
    assert res.json()["detail"]["permission"] == "can_access_member_management"


def test_foreman_cannot_create_daily_reports(client, login_as):
    login_as(make_user("FM"))
    res = client.post("/api/v1/daily-reports/", json={
        "project_location_id": "P001",
        "daily_contractor_id": "DC001",
        "task_name": "Formwork",
        "work_date": "2024-03-01T00:00:00Z",
        "start_time": "2024-03-01T01:00:00Z",
        "end_time": "2024-03-01T10:00:00Z",
    })
    assert res.status_code == 403


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
