from datetime import timedelta

from fastapi.testclient import TestClient

from app.main import app
from app.services.auth_service import create_access_token

client = TestClient(app)


def _mint_token(user_id: int) -> str:
    r = client.post("/auth/token", json={"user_id": user_id})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]


def test_missing_authorization_header_401():
    r = client.get("/projects")
    assert r.status_code == 401


def test_wrong_scheme_401(make_user):
    token = _mint_token(make_user().id)
    r = client.get("/projects", headers={"Authorization": f"Basic {token}"})
    assert r.status_code == 401


def test_garbled_bearer_token_401():
    r = client.get("/projects", headers={"Authorization": "Bearer not-a-real-token"})
    assert r.status_code == 401


def test_expired_token_401(make_user):
    token = create_access_token(make_user().id, expires_in=timedelta(seconds=-5))
    r = client.get("/projects", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


def test_token_for_unknown_user_is_refused():
    r = client.post("/auth/token", json={"user_id": 9999})
    assert r.status_code == 404


def test_token_identifies_the_caller(make_user):
    user = make_user(full_name="Quantity Surveyor")
    token = _mint_token(user.id)
    r = client.get("/users/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json()["id"] == user.id
    assert r.json()["full_name"] == "Quantity Surveyor"
