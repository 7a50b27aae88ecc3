from __future__ import annotations

from datetime import timedelta

from fastapi.testclient import TestClient

from portal.services import token_service
from tests.conftest import auth, mint_token


def test_missing_token_is_401(client: TestClient) -> None:
    r = client.get("/v1/courses")
    assert r.status_code == 401
    assert r.json()["code"] == "not_authenticated"
    assert r.headers["WWW-Authenticate"] == "Bearer"


def test_garbage_token_is_401(client: TestClient) -> None:
    r = client.get("/v1/courses", headers=auth("not-a-jwt"))
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid token"


def test_expired_token_is_401(client: TestClient) -> None:
    expired = token_service.create_access_token(
        sub="learner-1", username="learner-1", ttl=timedelta(seconds=-60)
    )
    r = client.get("/v1/courses", headers=auth(expired))
    assert r.status_code == 401
    assert r.json()["detail"] == "Token expired"


def test_first_request_creates_profile(client: TestClient) -> None:
    r = client.get("/v1/profiles/me", headers=auth(mint_token("pilot-7", "Ace")))
    assert r.status_code == 200
    body = r.json()
    assert body["id"] == "pilot-7"
    assert body["username"] == "Ace"
    assert body["role"] == "student"
    assert body["status"] == "accepted"


def test_applicant_profile_is_pending(client: TestClient) -> None:
    r = client.get(
        "/v1/profiles/me", headers=auth(mint_token("new-1", roles=["applicant"]))
    )
    assert (r.json()["role"], r.json()["status"]) == ("applicant", "pending")


def test_profile_role_grants_access(client: TestClient, admin_token: str) -> None:
    learner = mint_token("learner-1", roles=["applicant"])
    client.get("/v1/profiles/me", headers=auth(learner))

    r = client.patch(
        "/v1/admin/users/learner-1/role",
        json={"role": "staff"},
        headers=auth(admin_token),
    )
    assert r.status_code == 200

    # Token still says applicant; the portal role now allows authoring
    r = client.post(
        "/v1/courses",
        json={"title": "T", "description": "D"},
        headers=auth(learner),
    )
    assert r.status_code == 201
