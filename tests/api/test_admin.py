from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import answers_for, auth, mint_token, seed_course


def test_admin_routes_need_admin(client: TestClient, staff_token: str) -> None:
    for path in ("/v1/admin/users", "/v1/admin/analytics"):
        assert client.get(path, headers=auth(staff_token)).status_code == 403


def test_list_users_and_change_role(client: TestClient, admin_token: str) -> None:
    learner = mint_token("learner-9")
    client.get("/v1/profiles/me", headers=auth(learner))

    users = client.get("/v1/admin/users", headers=auth(admin_token)).json()
    assert {u["id"] for u in users} == {"admin-1", "learner-9"}

    r = client.patch(
        "/v1/admin/users/learner-9/role",
        json={"role": "staff"},
        headers=auth(admin_token),
    )
    assert r.status_code == 200
    assert r.json()["role"] == "staff"


def test_unknown_role_is_422(client: TestClient, admin_token: str) -> None:
    client.get("/v1/profiles/me", headers=auth(mint_token("learner-9")))
    r = client.patch(
        "/v1/admin/users/learner-9/role",
        json={"role": "captain"},
        headers=auth(admin_token),
    )
    assert r.status_code == 422


def test_unknown_user_is_404(client: TestClient, admin_token: str) -> None:
    r = client.patch(
        "/v1/admin/users/ghost/role", json={"role": "staff"}, headers=auth(admin_token)
    )
    assert r.status_code == 404


def test_analytics(client: TestClient, repos, token: str, admin_token: str) -> None:
    course, quiz = seed_course(repos)
    client.post(f"/v1/courses/{course.id}/enroll", headers=auth(token))
    client.post(
        f"/v1/courses/{course.id}/modules/{course.modules[0].id}/complete",
        headers=auth(token),
    )
    client.post(
        f"/v1/quizzes/{quiz.id}/submit",
        json={"answers": answers_for(quiz, 4)},
        headers=auth(token),
    )

    stats = client.get("/v1/admin/analytics", headers=auth(admin_token)).json()

    assert stats["enrollments"] == 1
    assert stats["average_progress"] == 50
    assert stats["completions"] == 0
    assert stats["certificates"] == 0
    assert stats["quiz_attempts"] == 1
    assert stats["quiz_pass_rate"] == 0
    assert stats["users"]["admin"] == 1
    assert stats["users"]["student"] == 1
