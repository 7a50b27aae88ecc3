from __future__ import annotations

from fastapi.testclient import TestClient

from portal.services.cache import cache_service, summary_key
from tests.conftest import answers_for, auth, seed_course


def test_my_progress_lists_enrollments(client: TestClient, repos, token: str) -> None:
    first, _ = seed_course(repos, title="A")
    second, _ = seed_course(repos, title="B")
    for course in (first, second):
        client.post(f"/v1/courses/{course.id}/enroll", headers=auth(token))

    body = client.get("/v1/progress", headers=auth(token)).json()
    assert {p["course_id"] for p in body["progress"]} == {str(first.id), str(second.id)}
    assert body["quiz_results"] == []


def test_progress_is_per_user(client: TestClient, repos, token: str, staff_token: str) -> None:
    course, _ = seed_course(repos)
    client.post(f"/v1/courses/{course.id}/enroll", headers=auth(token))

    body = client.get("/v1/progress", headers=auth(staff_token)).json()
    assert body["progress"] == []


def test_summary_read_through_and_invalidation(
    client: TestClient, repos, token: str
) -> None:
    course, quiz = seed_course(repos)
    client.post(f"/v1/courses/{course.id}/enroll", headers=auth(token))
    url = f"/v1/progress/summary/{course.id}"

    r = client.get(url, headers=auth(token))
    assert r.status_code == 200
    assert r.json()["overall_progress"] == 0
    key = summary_key("learner-1", course.id)
    assert cache_service._store.get(key) is not None  # type: ignore[union-attr]

    client.post(
        f"/v1/courses/{course.id}/modules/{course.modules[0].id}/complete",
        headers=auth(token),
    )
    assert cache_service._store.get(key) is None  # type: ignore[union-attr]
    assert client.get(url, headers=auth(token)).json()["overall_progress"] == 50

    client.post(
        f"/v1/quizzes/{quiz.id}/submit",
        json={"answers": answers_for(quiz, 3)},
        headers=auth(token),
    )
    summary = client.get(url, headers=auth(token)).json()
    assert summary["quizzes"][0]["attempts"] == 1
    assert summary["quizzes"][0]["best_score"] == 30
    assert summary["quizzes"][0]["passed"] is False


def test_summary_requires_enrollment(client: TestClient, repos, token: str) -> None:
    course, _ = seed_course(repos)
    r = client.get(f"/v1/progress/summary/{course.id}", headers=auth(token))
    assert r.status_code == 404
