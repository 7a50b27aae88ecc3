from __future__ import annotations

import uuid

from fastapi.testclient import TestClient

from portal.main import app
from tests.conftest import auth


def test_workflow_routes_are_mounted() -> None:
    paths = {route.path for route in app.routes}
    for expected in (
        "/health",
        "/metrics",
        "/v1/courses/{course_id}/enroll",
        "/v1/quizzes/{quiz_id}/submit",
        "/v1/certificates/verify/{identifier}",
        "/v1/progress/summary/{course_id}",
    ):
        assert expected in paths


def test_portal_errors_render_detail_and_code(client: TestClient, token: str) -> None:
    r = client.get(f"/v1/courses/{uuid.uuid4()}", headers=auth(token))
    assert r.status_code == 404
    body = r.json()
    assert set(body) == {"detail", "code"}
    assert body["code"] == "not_found"


def test_docs_hidden_outside_dev(client: TestClient) -> None:
    assert client.get("/docs").status_code == 404
