from __future__ import annotations

import asyncio

from fastapi.testclient import TestClient

from portal.services.task_queue import NOTIFICATIONS_QUEUE, task_queue
from tests.conftest import auth, mint_token


def _add_questions(client: TestClient, admin_token: str) -> tuple[str, str]:
    why = client.post(
        "/v1/applications/questions",
        json={"question": "Why join?", "type": "textarea"},
        headers=auth(admin_token),
    ).json()
    level = client.post(
        "/v1/applications/questions",
        json={"question": "Level", "type": "radio", "options": ["New", "Veteran"]},
        headers=auth(admin_token),
    ).json()
    return why["id"], level["id"]


def _applicant() -> str:
    return mint_token("newcomer", roles=["applicant"])


def test_question_crud(client: TestClient, admin_token: str) -> None:
    why, level = _add_questions(client, admin_token)

    listed = client.get("/v1/applications/questions", headers=auth(_applicant())).json()
    assert [q["id"] for q in listed] == [why, level]

    r = client.put(
        f"/v1/applications/questions/{why}",
        json={"question": "Why fly with us?", "type": "text", "required": False},
        headers=auth(admin_token),
    )
    assert r.status_code == 200
    assert r.json()["required"] is False

    r = client.delete(f"/v1/applications/questions/{level}", headers=auth(admin_token))
    assert r.status_code == 204
    listed = client.get("/v1/applications/questions", headers=auth(admin_token)).json()
    assert [q["question"] for q in listed] == ["Why fly with us?"]


def test_non_admin_cannot_edit_questions(client: TestClient, staff_token: str) -> None:
    r = client.post(
        "/v1/applications/questions",
        json={"question": "Q?"},
        headers=auth(staff_token),
    )
    assert r.status_code == 403


def test_submit_and_review(client: TestClient, admin_token: str) -> None:
    why, level = _add_questions(client, admin_token)
    applicant = _applicant()

    r = client.post(
        "/v1/applications",
        json={"responses": {why: "  I love flying  ", level: "New"}},
        headers=auth(applicant),
    )
    assert r.status_code == 201
    application = r.json()
    assert application["status"] == "pending"
    assert application["responses"][why] == "I love flying"

    r = client.post(
        "/v1/applications",
        json={"responses": {why: "again", level: "New"}},
        headers=auth(applicant),
    )
    assert r.status_code == 409

    pending = client.get(
        "/v1/applications?status=pending", headers=auth(admin_token)
    ).json()
    assert [a["id"] for a in pending] == [application["id"]]

    r = client.post(
        f"/v1/applications/{application['id']}/review",
        json={"decision": "accepted", "notes": "welcome aboard"},
        headers=auth(admin_token),
    )
    assert r.status_code == 200
    assert r.json()["status"] == "accepted"

    me = client.get("/v1/profiles/me", headers=auth(applicant)).json()
    assert (me["role"], me["status"]) == ("student", "accepted")

    r = client.post(
        f"/v1/applications/{application['id']}/review",
        json={"decision": "denied"},
        headers=auth(admin_token),
    )
    assert r.status_code == 409


def test_invalid_choice_is_422(client: TestClient, admin_token: str) -> None:
    why, level = _add_questions(client, admin_token)
    r = client.post(
        "/v1/applications",
        json={"responses": {why: "Because", level: "Expert"}},
        headers=auth(_applicant()),
    )
    assert r.status_code == 422
    assert r.json()["code"] == "validation_error"


def test_missing_required_answer_is_422(client: TestClient, admin_token: str) -> None:
    _, level = _add_questions(client, admin_token)
    r = client.post(
        "/v1/applications",
        json={"responses": {level: "New"}},
        headers=auth(_applicant()),
    )
    assert r.status_code == 422


def test_application_visible_to_owner_and_admin(
    client: TestClient, admin_token: str, token: str
) -> None:
    why, level = _add_questions(client, admin_token)
    created = client.post(
        "/v1/applications",
        json={"responses": {why: "Yes", level: "New"}},
        headers=auth(_applicant()),
    ).json()
    url = f"/v1/applications/{created['id']}"

    assert client.get(url, headers=auth(_applicant())).status_code == 200
    assert client.get(url, headers=auth(admin_token)).status_code == 200
    assert client.get(url, headers=auth(token)).status_code == 403


def test_submission_notifies_applications_channel(
    client: TestClient, admin_token: str
) -> None:
    why, level = _add_questions(client, admin_token)
    task_queue._queues.clear()  # type: ignore[union-attr]

    client.post(
        "/v1/applications",
        json={"responses": {why: "Yes", level: "New"}},
        headers=auth(_applicant()),
    )

    task = asyncio.run(task_queue.dequeue(NOTIFICATIONS_QUEUE))
    assert task.payload["channel"] == "applications"
    assert task.payload["embeds"][0]["title"] == "📝 New Application Submitted"
