"""Tests for Prometheus metrics.

Counters in the default registry cannot be reset between tests, so every
assertion is on the delta around the action.
"""

from __future__ import annotations

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from tests.conftest import auth, seed_course


def _get_sample(name: str, labels: dict | None = None) -> float:
    value = REGISTRY.get_sample_value(name, labels=labels or {})
    return value if value is not None else 0.0


def test_request_counter_increments(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/health")
    assert _get_sample("http_requests_total", labels) - before >= 1


def test_endpoint_label_is_route_template(client: TestClient, repos, token: str) -> None:
    course, _ = seed_course(repos)
    labels = {
        "method": "GET",
        "endpoint": "/v1/courses/{course_id}",
        "status_code": "200",
    }
    before = _get_sample("http_requests_total", labels)

    client.get(f"/v1/courses/{course.id}", headers=auth(token))

    assert _get_sample("http_requests_total", labels) - before == 1


def test_unmatched_paths_share_one_label(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "unmatched", "status_code": "404"}
    before = _get_sample("http_requests_total", labels)
    client.get("/no/such/page")
    assert _get_sample("http_requests_total", labels) - before == 1


def test_metrics_scrape_not_counted(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/metrics", "status_code": "200"}
    client.get("/metrics")
    assert _get_sample("http_requests_total", labels) == 0.0


def test_enrollment_counter(client: TestClient, repos, token: str) -> None:
    course, _ = seed_course(repos)
    created = _get_sample("portal_enrollments_total", {"result": "created"})
    existing = _get_sample("portal_enrollments_total", {"result": "existing"})

    client.post(f"/v1/courses/{course.id}/enroll", headers=auth(token))
    client.post(f"/v1/courses/{course.id}/enroll", headers=auth(token))

    assert _get_sample("portal_enrollments_total", {"result": "created"}) - created == 1
    assert _get_sample("portal_enrollments_total", {"result": "existing"}) - existing == 1
