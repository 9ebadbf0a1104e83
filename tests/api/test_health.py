from __future__ import annotations

from fastapi.testclient import TestClient

from lms_core.main import app
from lms_core.models.progress import CourseProgressSnapshot


def test_health_returns_ok_with_cache_stats(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {
        "status": "ok",
        "progressCache": {
            "totalEntries": 0,
            "completedCourses": 0,
            "activeCourses": 0,
        },
        "certificates": {
            "totalEntries": 0,
            "activeGenerations": 0,
            "entries": [],
        },
    }


def test_health_reflects_cached_progress(client: TestClient) -> None:
    services = app.state.services
    services.progress_cache.set(
        "u1",
        "c1",
        CourseProgressSnapshot.from_lessons(
            course_id="c1", total_lessons=2, lessons=[]
        ),
    )

    data = client.get("/health").json()
    assert data["progressCache"]["totalEntries"] == 1


def test_ready_returns_200_after_startup(client: TestClient) -> None:
    assert client.get("/ready").status_code == 200


def test_ready_returns_503_before_startup() -> None:
    # Without the context manager the lifespan never runs.
    resp = TestClient(app).get("/ready")
    assert resp.status_code == 503


def test_metrics_exposes_core_counters(client: TestClient) -> None:
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "text/plain" in resp.headers["content-type"]
    assert "certificate_active_generations" in resp.text
    assert "progress_cache_operations_total" in resp.text
