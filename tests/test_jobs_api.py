import asyncio

import pytest
from fastapi.testclient import TestClient

import app.api as api_module
import worker.main as worker_main
from app.routes import jobs as jobs_routes
from core.database import get_stats
from core.errors import StoreUnavailable


@pytest.fixture
def client():
    return TestClient(api_module.app)


def _submit(client, headers, job_type="sentiment_analysis", payload=None):
    return client.post(
        "/api/v1/jobs",
        json={"job_type": job_type, "payload": payload if payload is not None else {"text": "Great service!"}},
        headers=headers,
    )


def test_submit_then_worker_completes_job(client, make_user, monkeypatch):
    monkeypatch.setattr(worker_main, "WORKER_ID", "api-test-worker")
    owner = make_user()

    resp = _submit(client, owner["headers"])
    assert resp.status_code == 201
    job = resp.json()["job"]
    assert job["status"] == "pending"
    assert job["job_type"] == "sentiment_analysis"
    assert job["payload"] == {"text": "Great service!"}

    assert asyncio.run(worker_main.run_once()) == 1

    resp = client.get(f"/api/v1/jobs/{job['id']}", headers=owner["headers"])
    assert resp.status_code == 200
    done = resp.json()["job"]
    assert done["status"] == "completed"
    assert done["result"]["sentiment"] == "positive"
    assert done["error"] is None


def test_repeated_get_of_completed_job_is_stable(client, make_user):
    owner = make_user()
    job_id = _submit(client, owner["headers"]).json()["job"]["id"]
    asyncio.run(worker_main.run_once())

    first = client.get(f"/api/v1/jobs/{job_id}", headers=owner["headers"]).json()
    second = client.get(f"/api/v1/jobs/{job_id}", headers=owner["headers"]).json()
    assert first["job"]["status"] == "completed"
    assert first == second


def test_unknown_job_type_is_rejected_without_a_row(client, make_user):
    owner = make_user()

    resp = _submit(client, owner["headers"], job_type="unknown_type", payload={})

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Invalid job_type"
    assert "sentiment_analysis" in body["details"]
    assert sum(get_stats()["jobs"].values()) == 0


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"job_type": "sentiment_analysis"},
        {"payload": {"text": "hi"}},
        {"job_type": "", "payload": {"text": "hi"}},
        ["sentiment_analysis"],
    ],
)
def test_missing_fields_are_rejected(client, make_user, body):
    owner = make_user()
    resp = client.post("/api/v1/jobs", json=body, headers=owner["headers"])
    assert resp.status_code == 400
    assert resp.json()["error"] == "job_type and payload are required"


def test_non_object_payload_is_rejected(client, make_user):
    owner = make_user()
    resp = _submit(client, owner["headers"], payload="just text")
    assert resp.status_code == 400
    assert resp.json()["error"] == "payload must be a JSON object"


def test_oversized_payload_is_rejected(client, make_user, monkeypatch):
    monkeypatch.setattr(jobs_routes, "MAX_PAYLOAD_BYTES", 50)
    owner = make_user()
    resp = _submit(client, owner["headers"], payload={"text": "x" * 100})
    assert resp.status_code == 400
    assert resp.json()["error"] == "payload too large"


def test_requests_without_token_are_unauthorized(client, make_user):
    owner = make_user()
    job_id = _submit(client, owner["headers"]).json()["job"]["id"]

    assert _submit(client, {}).status_code == 401
    assert client.get("/api/v1/jobs").status_code == 401
    resp = client.get(f"/api/v1/jobs/{job_id}", headers={"Authorization": "Bearer not-a-session"})
    assert resp.status_code == 401
    assert resp.headers["WWW-Authenticate"] == "Bearer"


def test_other_users_job_is_not_found(client, make_user):
    owner = make_user()
    stranger = make_user()
    job_id = _submit(client, owner["headers"]).json()["job"]["id"]

    resp = client.get(f"/api/v1/jobs/{job_id}", headers=stranger["headers"])
    assert resp.status_code == 404
    assert resp.json() == {"error": "Job not found"}

    resp = client.get("/api/v1/jobs/does-not-exist", headers=owner["headers"])
    assert resp.status_code == 404


def test_list_jobs_returns_only_own_jobs_newest_first(client, make_user):
    owner = make_user()
    other = make_user()
    first = _submit(client, owner["headers"]).json()["job"]["id"]
    second = _submit(client, owner["headers"], job_type="prompt_analysis", payload={"prompt": "Be kind"}).json()["job"]["id"]
    _submit(client, other["headers"])

    body = client.get("/api/v1/jobs", headers=owner["headers"]).json()
    assert body["success"] is True
    assert body["total"] == 2
    assert [j["id"] for j in body["jobs"]] == [second, first]

    limited = client.get("/api/v1/jobs?limit=1", headers=owner["headers"]).json()
    assert [j["id"] for j in limited["jobs"]] == [second]


def test_store_outage_returns_503(client, make_user, monkeypatch):
    owner = make_user()

    def _down(**kwargs):
        raise StoreUnavailable("connection refused")

    monkeypatch.setattr(jobs_routes, "create_job", _down)
    resp = _submit(client, owner["headers"])
    assert resp.status_code == 503
    assert resp.json() == {"error": "Job store unavailable"}


def test_unexpected_error_returns_500(make_user, monkeypatch):
    owner = make_user()

    def _broken(**kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(jobs_routes, "create_job", _broken)
    client = TestClient(api_module.app, raise_server_exceptions=False)
    resp = _submit(client, owner["headers"])
    assert resp.status_code == 500
    assert resp.json()["error"] == "Internal server error"


def test_submissions_are_rate_limited(client, make_user, monkeypatch):
    monkeypatch.setattr(jobs_routes, "SUBMIT_RATE_LIMIT", 2)
    owner = make_user()

    assert _submit(client, owner["headers"]).status_code == 201
    assert _submit(client, owner["headers"]).status_code == 201
    resp = _submit(client, owner["headers"])
    assert resp.status_code == 429
    assert sum(get_stats()["jobs"].values()) == 2


def test_health_reports_queue_depth(client, make_user):
    owner = make_user()
    _submit(client, owner["headers"])

    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert body["stats"]["jobs"]["pending"] == 1


def test_health_reports_store_error(client, monkeypatch):
    from app.routes import public

    def _down():
        raise StoreUnavailable("db down")

    monkeypatch.setattr(public, "get_stats", _down)
    assert client.get("/health").json() == {"status": "error", "detail": "db down"}
