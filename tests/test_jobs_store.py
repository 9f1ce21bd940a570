from datetime import datetime, timedelta

import pytest

from core.db.jobs import jobs_store
from core.errors import JobNotFound
from core.job_types import JobStatus, JobType


def _create(user_id, job_type=JobType.SENTIMENT_ANALYSIS, payload=None):
    return jobs_store.create_job(user_id=user_id, job_type=job_type, payload=payload or {"text": "ok"})


@pytest.mark.parametrize("job_type", list(JobType))
def test_create_job_is_pending_for_every_type(make_user, job_type):
    owner = make_user()
    job = _create(owner["id"], job_type, {"text": "hello"})

    assert job["status"] == "pending"
    assert job["job_type"] == job_type.value
    assert job["result"] is None and job["error"] is None
    assert job["retry_count"] == 0
    assert job["created_at"] == job["updated_at"]

    stored = jobs_store.get_job_for_user(job["id"], owner["id"])
    assert stored == job


def test_job_ids_are_unique(make_user):
    owner = make_user()
    ids = {_create(owner["id"])["id"] for _ in range(20)}
    assert len(ids) == 20


def test_get_job_for_other_user_is_not_found(make_user):
    owner = make_user()
    other = make_user()
    job = _create(owner["id"])

    with pytest.raises(JobNotFound):
        jobs_store.get_job_for_user(job["id"], other["id"])
    with pytest.raises(JobNotFound):
        jobs_store.get_job_for_user("does-not-exist", owner["id"])


def test_list_jobs_is_per_user_newest_first(make_user):
    owner = make_user()
    other = make_user()
    first = _create(owner["id"])
    second = _create(owner["id"])
    _create(other["id"])

    listed = jobs_store.list_jobs_for_user(owner["id"])
    assert [j["id"] for j in listed] == [second["id"], first["id"]]


def test_select_pending_is_oldest_first_and_skips_claimed(make_user):
    owner = make_user()
    a = _create(owner["id"])
    b = _create(owner["id"])
    c = _create(owner["id"])

    assert [j["id"] for j in jobs_store.select_pending_jobs(limit=2)] == [a["id"], b["id"]]

    assert jobs_store.claim_job(a["id"], worker_id="w1", lease_seconds=60) is True
    assert [j["id"] for j in jobs_store.select_pending_jobs(limit=5)] == [b["id"], c["id"]]


def test_claim_only_succeeds_once(make_user):
    owner = make_user()
    job = _create(owner["id"])

    assert jobs_store.claim_job(job["id"], worker_id="w1", lease_seconds=60) is True
    assert jobs_store.claim_job(job["id"], worker_id="w2", lease_seconds=60) is False
    assert jobs_store.get_job(job["id"])["status"] == "processing"


def test_complete_sets_result_and_no_error(make_user):
    owner = make_user()
    job = _create(owner["id"])
    jobs_store.claim_job(job["id"], worker_id="w1", lease_seconds=60)

    assert jobs_store.complete_job(job["id"], {"sentiment": "positive"}, worker_id="w1") is True

    stored = jobs_store.get_job_for_user(job["id"], owner["id"])
    assert stored["status"] == JobStatus.COMPLETED.value
    assert stored["result"] == {"sentiment": "positive"}
    assert stored["error"] is None
    assert stored["updated_at"] >= stored["created_at"]


def test_fail_sets_truncated_error_and_no_result(make_user):
    owner = make_user()
    job = _create(owner["id"])
    jobs_store.claim_job(job["id"], worker_id="w1", lease_seconds=60)

    jobs_store.fail_job(job["id"], "x" * 2000, worker_id="w1")

    stored = jobs_store.get_job(job["id"])
    assert stored["status"] == "failed"
    assert stored["result"] is None
    assert len(stored["error"]) == jobs_store.ERROR_MAX_CHARS


def test_terminal_jobs_cannot_transition_again(make_user):
    owner = make_user()
    job = _create(owner["id"])
    jobs_store.claim_job(job["id"], worker_id="w1", lease_seconds=60)
    jobs_store.complete_job(job["id"], {"ok": True}, worker_id="w1")

    assert jobs_store.fail_job(job["id"], "late failure", worker_id="w1") is False
    assert jobs_store.claim_job(job["id"], worker_id="w2", lease_seconds=60) is False
    assert jobs_store.complete_job(job["id"], {"ok": False}) is False

    stored = jobs_store.get_job(job["id"])
    assert stored["status"] == "completed"
    assert stored["result"] == {"ok": True}
    assert stored["error"] is None


def test_pending_job_cannot_be_finalized_without_claim(make_user):
    owner = make_user()
    job = _create(owner["id"])

    assert jobs_store.complete_job(job["id"], {"ok": True}) is False
    assert jobs_store.get_job(job["id"])["status"] == "pending"


def test_finalize_requires_current_claim_owner(make_user):
    owner = make_user()
    job = _create(owner["id"])
    jobs_store.claim_job(job["id"], worker_id="w1", lease_seconds=60)

    assert jobs_store.complete_job(job["id"], {"ok": True}, worker_id="someone-else") is False
    assert jobs_store.get_job(job["id"])["status"] == "processing"


def test_requeue_stale_jobs_only_touches_expired_leases(make_user):
    owner = make_user()
    stale = _create(owner["id"])
    fresh = _create(owner["id"])
    jobs_store.claim_job(stale["id"], worker_id="dead-worker", lease_seconds=1)
    jobs_store.claim_job(fresh["id"], worker_id="live-worker", lease_seconds=3600)

    count = jobs_store.requeue_stale_jobs(now=datetime.utcnow() + timedelta(seconds=5))

    assert count == 1
    requeued = jobs_store.get_job(stale["id"])
    assert requeued["status"] == "pending"
    assert requeued["retry_count"] == 1
    assert jobs_store.get_job(fresh["id"])["status"] == "processing"

    # The dead worker can no longer finish the job it lost.
    assert jobs_store.complete_job(stale["id"], {"ok": True}, worker_id="dead-worker") is False


def test_get_stats_counts_by_status(make_user):
    owner = make_user()
    _create(owner["id"])
    claimed = _create(owner["id"])
    jobs_store.claim_job(claimed["id"], worker_id="w1", lease_seconds=60)

    stats = jobs_store.get_stats()
    assert stats["jobs"]["pending"] == 1
    assert stats["jobs"]["processing"] == 1
    assert stats["jobs"]["completed"] == 0
    assert stats["users"] == 1


def test_connection_closed_when_query_raises(monkeypatch, make_user):
    owner = make_user()
    job = _create(owner["id"])
    closed = []

    class _BrokenCursor:
        def execute(self, sql, params=None):
            raise ValueError("bad parameter")

    class _TrackingConn:
        dialect = "sqlite"

        def cursor(self):
            return _BrokenCursor()

        def close(self):
            closed.append(True)

    monkeypatch.setattr(jobs_store, "get_conn", lambda: _TrackingConn())

    with pytest.raises(ValueError):
        jobs_store.claim_job(job["id"], worker_id="w1", lease_seconds=60)
    with pytest.raises(ValueError):
        jobs_store.select_pending_jobs(limit=1)
    assert closed == [True, True]
