"""
Job queue storage.

The `jobs` table is the queue: workers find work by filtering on status and
take ownership with a conditional UPDATE (pending -> processing). That UPDATE
is the only concurrency control between worker processes.
"""
from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from core.db.base import get_conn
from core.errors import JobNotFound
from core.job_types import JobStatus, JobType

log = logging.getLogger(__name__)

ERROR_MAX_CHARS = 500

_PUBLIC_COLUMNS = (
    "id, user_id, job_type, payload, status, result, error, retry_count, created_at, updated_at"
)


def _now() -> datetime:
    return datetime.utcnow()


def _ts(value: datetime) -> str:
    # Fixed-width timestamps so text ordering matches time ordering.
    return value.isoformat(timespec="microseconds")


def _load_json(raw):
    if raw is None or isinstance(raw, (dict, list)):
        return raw
    return json.loads(raw)


def _row_to_job(row) -> Dict[str, Any]:
    job = dict(row)
    job["payload"] = _load_json(job.get("payload")) or {}
    job["result"] = _load_json(job.get("result"))
    return job


def create_job(*, user_id: int, job_type: JobType, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Insert a pending job and return its record."""
    now = _ts(_now())
    job = {
        "id": uuid.uuid4().hex,
        "user_id": int(user_id),
        "job_type": JobType(job_type).value,
        "payload": payload,
        "status": JobStatus.PENDING.value,
        "result": None,
        "error": None,
        "retry_count": 0,
        "created_at": now,
        "updated_at": now,
    }

    conn = get_conn()
    try:
        cur = conn.cursor()
        cur.execute(
            """
            INSERT INTO jobs (id, user_id, job_type, payload, status, retry_count, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, 0, ?, ?)
            """,
            (
                job["id"],
                job["user_id"],
                job["job_type"],
                json.dumps(payload, separators=(",", ":")),
                job["status"],
                now,
                now,
            ),
        )
        conn.commit()
    finally:
        conn.close()
    return job


def get_job(job_id: str) -> Optional[Dict[str, Any]]:
    conn = get_conn()
    try:
        cur = conn.cursor()
        cur.execute(f"SELECT {_PUBLIC_COLUMNS} FROM jobs WHERE id = ?", (job_id,))
        row = cur.fetchone()
    finally:
        conn.close()
    return _row_to_job(row) if row else None


def get_job_for_user(job_id: str, user_id: int) -> Dict[str, Any]:
    """
    Return a job owned by user_id.

    A job that exists but belongs to someone else raises JobNotFound as well,
    so callers cannot probe for other users' job ids.
    """
    conn = get_conn()
    try:
        cur = conn.cursor()
        cur.execute(
            f"SELECT {_PUBLIC_COLUMNS} FROM jobs WHERE id = ? AND user_id = ?",
            (job_id, int(user_id)),
        )
        row = cur.fetchone()
    finally:
        conn.close()
    if not row:
        raise JobNotFound(job_id)
    return _row_to_job(row)


def list_jobs_for_user(user_id: int, limit: int = 100) -> List[Dict[str, Any]]:
    """Return the user's jobs, newest first."""
    conn = get_conn()
    try:
        cur = conn.cursor()
        cur.execute(
            f"""
            SELECT {_PUBLIC_COLUMNS}
            FROM jobs
            WHERE user_id = ?
            ORDER BY created_at DESC, seq DESC
            LIMIT ?
            """,
            (int(user_id), int(limit)),
        )
        rows = cur.fetchall()
    finally:
        conn.close()
    return [_row_to_job(r) for r in rows]


def select_pending_jobs(limit: int = 1) -> List[Dict[str, Any]]:
    """Oldest pending jobs first. Selection does not reserve anything; see claim_job."""
    conn = get_conn()
    try:
        cur = conn.cursor()
        cur.execute(
            f"""
            SELECT {_PUBLIC_COLUMNS}
            FROM jobs
            WHERE status = ?
            ORDER BY created_at ASC, seq ASC
            LIMIT ?
            """,
            (JobStatus.PENDING.value, int(limit)),
        )
        rows = cur.fetchall()
    finally:
        conn.close()
    return [_row_to_job(r) for r in rows]


def claim_job(job_id: str, *, worker_id: str, lease_seconds: int) -> bool:
    """
    Atomically move a job from pending to processing.

    Returns False when the job is no longer pending (another worker won).
    """
    now = _now()
    conn = get_conn()
    try:
        cur = conn.cursor()
        cur.execute(
            """
            UPDATE jobs
            SET status = ?, claimed_by = ?, lease_expires_at = ?, updated_at = ?
            WHERE id = ? AND status = ?
            """,
            (
                JobStatus.PROCESSING.value,
                worker_id,
                _ts(now + timedelta(seconds=lease_seconds)),
                _ts(now),
                job_id,
                JobStatus.PENDING.value,
            ),
        )
        claimed = cur.rowcount == 1
        conn.commit()
    finally:
        conn.close()
    return claimed


def _finalize(job_id: str, status: JobStatus, *, result, error, worker_id: Optional[str]) -> bool:
    sql = """
        UPDATE jobs
        SET status = ?, result = ?, error = ?, claimed_by = NULL, lease_expires_at = NULL, updated_at = ?
        WHERE id = ? AND status = ?
    """
    params: list = [
        status.value,
        json.dumps(result, separators=(",", ":")) if result is not None else None,
        error,
        _ts(_now()),
        job_id,
        JobStatus.PROCESSING.value,
    ]
    if worker_id is not None:
        sql += " AND claimed_by = ?"
        params.append(worker_id)

    conn = get_conn()
    try:
        cur = conn.cursor()
        cur.execute(sql, tuple(params))
        updated = cur.rowcount == 1
        conn.commit()
    finally:
        conn.close()

    if not updated:
        log.warning(
            "[db] finalize skipped, job no longer held by this worker",
            extra={"job_id": job_id, "status": status.value, "worker_id": worker_id},
        )
    return updated


def complete_job(job_id: str, result: Dict[str, Any], *, worker_id: Optional[str] = None) -> bool:
    """processing -> completed with result. Returns False if the job was not ours to finish."""
    return _finalize(job_id, JobStatus.COMPLETED, result=result, error=None, worker_id=worker_id)


def fail_job(job_id: str, error: str, *, worker_id: Optional[str] = None) -> bool:
    """processing -> failed with a (truncated) error message."""
    message = f"{error}".strip()[:ERROR_MAX_CHARS] or "Job failed"
    return _finalize(job_id, JobStatus.FAILED, result=None, error=message, worker_id=worker_id)


def requeue_stale_jobs(now: Optional[datetime] = None) -> int:
    """
    Reset processing jobs whose claim lease expired back to pending.

    Covers workers that died mid-job. Returns the number of jobs requeued.
    """
    now = now or _now()
    conn = get_conn()
    try:
        cur = conn.cursor()
        cur.execute(
            """
            UPDATE jobs
            SET status = ?, claimed_by = NULL, lease_expires_at = NULL,
                retry_count = retry_count + 1, updated_at = ?
            WHERE status = ? AND lease_expires_at IS NOT NULL AND lease_expires_at < ?
            """,
            (JobStatus.PENDING.value, _ts(now), JobStatus.PROCESSING.value, _ts(now)),
        )
        count = cur.rowcount or 0
        conn.commit()
    finally:
        conn.close()

    if count:
        log.warning("[db] requeue_stale_jobs: requeued=%d", count)
    return count


def get_stats() -> Dict:
    """Return job counts per status plus the number of users."""
    by_status = {s.value: 0 for s in JobStatus}
    conn = get_conn()
    try:
        cur = conn.cursor()
        cur.execute("SELECT status, COUNT(*) AS count FROM jobs GROUP BY status")
        for row in cur.fetchall():
            by_status[row["status"]] = int(row["count"])

        cur.execute("SELECT COUNT(*) AS count FROM users")
        users_row = cur.fetchone()
    finally:
        conn.close()

    return {
        "jobs": by_status,
        "users": int(users_row["count"]) if users_row else 0,
    }


__all__ = [
    "ERROR_MAX_CHARS",
    "create_job",
    "get_job",
    "get_job_for_user",
    "list_jobs_for_user",
    "select_pending_jobs",
    "claim_job",
    "complete_job",
    "fail_job",
    "requeue_stale_jobs",
    "get_stats",
]
