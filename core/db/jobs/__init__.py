"""
Job queue storage re-exports.
"""
from core.db.jobs.jobs_store import (
    ERROR_MAX_CHARS,
    create_job,
    get_job,
    get_job_for_user,
    list_jobs_for_user,
    select_pending_jobs,
    claim_job,
    complete_job,
    fail_job,
    requeue_stale_jobs,
    get_stats,
)

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
