"""
Single import point for storage helpers used by the API, the worker and scripts.
"""
from core.db.base import get_conn
from core.db.schema import init_db, ensure_admin_from_env
from core.db.jobs import (
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
from core.db.users import (
    UserAlreadyExists,
    hash_password,
    verify_password,
    create_user,
    get_user_by_email,
    get_user_by_id,
    create_session,
    delete_session,
    get_session,
    touch_session,
    SESSION_TIMEOUT_MINUTES,
)

__all__ = [
    "get_conn",
    "init_db",
    "ensure_admin_from_env",
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
    "UserAlreadyExists",
    "hash_password",
    "verify_password",
    "create_user",
    "get_user_by_email",
    "get_user_by_id",
    "create_session",
    "delete_session",
    "get_session",
    "touch_session",
    "SESSION_TIMEOUT_MINUTES",
]
