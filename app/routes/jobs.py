"""
Job submission and query endpoints.

Submission only records a pending job; the worker process picks it up. Clients
poll GET /api/v1/jobs/{job_id} until the status is completed or failed.
"""
import json
import logging
import os
from typing import Any

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse

from app.auth_utils import get_current_user, unauthorized
from app.security import allow_request_with_remaining
from core.database import create_job, get_job_for_user, list_jobs_for_user
from core.errors import InvalidJobType, JobNotFound
from core.job_types import JobType, parse_job_type

router = APIRouter(prefix="/api/v1")
log = logging.getLogger("api.jobs")

MAX_PAYLOAD_BYTES = int(os.getenv("JOBS_MAX_PAYLOAD_BYTES", "20000"))
SUBMIT_RATE_LIMIT = int(os.getenv("JOBS_SUBMIT_RATE_LIMIT", "30"))  # per user per minute
MAX_LIST_LIMIT = 100


def _error(message: str, status_code: int, details: str | None = None) -> JSONResponse:
    body = {"error": message}
    if details:
        body["details"] = details
    return JSONResponse(body, status_code=status_code)


@router.post("/jobs")
def submit_job(request: Request, body: Any = Body(default=None)):
    user, _ = get_current_user(request)
    if not user:
        return unauthorized()

    allowed, _remaining = allow_request_with_remaining(
        f"jobs:{user['id']}", limit=SUBMIT_RATE_LIMIT, window_seconds=60
    )
    if not allowed:
        return _error("Too many job submissions. Please slow down.", 429)

    if not isinstance(body, dict) or not body.get("job_type") or body.get("payload") is None:
        return _error("job_type and payload are required", 400)

    try:
        job_type = parse_job_type(body["job_type"])
    except InvalidJobType as e:
        return _error(
            "Invalid job_type",
            400,
            details=f"{e}. Expected one of: {', '.join(t.value for t in JobType)}",
        )

    payload = body["payload"]
    if not isinstance(payload, dict):
        return _error("payload must be a JSON object", 400)
    if len(json.dumps(payload, separators=(",", ":")).encode("utf-8")) > MAX_PAYLOAD_BYTES:
        return _error("payload too large", 400, details=f"Limit is {MAX_PAYLOAD_BYTES} bytes")

    job = create_job(user_id=int(user["id"]), job_type=job_type, payload=payload)
    log.info("Job submitted", extra={"job_id": job["id"], "job_type": job_type.value, "user_id": user["id"]})
    return JSONResponse({"success": True, "job": job}, status_code=201)


@router.get("/jobs")
def list_jobs(request: Request, limit: int = MAX_LIST_LIMIT):
    user, _ = get_current_user(request)
    if not user:
        return unauthorized()

    limit = max(1, min(int(limit), MAX_LIST_LIMIT))
    jobs = list_jobs_for_user(int(user["id"]), limit=limit)
    return {"success": True, "jobs": jobs, "total": len(jobs)}


@router.get("/jobs/{job_id}")
def get_job(job_id: str, request: Request):
    user, _ = get_current_user(request)
    if not user:
        return unauthorized()

    try:
        job = get_job_for_user(job_id, int(user["id"]))
    except JobNotFound:
        return _error("Job not found", 404)
    return {"success": True, "job": job}
