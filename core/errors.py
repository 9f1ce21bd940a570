"""
Error types shared by the API, the job store and the worker.
"""
from __future__ import annotations


class InvalidJobType(ValueError):
    """Submitted job_type is not one of the supported job types."""

    def __init__(self, job_type):
        self.job_type = job_type
        super().__init__(f"Invalid job_type: {job_type!r}")


class JobNotFound(LookupError):
    """No job with this id exists for the calling user."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__("Job not found")


class StoreUnavailable(RuntimeError):
    """Transient I/O failure talking to the database."""


class HandlerFailure(Exception):
    """A job handler could not produce a result."""


class InvalidPayload(HandlerFailure):
    pass


class AIBackendError(HandlerFailure):
    pass


class HandlerTimeout(HandlerFailure):
    def __init__(self, job_type: str, seconds: float):
        self.job_type = job_type
        self.seconds = seconds
        super().__init__(f"{job_type} handler timed out after {seconds:g}s")


__all__ = [
    "InvalidJobType",
    "JobNotFound",
    "StoreUnavailable",
    "HandlerFailure",
    "InvalidPayload",
    "AIBackendError",
    "HandlerTimeout",
]
