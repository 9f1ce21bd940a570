"""
Job type and status enumerations.
"""
from __future__ import annotations

from enum import Enum

from core.errors import InvalidJobType


class JobType(str, Enum):
    AI_GENERATION = "ai_generation"
    REVIEW_PROCESSING = "review_processing"
    PROMPT_ANALYSIS = "prompt_analysis"
    SENTIMENT_ANALYSIS = "sentiment_analysis"


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})


def parse_job_type(value) -> JobType:
    """Return the JobType for a raw value or raise InvalidJobType."""
    if isinstance(value, JobType):
        return value
    if not isinstance(value, str):
        raise InvalidJobType(value)
    try:
        return JobType(value.strip())
    except ValueError:
        raise InvalidJobType(value) from None


__all__ = ["JobType", "JobStatus", "TERMINAL_STATUSES", "parse_job_type"]
