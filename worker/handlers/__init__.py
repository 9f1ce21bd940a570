"""
Job handlers, one per JobType.

Every JobType must have an entry in HANDLERS; this is checked at import time
so a new job type cannot ship without a handler.
"""
from typing import Any, Awaitable, Callable, Dict

from core.job_types import JobType
from worker.handlers import ai_generation, prompt_analysis, review_processing, sentiment_analysis

Handler = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]

HANDLERS: Dict[JobType, Handler] = {
    JobType.AI_GENERATION: ai_generation.handle,
    JobType.REVIEW_PROCESSING: review_processing.handle,
    JobType.PROMPT_ANALYSIS: prompt_analysis.handle,
    JobType.SENTIMENT_ANALYSIS: sentiment_analysis.handle,
}

_missing = [t.value for t in JobType if t not in HANDLERS]
if _missing:
    raise RuntimeError(f"No handler registered for job types: {', '.join(_missing)}")


def get_handler(job_type: JobType) -> Handler:
    return HANDLERS[job_type]


__all__ = ["Handler", "HANDLERS", "get_handler"]
