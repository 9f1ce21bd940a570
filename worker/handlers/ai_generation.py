"""
ai_generation: write a reply to a customer review.
"""
from __future__ import annotations

import time
from typing import Any, Dict

from core.errors import InvalidPayload
from worker import ai_client
from worker.handlers.payload import (
    optional_int,
    optional_mapping,
    optional_text,
    require_mapping,
    require_text,
)
from worker.prompts import review_user_prompt, system_prompt_for_job
from worker.sentiment import analyze_sentiment

DEFAULT_TONE = "professional"
DEFAULT_MAX_LENGTH = 150  # words

# finish_reason -> confidence that the reply is complete and usable
_CONFIDENCE = {"stop": 0.95, "length": 0.5}


async def handle(payload: Dict[str, Any]) -> Dict[str, Any]:
    payload = require_mapping(payload)
    review_text = require_text(payload, "review_text")
    business_profile = optional_mapping(payload, "business_profile")
    custom_prompt = optional_text(payload, "custom_prompt", max_chars=4000)
    tone = optional_text(payload, "tone", max_chars=50) or DEFAULT_TONE
    max_length = optional_int(payload, "max_length", default=DEFAULT_MAX_LENGTH, minimum=10, maximum=1000)
    rating = optional_int(payload, "review_rating", minimum=1, maximum=5)
    mode = optional_text(payload, "mode", max_chars=10)
    if mode not in (None, "simple", "pro"):
        raise InvalidPayload("'mode' must be 'simple' or 'pro'")
    if mode is None:
        mode = "pro" if custom_prompt else "simple"

    system_prompt = system_prompt_for_job(
        business_profile,
        custom_prompt,
        mode=mode,
        review_type=analyze_sentiment(review_text)["sentiment"],
    )
    user_prompt = review_user_prompt(review_text, rating=rating, tone=tone, max_length=max_length)

    started = time.monotonic()
    completion = await ai_client.complete(
        system_prompt,
        user_prompt,
        # ~1.5 tokens per word plus headroom for greetings/signatures
        max_tokens=int(max_length * 1.5) + 60,
        temperature=0.7,
    )
    elapsed_ms = int((time.monotonic() - started) * 1000)

    return {
        "generated_response": completion.text,
        "confidence_score": _CONFIDENCE.get(completion.finish_reason or "", 0.8),
        "processing_time_ms": elapsed_ms,
        "tokens_used": completion.tokens_used,
        "model": completion.model,
        "mode": mode,
    }
