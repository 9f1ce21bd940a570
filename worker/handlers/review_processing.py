"""
review_processing: sentiment, key topics and a suggested reply for a review.
"""
from __future__ import annotations

from typing import Any, Dict, List

from core.errors import AIBackendError
from worker import ai_client
from worker.handlers.payload import optional_bool, require_mapping, require_text
from worker.sentiment import analyze_sentiment

SYSTEM_PROMPT = """You analyse customer reviews for a {category} business.
Return ONLY a JSON object with this structure:
{{
    "key_topics": ["short topic", ...],
    "suggested_response": "reply to the customer in a {style} style",
    "response_rating": 1 to 5 (how urgently the business should reply, 5 = most urgent)
}}
{questions}"""


def _topics(raw: Any) -> List[str]:
    if not isinstance(raw, list):
        raise AIBackendError("AI response is missing 'key_topics'")
    return [str(t).strip() for t in raw if str(t).strip()][:10]


async def handle(payload: Dict[str, Any]) -> Dict[str, Any]:
    payload = require_mapping(payload)
    review_text = require_text(payload, "review_text")
    category = require_text(payload, "business_category", max_chars=200)
    style = require_text(payload, "response_style", max_chars=100)
    include_questions = optional_bool(payload, "include_questions")

    sentiment = analyze_sentiment(review_text)
    questions = (
        "The suggested response should end with a question inviting the customer back."
        if include_questions
        else "Do not ask the customer questions in the suggested response."
    )
    completion = await ai_client.complete(
        SYSTEM_PROMPT.format(category=category, style=style, questions=questions),
        f"Review ({sentiment['sentiment']}):\n{review_text}",
        max_tokens=500,
        temperature=0.4,
        json_response=True,
    )
    data = ai_client.parse_json_content(completion.text)

    suggested = data.get("suggested_response")
    if not isinstance(suggested, str) or not suggested.strip():
        raise AIBackendError("AI response is missing 'suggested_response'")
    try:
        rating = int(data.get("response_rating"))
    except (TypeError, ValueError):
        raise AIBackendError("AI response has an invalid 'response_rating'") from None

    return {
        "sentiment": sentiment["sentiment"],
        "key_topics": _topics(data.get("key_topics")),
        "suggested_response": suggested.strip(),
        "response_rating": min(5, max(1, rating)),
    }
