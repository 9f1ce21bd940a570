"""
prompt_analysis: critique a user's custom reply prompt and propose a better one.
"""
from __future__ import annotations

from typing import Any, Dict

from core.errors import AIBackendError, InvalidPayload
from worker import ai_client
from worker.handlers.payload import require_mapping, require_text

SYSTEM_PROMPT = """You review instructions that a business gives an AI assistant for replying to customer reviews.
Return ONLY a JSON object with this structure:
{
    "clarity_score": 0 to 10,
    "strengths": ["..."],
    "suggestions": ["..."],
    "improved_prompt": "a rewritten version of the instructions"
}"""


def _string_list(data: Dict[str, Any], key: str) -> list:
    value = data.get(key, [])
    if not isinstance(value, list):
        raise AIBackendError(f"AI response field '{key}' must be a list")
    return [str(v).strip() for v in value if str(v).strip()]


async def handle(payload: Dict[str, Any]) -> Dict[str, Any]:
    payload = require_mapping(payload)
    field = "prompt" if "prompt" in payload else "custom_prompt"
    if field not in payload:
        raise InvalidPayload("'prompt' is required and must be a non-empty string")
    prompt = require_text(payload, field, max_chars=4000)

    completion = await ai_client.complete(
        SYSTEM_PROMPT,
        f"Instructions to review:\n\"\"\"\n{prompt}\n\"\"\"",
        max_tokens=700,
        temperature=0.3,
        json_response=True,
    )
    data = ai_client.parse_json_content(completion.text)

    try:
        score = float(data.get("clarity_score"))
    except (TypeError, ValueError):
        raise AIBackendError("AI response has an invalid 'clarity_score'") from None
    improved = data.get("improved_prompt")
    if not isinstance(improved, str) or not improved.strip():
        raise AIBackendError("AI response is missing 'improved_prompt'")

    return {
        "word_count": len(prompt.split()),
        "character_count": len(prompt),
        "clarity_score": round(min(10.0, max(0.0, score)), 1),
        "strengths": _string_list(data, "strengths"),
        "suggestions": _string_list(data, "suggestions"),
        "improved_prompt": improved.strip(),
    }
