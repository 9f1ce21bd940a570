"""
Thin wrapper around the OpenAI chat completion API used by the job handlers.
"""
from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import openai
from openai import AsyncOpenAI

from core.errors import AIBackendError

log = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"

_client: Optional[AsyncOpenAI] = None


@dataclass
class Completion:
    text: str
    tokens_used: int
    model: str
    finish_reason: Optional[str] = None


def get_model() -> str:
    return os.getenv("OPENAI_MODEL") or DEFAULT_MODEL


def get_client() -> AsyncOpenAI:
    """Create the shared client on first use (env is read then, after .env loading)."""
    global _client
    if _client is None:
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise AIBackendError("OpenAI API key is missing. Set OPENAI_API_KEY in the worker environment.")
        _client = AsyncOpenAI(api_key=api_key, project=os.getenv("OPENAI_PROJECT_ID") or None)
    return _client


async def complete(
    system_prompt: str,
    user_prompt: str,
    *,
    max_tokens: int = 400,
    temperature: float = 0.7,
    json_response: bool = False,
) -> Completion:
    """Run one chat completion. Any backend problem surfaces as AIBackendError."""
    model = get_model()
    extra: Dict[str, Any] = {}
    if json_response:
        extra["response_format"] = {"type": "json_object"}

    try:
        response = await get_client().chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            max_tokens=max_tokens,
            temperature=temperature,
            **extra,
        )
    except openai.RateLimitError as exc:
        raise AIBackendError(f"OpenAI rate limit exceeded: {exc}") from exc
    except openai.AuthenticationError as exc:
        raise AIBackendError("OpenAI API key is missing or invalid.") from exc
    except openai.OpenAIError as exc:
        raise AIBackendError(f"OpenAI API error: {exc}") from exc

    if not response.choices or not response.choices[0].message.content:
        raise AIBackendError("OpenAI returned an empty response")

    choice = response.choices[0]
    tokens_used = response.usage.total_tokens if response.usage else 0
    log.debug("completion finished", extra={"model": model, "tokens_used": tokens_used})
    return Completion(
        text=choice.message.content.strip(),
        tokens_used=tokens_used,
        model=response.model or model,
        finish_reason=choice.finish_reason,
    )


def parse_json_content(content: str) -> Dict[str, Any]:
    """Parse a JSON object out of model output, tolerating ```json fences."""
    fenced = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", content)
    if fenced:
        content = fenced.group(1).strip()
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise AIBackendError(f"Failed to parse AI response as JSON: {exc}. Response: {content[:200]}") from exc
    if not isinstance(data, dict):
        raise AIBackendError("AI response JSON was not an object")
    return data


__all__ = ["Completion", "DEFAULT_MODEL", "get_client", "get_model", "complete", "parse_json_content"]
