"""
System/user prompt construction for review reply generation.

Two modes:
  - simple: the business profile drives tone, greetings, signatures, etc.
  - pro: the user's custom prompt replaces the profile guidance.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

FALLBACK_SYSTEM_PROMPT = (
    "You are a professional business response generator. Create a professional response to "
    "customer reviews. Be helpful, professional, and address the customer's feedback appropriately."
)

_PERSONA = "You are an expert customer experience specialist and professional business representative."


def _field(profile: Dict[str, Any], key: str, default: str = "") -> str:
    value = profile.get(key)
    if value is None:
        return default
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value if v)
    return str(value).strip()


def business_context(profile: Dict[str, Any]) -> str:
    location = ", ".join(p for p in (_field(profile, "state_province"), _field(profile, "country")) if p)
    category = _field(profile, "business_main_category")
    secondary = _field(profile, "business_secondary_category")
    if secondary:
        category = f"{category} / {secondary}"

    return "\n".join(
        [
            "Business Context:",
            f"- Business Name: {_field(profile, 'business_name')}",
            f"- Category: {category}",
            f"- Location: {location}",
            f"- Language: {_field(profile, 'language', 'en')}",
            f"- Main Products/Services: {_field(profile, 'main_products_services')}",
            f"- Brief Description: {_field(profile, 'brief_description')}",
            f"- Business Tags: {_field(profile, 'business_tags')}",
        ]
    )


def response_guidelines(profile: Dict[str, Any]) -> str:
    return "\n".join(
        [
            "Response Guidelines:",
            f"- Tone: {_field(profile, 'response_tone', 'professional')}",
            f"- Length: {_field(profile, 'response_length', 'medium')}",
            f"- Greetings: {_field(profile, 'greetings')}",
            f"- Signatures: {_field(profile, 'signatures')}",
            f"- Brand Voice Notes: {_field(profile, 'brand_voice_notes')}",
        ]
    )


def simple_mode_prompt(profile: Dict[str, Any]) -> str:
    tone = _field(profile, "response_tone", "professional")
    length = _field(profile, "response_length", "medium")
    return f"""{_PERSONA}

{business_context(profile)}

{response_guidelines(profile)}

Your task is to generate a professional, empathetic response to a customer review that:
1. Acknowledges the customer's feedback
2. Addresses their specific concerns or appreciation
3. Maintains the business's {tone} tone
4. Uses appropriate greetings and signatures
5. Incorporates the business's unique characteristics and values
6. Stays within the specified {length} length
7. Includes relevant call-to-action when appropriate

Always be authentic, professional, and aligned with the business's brand voice."""


def pro_mode_prompt(
    profile: Dict[str, Any],
    custom_prompt: Optional[str] = None,
    review_type: Optional[str] = None,
) -> str:
    """Profile context plus the user's custom instructions."""
    parts = [_PERSONA, business_context(profile), response_guidelines(profile)]
    if review_type:
        parts.append(f"Review Type: {review_type.capitalize()} Review")
    parts.append(
        "Your task is to generate a response following the custom instructions provided while maintaining:\n"
        "1. Professional business representation\n"
        "2. Alignment with the business's brand voice and tone\n"
        "3. Appropriate use of greetings and signatures\n"
        "4. Consistency with the business's values and characteristics"
    )
    if custom_prompt:
        parts.append(f"Custom Instructions:\n{custom_prompt}")
    parts.append("Follow the custom instructions precisely while ensuring the response remains professional and on-brand.")
    return "\n\n".join(parts)


def system_prompt_for_job(
    business_profile: Optional[Dict[str, Any]],
    custom_prompt: Optional[str] = None,
    *,
    mode: Optional[str] = None,
    review_type: Optional[str] = None,
) -> str:
    """
    Pick the system prompt for an ai_generation job.

    Explicit pro mode with a usable profile combines profile and custom
    instructions. Otherwise a custom prompt wins outright, a profile with a
    business name gets the simple-mode prompt, and anything else gets the
    generic fallback.
    """
    has_profile = bool(business_profile and _field(business_profile, "business_name"))
    if mode == "pro" and has_profile:
        return pro_mode_prompt(business_profile, custom_prompt, review_type)
    if custom_prompt and custom_prompt.strip():
        return (
            "You are a professional business representative responding to a customer review.\n\n"
            f"{custom_prompt.strip()}\n\n"
            "Answer to this review:"
        )
    if has_profile:
        return simple_mode_prompt(business_profile)
    return FALLBACK_SYSTEM_PROMPT


def review_user_prompt(
    review_text: str,
    *,
    rating: Optional[int] = None,
    tone: Optional[str] = None,
    max_length: Optional[int] = None,
) -> str:
    lines = [f"Customer review:\n\"\"\"\n{review_text}\n\"\"\""]
    if rating is not None:
        lines.append(f"Rating: {rating}/5")
    if tone:
        lines.append(f"Preferred tone: {tone}")
    if max_length:
        lines.append(f"Keep the reply under {max_length} words.")
    lines.append("Write only the reply text.")
    return "\n\n".join(lines)


__all__ = [
    "FALLBACK_SYSTEM_PROMPT",
    "business_context",
    "response_guidelines",
    "simple_mode_prompt",
    "pro_mode_prompt",
    "system_prompt_for_job",
    "review_user_prompt",
]
