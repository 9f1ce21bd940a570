"""
Payload field readers shared by the job handlers.

Each reader raises InvalidPayload with the field name so a bad job fails with
a message the submitter can act on.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from core.errors import InvalidPayload


def require_mapping(payload: Any) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise InvalidPayload("payload must be a JSON object")
    return payload


def require_text(payload: Mapping[str, Any], field: str, *, max_chars: int = 5000) -> str:
    value = payload.get(field)
    if not isinstance(value, str) or not value.strip():
        raise InvalidPayload(f"'{field}' is required and must be a non-empty string")
    value = value.strip()
    if len(value) > max_chars:
        raise InvalidPayload(f"'{field}' must be at most {max_chars} characters")
    return value


def optional_text(payload: Mapping[str, Any], field: str, *, max_chars: int = 5000) -> Optional[str]:
    value = payload.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidPayload(f"'{field}' must be a string")
    value = value.strip()
    if len(value) > max_chars:
        raise InvalidPayload(f"'{field}' must be at most {max_chars} characters")
    return value or None


def optional_int(
    payload: Mapping[str, Any],
    field: str,
    *,
    default: Optional[int] = None,
    minimum: Optional[int] = None,
    maximum: Optional[int] = None,
) -> Optional[int]:
    value = payload.get(field)
    if value is None:
        return default
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidPayload(f"'{field}' must be an integer")
    if minimum is not None and value < minimum:
        raise InvalidPayload(f"'{field}' must be >= {minimum}")
    if maximum is not None and value > maximum:
        raise InvalidPayload(f"'{field}' must be <= {maximum}")
    return value


def optional_bool(payload: Mapping[str, Any], field: str, *, default: bool = False) -> bool:
    value = payload.get(field)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise InvalidPayload(f"'{field}' must be true or false")
    return value


def optional_mapping(payload: Mapping[str, Any], field: str) -> Optional[Dict[str, Any]]:
    value = payload.get(field)
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise InvalidPayload(f"'{field}' must be a JSON object")
    return dict(value)
