"""
Helpers for bearer-token authentication and current-user lookup.
"""
from __future__ import annotations

from typing import Dict, Optional, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse

from core.database import delete_session, get_session, get_user_by_id, touch_session


def bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_user(request: Request) -> Tuple[Optional[Dict], Optional[str]]:
    """
    Read the bearer token and return (user_dict, token) or (None, token_or_None).
    Refreshes inactivity timeout when the session is valid.
    """
    token = bearer_token(request)
    if not token:
        return None, None

    session = get_session(token)
    if not session:
        return None, token

    user = get_user_by_id(session["user_id"])
    if not user or not user.get("active"):
        delete_session(token)
        return None, token

    touch_session(token)
    return user, token


def unauthorized(detail: str = "Missing or invalid authorization header") -> JSONResponse:
    return JSONResponse(
        {"error": detail},
        status_code=401,
        headers={"WWW-Authenticate": "Bearer"},
    )


__all__ = ["bearer_token", "get_current_user", "unauthorized"]
