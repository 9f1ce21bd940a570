"""
Bearer token storage.

A token is the id of a row in `sessions`. Tokens expire after
SESSION_TIMEOUT_MINUTES without use; every authenticated request pushes the
expiry forward.
"""
from __future__ import annotations

import secrets
from datetime import datetime, timedelta
from typing import Dict, Optional

from core.db.base import get_conn

SESSION_TIMEOUT_MINUTES = 30


def _stamp(value: datetime) -> str:
    return value.isoformat(timespec="seconds")


def _expiry(now: datetime) -> str:
    return _stamp(now + timedelta(minutes=SESSION_TIMEOUT_MINUTES))


def _write(sql: str, params: tuple) -> None:
    conn = get_conn()
    try:
        conn.cursor().execute(sql, params)
        conn.commit()
    finally:
        conn.close()


def create_session(user_id: int) -> str:
    """Issue a new bearer token for user_id."""
    token = secrets.token_urlsafe(32)
    now = datetime.utcnow()
    _write(
        "INSERT INTO sessions (id, user_id, created_at, last_seen_at, expires_at) VALUES (?, ?, ?, ?, ?)",
        (token, int(user_id), _stamp(now), _stamp(now), _expiry(now)),
    )
    return token


def delete_session(token: str) -> None:
    if token:
        _write("DELETE FROM sessions WHERE id = ?", (token,))


def get_session(token: str) -> Optional[Dict]:
    """
    Return the session row for a live token, else None.

    Expired or unreadable rows are deleted on sight.
    """
    if not token:
        return None

    conn = get_conn()
    try:
        cur = conn.cursor()
        cur.execute("SELECT id, user_id, expires_at FROM sessions WHERE id = ?", (token,))
        row = cur.fetchone()
    finally:
        conn.close()
    if not row:
        return None

    try:
        live = datetime.fromisoformat(row["expires_at"]) >= datetime.utcnow()
    except (TypeError, ValueError):
        live = False
    if not live:
        delete_session(token)
        return None
    return dict(row)


def touch_session(token: str) -> None:
    """Slide the expiry window forward from now."""
    if token:
        now = datetime.utcnow()
        _write(
            "UPDATE sessions SET last_seen_at = ?, expires_at = ? WHERE id = ?",
            (_stamp(now), _expiry(now), token),
        )


__all__ = [
    "SESSION_TIMEOUT_MINUTES",
    "create_session",
    "delete_session",
    "get_session",
    "touch_session",
]
