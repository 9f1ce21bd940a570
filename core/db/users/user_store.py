"""
API user accounts.
"""
from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Dict, Optional

import psycopg

from core.db.base import get_conn
from core.db.users.auth import hash_password

_USER_COLUMNS = "id, email, password_hash, role, active, created_at"


class UserAlreadyExists(ValueError):
    pass


def create_user(email: str, raw_password: str, role: str = "user") -> int:
    now = datetime.utcnow().isoformat(timespec="seconds")
    conn = get_conn()
    try:
        cur = conn.cursor()
        try:
            cur.execute(
                """
                INSERT INTO users (email, password_hash, role, created_at)
                VALUES (?, ?, ?, ?)
                RETURNING id
                """,
                (email.strip().lower(), hash_password(raw_password), role, now),
            )
        except (psycopg.errors.UniqueViolation, sqlite3.IntegrityError) as exc:
            raise UserAlreadyExists(email) from exc
        row = cur.fetchone()
        conn.commit()
    finally:
        conn.close()
    return int(row["id"]) if row else 0


def _fetch_user(where: str, value) -> Optional[Dict]:
    conn = get_conn()
    try:
        cur = conn.cursor()
        cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE {where} = ?", (value,))
        row = cur.fetchone()
    finally:
        conn.close()
    return dict(row) if row else None


def get_user_by_email(email: str) -> Optional[Dict]:
    return _fetch_user("email", email.strip().lower())


def get_user_by_id(user_id: int) -> Optional[Dict]:
    """Look up a user by numeric id. Returns dict or None."""
    return _fetch_user("id", int(user_id))


__all__ = [
    "UserAlreadyExists",
    "create_user",
    "get_user_by_email",
    "get_user_by_id",
]
