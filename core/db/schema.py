"""
Schema helpers (Postgres, with a sqlite rendition for local runs).
"""
from __future__ import annotations

import logging
import os
from datetime import datetime

from core.db.base import get_conn
from core.db.users import create_user, get_user_by_email, hash_password

log = logging.getLogger(__name__)

_SERIAL = {
    "postgres": "SERIAL PRIMARY KEY",
    "sqlite": "INTEGER PRIMARY KEY AUTOINCREMENT",
}


def init_db() -> None:
    """Create the users, sessions and jobs tables if they don't exist."""
    conn = get_conn()
    cur = conn.cursor()
    serial = _SERIAL[conn.dialect]

    cur.execute(
        f"""
        CREATE TABLE IF NOT EXISTS users(
            id {serial},
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            role TEXT NOT NULL DEFAULT 'user',
            active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT
        )
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS sessions(
            id TEXT PRIMARY KEY,
            user_id INTEGER NOT NULL,
            created_at TEXT NOT NULL,
            last_seen_at TEXT NOT NULL,
            expires_at TEXT NOT NULL,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
        )
        """
    )
    cur.execute(
        f"""
        CREATE TABLE IF NOT EXISTS jobs(
            seq {serial},
            id TEXT NOT NULL UNIQUE,
            user_id INTEGER NOT NULL,
            job_type TEXT NOT NULL,
            payload TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'pending',
            result TEXT,
            error TEXT,
            retry_count INTEGER NOT NULL DEFAULT 0,
            claimed_by TEXT,
            lease_expires_at TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
        )
        """
    )
    cur.execute("CREATE INDEX IF NOT EXISTS jobs_status_created_idx ON jobs (status, created_at)")
    cur.execute("CREATE INDEX IF NOT EXISTS jobs_user_created_idx ON jobs (user_id, created_at)")

    conn.commit()
    conn.close()

    ensure_admin_from_env()


def ensure_admin_from_env() -> None:
    """
    Optionally seed/update an admin account from environment variables.
    Set ADMIN_EMAIL and ADMIN_PASSWORD before startup to use.
    """
    admin_email = os.getenv("ADMIN_EMAIL")
    admin_password = os.getenv("ADMIN_PASSWORD")

    if not admin_email or not admin_password:
        return

    existing = get_user_by_email(admin_email)

    if existing:
        conn = get_conn()
        cur = conn.cursor()
        cur.execute(
            "UPDATE users SET role='admin', password_hash=? WHERE email=?",
            (hash_password(admin_password), admin_email.strip().lower()),
        )
        conn.commit()
        conn.close()
        return

    create_user(admin_email, admin_password, role="admin")
    log.info("Seeded admin user", extra={"email": admin_email, "at": datetime.utcnow().isoformat()})


__all__ = [
    "init_db",
    "ensure_admin_from_env",
]
