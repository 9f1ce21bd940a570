"""
Low-level database helpers.

Postgres (psycopg) is the production backend. A `sqlite:///path` DATABASE_URL
is accepted for local runs and the test-suite; SQL is written once with `?`
placeholders and converted for Postgres by the cursor wrapper.
"""
from __future__ import annotations

import os
import sqlite3
from typing import Iterable

from core.errors import StoreUnavailable

try:
    import psycopg
    from psycopg.rows import dict_row
except Exception as exc:  # pragma: no cover - required dependency
    raise RuntimeError("psycopg is required for Postgres") from exc

SQLITE_PREFIX = "sqlite:///"

_DRIVER_ERRORS = (psycopg.OperationalError, psycopg.InterfaceError, sqlite3.OperationalError)


def resolve_database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL must be set (postgres://... or sqlite:///path)")
    if url.startswith("postgres://") or url.startswith("postgresql://"):
        return url
    if url.startswith(SQLITE_PREFIX):
        return url
    raise RuntimeError("DATABASE_URL must start with postgres://, postgresql:// or sqlite:///")


def current_dialect() -> str:
    return "sqlite" if resolve_database_url().startswith(SQLITE_PREFIX) else "postgres"


def _convert_qmarks(sql: str) -> str:
    if "?" not in sql:
        return sql
    return sql.replace("?", "%s")


class _CursorWrapper:
    def __init__(self, cursor, dialect: str):
        self._cursor = cursor
        self._dialect = dialect

    def execute(self, sql: str, params: Iterable | None = None):
        if self._dialect == "postgres":
            sql = _convert_qmarks(sql)
        try:
            if params is None:
                return self._cursor.execute(sql)
            return self._cursor.execute(sql, params)
        except _DRIVER_ERRORS as exc:
            raise StoreUnavailable(str(exc)) from exc

    def executemany(self, sql: str, seq_of_params: Iterable):
        if self._dialect == "postgres":
            sql = _convert_qmarks(sql)
        try:
            return self._cursor.executemany(sql, seq_of_params)
        except _DRIVER_ERRORS as exc:
            raise StoreUnavailable(str(exc)) from exc

    def fetchone(self):
        return self._cursor.fetchone()

    def fetchall(self):
        return self._cursor.fetchall()

    def __iter__(self):
        return iter(self._cursor)

    @property
    def rowcount(self):
        return getattr(self._cursor, "rowcount", 0)


class _ConnWrapper:
    def __init__(self, conn, dialect: str):
        self._conn = conn
        self.dialect = dialect

    def cursor(self):
        return _CursorWrapper(self._conn.cursor(), self.dialect)

    def commit(self):
        try:
            return self._conn.commit()
        except _DRIVER_ERRORS as exc:
            raise StoreUnavailable(str(exc)) from exc

    def rollback(self):
        return self._conn.rollback()

    def close(self):
        return self._conn.close()


def get_conn():
    """
    Return a DB connection for DATABASE_URL.

    Raises StoreUnavailable when the database cannot be reached.
    """
    url = resolve_database_url()
    try:
        if url.startswith(SQLITE_PREFIX):
            conn = sqlite3.connect(url[len(SQLITE_PREFIX):], timeout=10)
            conn.row_factory = sqlite3.Row
            return _ConnWrapper(conn, "sqlite")
        conn = psycopg.connect(url, row_factory=dict_row)
    except _DRIVER_ERRORS as exc:
        raise StoreUnavailable(f"Could not connect to database: {exc}") from exc
    return _ConnWrapper(conn, "postgres")


__all__ = ["get_conn", "current_dialect", "resolve_database_url"]
