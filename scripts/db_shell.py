"""
Quick helper to run a query against the configured database (DATABASE_URL required).

Usage:
  DATABASE_URL=... python scripts/db_shell.py                                  # list tables
  DATABASE_URL=... python scripts/db_shell.py "SELECT id, status FROM jobs"    # run a custom query
"""
from __future__ import annotations

import sys

from core.db.base import current_dialect, get_conn
from core.errors import StoreUnavailable

_LIST_TABLES = {
    "postgres": "SELECT tablename AS name FROM pg_tables WHERE schemaname='public' ORDER BY tablename",
    "sqlite": "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name",
}


def main() -> None:
    try:
        dialect = current_dialect()
    except RuntimeError as exc:
        raise SystemExit(str(exc)) from exc

    query = " ".join(sys.argv[1:]).strip() or _LIST_TABLES[dialect]
    print(f"Using DB: {dialect} (DATABASE_URL)", file=sys.stderr)

    try:
        conn = get_conn()
        cur = conn.cursor()
        cur.execute(query)
        if query.lstrip().lower().startswith(("select", "with", "pragma")):
            for row in cur.fetchall():
                print(dict(row))
        else:
            conn.commit()
            print(f"OK ({cur.rowcount} row(s) affected)")
        conn.close()
    except StoreUnavailable as exc:
        raise SystemExit(f"Error running query: {exc}") from exc


if __name__ == "__main__":
    main()
