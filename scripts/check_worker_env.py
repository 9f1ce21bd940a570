"""
Verify the environment the worker needs before starting it.

Exit code 0 when everything required is set and the database is reachable.
"""
from __future__ import annotations

import os
import sys

from dotenv import load_dotenv

REQUIRED_VARS = ["DATABASE_URL", "OPENAI_API_KEY"]
OPTIONAL_VARS = ["OPENAI_MODEL", "OPENAI_PROJECT_ID", "WORKER_POLL_INTERVAL", "WORKER_HANDLER_TIMEOUT"]


def _show(name: str) -> str:
    value = os.getenv(name)
    if not value:
        return "NOT SET"
    # never echo secrets or connection strings
    if "KEY" in name or name == "DATABASE_URL":
        return "SET"
    return value


def main() -> int:
    load_dotenv(override=True)
    ok = True

    print("Worker environment")
    print("-" * 60)
    for name in REQUIRED_VARS:
        present = bool(os.getenv(name))
        ok = ok and present
        print(f"[{'ok' if present else 'missing'}] {name}: {_show(name)}")
    for name in OPTIONAL_VARS:
        print(f"[optional] {name}: {_show(name)}")

    if os.getenv("DATABASE_URL"):
        from core.database import get_stats
        from core.errors import StoreUnavailable

        try:
            stats = get_stats()
            print(f"[ok] database reachable, jobs: {stats['jobs']}")
        except (StoreUnavailable, RuntimeError) as exc:
            ok = False
            print(f"[error] database: {exc}")

    print("-" * 60)
    print("All required settings present." if ok else "Fix the settings above, then start the worker.")
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
