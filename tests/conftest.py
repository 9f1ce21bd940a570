import os

import pytest

from app import security
from core.db.base import get_conn
from core.db.schema import init_db
from core.db.users import create_session, create_user
from worker import ai_client

# Tests run against a throwaway sqlite file by default. Set TEST_DATABASE_URL
# to a disposable Postgres database to run the same suite against Postgres.
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")

_TABLES = ["jobs", "sessions", "users"]


def _truncate_all():
    conn = get_conn()
    cur = conn.cursor()
    cur.execute("TRUNCATE " + ", ".join(_TABLES) + " RESTART IDENTITY CASCADE")
    conn.commit()
    conn.close()


@pytest.fixture(autouse=True)
def _clean_db(tmp_path, monkeypatch):
    monkeypatch.delenv("ADMIN_EMAIL", raising=False)
    monkeypatch.delenv("ADMIN_PASSWORD", raising=False)
    if TEST_DATABASE_URL:
        monkeypatch.setenv("DATABASE_URL", TEST_DATABASE_URL)
        init_db()
        _truncate_all()
    else:
        monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'jobs.db'}")
        init_db()
    security.reset_rate_limits()
    yield
    if TEST_DATABASE_URL:
        _truncate_all()


@pytest.fixture
def make_user():
    """Create a user with a live session; returns id, token and auth headers."""
    counter = {"n": 0}

    def _make(email=None):
        counter["n"] += 1
        email = email or f"user{counter['n']}@example.com"
        user_id = create_user(email, "Passw0rd1")
        token = create_session(user_id)
        return {
            "id": user_id,
            "email": email,
            "token": token,
            "headers": {"Authorization": f"Bearer {token}"},
        }

    return _make


@pytest.fixture
def fake_completion(monkeypatch):
    """
    Replace the OpenAI call with a canned completion.

    Returns an installer; the list it returns records each call's prompts and kwargs.
    """

    def _install(text, tokens=42, finish_reason="stop"):
        calls = []

        async def _complete(system_prompt, user_prompt, **kwargs):
            calls.append({"system_prompt": system_prompt, "user_prompt": user_prompt, **kwargs})
            return ai_client.Completion(
                text=text,
                tokens_used=tokens,
                model="test-model",
                finish_reason=finish_reason,
            )

        monkeypatch.setattr(ai_client, "complete", _complete)
        return calls

    return _install
