# Quick reference commands (run from repo root). These are comments only; copy/paste as needed.

# Install the project with test dependencies (includes httpx for TestClient)
# python -m pip install -e ".[test]"

# Run the full test suite (uses a temporary sqlite database)
# python -m pytest

# Run the same suite against a throwaway Postgres database
# TEST_DATABASE_URL=postgresql://localhost/reviewrepl_test python -m pytest

# Run focused test files
# python -m pytest tests/test_jobs_store.py tests/test_claim_concurrency.py
# python -m pytest tests/test_worker_loop.py
# python -m pytest tests/test_handlers.py tests/test_prompts.py tests/test_sentiment.py
# python -m pytest tests/test_jobs_api.py tests/test_auth_api.py
# python -m pytest tests/test_validation.py tests/test_security_headers.py

# Start the API locally (with env vars loaded)
# python -m dotenv run -- python -m uvicorn app.api:app --reload

# Run the job worker
# python -m dotenv run -- python main.py

# Process whatever is pending once and exit
# WORKER_RUN_ONCE=true python main.py

# Check the worker environment before deploying
# python scripts/check_worker_env.py

# Create an API user
# python scripts/create_user.py someone@example.com Passw0rd1

# Inspect the database (example queries)
# python scripts/db_shell.py "SELECT id,email,role,active,created_at FROM users"
# python scripts/db_shell.py "SELECT id,job_type,status,created_at FROM jobs ORDER BY created_at DESC LIMIT 5"

# Queue snapshot and manual stale-job requeue
# python scripts/debug_jobs.py
# python scripts/requeue_stale_jobs.py
