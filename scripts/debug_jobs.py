"""
Print a snapshot of the job queue: counts per status, oldest pending jobs,
and jobs currently held by a worker.
"""
from core.database import get_conn, get_stats, init_db

init_db()

stats = get_stats()
print("\nJobs by status:")
for status, count in stats["jobs"].items():
    print(f" - {status}: {count}")

conn = get_conn()
cur = conn.cursor()

print("\nOldest pending:")
cur.execute(
    """
    SELECT id, user_id, job_type, created_at FROM jobs
    WHERE status = 'pending' ORDER BY created_at ASC, seq ASC LIMIT 10
    """
)
for r in cur.fetchall():
    print(dict(r))

print("\nProcessing:")
cur.execute(
    """
    SELECT id, job_type, claimed_by, lease_expires_at, retry_count FROM jobs
    WHERE status = 'processing' ORDER BY updated_at ASC
    """
)
for r in cur.fetchall():
    print(dict(r))

conn.close()
