"""
Return jobs stuck in `processing` (claim lease expired, e.g. the worker died)
to `pending` so a worker picks them up again.
"""
from core.database import requeue_stale_jobs


if __name__ == "__main__":
    count = requeue_stale_jobs()
    print(f"[reaper] requeued {count} job(s).")
