import asyncio
import json
import logging
import os
import signal
import socket
import time
from typing import Any, Callable, Dict, Optional

from dotenv import load_dotenv

from core.database import (
    claim_job,
    complete_job,
    fail_job,
    init_db,
    requeue_stale_jobs,
    select_pending_jobs,
)
from core.errors import HandlerFailure, HandlerTimeout, InvalidJobType, StoreUnavailable
from core.job_types import JobStatus, parse_job_type
from worker.handlers import get_handler

# Load `.env` for local/dev runs (override=True so updates take effect after restart).
load_dotenv(override=True)

# -------- CONFIG --------
POLL_INTERVAL = float(os.getenv("WORKER_POLL_INTERVAL", "30"))  # idle seconds between polls
BATCH_SIZE = max(1, int(os.getenv("WORKER_BATCH_SIZE", "1")))
HANDLER_TIMEOUT = float(os.getenv("WORKER_HANDLER_TIMEOUT", "120"))
# Must stay above HANDLER_TIMEOUT or live jobs get requeued.
CLAIM_LEASE_SECONDS = int(os.getenv("WORKER_CLAIM_LEASE_SECONDS", "600"))
REAP_INTERVAL = float(os.getenv("WORKER_REAP_INTERVAL", "300"))  # 0 disables the stale-claim reaper
FINALIZE_RETRIES = max(1, int(os.getenv("WORKER_FINALIZE_RETRIES", "3")))
FINALIZE_RETRY_DELAY = float(os.getenv("WORKER_FINALIZE_RETRY_DELAY", "1"))
RUN_ONCE = os.getenv("WORKER_RUN_ONCE", "false").lower() == "true"
WORKER_ID = os.getenv("WORKER_ID") or f"{socket.gethostname()}:{os.getpid()}"
# ------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
log = logging.getLogger("worker")

# Counters for the shutdown summary.
STATS = {"completed": 0, "failed": 0}

# Set while main() runs; request_stop() sets it.
_stop: Optional[asyncio.Event] = None


def stopping() -> bool:
    return _stop is not None and _stop.is_set()


def request_stop(reason: str = "stop requested") -> None:
    """Ask the loop to exit after the job in flight. Safe to call repeatedly."""
    if _stop is None or _stop.is_set():
        return
    log.info("Shutting down after current job", extra={"reason": reason})
    _stop.set()


async def run_handler(job: Dict[str, Any]) -> Dict[str, Any]:
    """Dispatch a job to its handler, bounded by HANDLER_TIMEOUT."""
    job_type = parse_job_type(job.get("job_type"))
    handler = get_handler(job_type)
    try:
        return await asyncio.wait_for(handler(job.get("payload") or {}), timeout=HANDLER_TIMEOUT)
    except asyncio.TimeoutError:
        raise HandlerTimeout(job_type.value, HANDLER_TIMEOUT) from None


async def finalize(write: Callable[..., bool], job_id: str, outcome) -> bool:
    """
    Write a terminal status, retrying StoreUnavailable up to FINALIZE_RETRIES times.

    The handler's work is already done at this point, so a short store outage
    should not throw it away. The last StoreUnavailable is re-raised.
    """
    for attempt in range(1, FINALIZE_RETRIES + 1):
        try:
            return write(job_id, outcome, worker_id=WORKER_ID)
        except StoreUnavailable as e:
            if attempt == FINALIZE_RETRIES:
                raise
            log.warning(
                "Finalize failed, retrying",
                extra={"job_id": job_id, "attempt": attempt, "error": str(e)},
            )
            await asyncio.sleep(FINALIZE_RETRY_DELAY)
    return False


async def process_job(job: Dict[str, Any]) -> Optional[str]:
    """
    Claim one job, run it and write back the terminal status.

    Returns the final status, or None when another worker claimed the job first
    or the claim was lost before finalizing. Handler errors never escape: they
    become status=failed. Store errors that outlast the finalize retries do
    escape, leaving the job in its last committed state.
    """
    job_id = job["id"]
    if not claim_job(job_id, worker_id=WORKER_ID, lease_seconds=CLAIM_LEASE_SECONDS):
        log.info("Job already claimed, skipping", extra={"job_id": job_id})
        return None

    log.info("Claimed job", extra={"job_id": job_id, "job_type": job.get("job_type"), "worker_id": WORKER_ID})
    started = time.monotonic()

    try:
        result = await run_handler(job)
        if not isinstance(result, dict):
            raise HandlerFailure(f"Handler returned {type(result).__name__}, expected an object")
        try:
            json.dumps(result)
        except (TypeError, ValueError) as e:
            raise HandlerFailure(f"Handler result is not JSON serializable: {e}") from e
    except (HandlerFailure, InvalidJobType) as e:
        error = str(e) or e.__class__.__name__
        log.warning("Job failed", extra={"job_id": job_id, "error": error})
    except Exception as e:
        error = f"Unexpected error: {e.__class__.__name__}: {e}"
        log.exception("Handler crashed", extra={"job_id": job_id})
    else:
        if not await finalize(complete_job, job_id, result):
            return None
        STATS["completed"] += 1
        log.info(
            "Job completed",
            extra={"job_id": job_id, "elapsed_ms": int((time.monotonic() - started) * 1000)},
        )
        return JobStatus.COMPLETED.value

    if not await finalize(fail_job, job_id, error):
        return None
    STATS["failed"] += 1
    return JobStatus.FAILED.value


async def run_once() -> int:
    """
    Do one poll:
    - select the oldest pending job(s)
    - claim, process and finalize each, stopping early on shutdown
    Returns the number of pending jobs found (0 means the queue was empty).
    """
    jobs = select_pending_jobs(limit=BATCH_SIZE)
    if not jobs:
        return 0

    for job in jobs:
        if stopping():
            break
        await process_job(job)
    return len(jobs)


def reap_stale_jobs() -> int:
    count = requeue_stale_jobs()
    if count:
        log.warning("Requeued jobs with expired claims", extra={"count": count})
    return count


async def _idle(seconds: float) -> None:
    # Returns early when a stop is requested.
    try:
        await asyncio.wait_for(_stop.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        pass


def _install_signal_handlers(loop) -> list:
    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, request_stop, f"received {sig.name}")
        except (NotImplementedError, RuntimeError):
            # No loop signal support (Windows, or not on the main thread).
            log.warning("Signal handling unavailable", extra={"signal": sig.name})
            continue
        installed.append(sig)
    return installed


async def main():
    global _stop
    # A store that is unreachable at startup is fatal; after that, store errors are retried.
    init_db()

    _stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    signals = _install_signal_handlers(loop)
    STATS.update(completed=0, failed=0)
    started = time.monotonic()
    log.info("Worker started", extra={"worker_id": WORKER_ID, "poll_interval": POLL_INTERVAL})

    last_reap = float("-inf")
    try:
        while not stopping():
            found = 0
            try:
                if REAP_INTERVAL > 0 and time.monotonic() - last_reap >= REAP_INTERVAL:
                    last_reap = time.monotonic()
                    reap_stale_jobs()
                found = await run_once()
            except StoreUnavailable as e:
                log.warning("Job store unavailable, retrying next cycle", extra={"error": str(e)})
            except Exception as e:
                log.exception("Error during run", extra={"error": str(e)})

            if RUN_ONCE:
                break

            if not found:
                log.debug("Sleeping", extra={"seconds": POLL_INTERVAL})
                await _idle(POLL_INTERVAL)
    finally:
        for sig in signals:
            loop.remove_signal_handler(sig)
        _stop = None

    log.info(
        "Worker stopped",
        extra={
            "completed": STATS["completed"],
            "failed": STATS["failed"],
            "uptime_seconds": int(time.monotonic() - started),
        },
    )


if __name__ == "__main__":
    asyncio.run(main())
