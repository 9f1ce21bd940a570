"""
Entry point.

  python main.py          run the background job worker
  python main.py api      serve the HTTP API with uvicorn
"""
import asyncio
import os
import sys


def run_api() -> None:
    import uvicorn

    uvicorn.run("app.api:app", host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))


def run_worker() -> None:
    from worker.main import main as worker_main

    asyncio.run(worker_main())


if __name__ == "__main__":
    if sys.argv[1:] == ["api"]:
        run_api()
    else:
        run_worker()
