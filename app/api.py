import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

from app.routes import auth, jobs, public
from core.database import init_db
from core.errors import StoreUnavailable

# Ensure .env values are loaded even if uvicorn is launched without `dotenv run`.
# Use override=True so editing `.env` (and restarting uvicorn) reliably takes effect even if
# older values exist in the environment from a previous shell/session.
load_dotenv(override=True)

log = logging.getLogger("api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="ReviewRepl Jobs API", lifespan=lifespan)


app.include_router(public.router)
app.include_router(auth.router)
app.include_router(jobs.router)


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    log.error("Job store unavailable", extra={"path": request.url.path, "error": str(exc)})
    return JSONResponse({"error": "Job store unavailable"}, status_code=503)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log.exception("Unhandled API error", extra={"path": request.url.path})
    return JSONResponse({"error": "Internal server error", "details": str(exc)}, status_code=500)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Cache-Control", "no-store")
    response.headers.setdefault("Content-Security-Policy", "default-src 'none'; frame-ancestors 'none'")
    return response
