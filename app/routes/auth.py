import logging
import re

from email_validator import EmailNotValidError, validate_email
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from app.auth_utils import get_current_user, unauthorized
from app.security import allow_request, allow_request_with_remaining
from core.database import (
    SESSION_TIMEOUT_MINUTES,
    UserAlreadyExists,
    create_session,
    create_user,
    delete_session,
    get_user_by_email,
    verify_password,
)

router = APIRouter(prefix="/api/v1")
log = logging.getLogger("api.auth")


class Credentials(BaseModel):
    email: str = Field(..., max_length=254)
    password: str = Field(..., max_length=128)


def _is_valid_email(email: str) -> bool:
    email = (email or "").strip()
    if not email:
        return False
    # Reject punycode/IDNA domains for now
    domain = email.rpartition("@")[2].lower()
    if domain.startswith("xn--") or ".xn--" in domain:
        return False
    if not re.fullmatch(r"[^@\s]+@[^@\s]+\.[^@\s]+", email):
        return False
    try:
        # Syntax only; no MX/deliverability lookups
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


# 8-64 chars, at least one letter and one number, no whitespace
def _is_valid_password(pw: str) -> bool:
    if not pw or len(pw) < 8 or len(pw) > 64:
        return False
    if re.search(r"\s", pw):
        return False
    return bool(re.search(r"[A-Za-z]", pw) and re.search(r"\d", pw))


def _client_ip(request: Request) -> str:
    return request.client.host if request and request.client else "unknown"


def _token_response(token: str, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        {
            "success": True,
            "token": token,
            "token_type": "bearer",
            "expires_in": SESSION_TIMEOUT_MINUTES * 60,
        },
        status_code=status_code,
    )


@router.post("/auth/register")
def register(request: Request, body: Credentials):
    if not allow_request(f"register:{_client_ip(request)}", limit=5, window_seconds=300):
        return JSONResponse({"error": "Too many sign-up attempts. Please try again later."}, status_code=429)

    if not _is_valid_email(body.email):
        return JSONResponse({"error": "Invalid email address"}, status_code=400)
    if not _is_valid_password(body.password):
        return JSONResponse(
            {"error": "Password must be 8-64 characters with at least one letter and one number"},
            status_code=400,
        )

    try:
        user_id = create_user(body.email, body.password)
    except UserAlreadyExists:
        return JSONResponse({"error": "Account already exists for that email"}, status_code=409)

    log.info("Registered user", extra={"user_id": user_id})
    return _token_response(create_session(user_id), status_code=201)


@router.post("/auth/login")
def login(request: Request, body: Credentials):
    allowed, remaining = allow_request_with_remaining(f"login:{_client_ip(request)}", limit=10, window_seconds=300)
    if not allowed:
        return JSONResponse({"error": "Too many login attempts. Please try again later."}, status_code=429)

    user = get_user_by_email(body.email)
    if not user or not verify_password(body.password, user["password_hash"]):
        return JSONResponse(
            {"error": "Invalid email or password", "attempts_left": remaining},
            status_code=401,
        )
    if not user.get("active"):
        return JSONResponse({"error": "Account is deactivated"}, status_code=403)

    return _token_response(create_session(int(user["id"])))


@router.post("/auth/logout")
def logout(request: Request):
    user, token = get_current_user(request)
    if not user:
        return unauthorized()
    delete_session(token)
    return {"success": True}


@router.get("/me")
def me(request: Request):
    user, _ = get_current_user(request)
    if not user:
        return unauthorized()
    return {
        "success": True,
        "user": {
            "id": user["id"],
            "email": user["email"],
            "role": user.get("role"),
            "created_at": user.get("created_at"),
        },
    }
