"""
Password hashing and verification.
"""
from __future__ import annotations

import bcrypt

# bcrypt only looks at the first 72 bytes; newer releases reject longer input.
_BCRYPT_MAX_BYTES = 72


def _encode(raw_password: str) -> bytes:
    return raw_password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(raw_password: str) -> str:
    return bcrypt.hashpw(_encode(raw_password), bcrypt.gensalt()).decode("utf-8")


def verify_password(raw_password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_encode(raw_password), password_hash.encode("utf-8"))
    except ValueError:
        return False


__all__ = ["hash_password", "verify_password"]
