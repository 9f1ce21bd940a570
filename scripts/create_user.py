"""
Create (or promote) an API user.

Usage:
  python scripts/create_user.py user@example.com 'Passw0rd1' [admin]
"""
import sys

from core.database import UserAlreadyExists, create_user, init_db


def main() -> None:
    if len(sys.argv) < 3:
        raise SystemExit(__doc__)
    email, password = sys.argv[1], sys.argv[2]
    role = sys.argv[3] if len(sys.argv) > 3 else "user"

    init_db()
    try:
        user_id = create_user(email, password, role=role)
    except UserAlreadyExists:
        raise SystemExit(f"User already exists: {email}")
    print(f"Created user id={user_id} email={email} role={role}")


if __name__ == "__main__":
    main()
