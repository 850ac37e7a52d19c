"""
Create a user (e.g. for seeding a dev database). Run from project root:
  python -m chatapi.scripts.create_user NAME EMAIL PASSWORD
Example:
  python -m chatapi.scripts.create_user "Alice" alice@example.com your-secure-password
"""
import argparse
import sys

from dotenv import load_dotenv

from chatapi.core.config import get_settings
from chatapi.core.database import SessionLocal, get_engine
from chatapi.core.security import (
    NAME_MAX_LEN,
    NAME_MIN_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    hash_password,
)
from chatapi.models.user import User, normalize_email


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a chat user without going through /auth/register.")
    parser.add_argument("name", help=f"Display name ({NAME_MIN_LEN}-{NAME_MAX_LEN} chars)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    args = parser.parse_args()

    load_dotenv()
    name = args.name.strip()
    email = normalize_email(args.email)
    if not (NAME_MIN_LEN <= len(name) <= NAME_MAX_LEN):
        print("Invalid name length.", file=sys.stderr)
        return 1
    if "@" not in email:
        print("Invalid email address.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    settings = get_settings()
    password_hash = hash_password(args.password, settings.BCRYPT_ROUNDS)
    db = SessionLocal(bind=get_engine(settings))
    try:
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            print(f"User '{email}' already exists.", file=sys.stderr)
            return 1
        user = User(name=name, email=email, password_hash=password_hash)
        db.add(user)
        db.commit()
        print(f"Created user '{email}' with id {user.id}.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
