"""
Create an approved account (e.g. first admin). Run from project root:
  python -m app.scripts.create_user EMAIL NAME PASSWORD [role]
Example:
  python -m app.scripts.create_user admin@example.com "Church Admin" 'S3cure-pass' admin
"""
import argparse
import sys

from pydantic import ValidationError

from app.core.database import SessionLocal
from app.core.errors import Conflict
from app.models.user import ROLES
from app.schemas.auth import RegisterRequest
from app.services.accounts import create_account


def main() -> int:
    parser = argparse.ArgumentParser(description="Create an approved HCF Stream account.")
    parser.add_argument("email", help="Email address")
    parser.add_argument("name", help="Display name (2-50 letters and spaces)")
    parser.add_argument("password", help="Password (8+ chars, upper, lower and a digit)")
    parser.add_argument("role", nargs="?", default="user", choices=list(ROLES))
    args = parser.parse_args()

    try:
        req = RegisterRequest(name=args.name, email=args.email, password=args.password)
    except ValidationError as e:
        for err in e.errors():
            print(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        try:
            create_account(
                db, req.name, req.email, req.password, role=args.role, approved=True
            )
        except Conflict as e:
            print(f"Cannot create '{req.email}': {e.message}", file=sys.stderr)
            return 1
        print(f"Created approved user '{req.email}' with role '{args.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
