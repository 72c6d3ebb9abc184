"""
Approve (or revoke approval of) an account by email. Run from project root:
  python -m app.scripts.approve_user EMAIL [--revoke]
"""
import argparse
import logging
import sys

from app.core.database import SessionLocal
from app.services.accounts import get_by_email, set_approval

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)


def main() -> int:
    parser = argparse.ArgumentParser(description="Flip an account's approval flag.")
    parser.add_argument("email")
    parser.add_argument("--revoke", action="store_true", help="Return the account to pending")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        user = get_by_email(db, args.email)
        if user is None:
            print(f"No account for '{args.email}'.", file=sys.stderr)
            return 1
        set_approval(db, user.id, not args.revoke)
        state = "pending" if args.revoke else "approved"
        print(f"Account '{user.email}' is now {state}.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
