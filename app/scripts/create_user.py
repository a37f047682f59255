"""Create a local account.

Usage:
    python -m app.scripts.create_user --email user@example.org --password <password>

``--password`` is the plain password; it is stored in the same digested form the
Franz/Ferdi clients send on login.
"""

from __future__ import annotations

import argparse
import sys

from app.db.session import SessionLocal, init_db
from app.errors import Conflict
from app.services.auth import create_user, get_user_by_email, hash_password


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Create a Ferdi Server user")
    parser.add_argument("--email", required=True, help="Email address (login name)")
    parser.add_argument("--password", required=True, help="Plain-text password")
    parser.add_argument("--firstname", default="", help="First name")
    parser.add_argument("--lastname", default="", help="Last name")
    args = parser.parse_args(argv)

    init_db()
    db = SessionLocal()
    try:
        # Check if user already exists
        if get_user_by_email(db, args.email):
            print(f"User '{args.email}' already exists.")
            sys.exit(1)

        try:
            user = create_user(
                db,
                args.email,
                hash_password(args.password),
                firstname=args.firstname,
                lastname=args.lastname,
            )
        except Conflict as exc:
            print(exc.message)
            sys.exit(1)
        print(f"User '{user.email}' created successfully (id={user.id}).")
    finally:
        db.close()


if __name__ == "__main__":
    main()
