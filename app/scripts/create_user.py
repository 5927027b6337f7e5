"""
Create a user (e.g. first admin). Run from project root after seeding roles:
  python -m app.scripts.create_user EMAIL PASSWORD FIRST_NAME LAST_NAME [--role NAME]
Example:
  python -m app.scripts.create_user admin@example.com your-secure-password Super Admin --role "Super Admin"
"""
import argparse
import sys

from app.core.database import SessionLocal
from app.core.security import (
    EMAIL_MAX_LEN,
    NAME_MAX_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    hash_password,
)
from app.models import Role, User
from app.services.rbac import get_default_role


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Bastion user (bypasses registration).")
    parser.add_argument("email", help="Email (unique)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("first_name")
    parser.add_argument("last_name")
    parser.add_argument("--role", default=None, help="Role name (default: the default role)")
    args = parser.parse_args(argv)

    email = args.email.strip().lower()
    if not email or "@" not in email or len(email) > EMAIL_MAX_LEN:
        print("Invalid email.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1
    for name in (args.first_name, args.last_name):
        if not name.strip() or len(name.strip()) > NAME_MAX_LEN:
            print("Invalid name length.", file=sys.stderr)
            return 1

    db = SessionLocal()
    try:
        if db.query(User).filter(User.email == email).first():
            print(f"User '{email}' already exists.", file=sys.stderr)
            return 1
        if args.role:
            role = db.query(Role).filter(Role.name == args.role).first()
            if role is None:
                print(f"Role '{args.role}' not found; run app.scripts.seed first.", file=sys.stderr)
                return 1
        else:
            role = get_default_role(db)
        user = User(
            email=email,
            password_hash=hash_password(args.password),
            first_name=args.first_name.strip(),
            last_name=args.last_name.strip(),
            is_active=True,
            roles=[role] if role is not None else [],
        )
        db.add(user)
        db.commit()
        role_name = role.name if role is not None else "none"
        print(f"Created user '{email}' with role '{role_name}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
