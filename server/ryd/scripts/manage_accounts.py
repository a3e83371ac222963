from __future__ import annotations

import argparse

from email_validator import EmailNotValidError, validate_email

import ryd.models  # noqa: F401
from ryd.auth.rbac import ROLE_VALUES
from ryd.auth.security import hash_password
from ryd.auth.status import UserStatus
from ryd.core.db import SessionLocal
from ryd.models.user import User, UserAuditActionEnum
from ryd.services.user_accounts import (
    StatusConflictError,
    change_user_status,
    find_user_by_email,
    normalize_email,
    now_utc,
    record_audit,
    split_name,
)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage portal accounts from the command line.")
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create", help="Create an active account")
    create.add_argument("--email", required=True)
    create.add_argument("--name", required=True, help="Full name")
    create.add_argument("--password", required=True)
    create.add_argument("--role", choices=ROLE_VALUES, default="STAFF")

    activate = commands.add_parser("activate", help="Approve or reinstate an existing account")
    activate.add_argument("--email", required=True)

    listing = commands.add_parser("list", help="List accounts")
    listing.add_argument("--status", choices=[item.value for item in UserStatus], default=None)
    return parser.parse_args(argv)


def create_account(db, email: str, name: str, password: str, role: str) -> User:
    try:
        email = validate_email(email, check_deliverability=False).normalized
    except EmailNotValidError as exc:
        raise SystemExit(f"Invalid email: {exc}") from exc
    if len(password) < 8:
        raise SystemExit("Password must be at least 8 characters")
    if find_user_by_email(db, email):
        raise SystemExit(f"User already exists: {email}")
    first_name, last_name = split_name(name)
    user = User(
        email=normalize_email(email),
        name=name,
        first_name=first_name,
        last_name=last_name,
        hashed_password=hash_password(password),
        role=role,
        status=UserStatus.ACTIVE.value,
        approved_at=now_utc(),
    )
    db.add(user)
    db.flush()
    record_audit(db, actor=None, target=user, action=UserAuditActionEnum.USER_CREATED, payload={"via": "cli"})
    db.commit()
    db.refresh(user)
    return user


def activate_account(db, email: str) -> User:
    user = find_user_by_email(db, email)
    if user is None:
        raise SystemExit(f"User not found: {email}")
    try:
        change_user_status(db, actor=None, target=user, new_status=UserStatus.ACTIVE, reason="cli")
    except StatusConflictError as exc:
        raise SystemExit(str(exc)) from exc
    return user


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    db = SessionLocal()
    try:
        if args.command == "create":
            user = create_account(db, args.email, args.name, args.password, args.role)
            print(f"Created {user.email} ({user.role}, {user.status})")
        elif args.command == "activate":
            user = activate_account(db, args.email)
            print(f"{user.email} is now {user.status}")
        else:
            query = db.query(User)
            if args.status:
                query = query.filter(User.status == args.status)
            for user in query.order_by(User.created_at.desc()).all():
                print(f"{user.id}\t{user.email}\t{user.role}\t{user.status}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
