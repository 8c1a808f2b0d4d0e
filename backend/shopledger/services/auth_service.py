# Overview: Service-layer operations for accounts; password hashing, owner registration, cashier creation.

"""
Account service

Accounts are created explicitly: the first OWNER registers, OWNERs create
CASHIERs. Every sale and product change is attributed to one of them.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost from BCRYPT_ROUNDS, 12 by default)
- Minimum 8 characters
- Emails are unique and stored lower-cased
"""

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User
from ..permissions import ROLE_CASHIER, ROLE_OWNER, ROLES
from ..validation import ConflictError, ValidationError, parse_email

MIN_PASSWORD_LENGTH = 8


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""


def validate_password_strength(password) -> None:
    if not isinstance(password, str) or not password:
        raise PasswordValidationError("email and password required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str) -> str:
    """Validate then hash with bcrypt. Stored as a UTF-8 string."""
    validate_password_strength(password)
    rounds = int(current_app.config.get("BCRYPT_ROUNDS", 12))
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """bcrypt.checkpw is timing-safe. Malformed hashes never verify."""
    if not isinstance(password, str) or not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def _create_user(*, email, password, name, role: str) -> User:
    if role not in ROLES:
        raise ValidationError(f"role must be one of {', '.join(ROLES)}")
    email = parse_email(email)
    password_hash = hash_password(password)
    friendly = (name or "").strip() or email.split("@")[0]

    if db.session.query(User.id).filter(User.email == email).first() is not None:
        raise ConflictError("Email exists")

    user = User(email=email, password_hash=password_hash, role=role, name=friendly)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Email exists")

    current_app.logger.info("Created %s account id=%s", role, user.id)
    return user


def owner_exists() -> bool:
    return db.session.query(User.id).filter(User.role == ROLE_OWNER).first() is not None


def register_owner(email, password, name=None) -> User:
    """
    Self-registration creates the first OWNER only. Once an owner exists,
    further accounts are created by that owner (cashiers) or via the CLI.
    """
    if owner_exists():
        raise ConflictError("An owner is already registered")
    return _create_user(email=email, password=password, name=name, role=ROLE_OWNER)


def create_owner(email, password, name=None) -> User:
    """Unconditional owner creation; CLI bootstrap only."""
    return _create_user(email=email, password=password, name=name, role=ROLE_OWNER)


def create_cashier(email, password, name=None) -> User:
    return _create_user(email=email, password=password, name=name, role=ROLE_CASHIER)


def list_cashiers() -> list[User]:
    return (
        db.session.query(User)
        .filter(User.role == ROLE_CASHIER)
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )


def authenticate(email, password) -> User | None:
    """Return the user when the credentials match, else None."""
    if not isinstance(email, str) or not isinstance(password, str):
        return None
    if not email or not password:
        return None
    user = (
        db.session.query(User)
        .filter(User.email == str(email).strip().lower())
        .first()
    )
    if user is None:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user
