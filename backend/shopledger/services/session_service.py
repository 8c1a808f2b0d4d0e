# Overview: Bearer session tokens; issue at login, resolve per request, revoke at logout.

"""
Session Token Management Service

Turns an opaque bearer token into an actor (user id + role) for the
auth gate on every request.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- Absolute timeout (SESSION_TTL_MINUTES)
- Revocable on logout
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from ..permissions import Actor
from ..time_utils import utcnow


@dataclass
class SessionContext:
    user: User
    session: SessionToken

    @property
    def actor(self) -> Actor:
        return Actor(id=self.user.id, role=self.user.role)


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy); never stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """SHA-256 is enough for high-entropy tokens (unlike passwords)."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Returns (session_record, plaintext_token).
    Client receives plaintext_token, database stores only the hash.
    """
    user = db.session.get(User, user_id)
    if user is None:
        raise ValueError("User not found")

    plaintext_token = generate_token()
    now = utcnow()
    ttl = timedelta(minutes=int(current_app.config.get("SESSION_TTL_MINUTES", 60)))

    session = SessionToken(
        user_id=user.id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + ttl,
        user_agent=(user_agent or "")[:512] or None,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a token to its SessionContext.

    Returns None if the token is unknown, expired or revoked.
    """
    if not token:
        return None

    session = (
        db.session.query(SessionToken)
        .filter(SessionToken.token_hash == hash_token(token))
        .first()
    )
    if session is None or session.is_revoked:
        return None

    now = utcnow()
    expires_at = session.expires_at
    if expires_at.tzinfo is not None:
        expires_at = expires_at.replace(tzinfo=None)
    if expires_at <= now:
        return None

    user = db.session.get(User, session.user_id)
    if user is None:
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(user=user, session=session)


def revoke_session(token: str) -> bool:
    session = (
        db.session.query(SessionToken)
        .filter(SessionToken.token_hash == hash_token(token))
        .first()
    )
    if session is None or session.is_revoked:
        return False
    session.is_revoked = True
    session.revoked_at = utcnow()
    db.session.commit()
    return True
