# Overview: Service-layer operations for login sessions; issues, checks, revokes and purges bearer tokens.

"""
Session tokens for the bearer-token API.

The client gets a random 64-hex token once, at login. Only its SHA-256 digest
is stored, so a leaked database does not leak usable tokens.

A session dies when any of these happens:
- SESSION_ABSOLUTE_TIMEOUT_HOURS pass since login (default 24)
- SESSION_IDLE_TIMEOUT_MINUTES pass without a request (default 120)
- the owner logs out, or the account is deactivated
"""

import secrets
import hashlib
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from sijuk.time_utils import utcnow


DEFAULT_ABSOLUTE_TIMEOUT_HOURS = 24
DEFAULT_IDLE_TIMEOUT_MINUTES = 120


@dataclass
class SessionContext:
    """What require_auth puts on ``g`` for the rest of the request."""
    user: User
    session: SessionToken

    @property
    def user_id(self) -> int:
        return self.user.id


def _absolute_timeout() -> timedelta:
    return timedelta(hours=current_app.config.get(
        "SESSION_ABSOLUTE_TIMEOUT_HOURS", DEFAULT_ABSOLUTE_TIMEOUT_HOURS
    ))


def _idle_timeout() -> timedelta:
    return timedelta(minutes=current_app.config.get(
        "SESSION_IDLE_TIMEOUT_MINUTES", DEFAULT_IDLE_TIMEOUT_MINUTES
    ))


def generate_token() -> str:
    """32 random bytes from the OS CSPRNG, hex encoded."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    # Tokens carry 256 bits of entropy, a plain digest is enough (no bcrypt)
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None
) -> tuple[SessionToken, str]:
    """
    Open a session for ``user_id``.

    Returns (session_row, plaintext_token). The plaintext is never stored;
    hand it to the client and forget it.
    """
    if db.session.get(User, user_id) is None:
        raise ValueError("User not found")

    token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user_id,
        token_hash=hash_token(token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _absolute_timeout(),
        user_agent=user_agent[:512] if user_agent else None,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()

    return session, token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a bearer token to its owner, or None when it is unknown,
    revoked, expired, idle too long, or belongs to a deactivated account.

    A successful check counts as activity and moves last_used_at.
    """
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()
    if session is None:
        return None

    now = utcnow()
    if session.expires_at < now:
        return None

    if now - session.last_used_at > _idle_timeout():
        _revoke(session, "Idle timeout")
        return None

    user = session.user
    if user is None or not user.is_active:
        _revoke(session, "User account deactivated")
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(user=user, session=session)


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """Revoke one token. False when it was unknown or already revoked."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return False

    _revoke(session, reason)
    return True


def revoke_all_user_sessions(user_id: int, reason: str = "Logout from all devices") -> int:
    """Revoke every live session of ``user_id``; returns how many were revoked."""
    now = utcnow()
    revoked = db.session.query(SessionToken).filter_by(
        user_id=user_id,
        is_revoked=False,
    ).update(
        {"is_revoked": True, "revoked_at": now, "revoked_reason": reason},
        synchronize_session="fetch",
    )
    db.session.commit()
    return revoked


def cleanup_expired_sessions(*, retention_days: int = 30) -> int:
    """
    Purge dead sessions (expired or revoked) created more than
    ``retention_days`` ago. Live sessions are never touched.
    """
    now = utcnow()
    cutoff = now - timedelta(days=retention_days)

    deleted = db.session.query(SessionToken).filter(
        db.or_(
            SessionToken.expires_at < now,
            SessionToken.is_revoked.is_(True)
        ),
        SessionToken.created_at < cutoff
    ).delete(synchronize_session=False)

    db.session.commit()
    if deleted:
        current_app.logger.info("Purged %s dead sessions older than %s days", deleted, retention_days)
    return deleted
