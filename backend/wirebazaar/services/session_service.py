# Overview: Service-layer operations for session; encapsulates business logic and database work.

"""
Session Token Management Service

WHY: Secure session management with automatic timeout and revocation.
Tokens are cryptographically secure, hashed in database, and time-limited.

Sessions record which login flow opened them (customer OTP or owner
password). The owner claim itself is NOT stored on the session; it is
re-derived from owner_accounts whenever a session is validated, so removing
an owner row takes effect on the next request.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- 7-day absolute timeout (SESSION_ABSOLUTE_TIMEOUT)
- 24-hour idle timeout (SESSION_IDLE_TIMEOUT)
- Revocable on logout or security events
"""

import secrets
import hashlib
from dataclasses import dataclass
from datetime import timedelta
from ..extensions import db
from ..models import SessionToken, AuthIdentity
from wirebazaar.time_utils import utcnow


# Configuration constants
SESSION_ABSOLUTE_TIMEOUT = timedelta(days=7)   # Maximum session length
SESSION_IDLE_TIMEOUT = timedelta(hours=24)     # Activity timeout

SESSION_KINDS = ("customer", "owner")


@dataclass
class SessionContext:
    """Validated session plus the identity it belongs to."""
    identity: AuthIdentity
    session: SessionToken

    @property
    def identity_id(self) -> str:
        return self.identity.id

    @property
    def kind(self) -> str:
        return self.session.kind


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns 64-character hex string (32 bytes of entropy).
    This is the plaintext token sent to client (never stored).
    """
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    WHY SHA-256 not bcrypt: Tokens are already high-entropy (unlike passwords).
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(identity_id: str, kind: str = "customer") -> tuple[SessionToken, str]:
    """
    Create new session token for an identity.

    Returns (session_record, plaintext_token).
    Client receives plaintext_token, database stores only the hash.
    """
    if kind not in SESSION_KINDS:
        raise ValueError(f"Unknown session kind: {kind}")

    identity = db.session.get(AuthIdentity, identity_id)
    if not identity:
        raise ValueError("Identity not found")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        identity_id=identity_id,
        token_hash=hash_token(plaintext_token),
        kind=kind,
        created_at=now,
        last_used_at=now,
        expires_at=now + SESSION_ABSOLUTE_TIMEOUT,
        is_revoked=False,
    )

    identity.last_sign_in_at = now
    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()


def validate_session(token: str) -> SessionContext | None:
    """
    Validate session token and return SessionContext if valid.

    Returns None if the token is unknown, expired, idle too long, or revoked.
    Updates last_used_at on successful validation.
    """
    if not token:
        return None

    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return None

    now = utcnow()

    if session.expires_at < now:
        return None

    if now - session.last_used_at > SESSION_IDLE_TIMEOUT:
        _revoke(session, "Idle timeout")
        return None

    identity = session.identity
    if identity is None:
        _revoke(session, "Identity removed")
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(identity=identity, session=session)


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """
    Revoke session token.

    Returns True if session was revoked, False if not found.
    """
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return False

    _revoke(session, reason)
    return True


def cleanup_expired_sessions(retention_days: int = 30) -> int:
    """
    Delete expired and revoked sessions older than the retention window.

    Returns count of sessions deleted.
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
    return deleted
