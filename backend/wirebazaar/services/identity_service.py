# Overview: Identity provider; issues and verifies one-time codes and passwords, opens sessions.

"""
Identity Provider Service

The login flows (customer OTP, owner password) treat this module as an
opaque capability:

- send one-time code to a contact
- verify a one-time code
- sign in with password
- get the current session / sign out

SECURITY NOTES:
- OTP codes are 6 digits from `secrets`, stored only as bcrypt hashes
- A code expires after OTP_TTL_SECONDS and burns after OTP_MAX_ATTEMPTS misses
- Requesting a new code supersedes any outstanding code for that contact
- Passwords hashed with bcrypt (cost factor 12)
"""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass
from datetime import timedelta

import bcrypt
from flask import Flask, current_app

from ..extensions import db, is_backend_configured
from ..models import AuthIdentity, OtpChallenge, SessionToken
from . import session_service
from .authorization_service import log_security_event
from wirebazaar.time_utils import utcnow


OTP_LENGTH = 6
OTP_CHANNELS = ("email", "phone")


class BackendNotConfiguredError(RuntimeError):
    """Raised when a feature needs the database backend and none is configured."""


class IdentityProviderError(Exception):
    """The identity provider rejected the request (bad code, bad credentials...)."""


class PasswordValidationError(ValueError):
    """Raised when password doesn't meet strength requirements."""


# =============================================================================
# OTP DELIVERY
# =============================================================================

class OtpSender:
    """Delivers a one-time code over a channel. Subclasses do the sending."""

    def send(self, channel: str, contact: str, code: str) -> None:
        raise NotImplementedError


class LogOtpSender(OtpSender):
    """Development sender: writes the code to the application log."""

    def send(self, channel: str, contact: str, code: str) -> None:
        current_app.logger.info("[DEV] OTP for %s (%s): %s", contact, channel, code)


def init_identity(app: Flask) -> None:
    app.extensions.setdefault("wirebazaar.otp_sender", LogOtpSender())


def get_otp_sender() -> OtpSender:
    return current_app.extensions["wirebazaar.otp_sender"]


def set_otp_sender(app: Flask, sender: OtpSender) -> None:
    app.extensions["wirebazaar.otp_sender"] = sender


def require_backend(feature: str = "Authentication") -> None:
    if not is_backend_configured():
        raise BackendNotConfiguredError(f"{feature} is not configured. Please check your setup.")


# =============================================================================
# PASSWORDS
# =============================================================================

def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one letter
    - At least one digit
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Za-z]', password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    """Hash password using bcrypt with cost factor 12 (strength checked first)."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(password: str, password_hash: str | None) -> bool:
    """Timing-safe bcrypt check. Identities without a password never match."""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


# =============================================================================
# IDENTITIES
# =============================================================================

def _find_identity(contact: str, channel: str) -> AuthIdentity | None:
    if channel == "email":
        return db.session.query(AuthIdentity).filter_by(email=contact).first()
    return db.session.query(AuthIdentity).filter_by(phone=contact).first()


def get_or_create_identity(contact: str, channel: str) -> AuthIdentity:
    identity = _find_identity(contact, channel)
    if identity is not None:
        return identity

    if channel == "email":
        identity = AuthIdentity(email=contact)
    else:
        identity = AuthIdentity(phone=contact)
    db.session.add(identity)
    db.session.flush()
    return identity


def create_password_identity(email: str, password: str) -> AuthIdentity:
    """Create (or set the password of) an email identity. Used for owners."""
    email = email.strip().lower()
    password_hash = hash_password(password)
    identity = get_or_create_identity(email, "email")
    identity.password_hash = password_hash
    db.session.commit()
    return identity


# =============================================================================
# ONE-TIME CODES
# =============================================================================

def generate_otp() -> str:
    return f"{secrets.randbelow(10 ** OTP_LENGTH):0{OTP_LENGTH}d}"


def _active_challenge(contact: str, channel: str) -> OtpChallenge | None:
    return (
        db.session.query(OtpChallenge)
        .filter(
            OtpChallenge.contact == contact,
            OtpChallenge.channel == channel,
            OtpChallenge.consumed_at.is_(None),
        )
        .order_by(OtpChallenge.created_at.desc())
        .first()
    )


def has_pending_otp(contact: str, channel: str) -> bool:
    """True when an unconsumed, unexpired code exists for the contact."""
    require_backend()
    challenge = _active_challenge(contact, channel)
    return challenge is not None and challenge.expires_at >= utcnow()


def send_otp(contact: str, channel: str) -> None:
    """
    Issue a one-time code and hand it to the OTP sender.

    Unknown contacts get a new identity (sign-up by first login).
    Any outstanding code for the contact is superseded.
    Raises IdentityProviderError if delivery fails; nothing is committed then.
    """
    require_backend()
    if channel not in OTP_CHANNELS:
        raise ValueError(f"Unknown OTP channel: {channel}")

    now = utcnow()
    identity = get_or_create_identity(contact, channel)

    outstanding = db.session.query(OtpChallenge).filter(
        OtpChallenge.contact == contact,
        OtpChallenge.channel == channel,
        OtpChallenge.consumed_at.is_(None),
    ).all()
    for old in outstanding:
        old.consumed_at = now

    code = generate_otp()
    challenge = OtpChallenge(
        identity_id=identity.id,
        channel=channel,
        contact=contact,
        code_hash=bcrypt.hashpw(code.encode(), bcrypt.gensalt()).decode(),
        attempts=0,
        created_at=now,
        expires_at=now + timedelta(seconds=current_app.config["OTP_TTL_SECONDS"]),
    )
    db.session.add(challenge)

    try:
        get_otp_sender().send(channel, contact, code)
    except Exception as exc:
        db.session.rollback()
        raise IdentityProviderError("Failed to send OTP. Please try again.") from exc

    db.session.commit()


@dataclass
class VerifiedSession:
    identity: AuthIdentity
    session: SessionToken
    token: str


def verify_otp(contact: str, channel: str, code: str) -> VerifiedSession:
    """
    Check a one-time code and open a customer session.

    Raises IdentityProviderError for unknown, expired, exhausted or wrong codes.
    """
    require_backend()

    challenge = _active_challenge(contact, channel)
    now = utcnow()
    if challenge is None or challenge.expires_at < now:
        raise IdentityProviderError("Token has expired or is invalid")

    if challenge.attempts >= current_app.config["OTP_MAX_ATTEMPTS"]:
        challenge.consumed_at = now
        db.session.commit()
        raise IdentityProviderError("Too many attempts. Please request a new OTP.")

    if not bcrypt.checkpw(code.encode(), challenge.code_hash.encode()):
        challenge.attempts += 1
        db.session.commit()
        log_security_event(
            identity_id=challenge.identity_id,
            event_type="LOGIN_FAILED",
            success=False,
            resource="otp",
            action="verify",
            reason="Invalid OTP",
        )
        raise IdentityProviderError("Invalid OTP. Please try again.")

    challenge.consumed_at = now
    db.session.commit()

    session, token = session_service.create_session(challenge.identity_id, kind="customer")
    return VerifiedSession(identity=challenge.identity, session=session, token=token)


# =============================================================================
# PASSWORD SIGN-IN AND SESSIONS
# =============================================================================

def sign_in_with_password(email: str, password: str, kind: str = "owner") -> VerifiedSession:
    """
    Verify email + password and open a session.

    Raises IdentityProviderError("Invalid login credentials") on any mismatch.
    """
    require_backend()

    identity = db.session.query(AuthIdentity).filter_by(email=email).first()
    if identity is None or not verify_password(password, identity.password_hash):
        log_security_event(
            identity_id=identity.id if identity else None,
            event_type="LOGIN_FAILED",
            success=False,
            resource="password",
            action="sign_in",
            reason="Invalid credentials",
        )
        raise IdentityProviderError("Invalid login credentials")

    session, token = session_service.create_session(identity.id, kind=kind)
    return VerifiedSession(identity=identity, session=session, token=token)


def get_session(token: str) -> session_service.SessionContext | None:
    require_backend()
    return session_service.validate_session(token)


def sign_out(token: str) -> bool:
    require_backend()
    return session_service.revoke_session(token, reason="User logout")
