# Overview: Owner/admin login by password, gated by owner_accounts membership.

"""
Owner Password Login

    anonymous --login--> credentials-submitted --+--> authenticated   (owner row exists)
                                                 +--> anonymous       (rejected)

A valid password alone is not enough. If the identity check succeeds but
there is no OwnerAccount row, the session the identity provider just opened
is revoked before the rejection is raised, so no authenticated-but-
unprivileged session is left behind.

restore_session applies the same membership check to a session that
already exists (process start, page reload).
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..extensions import db
from ..models import OwnerAccount
from ..validation import ConflictError, ValidationError
from . import identity_service
from .authorization_service import AuthorizationError, log_security_event
from .profile_service import upsert_profile

ANONYMOUS = "anonymous"
CREDENTIALS_SUBMITTED = "credentials-submitted"
AUTHENTICATED = "authenticated"


@dataclass
class OwnerLogin:
    token: str
    owner: OwnerAccount


def get_owner_account(identity_id: str) -> OwnerAccount | None:
    return db.session.get(OwnerAccount, identity_id)


def create_owner_account(email: str, password: str, full_name: str = "", role: str = "admin") -> OwnerAccount:
    """
    Out-of-band owner provisioning (CLI only; there is no self-registration).

    Creates or re-passwords the email identity, gives it a profile (orders
    reference profiles), then adds the owner row.

    Raises:
        PasswordValidationError: weak password
        ConflictError: identity already holds an owner account
    """
    email = (email or "").strip().lower()
    if not email:
        raise ValidationError("email is required")

    if db.session.query(OwnerAccount).filter_by(email=email).first() is not None:
        raise ConflictError(f"Owner account already exists for {email}")

    identity = identity_service.create_password_identity(email, password)
    profile = upsert_profile(identity)
    if full_name and not profile.full_name:
        profile.full_name = full_name

    owner = OwnerAccount(id=identity.id, email=email, full_name=full_name or "", role=role)
    db.session.add(owner)
    db.session.commit()
    return owner


def login(email: str, password: str) -> OwnerLogin:
    """
    Sign in an owner.

    Raises:
        ValidationError: missing email or password
        IdentityProviderError: bad credentials
        AuthorizationError: valid identity that is not an owner
    """
    email = (email or "").strip().lower()
    password = (password or "").strip()
    if not email or not password:
        raise ValidationError("email and password required")

    verified = identity_service.sign_in_with_password(email, password, kind="owner")

    owner = get_owner_account(verified.identity.id)
    if owner is None:
        identity_service.sign_out(verified.token)
        log_security_event(
            identity_id=verified.identity.id,
            event_type="OWNER_LOGIN_DENIED",
            success=False,
            resource="owner_accounts",
            action="login",
            reason="Identity has no owner account",
        )
        raise AuthorizationError("Access denied. Owner account required.")

    return OwnerLogin(token=verified.token, owner=owner)


def restore_session(token: str | None) -> OwnerLogin | None:
    """
    Re-check owner membership for an existing session.

    Returns None if the session cannot be granted owner access. A
    non-owner session is left alone; it may be a customer's storefront
    login.
    """
    if not token:
        return None

    context = identity_service.get_session(token)
    if context is None:
        return None

    owner = get_owner_account(context.identity_id)
    if owner is None:
        return None

    return OwnerLogin(token=token, owner=owner)


def logout(token: str | None) -> None:
    if not token:
        return
    try:
        identity_service.sign_out(token)
    except Exception:
        current_app.logger.exception("Remote sign-out failed; local session cleared anyway")


class OwnerAuthFlow:
    """Client-side holder of the owner login state machine."""

    def __init__(self):
        self.state = ANONYMOUS
        self.token: str | None = None
        self.owner: OwnerAccount | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.state == AUTHENTICATED

    def login(self, email: str, password: str) -> bool:
        self.state = CREDENTIALS_SUBMITTED
        try:
            result = login(email, password)
        except Exception:
            self.state = ANONYMOUS
            self.token = None
            self.owner = None
            raise
        self.state = AUTHENTICATED
        self.token = result.token
        self.owner = result.owner
        return True

    def restore(self, token: str | None) -> bool:
        result = restore_session(token)
        if result is None:
            self.state = ANONYMOUS
            self.token = None
            self.owner = None
            return False
        self.state = AUTHENTICATED
        self.token = result.token
        self.owner = result.owner
        return True

    def logout(self) -> None:
        token = self.token
        self.state = ANONYMOUS
        self.token = None
        self.owner = None
        logout(token)
