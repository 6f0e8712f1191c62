# Overview: Service-layer authorization rules; one predicate per table and operation.

"""
Row-Level Authorization Rules

WHY: The storefront's access rules are evaluated here, in the service
layer, before every read or write. Each predicate is a pure function of
(caller, row) so the rule set can be read top to bottom and tested without
a database.

CALLER CLASSES:
- anonymous: no identity
- customer: authenticated identity without an owner account
- owner: authenticated identity holding an OwnerAccount row

DESIGN PRINCIPLES:
- Fail closed: deny unless a predicate explicitly allows
- Owner status is a claim resolved once per session, not re-queried per check
- Denials are logged to security_events; grants are not
- A denied operation is rejected whole, nothing is partially applied
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..extensions import db, is_backend_configured
from ..models import SecurityEvent, OwnerAccount
from wirebazaar.time_utils import utcnow


class AuthorizationError(Exception):
    """Raised when the caller fails the rule for a row. Never retried."""

    def __init__(self, message: str, *, authenticated: bool = True):
        super().__init__(message)
        self.authenticated = authenticated


@dataclass(frozen=True)
class Actor:
    """
    The caller of a service operation.

    identity_id is None for anonymous callers. is_owner is the owner claim
    attached when the session was validated.
    """
    identity_id: str | None = None
    is_owner: bool = False
    session_kind: str | None = None

    @classmethod
    def anonymous(cls) -> "Actor":
        return cls()

    @property
    def is_authenticated(self) -> bool:
        return self.identity_id is not None


def is_owner_identity(identity_id: str | None) -> bool:
    """Owner-account self-lookup: does this identity hold an owner row?"""
    if identity_id is None:
        return False
    owner = db.session.get(OwnerAccount, identity_id)
    return owner is not None and can_read_owner_account(Actor(identity_id=identity_id), owner.id)


def actor_for_identity(identity_id: str, session_kind: str | None = None) -> Actor:
    return Actor(
        identity_id=identity_id,
        is_owner=is_owner_identity(identity_id),
        session_kind=session_kind,
    )


def log_security_event(
    identity_id: str | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
) -> SecurityEvent | None:
    """
    Append a security event to the audit trail.

    event_type examples:
    - AUTHORIZATION_DENIED
    - OWNER_LOGIN_DENIED
    - LOGIN_FAILED

    Without a database backend the event only goes to the application log.
    """
    if not is_backend_configured():
        current_app.logger.warning(
            "Security event %s on %s.%s for %s: %s",
            event_type, resource, action, identity_id, reason,
        )
        return None

    event = SecurityEvent(
        identity_id=identity_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        occurred_at=utcnow(),
    )

    db.session.add(event)
    db.session.commit()

    return event


# =============================================================================
# PREDICATES
# =============================================================================

def _is_self(actor: Actor, identity_id: str | None) -> bool:
    return actor.is_authenticated and identity_id is not None and actor.identity_id == identity_id


def can_access_profile(actor: Actor, profile_id: str) -> bool:
    """Profiles: read/insert/update only by the matching identity."""
    return _is_self(actor, profile_id)


def can_access_address(actor: Actor, address_user_id: str) -> bool:
    """Addresses: read/insert/update/delete only by the owning identity."""
    return _is_self(actor, address_user_id)


def can_read_product(actor: Actor, is_active: bool) -> bool:
    """Products: anyone may read active rows; owners may read all."""
    return bool(is_active) or actor.is_owner


def can_manage_products(actor: Actor) -> bool:
    return actor.is_authenticated and actor.is_owner


def can_read_order(actor: Actor, order_user_id: str | None) -> bool:
    """Orders: the owning identity, or any owner regardless of status."""
    return _is_self(actor, order_user_id) or actor.is_owner


def can_list_orders(actor: Actor, user_id: str | None) -> bool:
    """Listing without a user scope is administrative and owner-only."""
    if user_id is None:
        return actor.is_owner
    return can_read_order(actor, user_id)


def can_insert_order(actor: Actor, order_user_id: str | None) -> bool:
    """Orders: insert only when the declared owner is the caller."""
    return _is_self(actor, order_user_id)


def can_update_order(actor: Actor, order_user_id: str | None, status: str) -> bool:
    """Orders: owners always; customers only their own pending orders."""
    if actor.is_owner:
        return True
    return _is_self(actor, order_user_id) and status == "pending"


def can_read_order_items(actor: Actor, parent_order_user_id: str | None) -> bool:
    """Order items inherit the parent order's read rule."""
    return can_read_order(actor, parent_order_user_id)


def can_insert_order_items(actor: Actor, parent_order_user_id: str | None) -> bool:
    return _is_self(actor, parent_order_user_id)


def can_insert_inquiry(actor: Actor) -> bool:
    return True


def can_manage_inquiries(actor: Actor) -> bool:
    return actor.is_owner


def can_read_owner_account(actor: Actor, owner_account_id: str) -> bool:
    return _is_self(actor, owner_account_id)


# =============================================================================
# ENFORCEMENT
# =============================================================================

def require(
    allowed: bool,
    actor: Actor,
    *,
    resource: str,
    action: str,
    reason: str,
) -> None:
    """
    Enforce a predicate result.

    Logs AUTHORIZATION_DENIED and raises AuthorizationError when the
    predicate returned False.
    """
    if allowed:
        return

    log_security_event(
        identity_id=actor.identity_id,
        event_type="AUTHORIZATION_DENIED",
        success=False,
        resource=resource,
        action=action,
        reason=reason,
    )
    raise AuthorizationError(reason, authenticated=actor.is_authenticated)
