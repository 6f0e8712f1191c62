# backend/wirebazaar/services/address_service.py
"""
Saved shipping addresses.

Private to the owning profile on every operation. At most one address per
profile is the default; marking a new default clears the old one.
"""
from __future__ import annotations

from ..extensions import db
from ..models import Address
from ..validation import NotFoundError
from .authorization_service import Actor, can_access_address, require
from .identity_service import require_backend

ADDRESS_MUTABLE_FIELDS = {
    "full_name", "phone", "address_line1", "address_line2",
    "city", "state", "pincode", "is_default",
}


def _require_owner_of(actor: Actor, user_id: str, action: str) -> None:
    require(
        can_access_address(actor, user_id), actor,
        resource="addresses", action=action,
        reason="Addresses are private to their owner",
    )


def _clear_other_defaults(user_id: str, keep_id: str | None) -> None:
    query = db.session.query(Address).filter(
        Address.user_id == user_id,
        Address.is_default.is_(True),
    )
    if keep_id is not None:
        query = query.filter(Address.id != keep_id)
    query.update({Address.is_default: False}, synchronize_session=False)


def _load(actor: Actor, address_id: str, action: str) -> Address:
    a = db.session.get(Address, address_id)
    if a is None:
        raise NotFoundError("Address not found")
    _require_owner_of(actor, a.user_id, action)
    return a


def list_addresses(actor: Actor, user_id: str) -> list[dict]:
    require_backend("Addresses")
    _require_owner_of(actor, user_id, "list")

    rows = (
        db.session.query(Address)
        .filter(Address.user_id == user_id)
        .order_by(Address.is_default.desc(), Address.created_at.desc())
        .all()
    )
    return [a.to_dict() for a in rows]


def create_address(actor: Actor, user_id: str, patch: dict) -> dict:
    require_backend("Addresses")
    _require_owner_of(actor, user_id, "insert")

    a = Address(user_id=user_id)
    for k, v in patch.items():
        if k in ADDRESS_MUTABLE_FIELDS:
            setattr(a, k, v)

    db.session.add(a)
    db.session.flush()
    if a.is_default:
        _clear_other_defaults(user_id, keep_id=a.id)

    db.session.commit()
    return a.to_dict()


def update_address(actor: Actor, address_id: str, patch: dict) -> dict:
    require_backend("Addresses")
    a = _load(actor, address_id, "update")

    for k, v in patch.items():
        if k in ADDRESS_MUTABLE_FIELDS:
            setattr(a, k, v)

    if patch.get("is_default"):
        _clear_other_defaults(a.user_id, keep_id=a.id)

    db.session.commit()
    return a.to_dict()


def delete_address(actor: Actor, address_id: str) -> None:
    require_backend("Addresses")
    a = _load(actor, address_id, "delete")
    db.session.delete(a)
    db.session.commit()
