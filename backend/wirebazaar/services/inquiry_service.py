# backend/wirebazaar/services/inquiry_service.py
"""
Product inquiries (contact form).

Anyone, signed in or not, may submit. Only owners may read or move an
inquiry through new -> contacted -> closed. Transitions are not ordered.
"""
from __future__ import annotations

from ..extensions import db
from ..models import INQUIRY_STATUSES, Inquiry
from ..validation import NotFoundError, ValidationError
from .authorization_service import Actor, can_insert_inquiry, can_manage_inquiries, require
from .identity_service import require_backend

INQUIRY_SUBMIT_FIELDS = {"user_type", "product_interest", "full_name", "email", "phone", "location", "message"}


def submit_inquiry(actor: Actor, patch: dict) -> dict:
    require_backend("Inquiries")
    require(
        can_insert_inquiry(actor), actor,
        resource="inquiries", action="insert", reason="Inquiries are open to everyone",
    )

    i = Inquiry(status="new")
    for k, v in patch.items():
        if k in INQUIRY_SUBMIT_FIELDS:
            setattr(i, k, v)

    db.session.add(i)
    db.session.commit()
    return i.to_dict()


def list_inquiries(actor: Actor, status: str | None = None) -> list[dict]:
    require_backend("Inquiries")
    require(
        can_manage_inquiries(actor), actor,
        resource="inquiries", action="list", reason="Only owners can read inquiries",
    )

    query = db.session.query(Inquiry)
    if status:
        query = query.filter(Inquiry.status == status)
    return [i.to_dict() for i in query.order_by(Inquiry.created_at.desc()).all()]


def update_inquiry_status(actor: Actor, inquiry_id: str, status: str) -> dict:
    require_backend("Inquiries")
    require(
        can_manage_inquiries(actor), actor,
        resource="inquiries", action="update", reason="Only owners can update inquiries",
    )

    if status not in INQUIRY_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(INQUIRY_STATUSES)}")

    i = db.session.get(Inquiry, inquiry_id)
    if i is None:
        raise NotFoundError("Inquiry not found")

    i.status = status
    db.session.commit()
    return i.to_dict()
