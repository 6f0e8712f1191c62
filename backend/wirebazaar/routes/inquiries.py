# Overview: Flask API routes for product inquiries.

from flask import Blueprint, request, g

from ..models import Inquiry
from ..services.inquiry_service import submit_inquiry, list_inquiries, update_inquiry_status
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_inquiry,
    ValidationError,
)
from ..decorators import optional_auth, require_owner
from .errors import SERVICE_ERRORS, error_response

INQUIRY_POLICY = ModelValidationPolicy(
    writable_fields={"user_type", "product_interest", "full_name", "email", "phone", "location", "message"},
    required_on_create={"user_type", "product_interest", "full_name", "email", "phone", "location"},
)

inquiries_bp = Blueprint("inquiries", __name__, url_prefix="/api/inquiries")


@inquiries_bp.post("")
@optional_auth
def submit_inquiry_route():
    """Open to guests and signed-in customers alike."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Inquiry, payload=payload, policy=INQUIRY_POLICY, partial=False)
        enforce_rules_inquiry(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = submit_inquiry(g.actor, patch)
    except SERVICE_ERRORS as e:
        return error_response(e)
    return created, 201


@inquiries_bp.get("")
@require_owner
def list_inquiries_route():
    try:
        items = list_inquiries(g.actor, status=request.args.get("status"))
    except SERVICE_ERRORS as e:
        return error_response(e)
    return {"items": items, "count": len(items)}


@inquiries_bp.patch("/<inquiry_id>")
@require_owner
def update_inquiry_route(inquiry_id: str):
    """Request body: {"status": "new" | "contacted" | "closed"}"""
    data = request.get_json(silent=True) or {}
    try:
        return update_inquiry_status(g.actor, inquiry_id, data.get("status"))
    except SERVICE_ERRORS as e:
        return error_response(e)
