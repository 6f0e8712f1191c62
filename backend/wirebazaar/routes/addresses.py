# Overview: Flask API routes for saved shipping addresses.

"""
Address book routes. Every route is scoped to the caller's own profile.
"""

from flask import Blueprint, request, g

from ..models import Address
from ..services.address_service import (
    list_addresses,
    create_address,
    update_address,
    delete_address,
)
from ..validation import ModelValidationPolicy, validate_payload, enforce_rules_address, ValidationError
from ..decorators import require_auth
from .errors import SERVICE_ERRORS, error_response

ADDRESS_POLICY = ModelValidationPolicy(
    writable_fields={
        "full_name", "phone", "address_line1", "address_line2",
        "city", "state", "pincode", "is_default",
    },
    required_on_create={"full_name", "phone", "address_line1", "city", "state", "pincode"},
)

addresses_bp = Blueprint("addresses", __name__, url_prefix="/api/addresses")


@addresses_bp.get("")
@require_auth
def list_addresses_route():
    try:
        items = list_addresses(g.actor, g.actor.identity_id)
    except SERVICE_ERRORS as e:
        return error_response(e)
    return {"items": items, "count": len(items)}


@addresses_bp.post("")
@require_auth
def create_address_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Address, payload=payload, policy=ADDRESS_POLICY, partial=False)
        enforce_rules_address(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = create_address(g.actor, g.actor.identity_id, patch)
    except SERVICE_ERRORS as e:
        return error_response(e)
    return created, 201


@addresses_bp.put("/<address_id>")
@require_auth
def update_address_route(address_id: str):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Address, payload=payload, policy=ADDRESS_POLICY, partial=True)
        enforce_rules_address(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        return update_address(g.actor, address_id, patch)
    except SERVICE_ERRORS as e:
        return error_response(e)


@addresses_bp.delete("/<address_id>")
@require_auth
def delete_address_route(address_id: str):
    try:
        delete_address(g.actor, address_id)
    except SERVICE_ERRORS as e:
        return error_response(e)
    return {"ok": True}, 200
