# Overview: Flask API routes for the caller's own profile.

from flask import Blueprint, request, g

from ..models import Profile
from ..services.profile_service import get_profile, update_profile
from ..validation import ModelValidationPolicy, validate_payload, enforce_rules_profile, ValidationError
from ..decorators import require_auth
from .errors import SERVICE_ERRORS, error_response

PROFILE_POLICY = ModelValidationPolicy(writable_fields={"full_name", "email", "phone"})

profile_bp = Blueprint("profile", __name__, url_prefix="/api/profile")


@profile_bp.get("")
@require_auth
def get_profile_route():
    try:
        return get_profile(g.actor, g.actor.identity_id)
    except SERVICE_ERRORS as e:
        return error_response(e)


@profile_bp.patch("")
@require_auth
def update_profile_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Profile, payload=payload, policy=PROFILE_POLICY, partial=True)
        enforce_rules_profile(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        return update_profile(g.actor, g.actor.identity_id, patch)
    except SERVICE_ERRORS as e:
        return error_response(e)
