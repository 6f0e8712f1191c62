# Overview: Flask API routes for customer OTP login; parses input and returns JSON responses.

# backend/wirebazaar/routes/auth.py
"""
Customer Authentication API routes

Two-step passwordless login:
1. POST /otp/request {contact}        -> code sent to email or phone
2. POST /otp/verify  {contact, code}  -> session token + profile

The otp-requested state is kept server-side (the outstanding challenge), so
step 2 fails with "Please request an OTP first." when no code is pending.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import customer_auth_service
from ..services.profile_service import get_profile
from ..decorators import require_auth, bearer_token
from ..validation import NotFoundError
from .errors import SERVICE_ERRORS, error_response


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/otp/request")
def request_otp_route():
    """
    Send a one-time code.

    Request body: {"contact": "<email or phone>"}
    """
    try:
        data = request.get_json(silent=True) or {}
        pending = customer_auth_service.request_otp(data.get("contact") or "")
        return jsonify({
            "contact": pending.contact,
            "channel": pending.channel,
            "message": f"OTP sent to your {pending.channel}",
        }), 200

    except SERVICE_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to send OTP")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/otp/verify")
def verify_otp_route():
    """
    Verify a one-time code and open a customer session.

    Request body: {"contact": "...", "code": "123456"}
    Returns token and profile on success.
    """
    try:
        data = request.get_json(silent=True) or {}
        contact = data.get("contact") or ""
        pending = customer_auth_service.pending_for(contact)
        login = customer_auth_service.verify_otp(contact, data.get("code") or "", pending)
        return jsonify({
            "token": login.token,
            "profile": login.profile.to_dict(),
            "message": "Login successful",
        }), 200

    except SERVICE_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to verify OTP")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """
    End the customer session.

    Always succeeds for the caller; a failed revocation is only logged.
    """
    customer_auth_service.logout(bearer_token())
    return jsonify({"message": "Logout successful"}), 200


@auth_bp.get("/session")
@require_auth
def session_route():
    """Current identity, its profile (if any) and the owner claim."""
    try:
        context = g.session_context
        try:
            profile = get_profile(g.actor, g.actor.identity_id)
        except NotFoundError:
            profile = None

        return jsonify({
            "identity": context.identity.to_dict(),
            "session": context.session.to_dict(),
            "profile": profile,
            "is_owner": g.actor.is_owner,
        }), 200

    except Exception:
        current_app.logger.exception("Failed to read session")
        return jsonify({"error": "Internal server error"}), 500
