# Overview: Flask API routes for owner (admin) login; parses input and returns JSON responses.

"""
Owner Authentication API routes

SECURITY:
- Password sign-in alone does not grant access; the identity must hold an
  owner account. Non-owner sessions opened during the attempt are revoked.
- GET /session re-checks owner membership on every restore.
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import owner_auth_service
from ..decorators import bearer_token
from .errors import SERVICE_ERRORS, error_response


owner_bp = Blueprint("owner", __name__, url_prefix="/api/owner")


@owner_bp.post("/login")
def owner_login_route():
    """
    Request body: {"email": "...", "password": "..."}

    Returns owner account and session token on success.
    """
    try:
        data = request.get_json(silent=True) or {}
        result = owner_auth_service.login(data.get("email") or "", data.get("password") or "")
        return jsonify({
            "owner": result.owner.to_dict(),
            "token": result.token,
            "message": "Login successful",
        }), 200

    except SERVICE_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to login owner")
        return jsonify({"error": "Internal server error"}), 500


@owner_bp.get("/session")
def owner_session_route():
    """Restore an owner session from the bearer token."""
    try:
        result = owner_auth_service.restore_session(bearer_token())
        if result is None:
            return jsonify({"error": "Owner session required"}), 401
        return jsonify({"owner": result.owner.to_dict()}), 200

    except SERVICE_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to restore owner session")
        return jsonify({"error": "Internal server error"}), 500


@owner_bp.post("/logout")
def owner_logout_route():
    owner_auth_service.logout(bearer_token())
    return jsonify({"message": "Logout successful"}), 200
