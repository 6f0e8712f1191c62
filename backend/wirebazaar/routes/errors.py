# Overview: Maps service-layer exceptions to JSON error responses.

from flask import current_app, jsonify

from ..services.authorization_service import AuthorizationError
from ..services.identity_service import (
    BackendNotConfiguredError,
    IdentityProviderError,
    PasswordValidationError,
)
from ..services.order_storage import OrderPersistenceError
from ..validation import ConflictError, NotFoundError, ValidationError

SERVICE_ERRORS = (
    AuthorizationError,
    BackendNotConfiguredError,
    IdentityProviderError,
    PasswordValidationError,
    OrderPersistenceError,
    ConflictError,
    NotFoundError,
    ValidationError,
)


def error_response(exc: Exception):
    """JSON body + status for a known service exception."""
    if isinstance(exc, AuthorizationError):
        return jsonify({"error": str(exc)}), 403 if exc.authenticated else 401
    if isinstance(exc, BackendNotConfiguredError):
        return jsonify({"error": str(exc)}), 503
    if isinstance(exc, IdentityProviderError):
        return jsonify({"error": str(exc)}), 401
    if isinstance(exc, ConflictError):
        return jsonify({"error": str(exc)}), 409
    if isinstance(exc, NotFoundError):
        return jsonify({"error": str(exc)}), 404
    if isinstance(exc, (ValidationError, PasswordValidationError)):
        return jsonify({"error": str(exc)}), 400
    if isinstance(exc, OrderPersistenceError):
        return jsonify({"error": str(exc)}), 500

    current_app.logger.exception("Unhandled service error")
    return jsonify({"error": "Internal server error"}), 500
