# Overview: Request authentication decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .extensions import is_backend_configured
from .services import session_service
from .services.authorization_service import Actor, actor_for_identity, log_security_event


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def _attach(context: session_service.SessionContext | None, token: str | None) -> None:
    if context is None:
        g.actor = Actor.anonymous()
        g.session_token = None
        g.session_context = None
        return
    g.actor = actor_for_identity(context.identity_id, context.kind)
    g.session_token = token
    g.session_context = context


def _authenticate():
    """
    Resolve the bearer token into g.actor.

    Returns an error response tuple, or None when the request may proceed.
    """
    token = bearer_token()
    if token is None:
        return jsonify({"error": "Authentication required"}), 401

    if not is_backend_configured():
        return jsonify({"error": "Authentication is not configured. Please check your setup."}), 503

    context = session_service.validate_session(token)
    if not context:
        return jsonify({"error": "Invalid or expired token"}), 401

    _attach(context, token)
    return None


def require_auth(f):
    """
    Require a valid session.

    Sets the following Flask g attributes:
    - g.actor: Actor for the session identity (owner claim resolved here)
    - g.session_token: the plaintext bearer token
    - g.session_context: the full SessionContext object

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired, idle or revoked token
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        error = _authenticate()
        if error is not None:
            return error
        return f(*args, **kwargs)

    return decorated_function


def optional_auth(f):
    """
    Attach an Actor whether or not the caller is signed in.

    No Authorization header (or no backend) -> anonymous actor.
    A header with a bad token is still a 401, so a stale session never
    silently turns into a guest.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if bearer_token() is None or not is_backend_configured():
            _attach(None, None)
            return f(*args, **kwargs)

        error = _authenticate()
        if error is not None:
            return error
        return f(*args, **kwargs)

    return decorated_function


def require_owner(f):
    """Require a valid session whose identity holds an owner account."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        error = _authenticate()
        if error is not None:
            return error

        if not g.actor.is_owner:
            log_security_event(
                identity_id=g.actor.identity_id,
                event_type="AUTHORIZATION_DENIED",
                success=False,
                resource=request.path,
                action=request.method,
                reason="Owner account required",
            )
            return jsonify({"error": "Owner access required"}), 403

        return f(*args, **kwargs)

    return decorated_function
