# Overview: Request and ability decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service, permission_service
from .services.ability_service import AbilityDeniedError, GUEST_USER_ID, guest_ability, resolve_ability


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def _establish_identity() -> bool | None:
    """
    Populate g for this request.

    Sets g.current_user (None for guests), g.user_id (GUEST_USER_ID for guests),
    g.session_context and g.ability. Returns False when a token was sent but
    is invalid, None when no token was sent, True when authenticated.
    """
    token = _bearer_token()
    context = session_service.validate_session(token) if token else None

    if context is None:
        g.current_user = None
        g.user_id = GUEST_USER_ID
        g.session_context = None
        g.ability = guest_ability()
        return None if token is None else False

    g.current_user = context.user
    g.user_id = context.user.id
    g.session_context = context
    g.ability = resolve_ability(context.user.id)
    return True


def require_auth(f):
    """
    Require an authenticated user.

    Sets g.current_user, g.user_id, g.session_context and g.ability.

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid or expired token
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        state = _establish_identity()
        if state is None:
            return jsonify({"error": "Authentication required"}), 401
        if state is False:
            return jsonify({"error": "Invalid or expired token"}), 401
        return f(*args, **kwargs)

    return decorated_function


def optional_auth(f):
    """Like require_auth, but requests without a token proceed as the guest."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        state = _establish_identity()
        if state is False:
            return jsonify({"error": "Invalid or expired token"}), 401
        return f(*args, **kwargs)

    return decorated_function


def require_ability(action, subject, field: str | None = None):
    """
    Require the caller's ability to allow (action, subject[, field]).

    Unauthenticated callers are checked against the guest ability; a denied
    guest gets 401, a denied user 403. Denials are logged as security events.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            state = _establish_identity()
            if state is False:
                return jsonify({"error": "Invalid or expired token"}), 401

            try:
                permission_service.require_ability(
                    g.ability,
                    action,
                    subject,
                    field,
                    user_id=g.user_id,
                    resource=request.path,
                    ip_address=request.remote_addr,
                    user_agent=request.headers.get("User-Agent"),
                )
            except AbilityDeniedError as e:
                if g.current_user is None:
                    return jsonify({"error": "Authentication required", "message": str(e)}), 401
                return jsonify({
                    "error": "Permission denied",
                    "required_ability": e.description,
                    "message": str(e),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
