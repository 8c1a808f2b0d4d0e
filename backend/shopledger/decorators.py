# Overview: Request decorators for API routes; the access control gate in front of the ledger.

from functools import wraps
from flask import request, jsonify, g

from .permissions import roles_for
from .services import session_service


def _is_authenticated() -> bool:
    return hasattr(g, 'actor') and hasattr(g, 'current_user')


def require_auth(f):
    """
    Require a bearer token and establish the actor for the request.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.actor: Actor(id, role) handed to services
    - g.session_context: The full SessionContext object

    Returns 401 if:
    - No Authorization header, or not a Bearer credential
    - Unknown, expired or revoked token
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1].strip()

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.actor = context.actor
        g.session_context = context
        g.token = token

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles):
    """Allow only actors whose role is listed. Must be applied after @require_auth."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if g.actor.role not in roles:
                return jsonify({
                    "error": "Permission denied",
                    "required_roles": list(roles),
                    "message": f"{' or '.join(roles)} only",
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_permission(operation: str):
    """Role gate looked up from permissions.OPERATION_ROLES."""
    return require_role(*roles_for(operation))
