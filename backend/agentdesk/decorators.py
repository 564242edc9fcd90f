# Overview: Request decorators for API routes.

from functools import wraps
from flask import current_app, g, jsonify, request

from .services.results import ErrorKind


def require_identity(f):
    """
    Require a caller identity from the upstream session provider.

    Sets g.caller_identity to the opaque auth user id found in the
    configured identity header (default X-Auth-User). Tenant resolution
    happens inside the service call, not here.

    Returns 401 if the header is missing or blank.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        header = current_app.config.get("IDENTITY_HEADER", "X-Auth-User")
        identity = (request.headers.get(header) or "").strip()

        if not identity:
            return jsonify({
                "success": False,
                "error": "Not authenticated",
                "error_kind": ErrorKind.NOT_AUTHENTICATED.value,
            }), 401

        g.caller_identity = identity
        return f(*args, **kwargs)

    return decorated_function
