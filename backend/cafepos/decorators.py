# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

USER_ID_HEADER = "X-User-Id"


def require_user(f):
    """
    Require an authenticated user id and expose it as g.user_id.

    Sign-in happens upstream; the identity gateway forwards the
    authenticated user's id in the X-User-Id header. Returns 401 without it.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user_id = (request.headers.get(USER_ID_HEADER) or "").strip()
        if not user_id:
            return jsonify({"error": "Authentication required"}), 401

        g.user_id = user_id
        return f(*args, **kwargs)

    return decorated_function


def current_user_id() -> str | None:
    return getattr(g, "user_id", None)
