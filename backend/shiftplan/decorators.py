# Overview: Request identity and role decorators for API routes.

"""
Identity is resolved upstream by the gateway and forwarded in two headers:

- X-User-Id:    the caller's user id
- X-User-Roles: comma-separated roles (ADMIN, MANAGER, EMPLOYEE)

Routes never parse credentials themselves.
"""

from functools import wraps
from flask import request, jsonify, g

ROLE_ADMIN = "ADMIN"
ROLE_MANAGER = "MANAGER"
ROLE_EMPLOYEE = "EMPLOYEE"
PRIVILEGED_ROLES = (ROLE_ADMIN, ROLE_MANAGER)

USER_ID_HEADER = "X-User-Id"
ROLES_HEADER = "X-User-Roles"


def _parse_roles(raw: str | None) -> frozenset:
    if not raw:
        return frozenset()
    return frozenset(part.strip().upper() for part in raw.split(",") if part.strip())


def _is_identified() -> bool:
    return bool(getattr(g, "user_id", None))


def is_privileged() -> bool:
    return _is_identified() and bool(g.roles & set(PRIVILEGED_ROLES))


def require_identity(f):
    """
    Require a forwarded identity.

    Sets:
    - g.user_id: the caller's user id
    - g.roles:   frozenset of upper-cased role names

    Returns 401 if X-User-Id is missing.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user_id = (request.headers.get(USER_ID_HEADER) or "").strip()
        if not user_id:
            return jsonify({"error": "Authentication required"}), 401

        g.user_id = user_id
        g.roles = _parse_roles(request.headers.get(ROLES_HEADER))
        return f(*args, **kwargs)

    return decorated_function


def require_roles(*roles):
    """Require any of the given roles. Must be stacked under @require_identity."""
    wanted = {role.upper() for role in roles}

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_identified():
                return jsonify({"error": "Authentication required"}), 401

            if not g.roles & wanted:
                return jsonify({
                    "error": "Permission denied",
                    "required_roles": sorted(wanted),
                    "message": f"Requires any of: {', '.join(sorted(wanted))}"
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
