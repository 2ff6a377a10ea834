from functools import wraps
from flask import session, jsonify

from ...models import UserRole


def current_user_id() -> int:
    return int(session["user_id"])


def current_role() -> str | None:
    return session.get("role")


def is_admin_session() -> bool:
    return current_role() == UserRole.ADMIN.value


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not session.get("user_id"):
            return jsonify(error="auth_required"), 401
        return fn(*args, **kwargs)
    return wrapper


def role_required(*roles):
    """
    Uso:
      @role_required("admin")
      @role_required(UserRole.MEMBER, UserRole.ADMIN)
    """
    allowed = {UserRole(r).value for r in roles}

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not session.get("user_id"):
                return jsonify(error="auth_required"), 401

            if current_role() not in allowed:
                return jsonify(
                    error="forbidden",
                    required_roles=sorted(allowed),
                    current_role=current_role()
                ), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator
