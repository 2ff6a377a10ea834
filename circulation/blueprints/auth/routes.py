from flask import Blueprint, request, jsonify, session

from ...extensions import db
from ...models import User
from ...security.security_events import record_security_event
from ...services import user_store
from ..common import json_body

bp = Blueprint("auth", __name__, url_prefix="/auth")


# ---------- LOGIN ----------
@bp.post("/login")
def login():
    data = json_body()

    username = (data.get("username") or "").strip()
    password = data.get("password") or ""

    if not username or not password:
        return jsonify(
            error="missing_fields",
            required=["username", "password"]
        ), 400

    user = user_store.authenticate(username, password)

    if user is None:
        record_security_event(
            event_type="login_failed",
            status_code=401,
            req=request,
            details=f"username={username}",
        )
        return jsonify(error="invalid_credentials", message="Invalid username or password"), 401

    session.clear()
    session["user_id"] = user.id
    session["role"] = user.role.value

    return jsonify(message="ok", user=user.to_dict()), 200


# ---------- LOGOUT ----------
@bp.post("/logout")
def logout():
    session.clear()
    return jsonify(message="logged_out"), 200


# ---------- WHO AM I ----------
@bp.get("/me")
def me():
    user_id = session.get("user_id")

    if not user_id:
        return jsonify(authenticated=False), 200

    user = db.session.get(User, user_id)

    if not user:
        session.clear()
        return jsonify(authenticated=False), 200

    return jsonify(authenticated=True, user=user.to_dict()), 200
