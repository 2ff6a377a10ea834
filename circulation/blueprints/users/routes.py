from flask import Blueprint, request, jsonify, abort

from ...models import UserRole, AdminAction
from ...services import user_store
from ...services.admin_audit import log_admin_action
from ..auth.decorators import login_required, role_required, current_user_id
from ..common import json_body, parse_enum, optional_text

bp = Blueprint("users", __name__, url_prefix="/users")

MIN_USERNAME, MAX_USERNAME = 3, 50
MIN_PASSWORD = 6


def _validate_username(username: str) -> None:
    if not (MIN_USERNAME <= len(username) <= MAX_USERNAME):
        abort(400, description=f"username must be {MIN_USERNAME}-{MAX_USERNAME} characters")


def _validate_password(password: str) -> None:
    if len(password) < MIN_PASSWORD:
        abort(400, description=f"password must be at least {MIN_PASSWORD} characters")


# ---------- LIST ----------
@bp.get("/")
@login_required
@role_required("admin")
def list_users():
    role = parse_enum(UserRole, request.args.get("role"), "role")
    users = user_store.list_users(role)
    return jsonify(items=[u.to_dict() for u in users]), 200


@bp.get("/members")
@login_required
@role_required("admin")
def list_members():
    return jsonify(items=[u.to_dict() for u in user_store.list_members()]), 200


@bp.get("/<int:user_id>")
@login_required
@role_required("admin")
def get_user(user_id: int):
    user = user_store.find_by_id(user_id)
    if user is None:
        return jsonify(error="user_not_found"), 404
    return jsonify(user.to_dict()), 200


# ---------- CREATE ----------
@bp.post("/")
@login_required
@role_required("admin")
def create_user():
    data = json_body()

    username = (data.get("username") or "").strip()
    password = data.get("password") or ""
    full_name = (data.get("full_name") or "").strip()

    if not username or not password or not full_name:
        return jsonify(
            error="missing_fields",
            required=["username", "password", "full_name"]
        ), 400

    _validate_username(username)
    _validate_password(password)

    user = user_store.create_user({
        "username": username,
        "password": password,
        "full_name": full_name,
        "email": optional_text(data, "email"),
        "phone": optional_text(data, "phone"),
        "address": optional_text(data, "address"),
        "role": parse_enum(UserRole, data.get("role"), "role") or UserRole.MEMBER,
    })

    log_admin_action(
        admin_id=current_user_id(),
        action=AdminAction.Actions.USER_CREATE,
        target_type="user",
        target_id=user.id,
        details={"role": user.role.value},
    )

    return jsonify(user.to_dict()), 201


# ---------- UPDATE ----------
@bp.patch("/<int:user_id>")
@login_required
@role_required("admin")
def update_user(user_id: int):
    data = json_body()
    fields = {}

    if "username" in data:
        username = (data.get("username") or "").strip()
        _validate_username(username)
        fields["username"] = username

    if "password" in data:
        password = data.get("password") or ""
        _validate_password(password)
        fields["password"] = password

    if "full_name" in data:
        full_name = (data.get("full_name") or "").strip()
        if not full_name:
            abort(400, description="full_name cannot be empty")
        fields["full_name"] = full_name

    for name in ("email", "phone", "address"):
        if name in data:
            fields[name] = optional_text(data, name)

    if "role" in data:
        fields["role"] = parse_enum(UserRole, data.get("role"), "role")
        if fields["role"] is None:
            abort(400, description="role cannot be empty")

    user = user_store.update_user(user_id, fields)

    log_admin_action(
        admin_id=current_user_id(),
        action=AdminAction.Actions.USER_UPDATE,
        target_type="user",
        target_id=user.id,
        details={"fields": sorted(k for k in fields if k != "password")},
    )

    return jsonify(user.to_dict()), 200


# ---------- DELETE ----------
@bp.delete("/<int:user_id>")
@login_required
@role_required("admin")
def delete_user(user_id: int):
    if user_id == current_user_id():
        abort(400, description="You cannot delete yourself")

    if not user_store.delete_user(user_id):
        return jsonify(error="user_not_found"), 404

    log_admin_action(
        admin_id=current_user_id(),
        action=AdminAction.Actions.USER_DELETE,
        target_type="user",
        target_id=user_id,
    )

    return jsonify(message="deleted", id=user_id), 200
