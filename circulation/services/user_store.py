from __future__ import annotations

from flask import current_app
from sqlalchemy import func

from circulation.errors import Conflict, NotFound
from circulation.extensions import db
from circulation.models import AdminAction, BorrowRequest, User, UserRole
from circulation.models.enums import ACTIVE_BORROW_STATUSES


PROFILE_FIELDS = ("username", "full_name", "email", "phone", "address", "role")
MEMBER_NUMBER_PREFIX = "MEMBER"


def find_by_id(user_id: int, role: UserRole | None = None) -> User | None:
    user = db.session.get(User, user_id)
    if user is None:
        return None
    if role is not None and user.role != role:
        return None
    return user


def find_by_username(username: str) -> User | None:
    return User.query.filter_by(username=username).first()


def authenticate(username: str, password: str) -> User | None:
    user = find_by_username((username or "").strip())
    if user is None or not user.check_password(password or ""):
        return None
    return user


def _next_member_number() -> str:
    # MEMBER001, MEMBER002... (sigue al mayor existente, aunque haya bajas)
    numbers = db.session.query(User.member_number).filter(User.member_number.isnot(None)).all()
    highest = 0
    for (value,) in numbers:
        suffix = value[len(MEMBER_NUMBER_PREFIX):]
        if value.startswith(MEMBER_NUMBER_PREFIX) and suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{MEMBER_NUMBER_PREFIX}{highest + 1:03d}"


def _ensure_username_free(username: str, exclude_id: int | None = None) -> None:
    q = User.query.filter(func.lower(User.username) == username.lower())
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    if q.first() is not None:
        raise Conflict("Username already exists", code="user_exists")


def create_user(fields: dict) -> User:
    username = fields["username"].strip()
    _ensure_username_free(username)

    role = fields.get("role") or UserRole.MEMBER
    user = User(
        username=username,
        full_name=fields["full_name"],
        email=fields.get("email"),
        phone=fields.get("phone"),
        address=fields.get("address"),
        role=role,
    )
    user.set_password(fields["password"])

    if role == UserRole.MEMBER:
        user.member_number = _next_member_number()

    db.session.add(user)
    db.session.commit()

    current_app.logger.info("USER created id=%s role=%s", user.id, user.role.value)
    return user


def update_user(user_id: int, fields: dict) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found", code="user_not_found")

    if "username" in fields:
        fields = {**fields, "username": fields["username"].strip()}
        _ensure_username_free(fields["username"], exclude_id=user.id)

    for name in PROFILE_FIELDS:
        if name in fields:
            setattr(user, name, fields[name])

    if fields.get("password"):
        user.set_password(fields["password"])

    if user.role == UserRole.MEMBER and not user.member_number:
        user.member_number = _next_member_number()

    db.session.commit()
    return user


def delete_user(user_id: int) -> bool:
    user = db.session.get(User, user_id)
    if user is None:
        return False

    has_active = (
        db.session.query(BorrowRequest.id)
        .filter(
            BorrowRequest.member_id == user_id,
            BorrowRequest.status.in_(ACTIVE_BORROW_STATUSES),
        )
        .first()
        is not None
    )
    if has_active:
        raise Conflict("Cannot delete user with active borrow requests", code="user_has_active_requests")

    # el historial es permanente: tampoco se borra a quien aparece en él (ni en la auditoría)
    in_history = (
        db.session.query(BorrowRequest.id)
        .filter((BorrowRequest.member_id == user_id) | (BorrowRequest.approved_by == user_id))
        .first()
        is not None
    ) or (
        db.session.query(AdminAction.id).filter(AdminAction.admin_id == user_id).first() is not None
    )
    if in_history:
        raise Conflict("Cannot delete user referenced by borrow or audit history", code="user_has_history")

    db.session.delete(user)
    db.session.commit()

    current_app.logger.info("USER deleted id=%s", user_id)
    return True


def list_users(role: UserRole | None = None) -> list[User]:
    q = User.query
    if role is not None:
        q = q.filter(User.role == role)
    return q.order_by(User.id.asc()).all()


def list_members() -> list[User]:
    return list_users(UserRole.MEMBER)
