from __future__ import annotations

from flask import request

from circulation.extensions import db
from circulation.models.admin_action import AdminAction
from .pagination import paginate


def _client_ip() -> str:
    xff = request.headers.get("X-Forwarded-For")
    return (xff.split(",")[0].strip() if xff else request.remote_addr) or "unknown"


def log_admin_action(
    *,
    admin_id: int,
    action: str,
    target_type: str,
    target_id: int | None = None,
    details: dict | None = None,
) -> AdminAction:
    """
    Registra una acción de admin con el contexto de la request en curso.
    Se llama después del commit de la operación auditada.
    """
    entry = AdminAction(
        admin_id=admin_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        ip_address=_client_ip(),
        user_agent=request.headers.get("User-Agent"),
        endpoint=request.endpoint,
        method=request.method,
        path=request.path,
        details=details,
    )
    db.session.add(entry)
    db.session.commit()
    return entry


def list_admin_actions(
    *,
    admin_id: int | None = None,
    action: str | None = None,
    target_type: str | None = None,
    target_id: int | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> dict:
    q = AdminAction.query

    if admin_id is not None:
        q = q.filter(AdminAction.admin_id == admin_id)
    if action:
        q = q.filter(AdminAction.action == action)
    if target_type:
        q = q.filter(AdminAction.target_type == target_type)
    if target_id is not None:
        q = q.filter(AdminAction.target_id == target_id)

    q = q.order_by(AdminAction.id.desc())
    return paginate(q, page, limit, lambda a: a.to_dict())
