from flask import Blueprint, jsonify, request

from ...services import reporting
from ...services.admin_audit import list_admin_actions
from ..auth.decorators import login_required, role_required
from ..common import parse_int, page_args

bp = Blueprint("dashboard", __name__, url_prefix="/dashboard")


@bp.get("/stats")
@login_required
@role_required("admin")
def stats():
    return jsonify(reporting.dashboard_stats()), 200


@bp.get("/recent")
@login_required
@role_required("admin")
def recent():
    return jsonify(items=reporting.recent_activities()), 200


@bp.get("/popular")
@login_required
@role_required("admin")
def popular():
    return jsonify(items=reporting.popular_books()), 200


@bp.get("/analytics")
@login_required
@role_required("admin")
def analytics():
    return jsonify(items=reporting.usage_analytics()), 200


@bp.get("/audit")
@login_required
@role_required("admin")
def audit():
    page, limit = page_args()
    result = list_admin_actions(
        admin_id=parse_int(request.args.get("admin_id"), "admin_id"),
        action=(request.args.get("action") or "").strip() or None,
        target_type=(request.args.get("target_type") or "").strip() or None,
        target_id=parse_int(request.args.get("target_id"), "target_id"),
        page=page,
        limit=limit,
    )
    return jsonify(result), 200
