from flask import Blueprint, current_app, request, jsonify

from ...models import AdminAction, BorrowStatus
from ...services import loan_ledger
from ...services.admin_audit import log_admin_action
from ..auth.decorators import login_required, role_required, current_user_id, is_admin_session
from ..common import json_body, parse_int, parse_enum, optional_text, page_args

bp = Blueprint("borrow_requests", __name__, url_prefix="/borrow-requests")

STATUS_ACTIONS = {
    BorrowStatus.APPROVED: AdminAction.Actions.BORROW_APPROVE,
    BorrowStatus.REJECTED: AdminAction.Actions.BORROW_REJECT,
    BorrowStatus.COMPLETED: AdminAction.Actions.BORROW_RETURN,
}


def _items(reqs):
    return jsonify(items=[r.to_dict(with_details=True) for r in reqs]), 200


# ---------- CREATE REQUEST ----------
@bp.post("/")
@login_required
def create_request():
    data = json_body()
    book_id = parse_int(data.get("book_id"), "book_id")

    if not book_id:
        return jsonify(error="missing_fields", required=["book_id"]), 400

    # un admin puede registrar la solicitud en nombre de un socio
    member_id = current_user_id()
    if is_admin_session() and data.get("member_id") is not None:
        member_id = parse_int(data.get("member_id"), "member_id")

    max_loans = current_app.config.get("MAX_ACTIVE_LOANS")
    if max_loans:
        active = loan_ledger.get_active_loans_by_member(member_id)
        if len(active) >= max_loans:
            return jsonify(
                error="loan_limit_reached",
                message=f"Members may hold at most {max_loans} active loans",
                active_loans=len(active),
            ), 409

    req = loan_ledger.create_borrow_request(member_id, book_id, optional_text(data, "notes"))
    return jsonify(req.to_dict()), 201


# ---------- ADMIN LIST ----------
@bp.get("/")
@login_required
@role_required("admin")
def list_requests():
    page, limit = page_args()
    result = loan_ledger.list_borrow_requests(
        member_id=parse_int(request.args.get("member_id"), "member_id"),
        status=parse_enum(BorrowStatus, request.args.get("status"), "status"),
        page=page,
        limit=limit,
    )
    return jsonify(result), 200


@bp.get("/pending")
@login_required
@role_required("admin")
def pending_requests():
    return _items(loan_ledger.get_pending_borrow_requests())


@bp.get("/overdue")
@login_required
@role_required("admin")
def overdue_requests():
    return _items(loan_ledger.get_overdue_books())


@bp.get("/members/<int:member_id>")
@login_required
@role_required("admin")
def member_requests(member_id: int):
    return _items(loan_ledger.get_borrow_requests_by_member(member_id))


@bp.get("/members/<int:member_id>/active")
@login_required
@role_required("admin")
def member_active_loans(member_id: int):
    return _items(loan_ledger.get_active_loans_by_member(member_id))


# ---------- MY REQUESTS ----------
@bp.get("/mine")
@login_required
def my_requests():
    return _items(loan_ledger.get_borrow_requests_by_member(current_user_id()))


@bp.get("/mine/active")
@login_required
def my_active_loans():
    return _items(loan_ledger.get_active_loans_by_member(current_user_id()))


# ---------- STATUS (ADMIN) ----------
@bp.patch("/<int:request_id>/status")
@login_required
@role_required("admin")
def set_status(request_id: int):
    data = json_body()
    new_status = parse_enum(BorrowStatus, data.get("status"), "status")

    if new_status is None:
        return jsonify(error="missing_fields", required=["status"]), 400

    req = loan_ledger.update_borrow_request_status(
        request_id,
        new_status,
        notes=optional_text(data, "notes"),
        approved_by=current_user_id(),
    )

    log_admin_action(
        admin_id=current_user_id(),
        action=STATUS_ACTIONS.get(new_status, f"borrow_request.{new_status.value}"),
        target_type="borrow_request",
        target_id=req.id,
        details={"book_id": req.book_id, "member_id": req.member_id, "status": req.status.value},
    )

    return jsonify(req.to_dict()), 200


# ---------- RETURN (ADMIN) ----------
@bp.post("/<int:request_id>/return")
@login_required
@role_required("admin")
def return_book(request_id: int):
    data = json_body()
    req = loan_ledger.return_book(request_id, optional_text(data, "notes"))

    log_admin_action(
        admin_id=current_user_id(),
        action=AdminAction.Actions.BORROW_RETURN,
        target_type="borrow_request",
        target_id=req.id,
        details={"book_id": req.book_id, "member_id": req.member_id},
    )

    return jsonify(req.to_dict()), 200


# ---------- CANCEL (REQUESTER) ----------
@bp.patch("/<int:request_id>/cancel")
@login_required
def cancel_request(request_id: int):
    loan_ledger.cancel_borrow_request(request_id, current_user_id())
    return jsonify(message="cancelled", id=request_id), 200
