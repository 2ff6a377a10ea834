"""
Libro de préstamos: ciclo de vida de las solicitudes y su efecto sobre el stock.

El stock se reserva al aprobar (no al solicitar) y se libera al devolver. Cada
operación valida todo antes de escribir y termina en un único commit, de modo
que o se aplican la solicitud y el stock juntos, o no se aplica nada.
"""
from __future__ import annotations

from datetime import timedelta

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload

from circulation.errors import Conflict, InvalidState, NotFound, Unavailable
from circulation.extensions import db
from circulation.models import BorrowRequest, BorrowStatus, UserRole
from circulation.models.enums import ACTIVE_BORROW_STATUSES
from circulation.time_utils import utcnow
from . import book_store, user_store
from .pagination import paginate


CANCELLED_BY_MEMBER_NOTE = "Cancelled by member"


def _with_details(query):
    return query.options(
        joinedload(BorrowRequest.member),
        joinedload(BorrowRequest.book),
        joinedload(BorrowRequest.approver),
    )


def _get_or_404(request_id: int) -> BorrowRequest:
    req = db.session.get(BorrowRequest, request_id)
    if req is None:
        raise NotFound("Borrow request not found", code="request_not_found")
    return req


def _compare_and_set(req: BorrowRequest, expected: BorrowStatus, **values) -> None:
    """
    UPDATE ... WHERE status = expected: si otra llamada ganó la carrera no hay fila.
    """
    stmt = (
        update(BorrowRequest)
        .where(BorrowRequest.id == req.id, BorrowRequest.status == expected)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if db.session.execute(stmt).rowcount != 1:
        db.session.rollback()
        raise InvalidState(
            f"Borrow request is no longer {expected.value}",
            code="status_changed",
        )


def _loan_period() -> timedelta:
    return timedelta(days=current_app.config.get("LOAN_PERIOD_DAYS", 14))


# ---------- CREATE ----------
def create_borrow_request(member_id: int, book_id: int, notes: str | None = None) -> BorrowRequest:
    book = book_store.find_by_id(book_id)
    if book is None:
        raise NotFound("Book not found", code="book_not_found")

    if not book.is_borrowable:
        raise Unavailable("Book is not available for borrowing", code="book_not_available")

    member = user_store.find_by_id(member_id, role=UserRole.MEMBER)
    if member is None:
        raise NotFound("Member not found", code="member_not_found")

    existing = (
        BorrowRequest.query
        .filter(
            BorrowRequest.member_id == member_id,
            BorrowRequest.book_id == book_id,
            BorrowRequest.status.in_(ACTIVE_BORROW_STATUSES),
        )
        .first()
    )
    if existing:
        raise Conflict(
            "You already have an active request for this book",
            code="active_request_exists",
        )

    req = BorrowRequest(
        member_id=member_id,
        book_id=book_id,
        request_date=utcnow(),
        status=BorrowStatus.PENDING,
        notes=notes,
    )
    db.session.add(req)

    try:
        db.session.commit()
    except IntegrityError:
        # otra solicitud concurrente ocupó el índice único parcial
        db.session.rollback()
        current_app.logger.info(
            "LEDGER conflict on insert: member_id=%s book_id=%s", member_id, book_id
        )
        raise Conflict(
            "You already have an active request for this book",
            code="active_request_exists",
        )

    current_app.logger.info(
        "LEDGER created request_id=%s member_id=%s book_id=%s", req.id, member_id, book_id
    )
    return req


# ---------- READS ----------
def list_borrow_requests(
    *,
    member_id: int | None = None,
    status: BorrowStatus | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> dict:
    q = _with_details(BorrowRequest.query)

    if member_id is not None:
        q = q.filter(BorrowRequest.member_id == member_id)

    if status is not None:
        q = q.filter(BorrowRequest.status == status)

    q = q.order_by(BorrowRequest.created_at.desc(), BorrowRequest.id.desc())
    return paginate(q, page, limit, lambda r: r.to_dict(with_details=True))


def get_borrow_requests_by_member(member_id: int) -> list[BorrowRequest]:
    return (
        _with_details(BorrowRequest.query)
        .filter(BorrowRequest.member_id == member_id)
        .order_by(BorrowRequest.created_at.desc(), BorrowRequest.id.desc())
        .all()
    )


def get_pending_borrow_requests() -> list[BorrowRequest]:
    return (
        _with_details(BorrowRequest.query)
        .filter(BorrowRequest.status == BorrowStatus.PENDING)
        .order_by(BorrowRequest.request_date.asc(), BorrowRequest.id.asc())
        .all()
    )


def get_overdue_books() -> list[BorrowRequest]:
    return (
        _with_details(BorrowRequest.query)
        .filter(
            BorrowRequest.status == BorrowStatus.APPROVED,
            BorrowRequest.return_date.is_(None),
            BorrowRequest.due_date < utcnow(),
        )
        .order_by(BorrowRequest.due_date.asc())
        .all()
    )


def get_active_loans_by_member(member_id: int) -> list[BorrowRequest]:
    return (
        _with_details(BorrowRequest.query)
        .filter(
            BorrowRequest.member_id == member_id,
            BorrowRequest.status == BorrowStatus.APPROVED,
            BorrowRequest.return_date.is_(None),
        )
        .order_by(BorrowRequest.due_date.asc())
        .all()
    )


# ---------- STATUS ----------
def update_borrow_request_status(
    request_id: int,
    new_status: BorrowStatus,
    notes: str | None = None,
    approved_by: int | None = None,
) -> BorrowRequest:
    req = _get_or_404(request_id)
    current = req.status

    if not current.can_transition_to(new_status):
        raise InvalidState(
            f"Cannot change request status from {current.value} to {new_status.value}",
            code="invalid_transition",
        )

    # completar = devolver, para que el stock vuelva
    if new_status == BorrowStatus.COMPLETED:
        return return_book(request_id, notes)

    values = {"status": new_status}
    if notes is not None:
        values["notes"] = notes

    if new_status == BorrowStatus.APPROVED:
        now = utcnow()
        values.update(
            approved_date=now,
            due_date=now + _loan_period(),
            approved_by=approved_by,
        )

        # reserva atómica; sin stock la aprobación no procede
        if not book_store.decrement_available(req.book_id):
            db.session.rollback()
            current_app.logger.info(
                "LEDGER approve refused: no stock request_id=%s book_id=%s", req.id, req.book_id
            )
            raise Unavailable("Book is not available for borrowing", code="book_not_available")

    _compare_and_set(req, current, **values)
    db.session.commit()

    current_app.logger.info(
        "LEDGER %s request_id=%s book_id=%s by=%s",
        new_status.value, req.id, req.book_id, approved_by,
    )
    return _get_or_404(request_id)


# ---------- RETURN ----------
def return_book(request_id: int, notes: str | None = None) -> BorrowRequest:
    req = _get_or_404(request_id)

    if req.return_date is not None:
        raise Conflict("This book has already been returned", code="already_returned")

    if req.status != BorrowStatus.APPROVED:
        raise InvalidState("Only approved requests can be returned", code="not_approved")

    values = {"status": BorrowStatus.COMPLETED, "return_date": utcnow()}
    if notes is not None:
        values["notes"] = notes

    _compare_and_set(req, BorrowStatus.APPROVED, **values)

    if not book_store.increment_available(req.book_id):
        # el stock ya estaba completo (p. ej. total_stock editado a mano)
        current_app.logger.warning(
            "LEDGER return without stock increment: request_id=%s book_id=%s", req.id, req.book_id
        )

    db.session.commit()

    current_app.logger.info("LEDGER returned request_id=%s book_id=%s", req.id, req.book_id)
    return _get_or_404(request_id)


# ---------- CANCEL (SOCIO) ----------
def cancel_borrow_request(request_id: int, member_id: int) -> bool:
    # existencia y propiedad juntas: no revelamos solicitudes ajenas
    req = BorrowRequest.query.filter_by(id=request_id, member_id=member_id).first()
    if req is None:
        raise NotFound(
            "Borrow request not found or you do not have permission to cancel it",
            code="request_not_found",
        )

    if req.status != BorrowStatus.PENDING:
        raise InvalidState("Only pending requests can be cancelled", code="not_pending")

    _compare_and_set(
        req,
        BorrowStatus.PENDING,
        status=BorrowStatus.REJECTED,
        notes=CANCELLED_BY_MEMBER_NOTE,
    )
    db.session.commit()

    current_app.logger.info("LEDGER cancelled request_id=%s member_id=%s", req.id, member_id)
    return True
