"""
Agregaciones de solo lectura para el dashboard (sin lógica propia).
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import func

from circulation.extensions import db
from circulation.models import Book, BookStatus, BorrowRequest, BorrowStatus, User, UserRole
from circulation.time_utils import utcnow, isoformat


RECENT_ACTIVITY_LIMIT = 10
POPULAR_BOOKS_LIMIT = 5
ANALYTICS_MONTHS = 6


def dashboard_stats() -> dict:
    total_books = db.session.query(func.count(Book.id)).scalar() or 0

    total_members = (
        db.session.query(func.count(User.id))
        .filter(User.role == UserRole.MEMBER)
        .scalar()
        or 0
    )

    total_borrowed = (
        db.session.query(func.count(BorrowRequest.id))
        .filter(
            BorrowRequest.status == BorrowStatus.APPROVED,
            BorrowRequest.return_date.is_(None),
        )
        .scalar()
        or 0
    )

    pending_requests = (
        db.session.query(func.count(BorrowRequest.id))
        .filter(BorrowRequest.status == BorrowStatus.PENDING)
        .scalar()
        or 0
    )

    overdue_books = (
        db.session.query(func.count(BorrowRequest.id))
        .filter(
            BorrowRequest.status == BorrowStatus.APPROVED,
            BorrowRequest.return_date.is_(None),
            BorrowRequest.due_date < utcnow(),
        )
        .scalar()
        or 0
    )

    available_books = (
        db.session.query(func.coalesce(func.sum(Book.available_stock), 0))
        .filter(Book.status == BookStatus.AVAILABLE)
        .scalar()
    )

    return {
        "total_books": int(total_books),
        "total_members": int(total_members),
        "total_borrowed": int(total_borrowed),
        "pending_requests": int(pending_requests),
        "overdue_books": int(overdue_books),
        "available_books": int(available_books or 0),
    }


def recent_activities(limit: int = RECENT_ACTIVITY_LIMIT) -> list[dict]:
    rows = (
        db.session.query(BorrowRequest, User.full_name, Book.title)
        .join(User, BorrowRequest.member_id == User.id)
        .join(Book, BorrowRequest.book_id == Book.id)
        .order_by(BorrowRequest.created_at.desc(), BorrowRequest.id.desc())
        .limit(limit)
        .all()
    )

    return [
        {
            "id": req.id,
            "type": "borrow_request",
            "member_name": member_name,
            "book_title": book_title,
            "status": req.status.value,
            "created_at": isoformat(req.created_at),
            "request_date": isoformat(req.request_date),
            "return_date": isoformat(req.return_date),
        }
        for req, member_name, book_title in rows
    ]


def popular_books(limit: int = POPULAR_BOOKS_LIMIT) -> list[dict]:
    # cuenta préstamos que llegaron a aprobarse (approved_date solo existe si se aprobó)
    borrow_count = func.count(BorrowRequest.id).label("borrow_count")

    rows = (
        db.session.query(Book.id, Book.title, Book.author, Book.category, borrow_count)
        .join(BorrowRequest, BorrowRequest.book_id == Book.id)
        .filter(BorrowRequest.approved_date.isnot(None))
        .group_by(Book.id, Book.title, Book.author, Book.category)
        .order_by(borrow_count.desc(), Book.id.asc())
        .limit(limit)
        .all()
    )

    return [
        {
            "book_id": book_id,
            "title": title,
            "author": author,
            "category": category,
            "borrow_count": int(count),
        }
        for book_id, title, author, category, count in rows
    ]


def usage_analytics(months: int = ANALYTICS_MONTHS) -> list[dict]:
    """
    Totales por mes (YYYY-MM) de los últimos `months` meses.

    Se agrupa en Python para no depender de to_char/strftime según el motor.
    """
    now = utcnow()
    # primer día del mes de hace `months` meses
    year, month0 = divmod(now.year * 12 + (now.month - 1) - months, 12)
    since = datetime(year, month0 + 1, 1)

    rows = (
        db.session.query(BorrowRequest.created_at, BorrowRequest.status)
        .filter(BorrowRequest.created_at >= since)
        .all()
    )

    buckets: dict[str, dict] = {}
    for created_at, status in rows:
        month = created_at.strftime("%Y-%m")
        bucket = buckets.setdefault(
            month,
            {"month": month, "total_requests": 0, "approved_requests": 0, "completed_requests": 0},
        )
        bucket["total_requests"] += 1
        if status == BorrowStatus.APPROVED:
            bucket["approved_requests"] += 1
        elif status == BorrowStatus.COMPLETED:
            bucket["completed_requests"] += 1

    return [buckets[m] for m in sorted(buckets)]
