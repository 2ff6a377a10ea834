import pytest
from sqlalchemy.exc import IntegrityError

from circulation.errors import Conflict, NotFound, Unavailable
from circulation.extensions import db
from circulation.models import BookStatus, BorrowRequest, BorrowStatus
from circulation.services import loan_ledger
from tests.conftest import add_request, ensure_book, ensure_user


def test_create_request_is_pending_and_keeps_stock(app):
    member = ensure_user(1)
    book = ensure_book(total_stock=2)

    req = loan_ledger.create_borrow_request(member.id, book.id, "for my thesis")

    assert req.id is not None
    assert req.status == BorrowStatus.PENDING
    assert req.notes == "for my thesis"
    assert req.request_date is not None
    assert req.approved_date is None
    assert req.due_date is None
    assert req.return_date is None
    assert req.approved_by is None

    # el stock se reserva al aprobar, no al solicitar
    assert book.available_stock == 2


def test_create_request_missing_book(app):
    ensure_user(1)

    with pytest.raises(NotFound) as exc:
        loan_ledger.create_borrow_request(1, 999, None)

    assert exc.value.code == "book_not_found"
    assert "book not found" in exc.value.message.lower()


def test_create_request_without_stock_is_unavailable_and_creates_nothing(app):
    ensure_user(1)
    book = ensure_book(total_stock=1, available_stock=0)

    with pytest.raises(Unavailable):
        loan_ledger.create_borrow_request(1, book.id, None)

    assert BorrowRequest.query.count() == 0


@pytest.mark.parametrize("status", [BookStatus.DAMAGED, BookStatus.LOST, BookStatus.BORROWED])
def test_create_request_book_wrong_status(app, status):
    ensure_user(1)
    book = ensure_book(total_stock=3, status=status)

    with pytest.raises(Unavailable):
        loan_ledger.create_borrow_request(1, book.id, None)


def test_book_checked_before_member(app):
    # libro sin stock + socio inexistente -> gana el primer chequeo
    book = ensure_book(total_stock=1, available_stock=0)

    with pytest.raises(Unavailable):
        loan_ledger.create_borrow_request(404, book.id, None)


def test_create_request_missing_member(app):
    book = ensure_book()

    with pytest.raises(NotFound) as exc:
        loan_ledger.create_borrow_request(404, book.id, None)

    assert exc.value.code == "member_not_found"


def test_admin_cannot_be_the_borrower(app):
    ensure_user(5, role="admin")
    book = ensure_book()

    with pytest.raises(NotFound) as exc:
        loan_ledger.create_borrow_request(5, book.id, None)

    assert exc.value.code == "member_not_found"


@pytest.mark.parametrize("first_status", [BorrowStatus.PENDING, BorrowStatus.APPROVED])
def test_second_active_request_same_pair_conflicts(app, first_status):
    ensure_user(1)
    book = ensure_book(total_stock=3)
    add_request(1, book.id, status=first_status)

    with pytest.raises(Conflict) as exc:
        loan_ledger.create_borrow_request(1, book.id, None)

    assert exc.value.code == "active_request_exists"
    assert BorrowRequest.query.count() == 1


@pytest.mark.parametrize("first_status", [BorrowStatus.REJECTED, BorrowStatus.COMPLETED])
def test_terminal_request_allows_a_new_one(app, first_status):
    ensure_user(1)
    book = ensure_book(total_stock=3)
    add_request(1, book.id, status=first_status)

    req = loan_ledger.create_borrow_request(1, book.id, None)

    assert req.status == BorrowStatus.PENDING
    assert BorrowRequest.query.count() == 2


def test_other_member_can_request_same_book(app):
    ensure_user(1)
    ensure_user(2)
    book = ensure_book(total_stock=1)

    loan_ledger.create_borrow_request(1, book.id, None)
    loan_ledger.create_borrow_request(2, book.id, None)

    assert BorrowRequest.query.filter_by(book_id=book.id).count() == 2


def test_store_rejects_duplicate_active_pair(app):
    # la garantía no depende solo del pre-chequeo: el índice único parcial también
    ensure_user(1)
    book = ensure_book(total_stock=3)
    add_request(1, book.id, status=BorrowStatus.PENDING)

    db.session.add(BorrowRequest(member_id=1, book_id=book.id, status=BorrowStatus.APPROVED))
    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()

    assert BorrowRequest.query.count() == 1


def test_insert_race_on_active_pair_becomes_conflict(app, monkeypatch):
    # simula una carrera: el pre-chequeo no ve la fila activa y el índice salta al commit
    ensure_user(1)
    book = ensure_book(total_stock=3)
    other = ensure_book(title="Sang Pemimpi")
    add_request(1, book.id, status=BorrowStatus.PENDING)

    monkeypatch.setattr(loan_ledger, "ACTIVE_BORROW_STATUSES", ())

    with pytest.raises(Conflict) as exc:
        loan_ledger.create_borrow_request(1, book.id, None)

    assert exc.value.code == "active_request_exists"
    assert BorrowRequest.query.filter_by(member_id=1, book_id=book.id).count() == 1

    # la sesión quedó usable tras el rollback
    monkeypatch.undo()
    req = loan_ledger.create_borrow_request(1, other.id, None)
    assert req.status == BorrowStatus.PENDING
    assert BorrowRequest.query.count() == 2
