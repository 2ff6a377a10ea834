import os
import sys

# Ensure project root is on PYTHONPATH
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest
from sqlalchemy.pool import StaticPool

from circulation.extensions import db
from circulation.models import Book, BookStatus, BorrowRequest, BorrowStatus, User, UserRole


@pytest.fixture()
def app():
    from circulation import create_app

    config_overrides = {
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "SQLALCHEMY_ENGINE_OPTIONS": {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        },
        "SQLALCHEMY_TRACK_MODIFICATIONS": False,
        "SECRET_KEY": "test-secret",
    }

    # ✅ IMPORTANT: pass overrides INTO create_app
    app = create_app(config_overrides=config_overrides)

    with app.app_context():
        db.drop_all()
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


def ensure_user(user_id: int, role: str = "member", password: str = "test1234"):
    user = db.session.get(User, user_id)
    if user is None:
        user = User(
            id=user_id,
            username=f"user{user_id}",
            full_name=f"User {user_id}",
            role=UserRole(role),
            member_number=f"M{user_id:03d}" if role == "member" else None,
        )
        user.set_password(password)
        db.session.add(user)
    else:
        user.role = UserRole(role)
    db.session.commit()
    return user


def ensure_book(
    total_stock: int = 1,
    available_stock: int | None = None,
    status: BookStatus = BookStatus.AVAILABLE,
    title: str = "Laskar Pelangi",
    category: str = "Novel",
    author: str = "Andrea Hirata",
):
    book = Book(
        title=title,
        category=category,
        author=author,
        publisher="Bentang Pustaka",
        publication_year=2005,
        page_count=529,
        isbn=None,
        total_stock=total_stock,
        available_stock=total_stock if available_stock is None else available_stock,
        shelf_location="A-1",
        status=status,
    )
    db.session.add(book)
    db.session.commit()
    return book


def add_request(member_id: int, book_id: int, status: BorrowStatus = BorrowStatus.PENDING, **fields):
    """Inserta una solicitud tal cual (sin pasar por el ledger)."""
    req = BorrowRequest(member_id=member_id, book_id=book_id, status=status, **fields)
    db.session.add(req)
    db.session.commit()
    return req


def login_session(client, user_id=1, role="member"):
    ensure_user(user_id, role=role)
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["role"] = role
