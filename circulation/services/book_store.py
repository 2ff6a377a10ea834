from __future__ import annotations

from flask import current_app
from sqlalchemy import update, or_

from circulation.errors import Conflict, NotFound
from circulation.extensions import db
from circulation.models import Book, BookStatus, BorrowRequest
from .pagination import paginate


BOOK_FIELDS = (
    "title",
    "category",
    "author",
    "publisher",
    "publication_year",
    "page_count",
    "isbn",
    "total_stock",
    "shelf_location",
    "status",
    "description",
)


def find_by_id(book_id: int) -> Book | None:
    return db.session.get(Book, book_id)


# ---------- STOCK (contadores atómicos) ----------
def decrement_available(book_id: int) -> bool:
    """
    Reserva un ejemplar con un único UPDATE condicional (sin leer-y-escribir).
    Devuelve False si no quedaba stock. Las instancias en sesión se refrescan al commit.
    """
    stmt = (
        update(Book)
        .where(Book.id == book_id, Book.available_stock > 0)
        .values(available_stock=Book.available_stock - 1)
        .execution_options(synchronize_session=False)
    )
    return db.session.execute(stmt).rowcount == 1


def increment_available(book_id: int) -> bool:
    stmt = (
        update(Book)
        .where(Book.id == book_id, Book.available_stock < Book.total_stock)
        .values(available_stock=Book.available_stock + 1)
        .execution_options(synchronize_session=False)
    )
    return db.session.execute(stmt).rowcount == 1


def _resize_stock(book_id: int, new_total: int) -> None:
    # los préstamos en curso no cambian: el disponible se mueve lo mismo que el total,
    # calculado en la propia fila (no con los valores cargados en sesión)
    delta = new_total - Book.total_stock
    stmt = (
        update(Book)
        .where(Book.id == book_id, Book.available_stock + delta >= 0)
        .values(total_stock=new_total, available_stock=Book.available_stock + delta)
        .execution_options(synchronize_session=False)
    )
    if db.session.execute(stmt).rowcount != 1:
        db.session.rollback()
        raise Conflict(
            "total_stock cannot be lower than the number of copies currently on loan",
            code="stock_below_loans",
        )


# ---------- CRUD ----------
def create_book(fields: dict) -> Book:
    book = Book(
        title=fields["title"],
        category=fields["category"],
        author=fields["author"],
        publisher=fields["publisher"],
        publication_year=fields["publication_year"],
        page_count=fields["page_count"],
        isbn=fields.get("isbn"),
        total_stock=fields["total_stock"],
        available_stock=fields["total_stock"],  # al alta todo está disponible
        shelf_location=fields["shelf_location"],
        status=BookStatus.AVAILABLE,
        description=fields.get("description"),
    )
    db.session.add(book)
    db.session.commit()

    current_app.logger.info("BOOK created id=%s title=%r stock=%s", book.id, book.title, book.total_stock)
    return book


def update_book(book_id: int, fields: dict) -> Book:
    book = find_by_id(book_id)
    if book is None:
        raise NotFound("Book not found", code="book_not_found")

    if "total_stock" in fields:
        _resize_stock(book_id, fields["total_stock"])

    for name in BOOK_FIELDS:
        if name in fields and name != "total_stock":
            setattr(book, name, fields[name])

    db.session.commit()
    return book


def delete_book(book_id: int) -> bool:
    book = find_by_id(book_id)
    if book is None:
        return False

    # el historial de préstamos es permanente: un libro referenciado no se borra
    referenced = (
        db.session.query(BorrowRequest.id)
        .filter(BorrowRequest.book_id == book_id)
        .first()
        is not None
    )
    if referenced:
        raise Conflict("Cannot delete book with borrow requests", code="book_has_requests")

    db.session.delete(book)
    db.session.commit()

    current_app.logger.info("BOOK deleted id=%s", book_id)
    return True


# ---------- CATÁLOGO ----------
def search_books(
    *,
    query: str | None = None,
    category: str | None = None,
    author: str | None = None,
    status: BookStatus | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> dict:
    q = Book.query

    if query:
        like = f"%{query}%"
        q = q.filter(or_(Book.title.ilike(like), Book.author.ilike(like), Book.isbn.ilike(like)))

    if category:
        q = q.filter(Book.category == category)

    if author:
        q = q.filter(Book.author.ilike(f"%{author}%"))

    if status:
        q = q.filter(Book.status == status)

    q = q.order_by(Book.title.asc(), Book.id.asc())
    return paginate(q, page, limit, lambda b: b.to_dict())


def quick_search(query: str) -> list[Book]:
    like = f"%{query.strip()}%"
    return (
        Book.query
        .filter(or_(Book.title.ilike(like), Book.author.ilike(like), Book.isbn.ilike(like)))
        .order_by(Book.title.asc())
        .all()
    )


def books_by_category(category: str) -> list[Book]:
    return Book.query.filter_by(category=category).order_by(Book.title.asc()).all()


def list_categories() -> list[str]:
    rows = db.session.query(Book.category).distinct().order_by(Book.category.asc()).all()
    return [r[0] for r in rows]
