from circulation.extensions import db
from circulation.time_utils import utcnow, isoformat
from .enums import BookStatus, enum_column_type


class Book(db.Model):
    __tablename__ = "books"

    id = db.Column(db.Integer, primary_key=True)

    title = db.Column(db.String(200), nullable=False, index=True)
    category = db.Column(db.String(50), nullable=False, index=True)
    author = db.Column(db.String(100), nullable=False, index=True)
    publisher = db.Column(db.String(100), nullable=False)
    publication_year = db.Column(db.Integer, nullable=False)
    page_count = db.Column(db.Integer, nullable=False)
    isbn = db.Column(db.String(20), nullable=True, index=True)

    total_stock = db.Column(db.Integer, nullable=False)
    available_stock = db.Column(db.Integer, nullable=False)

    shelf_location = db.Column(db.String(50), nullable=False)
    status = db.Column(
        enum_column_type(BookStatus, db),
        nullable=False,
        default=BookStatus.AVAILABLE,
        index=True,
    )
    description = db.Column(db.Text)

    created_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utcnow
    )

    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utcnow,
        onupdate=utcnow
    )

    # la BD también vigila 0 <= available_stock <= total_stock
    __table_args__ = (
        db.CheckConstraint("total_stock >= 0", name="ck_books_total_stock_non_negative"),
        db.CheckConstraint("available_stock >= 0", name="ck_books_available_stock_non_negative"),
        db.CheckConstraint("available_stock <= total_stock", name="ck_books_available_le_total"),
    )

    @property
    def is_borrowable(self) -> bool:
        return self.status == BookStatus.AVAILABLE and (self.available_stock or 0) > 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category,
            "author": self.author,
            "publisher": self.publisher,
            "publication_year": self.publication_year,
            "page_count": self.page_count,
            "isbn": self.isbn,
            "total_stock": self.total_stock,
            "available_stock": self.available_stock,
            "shelf_location": self.shelf_location,
            "status": self.status.value if self.status else None,
            "description": self.description,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
