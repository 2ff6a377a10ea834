from circulation.extensions import db
from circulation.time_utils import utcnow, isoformat
from .enums import BorrowStatus, enum_column_type


class BorrowRequest(db.Model):
    __tablename__ = "borrow_requests"

    id = db.Column(db.Integer, primary_key=True)

    member_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id"),
        nullable=False,
        index=True
    )

    book_id = db.Column(
        db.Integer,
        db.ForeignKey("books.id"),
        nullable=False,
        index=True
    )

    request_date = db.Column(db.DateTime, nullable=False, default=utcnow)
    approved_date = db.Column(db.DateTime, nullable=True)
    due_date = db.Column(db.DateTime, nullable=True, index=True)
    return_date = db.Column(db.DateTime, nullable=True)

    status = db.Column(
        enum_column_type(BorrowStatus, db),
        nullable=False,
        default=BorrowStatus.PENDING,
        index=True,
    )
    # pending | approved | rejected | completed

    notes = db.Column(db.Text, nullable=True)

    approved_by = db.Column(
        db.Integer,
        db.ForeignKey("users.id"),
        nullable=True,
    )

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

    member = db.relationship("User", foreign_keys=[member_id], backref="borrow_requests")
    book = db.relationship("Book", backref="borrow_requests")
    approver = db.relationship("User", foreign_keys=[approved_by], backref="approved_requests")

    __table_args__ = (
        # una sola solicitud activa (pending/approved) por socio y libro
        db.Index(
            "uq_borrow_requests_active_member_book",
            "member_id",
            "book_id",
            unique=True,
            sqlite_where=db.text("status IN ('pending', 'approved')"),
            postgresql_where=db.text("status IN ('pending', 'approved')"),
        ),
    )

    def to_dict(self, with_details: bool = False) -> dict:
        data = {
            "id": self.id,
            "member_id": self.member_id,
            "book_id": self.book_id,
            "request_date": isoformat(self.request_date),
            "approved_date": isoformat(self.approved_date),
            "due_date": isoformat(self.due_date),
            "return_date": isoformat(self.return_date),
            "status": self.status.value if self.status else None,
            "notes": self.notes,
            "approved_by": self.approved_by,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
        if with_details:
            data["member"] = self.member.to_dict() if self.member else None
            data["book"] = self.book.to_dict() if self.book else None
            data["approver"] = self.approver.to_dict() if self.approver else None
        return data
