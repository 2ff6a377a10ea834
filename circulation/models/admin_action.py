from circulation.extensions import db
from circulation.time_utils import utcnow, isoformat


class AdminAction(db.Model):
    __tablename__ = "admin_actions"

    id = db.Column(db.Integer, primary_key=True)

    # Quién hizo la acción (admin)
    admin_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    admin = db.relationship("User", backref=db.backref("admin_actions", lazy="dynamic"))

    # Qué hizo
    action = db.Column(db.String(80), nullable=False, index=True)
    # Sobre qué entidad
    target_type = db.Column(db.String(30), nullable=False)  # "user" | "book" | "borrow_request"
    target_id = db.Column(db.Integer, nullable=True)

    # Contexto de la request
    ip_address = db.Column(db.String(45), nullable=True)  # IPv4/IPv6
    user_agent = db.Column(db.String(255), nullable=True)
    endpoint = db.Column(db.String(120), nullable=True, index=True)
    method = db.Column(db.String(10), nullable=True)
    path = db.Column(db.String(255), nullable=True)
    details = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    __table_args__ = (
        db.Index("ix_admin_actions_target", "target_type", "target_id"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "admin_id": self.admin_id,
            "action": self.action,
            "target_type": self.target_type,
            "target_id": self.target_id,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "endpoint": self.endpoint,
            "method": self.method,
            "path": self.path,
            "details": self.details,
            "created_at": isoformat(self.created_at),
        }

    class Actions:
        BORROW_APPROVE = "borrow_request.approve"
        BORROW_REJECT = "borrow_request.reject"
        BORROW_RETURN = "borrow_request.return"

        BOOK_CREATE = "book.create"
        BOOK_UPDATE = "book.update"
        BOOK_DELETE = "book.delete"

        USER_CREATE = "user.create"
        USER_UPDATE = "user.update"
        USER_DELETE = "user.delete"
