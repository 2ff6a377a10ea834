from werkzeug.security import generate_password_hash, check_password_hash

from circulation.extensions import db
from circulation.time_utils import utcnow, isoformat
from .enums import UserRole, enum_column_type


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), unique=True, nullable=False, index=True)

    password_hash = db.Column(db.String(255), nullable=False)

    full_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(50), nullable=True)
    address = db.Column(db.Text, nullable=True)

    role = db.Column(enum_column_type(UserRole, db), nullable=False, default=UserRole.MEMBER, index=True)

    # solo socios: MEMBER001, MEMBER002...
    member_number = db.Column(db.String(20), unique=True, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # 🔐 helpers de password
    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def to_dict(self) -> dict:
        # nunca exponemos password_hash
        return {
            "id": self.id,
            "username": self.username,
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "role": self.role.value if self.role else None,
            "member_number": self.member_number,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
