from .enums import UserRole, BookStatus, BorrowStatus
from .user import User
from .book import Book
from .borrow_request import BorrowRequest
from .admin_action import AdminAction
from .security_event import SecurityEvent  # noqa: F401


__all__ = [
    "User",
    "Book",
    "BorrowRequest",
    "AdminAction",
    "UserRole",
    "BookStatus",
    "BorrowStatus",
]
