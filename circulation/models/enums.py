"""
Enums usados por los modelos (se guardan como su `value` en minúsculas).
"""

import enum


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    MEMBER = "member"


class BookStatus(str, enum.Enum):
    AVAILABLE = "available"
    BORROWED = "borrowed"
    DAMAGED = "damaged"
    LOST = "lost"


class BorrowStatus(str, enum.Enum):
    """
    Flujo:
        PENDING -> APPROVED -> COMPLETED
        PENDING -> REJECTED (rechazo del admin o cancelación del socio)
    """
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"

    @property
    def is_terminal(self) -> bool:
        return self in (BorrowStatus.REJECTED, BorrowStatus.COMPLETED)

    def can_transition_to(self, target: "BorrowStatus") -> bool:
        return target in BORROW_TRANSITIONS[self]


BORROW_TRANSITIONS: dict[BorrowStatus, frozenset[BorrowStatus]] = {
    BorrowStatus.PENDING: frozenset({BorrowStatus.APPROVED, BorrowStatus.REJECTED}),
    BorrowStatus.APPROVED: frozenset({BorrowStatus.COMPLETED}),
    BorrowStatus.REJECTED: frozenset(),
    BorrowStatus.COMPLETED: frozenset(),
}

ACTIVE_BORROW_STATUSES = (BorrowStatus.PENDING, BorrowStatus.APPROVED)


def enum_column_type(enum_cls, db):
    # guarda el value ("pending") y no el nombre ("PENDING"), sin ENUM nativo
    return db.Enum(
        enum_cls,
        native_enum=False,
        values_callable=lambda e: [m.value for m in e],
        validate_strings=True,
        length=20,
    )
