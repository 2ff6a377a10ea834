"""Initial circulation schema: users, books, borrow requests, audit

Revision ID: 4f1c2a9d7e31
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "4f1c2a9d7e31"
down_revision = None
branch_labels = None
depends_on = None

ACTIVE_STATUSES = sa.text("status IN ('pending', 'approved')")


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("member_number", sa.String(length=20), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("member_number"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "books",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("category", sa.String(length=50), nullable=False),
        sa.Column("author", sa.String(length=100), nullable=False),
        sa.Column("publisher", sa.String(length=100), nullable=False),
        sa.Column("publication_year", sa.Integer(), nullable=False),
        sa.Column("page_count", sa.Integer(), nullable=False),
        sa.Column("isbn", sa.String(length=20), nullable=True),
        sa.Column("total_stock", sa.Integer(), nullable=False),
        sa.Column("available_stock", sa.Integer(), nullable=False),
        sa.Column("shelf_location", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("total_stock >= 0", name="ck_books_total_stock_non_negative"),
        sa.CheckConstraint("available_stock >= 0", name="ck_books_available_stock_non_negative"),
        sa.CheckConstraint("available_stock <= total_stock", name="ck_books_available_le_total"),
    )
    op.create_index("ix_books_title", "books", ["title"])
    op.create_index("ix_books_category", "books", ["category"])
    op.create_index("ix_books_author", "books", ["author"])
    op.create_index("ix_books_isbn", "books", ["isbn"])
    op.create_index("ix_books_status", "books", ["status"])

    op.create_table(
        "borrow_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("member_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("book_id", sa.Integer(), sa.ForeignKey("books.id"), nullable=False),
        sa.Column("request_date", sa.DateTime(), nullable=False),
        sa.Column("approved_date", sa.DateTime(), nullable=True),
        sa.Column("due_date", sa.DateTime(), nullable=True),
        sa.Column("return_date", sa.DateTime(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("approved_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_borrow_requests_member_id", "borrow_requests", ["member_id"])
    op.create_index("ix_borrow_requests_book_id", "borrow_requests", ["book_id"])
    op.create_index("ix_borrow_requests_status", "borrow_requests", ["status"])
    op.create_index("ix_borrow_requests_due_date", "borrow_requests", ["due_date"])
    op.create_index(
        "uq_borrow_requests_active_member_book",
        "borrow_requests",
        ["member_id", "book_id"],
        unique=True,
        sqlite_where=ACTIVE_STATUSES,
        postgresql_where=ACTIVE_STATUSES,
    )

    op.create_table(
        "admin_actions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("admin_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("target_type", sa.String(length=30), nullable=False),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.Column("user_agent", sa.String(length=255), nullable=True),
        sa.Column("endpoint", sa.String(length=120), nullable=True),
        sa.Column("method", sa.String(length=10), nullable=True),
        sa.Column("path", sa.String(length=255), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_admin_actions_admin_id", "admin_actions", ["admin_id"])
    op.create_index("ix_admin_actions_action", "admin_actions", ["action"])
    op.create_index("ix_admin_actions_endpoint", "admin_actions", ["endpoint"])
    op.create_index("ix_admin_actions_created_at", "admin_actions", ["created_at"])
    op.create_index("ix_admin_actions_target", "admin_actions", ["target_type", "target_id"])

    op.create_table(
        "security_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("event_type", sa.String(length=32), nullable=False),
        sa.Column("status_code", sa.Integer(), nullable=False),
        sa.Column("endpoint", sa.String(length=128), nullable=True),
        sa.Column("blueprint", sa.String(length=64), nullable=True),
        sa.Column("method", sa.String(length=10), nullable=True),
        sa.Column("path", sa.String(length=255), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("role", sa.String(length=32), nullable=True),
        sa.Column("ip", sa.String(length=64), nullable=True),
        sa.Column("details", sa.Text(), nullable=True),
    )
    for column in ("created_at", "event_type", "status_code", "endpoint", "blueprint", "user_id", "role", "ip"):
        op.create_index(f"ix_security_events_{column}", "security_events", [column])


def downgrade():
    op.drop_table("security_events")
    op.drop_table("admin_actions")
    op.drop_index("uq_borrow_requests_active_member_book", table_name="borrow_requests")
    op.drop_table("borrow_requests")
    op.drop_table("books")
    op.drop_table("users")
