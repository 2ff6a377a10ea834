from flask import Blueprint, jsonify, request, abort

from ...models import AdminAction, BookStatus
from ...services import book_store
from ...services.admin_audit import log_admin_action
from ...time_utils import utcnow
from ..auth.decorators import login_required, role_required, current_user_id
from ..common import json_body, parse_int, parse_enum, optional_text, page_args

bp = Blueprint("books", __name__, url_prefix="/books")

REQUIRED_TEXT = ("title", "category", "author", "publisher", "shelf_location")
REQUIRED_INT = ("publication_year", "page_count", "total_stock")


def _validate_numbers(fields: dict) -> None:
    year = fields.get("publication_year")
    if year is not None and not (1000 <= year <= utcnow().year):
        abort(400, description="publication_year out of range")

    if fields.get("page_count") is not None and fields["page_count"] <= 0:
        abort(400, description="page_count must be positive")

    if fields.get("total_stock") is not None and fields["total_stock"] <= 0:
        abort(400, description="total_stock must be positive")


@bp.get("/")
@login_required
def list_books():
    page, limit = page_args()
    result = book_store.search_books(
        query=(request.args.get("q") or "").strip() or None,
        category=(request.args.get("category") or "").strip() or None,
        author=(request.args.get("author") or "").strip() or None,
        status=parse_enum(BookStatus, request.args.get("status"), "status"),
        page=page,
        limit=limit,
    )
    return jsonify(result), 200


@bp.get("/search")
@login_required
def search_books():
    q = (request.args.get("q") or "").strip()
    if not q:
        return jsonify(error="missing_fields", required=["q"]), 400
    return jsonify(items=[b.to_dict() for b in book_store.quick_search(q)]), 200


@bp.get("/categories")
@login_required
def list_categories():
    return jsonify(items=book_store.list_categories()), 200


@bp.get("/categories/<string:category>")
@login_required
def books_by_category(category: str):
    return jsonify(items=[b.to_dict() for b in book_store.books_by_category(category)]), 200


@bp.get("/<int:book_id>")
@login_required
def get_book(book_id: int):
    book = book_store.find_by_id(book_id)
    if not book:
        return jsonify(error="book_not_found"), 404
    return jsonify(book.to_dict()), 200


@bp.post("/")
@login_required
@role_required("admin")
def create_book():
    data = json_body()

    missing = [f for f in REQUIRED_TEXT if not str(data.get(f) or "").strip()]
    missing += [f for f in REQUIRED_INT if data.get(f) is None]
    if missing:
        return jsonify(
            error="missing_fields",
            required=list(REQUIRED_TEXT + REQUIRED_INT)
        ), 400

    fields = {f: str(data[f]).strip() for f in REQUIRED_TEXT}
    fields.update({f: parse_int(data[f], f, required=True) for f in REQUIRED_INT})
    fields["isbn"] = optional_text(data, "isbn")
    fields["description"] = optional_text(data, "description")
    _validate_numbers(fields)

    book = book_store.create_book(fields)

    log_admin_action(
        admin_id=current_user_id(),
        action=AdminAction.Actions.BOOK_CREATE,
        target_type="book",
        target_id=book.id,
    )

    return jsonify(book.to_dict()), 201


@bp.patch("/<int:book_id>")
@login_required
@role_required("admin")
def update_book(book_id: int):
    data = json_body()
    fields = {}

    for f in REQUIRED_TEXT:
        if f in data:
            value = str(data.get(f) or "").strip()
            if not value:
                abort(400, description=f"{f} cannot be empty")
            fields[f] = value

    for f in REQUIRED_INT:
        if f in data:
            fields[f] = parse_int(data.get(f), f, required=True)

    for f in ("isbn", "description"):
        if f in data:
            fields[f] = optional_text(data, f)

    if "status" in data:
        fields["status"] = parse_enum(BookStatus, data.get("status"), "status")
        if fields["status"] is None:
            abort(400, description="status cannot be empty")

    _validate_numbers(fields)

    book = book_store.update_book(book_id, fields)

    log_admin_action(
        admin_id=current_user_id(),
        action=AdminAction.Actions.BOOK_UPDATE,
        target_type="book",
        target_id=book.id,
        details={"fields": sorted(fields)},
    )

    return jsonify(book.to_dict()), 200


@bp.delete("/<int:book_id>")
@login_required
@role_required("admin")
def delete_book(book_id: int):
    if not book_store.delete_book(book_id):
        return jsonify(error="book_not_found"), 404

    log_admin_action(
        admin_id=current_user_id(),
        action=AdminAction.Actions.BOOK_DELETE,
        target_type="book",
        target_id=book_id,
    )

    return jsonify(message="deleted", id=book_id), 200
