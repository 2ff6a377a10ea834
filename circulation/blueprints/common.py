from __future__ import annotations

from flask import request, abort


def json_body() -> dict:
    return request.get_json(silent=True) or {}


def parse_int(value, field: str, *, required: bool = False) -> int | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            abort(400, description=f"{field} is required")
        return None
    if isinstance(value, bool):
        abort(400, description=f"{field} must be int")
    try:
        return int(value)
    except (TypeError, ValueError):
        abort(400, description=f"{field} must be int")


def parse_enum(enum_cls, value, field: str):
    if value is None or value == "":
        return None
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        abort(400, description=f"Invalid {field}. Allowed: {', '.join(m.value for m in enum_cls)}")


def optional_text(data: dict, field: str) -> str | None:
    value = data.get(field)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def page_args() -> tuple[int | None, int | None]:
    return (
        parse_int(request.args.get("page"), "page"),
        parse_int(request.args.get("limit"), "limit"),
    )
