from __future__ import annotations

from flask import current_app


def clamp_page(page: int | None, limit: int | None) -> tuple[int, int]:
    default_limit = current_app.config.get("DEFAULT_PAGE_SIZE", 10)
    max_limit = current_app.config.get("MAX_PAGE_SIZE", 100)

    page_n = max(1, int(page or 1))
    limit_n = default_limit if limit is None else int(limit)
    limit_n = max(1, min(limit_n, max_limit))
    return page_n, limit_n


def paginate(query, page: int | None, limit: int | None, serialize) -> dict:
    """
    Pagina una query ya ordenada. Página vacía no es error.
    """
    page_n, limit_n = clamp_page(page, limit)

    total = query.count()
    total_pages = (total + limit_n - 1) // limit_n

    items = query.offset((page_n - 1) * limit_n).limit(limit_n).all()

    return {
        "data": [serialize(item) for item in items],
        "pagination": {
            "page": page_n,
            "limit": limit_n,
            "total": total,
            "total_pages": total_pages,
        },
    }
