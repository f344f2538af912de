# sportstore/utils/pagination.py
from flask import current_app, request
from sqlalchemy import asc, desc

from .parsing import parse_int


def page_args():
    """Read `page` / `limit` from the query string, clamped to config."""
    default = current_app.config.get("DEFAULT_PAGE_SIZE", 10)
    cap = current_app.config.get("MAX_PAGE_SIZE", 100)
    page = max(parse_int(request.args.get("page"), 1), 1)
    limit = min(max(parse_int(request.args.get("limit"), default), 1), cap)
    return page, limit


def paginate(query, page, limit):
    items = query.paginate(page=page, per_page=limit, error_out=False)
    return items.items, {
        "total": items.total,
        "page": items.page,
        "limit": limit,
        "totalPages": items.pages or 1,
    }


def apply_sort(query, columns: dict, sort, order, default):
    col = columns.get((sort or "").strip())
    if col is None:
        return query.order_by(default)
    return query.order_by(asc(col) if (order or "").lower() == "asc" else desc(col))
