from __future__ import annotations
from math import ceil
from typing import Any, Callable

from flask import current_app, jsonify, request
from sqlalchemy.orm import Query

from errors import AppError


def ok(data: Any = None, message: str = "OK", status: int = 200, **extra):
    payload = {"success": True, "message": message}
    if data is not None:
        payload["data"] = data
    payload.update(extra)
    return jsonify(payload), status


def created(data: Any, message: str = "Created"):
    return ok(data, message, status=201)


def page_args(default_limit: int | None = None) -> tuple[int, int]:
    """Read ``page`` / ``limit`` from the query string, clamped to sane values."""
    default_limit = default_limit or current_app.config.get("DEFAULT_PAGE_SIZE", 20)
    max_limit = current_app.config.get("MAX_PAGE_SIZE", 100)
    try:
        page = int(request.args.get("page", 1))
    except ValueError:
        page = 1
    try:
        limit = int(request.args.get("limit", default_limit))
    except ValueError:
        limit = default_limit
    return max(page, 1), min(max(limit, 1), max(max_limit, default_limit))


def paginate(query: Query, serializer: Callable[[Any], dict], *, page: int, limit: int) -> dict:
    total = query.order_by(None).count()
    rows = query.offset((page - 1) * limit).limit(limit).all()
    total_pages = ceil(total / limit) if limit else 0
    return {
        "items": [serializer(r) for r in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": total_pages,
            "hasNext": page < total_pages,
            "hasPrev": page > 1,
        },
    }


def arg_int(name: str) -> int | None:
    raw = request.args.get(name)
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except ValueError:
        raise AppError(f"Query parameter '{name}' must be an integer")


def arg_bool(name: str) -> bool | None:
    raw = request.args.get(name)
    if raw in (None, ""):
        return None
    return raw.strip().lower() in ("1", "true", "yes", "on")
