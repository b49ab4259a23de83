from __future__ import annotations

from flask import request
from flask_login import login_required

from blueprints.auth.routes import admin_required
from blueprints.core.responses import arg_int, created, ok, page_args, paginate

from . import bp, services
from .schemas import UnitIn, UnitOut, UnitUpdate, UnitWithCount


def _out(unit) -> dict:
    return UnitOut.model_validate(unit).dump()


@bp.get("/")
@login_required
def list_units():
    page, limit = page_args(default_limit=100)
    q = services.list_query(
        search=request.args.get("search"),
        credits=arg_int("credits"),
        min_credits=arg_int("minCredits"),
        max_credits=arg_int("maxCredits"),
    )
    return ok(paginate(q, _out, page=page, limit=limit), "Units retrieved successfully")


@bp.get("/search")
@login_required
def search_units():
    term = (request.args.get("q") or "").strip()
    if not term:
        return ok([], "Units retrieved successfully")
    limit = arg_int("limit") or 20
    return ok([_out(u) for u in services.search(term, limit)], "Units retrieved successfully")


@bp.get("/enrollment-counts")
@admin_required
def enrollment_counts():
    data = [
        UnitWithCount.model_validate(u).model_copy(update={"enrollment_count": n}).dump()
        for u, n in services.enrollment_counts()
    ]
    return ok(data, "Unit enrollment counts retrieved successfully")


@bp.get("/<int:unit_id>")
@login_required
def get_unit(unit_id: int):
    unit = services.get_unit(unit_id)
    data = UnitWithCount.model_validate(unit).model_copy(
        update={"enrollment_count": services.enrollment_count(unit.id)}
    )
    return ok(data.dump(), "Unit retrieved successfully")


@bp.post("/")
@admin_required
def create_unit():
    data = UnitIn.model_validate(request.get_json(silent=True) or {})
    return created(_out(services.create_unit(data)), "Unit created successfully")


@bp.put("/<int:unit_id>")
@admin_required
def update_unit(unit_id: int):
    data = UnitUpdate.model_validate(request.get_json(silent=True) or {})
    return ok(_out(services.update_unit(unit_id, data)), "Unit updated successfully")


@bp.delete("/<int:unit_id>")
@admin_required
def delete_unit(unit_id: int):
    services.delete_unit(unit_id)
    return ok(message="Unit deleted successfully")
