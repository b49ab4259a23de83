from __future__ import annotations

from flask import request
from flask_login import login_required

from blueprints.auth.routes import admin_required
from blueprints.core.responses import created, ok, page_args, paginate

from . import bp, services
from .schemas import SemesterIn, SemesterUpdate, semester_out


@bp.get("/")
@login_required
def list_semesters():
    page, limit = page_args(default_limit=10)
    q = services.list_query(request.args.get("search"))
    return ok(paginate(q, semester_out, page=page, limit=limit), "Semesters retrieved successfully")


@bp.get("/active")
@login_required
def active_semester():
    return ok(semester_out(services.active_semester()), "Active semester retrieved successfully")


@bp.get("/<int:semester_id>")
@login_required
def get_semester(semester_id: int):
    semester = services.get_semester(semester_id)
    return ok(semester_out(semester, services.enrollment_count(semester.id)), "Semester retrieved successfully")


@bp.post("/")
@admin_required
def create_semester():
    data = SemesterIn.model_validate(request.get_json(silent=True) or {})
    return created(semester_out(services.create_semester(data)), "Semester created successfully")


@bp.put("/<int:semester_id>")
@admin_required
def update_semester(semester_id: int):
    data = SemesterUpdate.model_validate(request.get_json(silent=True) or {})
    return ok(semester_out(services.update_semester(semester_id, data)), "Semester updated successfully")


@bp.delete("/<int:semester_id>")
@admin_required
def delete_semester(semester_id: int):
    services.delete_semester(semester_id)
    return ok(message="Semester deleted successfully")
