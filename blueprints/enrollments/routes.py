from __future__ import annotations

from flask import request
from flask_login import login_required

from blueprints.auth.routes import me, staff_required, student_required
from blueprints.core.responses import arg_int, created, ok, page_args, paginate
from errors import Forbidden
from models import Role

from . import bp, services
from .schemas import EnrollmentIn, EnrollmentUpdate, MyEnrollmentIn, enrollment_out


def _json() -> dict:
    return request.get_json(silent=True) or {}


# ---------- staff ----------
@bp.get("/")
@staff_required
def list_enrollments():
    page, limit = page_args()
    q = services.list_query(
        student_profile_id=arg_int("studentProfileId"),
        unit_id=arg_int("unitId"),
        semester_id=arg_int("semesterId"),
        search=request.args.get("search"),
    )
    return ok(paginate(q, enrollment_out, page=page, limit=limit), "Enrollments retrieved successfully")


@bp.post("/")
@staff_required
def create_enrollment():
    data = EnrollmentIn.model_validate(_json())
    enrollment = services.create_enrollment(
        data.student_profile_id, data.unit_id, data.semester_id,
        availability_ids=data.availability_ids,
        schedule_slots=data.schedule_slots,
    )
    return created(enrollment_out(enrollment), "Enrollment created successfully")


@bp.put("/<int:enrollment_id>")
@staff_required
def update_enrollment(enrollment_id: int):
    data = EnrollmentUpdate.model_validate(_json())
    enrollment = services.update_enrollment(
        services.get_enrollment(enrollment_id),
        availability_ids=data.availability_ids,
        schedule_slots=data.schedule_slots,
        status=data.status,
    )
    return ok(enrollment_out(enrollment), "Enrollment updated successfully")


@bp.delete("/<int:enrollment_id>")
@staff_required
def delete_enrollment(enrollment_id: int):
    services.delete_enrollment(services.get_enrollment(enrollment_id))
    return ok(message="Enrollment deleted successfully")


@bp.get("/student/<int:student_profile_id>")
@staff_required
def by_student(student_profile_id: int):
    rows = services.for_student(student_profile_id, arg_int("semesterId"))
    return ok([enrollment_out(e) for e in rows], "Student enrollments retrieved successfully")


@bp.get("/unit/<int:unit_id>")
@staff_required
def by_unit(unit_id: int):
    rows = services.for_unit(unit_id, arg_int("semesterId"))
    return ok([enrollment_out(e) for e in rows], "Unit enrollments retrieved successfully")


@bp.get("/semester/<int:semester_id>")
@staff_required
def by_semester(semester_id: int):
    rows = services.for_semester(semester_id)
    return ok([enrollment_out(e) for e in rows], "Semester enrollments retrieved successfully")


# ---------- any authenticated user ----------
@bp.get("/<int:enrollment_id>")
@login_required
def get_enrollment(enrollment_id: int):
    enrollment = services.get_enrollment(enrollment_id)
    user = me()
    if user.role == Role.STUDENT.value:
        profile = services.profile_for_user(user)
        if enrollment.student_profile_id != profile.id:
            raise Forbidden("You can only view your own enrollments")
    return ok(enrollment_out(enrollment), "Enrollment retrieved successfully")


# ---------- the calling student ----------
@bp.get("/my-enrollments")
@student_required
def my_enrollments():
    profile = services.profile_for_user(me())
    rows = services.for_student(profile.id, arg_int("semesterId"))
    return ok([enrollment_out(e) for e in rows], "Your enrollments retrieved successfully")


@bp.post("/my-enrollments")
@student_required
def create_my_enrollment():
    profile = services.profile_for_user(me())
    data = MyEnrollmentIn.model_validate(_json())
    enrollment = services.create_enrollment(
        profile.id, data.unit_id, data.semester_id,
        availability_ids=data.availability_ids,
        schedule_slots=data.schedule_slots,
    )
    return created(enrollment_out(enrollment), "Enrollment created successfully")


@bp.put("/my-enrollments/<int:enrollment_id>")
@student_required
def update_my_enrollment(enrollment_id: int):
    profile = services.profile_for_user(me())
    enrollment = services.owned_enrollment(enrollment_id, profile, "update")
    data = EnrollmentUpdate.model_validate(_json())
    if data.status is not None:
        raise Forbidden("Students cannot change enrollment status")
    enrollment = services.update_enrollment(
        enrollment,
        availability_ids=data.availability_ids,
        schedule_slots=data.schedule_slots,
    )
    return ok(enrollment_out(enrollment), "Enrollment updated successfully")


@bp.delete("/my-enrollments/<int:enrollment_id>")
@student_required
def delete_my_enrollment(enrollment_id: int):
    profile = services.profile_for_user(me())
    enrollment = services.owned_enrollment(enrollment_id, profile, "cancel")
    services.delete_enrollment(enrollment)
    return ok(message="Enrollment cancelled successfully")
