# blueprints/semesters/services.py
from __future__ import annotations
import logging
from datetime import date, datetime, time

from sqlalchemy import func

from errors import AppError, Conflict, NotFound
from extensions import db
from models import Enrollment, Semester

from .schemas import SemesterIn, SemesterUpdate

log = logging.getLogger(__name__)

DUPLICATE = "A semester already exists for this academic year and semester number"


def window_defaults(start_date: date, end_date: date) -> tuple[datetime, datetime]:
    # no explicit window: enrollment runs for the whole semester, last day included
    return datetime.combine(start_date, time.min), datetime.combine(end_date, time.max)


def list_query(search: str | None = None):
    q = Semester.query
    if search:
        q = q.filter(Semester.name.ilike(f"%{search.strip()}%"))
    return q.order_by(Semester.academic_year.desc(), Semester.semester_number.desc())


def get_semester(semester_id: int) -> Semester:
    semester = db.session.get(Semester, semester_id)
    if not semester:
        raise NotFound("Semester not found")
    return semester


def active_semester(today: date | None = None) -> Semester:
    today = today or date.today()
    semester = (Semester.query
                .filter(Semester.start_date <= today, Semester.end_date >= today)
                .order_by(Semester.start_date.desc())
                .first())
    if not semester:
        raise NotFound("No active semester found")
    return semester


def enrollment_count(semester_id: int) -> int:
    return (db.session.query(func.count(Enrollment.id))
            .filter(Enrollment.semester_id == semester_id).scalar() or 0)


def _exists(academic_year: int, semester_number: int, exclude_id: int | None = None) -> bool:
    q = Semester.query.filter_by(academic_year=academic_year, semester_number=semester_number)
    if exclude_id is not None:
        q = q.filter(Semester.id != exclude_id)
    return db.session.query(q.exists()).scalar()


def _check_window(enrollment_start: datetime, enrollment_end: datetime) -> None:
    if enrollment_start >= enrollment_end:
        raise AppError("Enrollment end date must be after enrollment start date")


def create_semester(data: SemesterIn) -> Semester:
    if _exists(data.academic_year, data.semester_number):
        raise Conflict(DUPLICATE)
    default_start, default_end = window_defaults(data.start_date, data.end_date)
    # one side of the window may come from the defaults
    e_start = data.enrollment_start or default_start
    e_end = data.enrollment_end or default_end
    _check_window(e_start, e_end)
    semester = Semester(
        name=data.name.strip(),
        academic_year=data.academic_year,
        semester_number=data.semester_number,
        start_date=data.start_date,
        end_date=data.end_date,
        enrollment_start=e_start,
        enrollment_end=e_end,
    )
    db.session.add(semester)
    db.session.commit()
    log.info("semester created id=%s %s/%s", semester.id, semester.academic_year, semester.semester_number)
    return semester


def update_semester(semester_id: int, data: SemesterUpdate) -> Semester:
    semester = get_semester(semester_id)
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}

    start = changes.get("start_date", semester.start_date)
    end = changes.get("end_date", semester.end_date)
    if start >= end:
        raise AppError("End date must be after start date")
    e_start = changes.get("enrollment_start", semester.enrollment_start)
    e_end = changes.get("enrollment_end", semester.enrollment_end)
    _check_window(e_start, e_end)

    year = changes.get("academic_year", semester.academic_year)
    number = changes.get("semester_number", semester.semester_number)
    if (year, number) != (semester.academic_year, semester.semester_number) and _exists(year, number, semester.id):
        raise Conflict(DUPLICATE)

    if "name" in changes:
        changes["name"] = changes["name"].strip()
    for field, value in changes.items():
        setattr(semester, field, value)
    db.session.commit()
    return semester


def delete_semester(semester_id: int) -> None:
    semester = get_semester(semester_id)
    if enrollment_count(semester.id) > 0:
        raise Conflict("Cannot delete semester with existing enrollments")
    db.session.delete(semester)
    db.session.commit()
    log.info("semester deleted id=%s", semester_id)
