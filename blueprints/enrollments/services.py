# blueprints/enrollments/services.py
from __future__ import annotations
import logging
from datetime import datetime
from typing import Iterable, Optional, Sequence

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from errors import AppError, Conflict, Forbidden, NotFound
from extensions import db
from models import (
    Availability, Enrollment, EnrollmentStatus, Semester, StudentProfile,
    TimeSlot, Unit, User, utcnow,
)
from blueprints.days.services import find_by_name
from blueprints.timeslots.services import slot_name

from .schemas import ScheduleSlotIn
from .timeparse import parse_time_range

log = logging.getLogger(__name__)

ALREADY_ENROLLED = "Student is already enrolled in this unit for this semester"


# ---------- lookups ----------
def profile_for_user(user: User) -> StudentProfile:
    profile = StudentProfile.query.filter_by(user_id=user.id).first()
    if not profile:
        raise NotFound("Student profile not found for current user")
    return profile


def get_enrollment(enrollment_id: int) -> Enrollment:
    enrollment = db.session.get(Enrollment, enrollment_id)
    if not enrollment:
        raise NotFound("Enrollment not found")
    return enrollment


def owned_enrollment(enrollment_id: int, profile: StudentProfile, verb: str = "update") -> Enrollment:
    enrollment = get_enrollment(enrollment_id)
    if enrollment.student_profile_id != profile.id:
        raise Forbidden(f"You can only {verb} your own enrollments")
    return enrollment


def _require(model, pk: int, label: str):
    row = db.session.get(model, pk)
    if not row:
        raise NotFound(f"{label} not found")
    return row


# ---------- availability resolution ----------
def _get_or_create(model, defaults: dict | None = None, **keys):
    """Fetch the row matching ``keys`` or insert it.

    A concurrent insert of the same row surfaces as IntegrityError; the
    session is rolled back and the winner's row is returned instead.
    """
    row = model.query.filter_by(**keys).first()
    if row is not None:
        return row, False
    row = model(**keys, **(defaults or {}))
    db.session.add(row)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        row = model.query.filter_by(**keys).first()
        if row is None:
            raise
        return row, False
    return row, True


def resolve_slot(day_name: str, time_slot: str) -> Availability:
    day = find_by_name(day_name)
    if not day:
        raise AppError(f"Day '{day_name}' not found")
    rng = parse_time_range(time_slot)

    slot, made = _get_or_create(
        TimeSlot, defaults={"name": slot_name(rng.start, rng.end)},
        start_time=rng.start, end_time=rng.end,
    )
    if made:
        log.info("time slot created on demand %s", slot.name)

    avail, made = _get_or_create(Availability, day_id=day.id, time_slot_id=slot.id)
    if made:
        log.info("availability created on demand %s %s", day.name, slot.name)
    return avail


def resolve_schedule(slots: Iterable[ScheduleSlotIn]) -> list[Availability]:
    out: dict[int, Availability] = {}
    for s in slots:
        avail = resolve_slot(s.day_name, s.time_slot)
        out.setdefault(avail.id, avail)
    return list(out.values())


def load_availabilities(ids: Sequence[int]) -> list[Availability]:
    wanted = [int(i) for i in ids]
    if not wanted:
        return []
    rows = Availability.query.filter(Availability.id.in_(wanted)).all()
    # a repeated id counts as a missing one
    if len(rows) != len(wanted):
        raise AppError("Some availability slots not found")
    by_id = {a.id: a for a in rows}
    return [by_id[i] for i in wanted]


def _availabilities_for(availability_ids: Optional[Sequence[int]],
                        schedule_slots: Optional[Sequence[ScheduleSlotIn]]) -> Optional[list[Availability]]:
    # schedule slots win over explicit ids; None means "leave unchanged"
    if schedule_slots:
        return resolve_schedule(schedule_slots)
    if availability_ids is not None:
        return load_availabilities(availability_ids)
    return None


# ---------- submission ----------
def create_enrollment(student_profile_id: int, unit_id: int, semester_id: int,
                      availability_ids: Optional[Sequence[int]] = None,
                      schedule_slots: Optional[Sequence[ScheduleSlotIn]] = None,
                      now: datetime | None = None) -> Enrollment:
    _require(StudentProfile, student_profile_id, "Student profile")
    _require(Unit, unit_id, "Unit")
    semester: Semester = _require(Semester, semester_id, "Semester")

    if not semester.enrollment_open(now or utcnow()):
        raise AppError("Enrollment period is not active for this semester")

    exists = Enrollment.query.filter_by(
        student_profile_id=student_profile_id, unit_id=unit_id, semester_id=semester_id,
    ).first()
    if exists:
        raise Conflict(ALREADY_ENROLLED)

    availabilities = _availabilities_for(availability_ids, schedule_slots) or []

    enrollment = Enrollment(
        student_profile_id=student_profile_id,
        unit_id=unit_id,
        semester_id=semester_id,
        status=EnrollmentStatus.PENDING.value,
        availabilities=availabilities,
    )
    db.session.add(enrollment)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict(ALREADY_ENROLLED)
    log.info("enrollment created id=%s profile=%s unit=%s semester=%s slots=%s",
             enrollment.id, student_profile_id, unit_id, semester_id, len(availabilities))
    return enrollment


def _ensure_still_open(enrollment: Enrollment, now: datetime | None, verb: str) -> None:
    if (now or utcnow()) > enrollment.semester.enrollment_end:
        raise AppError(f"Cannot {verb} enrollment after enrollment period has ended")


def update_enrollment(enrollment: Enrollment, *,
                      availability_ids: Optional[Sequence[int]] = None,
                      schedule_slots: Optional[Sequence[ScheduleSlotIn]] = None,
                      status: Optional[EnrollmentStatus] = None,
                      now: datetime | None = None) -> Enrollment:
    _ensure_still_open(enrollment, now, "modify")
    enrollment_id = enrollment.id

    availabilities = _availabilities_for(availability_ids, schedule_slots)
    # resolution may have committed/rolled back; reload before mutating
    enrollment = get_enrollment(enrollment_id)
    if availabilities is not None:
        enrollment.availabilities = availabilities
    if status is not None:
        enrollment.status = EnrollmentStatus(status).value
    db.session.commit()
    return enrollment


def delete_enrollment(enrollment: Enrollment, now: datetime | None = None) -> None:
    _ensure_still_open(enrollment, now, "cancel")
    enrollment_id = enrollment.id
    db.session.delete(enrollment)
    db.session.commit()
    log.info("enrollment deleted id=%s", enrollment_id)


# ---------- listing ----------
def list_query(*, student_profile_id: int | None = None, unit_id: int | None = None,
               semester_id: int | None = None, search: str | None = None):
    q = Enrollment.query.join(StudentProfile).join(Unit)
    if student_profile_id is not None:
        q = q.filter(Enrollment.student_profile_id == student_profile_id)
    if unit_id is not None:
        q = q.filter(Enrollment.unit_id == unit_id)
    if semester_id is not None:
        q = q.filter(Enrollment.semester_id == semester_id)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(
            StudentProfile.first_name.ilike(like),
            StudentProfile.last_name.ilike(like),
            StudentProfile.student_id.ilike(like),
            Unit.unit_code.ilike(like),
            Unit.title.ilike(like),
        ))
    return q.order_by(Enrollment.enrolled_at.desc(), Enrollment.id.desc())


def for_student(student_profile_id: int, semester_id: int | None = None) -> list[Enrollment]:
    return list_query(student_profile_id=student_profile_id, semester_id=semester_id).all()


def for_unit(unit_id: int, semester_id: int | None = None) -> list[Enrollment]:
    return list_query(unit_id=unit_id, semester_id=semester_id).all()


def for_semester(semester_id: int) -> list[Enrollment]:
    return list_query(semester_id=semester_id).all()
