# blueprints/days/services.py
from __future__ import annotations
import logging

from sqlalchemy import func

from errors import AppError, NotFound
from extensions import db
from models import Availability, Day, Enrollment, EnrollmentStatus, enrollment_availabilities

from .schemas import DayIn, DayUpdate

log = logging.getLogger(__name__)

WEEK = (
    ("Monday", "Mon", 1),
    ("Tuesday", "Tue", 2),
    ("Wednesday", "Wed", 3),
    ("Thursday", "Thu", 4),
    ("Friday", "Fri", 5),
    ("Saturday", "Sat", 6),
    ("Sunday", "Sun", 7),
)


def ensure_days() -> int:
    """Insert the missing weekday rows. Returns how many were added."""
    existing = {d.name for d in Day.query.all()}
    added = 0
    for name, short, order in WEEK:
        if name in existing:
            continue
        db.session.add(Day(name=name, short_name=short, day_order=order))
        added += 1
    if added:
        db.session.commit()
        log.info("seeded %s day rows", added)
    return added


def all_days_with_counts() -> list[tuple[Day, int]]:
    rows = (db.session.query(Day, func.count(Availability.id))
            .outerjoin(Availability, Availability.day_id == Day.id)
            .group_by(Day.id)
            .order_by(Day.day_order.asc())
            .all())
    return [(d, int(n)) for d, n in rows]


def days_in_range(first: int, last: int) -> list[Day]:
    return (Day.query.filter(Day.day_order >= first, Day.day_order <= last)
            .order_by(Day.day_order.asc()).all())


def approved_counts() -> dict[int, int]:
    """availability id -> number of APPROVED enrollments using it."""
    rows = (db.session.query(enrollment_availabilities.c.availability_id, func.count(Enrollment.id))
            .join(Enrollment, Enrollment.id == enrollment_availabilities.c.enrollment_id)
            .filter(Enrollment.status == EnrollmentStatus.APPROVED.value)
            .group_by(enrollment_availabilities.c.availability_id)
            .all())
    return {aid: int(n) for aid, n in rows}


def get_day(day_id: int) -> Day:
    day = db.session.get(Day, day_id)
    if not day:
        raise NotFound("Day not found")
    return day


def find_by_name(name: str) -> Day | None:
    return Day.query.filter(func.lower(Day.name) == (name or "").strip().lower()).first()


def get_by_name(name: str) -> Day:
    day = find_by_name(name)
    if not day:
        raise NotFound("Day not found")
    return day


def _check_unique(name: str | None, short_name: str | None, day_order: int | None, exclude_id: int | None = None):
    def taken(column, value):
        if value is None:
            return False
        q = Day.query.filter(func.lower(column) == value.lower()) if isinstance(value, str) \
            else Day.query.filter(column == value)
        if exclude_id is not None:
            q = q.filter(Day.id != exclude_id)
        return db.session.query(q.exists()).scalar()

    if taken(Day.name, name):
        raise AppError("Day with this name already exists")
    if taken(Day.short_name, short_name):
        raise AppError("Day with this short name already exists")
    if taken(Day.day_order, day_order):
        raise AppError("Day with this order already exists")


def create_day(data: DayIn) -> Day:
    _check_unique(data.name, data.short_name, data.day_order)
    day = Day(name=data.name.strip(), short_name=data.short_name.strip(), day_order=data.day_order)
    db.session.add(day)
    db.session.commit()
    return day


def update_day(day_id: int, data: DayUpdate) -> Day:
    day = get_day(day_id)
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    _check_unique(changes.get("name"), changes.get("short_name"), changes.get("day_order"), exclude_id=day.id)
    for field, value in changes.items():
        setattr(day, field, value.strip() if isinstance(value, str) else value)
    db.session.commit()
    return day


def delete_day(day_id: int) -> None:
    day = get_day(day_id)
    in_use = db.session.query(Availability.query.filter_by(day_id=day.id).exists()).scalar()
    if in_use:
        raise AppError("Cannot delete day as it is used in availability")
    db.session.delete(day)
    db.session.commit()
