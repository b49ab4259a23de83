# blueprints/dashboard/services.py
from __future__ import annotations
import logging

from sqlalchemy import func

from extensions import db
from models import Enrollment, Notification, Role, Semester, StudentProfile, Unit, User

log = logging.getLogger(__name__)


def _count(column, *criteria) -> int:
    q = db.session.query(func.count(column))
    if criteria:
        q = q.filter(*criteria)
    return int(q.scalar() or 0)


def admin_stats() -> dict:
    stats = {
        "totalUnits": _count(Unit.id),
        # students only
        "totalUsers": _count(User.id, User.role == Role.STUDENT.value),
        "totalEnrollments": _count(Enrollment.id),
        "totalSemesters": _count(Semester.id),
        "activeNotifications": _count(Notification.id, Notification.is_active.is_(True)),
    }
    log.debug("admin stats %s", stats)
    return stats


def student_stats(user: User) -> dict:
    profile = StudentProfile.query.filter_by(user_id=user.id).first()
    if profile is None:
        return {"myEnrollments": 0, "availableUnits": 0, "totalSemesters": 0}
    return {
        "myEnrollments": _count(Enrollment.id, Enrollment.student_profile_id == profile.id),
        "availableUnits": _count(Unit.id),
        "totalSemesters": _count(Semester.id),
    }
