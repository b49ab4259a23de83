# blueprints/notifications/services.py
from __future__ import annotations
import logging
from dataclasses import asdict, dataclass
from typing import Optional

from flask import render_template
from sqlalchemy import and_, case, or_

from errors import NotFound
from extensions import db
from mailer import MailError, build_message, deliver
from models import Notification, NotificationType, Role, StudentProfile, User
from blueprints.auth.services import display_name

from .schemas import NotificationIn, NotificationUpdate

log = logging.getLogger(__name__)

TYPE_LABELS = {
    NotificationType.URGENT.value: "🚨 URGENT",
    NotificationType.ACADEMIC.value: "📚 Academic",
    NotificationType.GENERAL.value: "📢 General",
    NotificationType.SYSTEM.value: "⚙️ System",
}
TYPE_COLORS = {
    NotificationType.URGENT.value: "#dc2626",
    NotificationType.ACADEMIC.value: "#2563eb",
    NotificationType.GENERAL.value: "#059669",
    NotificationType.SYSTEM.value: "#7c3aed",
}


@dataclass
class BroadcastResult:
    sent: int = 0
    failed: int = 0
    total: int = 0


def subject_for(type_: str, title: str) -> str:
    return f"{TYPE_LABELS.get(type_, '📢')} - {title}"


# ---------- recipients ----------
def select_recipients(role: str = "ALL", year_level: Optional[int] = None,
                      program: Optional[str] = None) -> list[User]:
    """Active users matching the broadcast filter.

    Year level and program only narrow students. With role ALL every
    non-student user is kept alongside the matching students.
    """
    q = User.query.filter(User.is_active.is_(True))
    if role and role != "ALL":
        q = q.filter(User.role == role)

    student_filters = []
    if year_level is not None:
        student_filters.append(StudentProfile.year_level == year_level)
    if program:
        student_filters.append(StudentProfile.program == program)

    if student_filters and role in ("ALL", Role.STUDENT.value):
        q = q.outerjoin(StudentProfile, StudentProfile.user_id == User.id)
        students = and_(User.role == Role.STUDENT.value, *student_filters)
        if role == "ALL":
            q = q.filter(or_(students, User.role != Role.STUDENT.value))
        else:
            q = q.filter(students)
    return q.order_by(User.id.asc()).all()


def broadcast(notification: Notification, recipients: list[User]) -> BroadcastResult:
    """Email every recipient separately. A failed send is counted, never raised."""
    result = BroadcastResult(total=len(recipients))
    subject = subject_for(notification.type, notification.title)
    for user in recipients:
        name = display_name(user)
        html = render_template(
            "emails/notification.html",
            name=name,
            title=notification.title,
            message=notification.message,
            label=TYPE_LABELS.get(notification.type, notification.type),
            color=TYPE_COLORS.get(notification.type, "#6b7280"),
            subject=subject,
        )
        text = f"Dear {name},\n\n{notification.title}\n\n{notification.message}\n"
        try:
            deliver([build_message(user.email, subject, text, html)])
            result.sent += 1
        except MailError as e:
            result.failed += 1
            log.warning("notification mail failed notification_id=%s to=%s: %s",
                        notification.id, user.email, e)
    log.info("notification broadcast id=%s sent=%s failed=%s total=%s",
             notification.id, result.sent, result.failed, result.total)
    return result


# ---------- CRUD ----------
def create_notification(data: NotificationIn, creator: User) -> tuple[Notification, Optional[dict]]:
    notification = Notification(
        title=data.title,
        message=data.message,
        type=data.type.value,
        is_active=True,
        created_by=creator.id,
    )
    db.session.add(notification)
    db.session.commit()

    if not data.send_email:
        return notification, None
    role = getattr(data.role, "value", data.role)
    recipients = select_recipients(role, data.year_level, data.program)
    return notification, asdict(broadcast(notification, recipients))


def list_query(*, type_: str | None = None, is_active: bool | None = None, search: str | None = None):
    q = Notification.query
    if type_ and type_.lower() != "all":
        q = q.filter(Notification.type == type_.upper())
    if is_active is not None:
        q = q.filter(Notification.is_active.is_(is_active))
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(Notification.title.ilike(like), Notification.message.ilike(like)))
    return q.order_by(Notification.created_at.desc(), Notification.id.desc())


def active_notifications() -> list[Notification]:
    urgent_first = case((Notification.type == NotificationType.URGENT.value, 0), else_=1)
    return (Notification.query.filter(Notification.is_active.is_(True))
            .order_by(urgent_first, Notification.created_at.desc(), Notification.id.desc())
            .all())


def get_notification(notification_id: int) -> Notification:
    n = db.session.get(Notification, notification_id)
    if not n:
        raise NotFound("Notification not found")
    return n


def update_notification(notification_id: int, data: NotificationUpdate) -> Notification:
    n = get_notification(notification_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        if field == "type":
            value = value.value
        elif isinstance(value, str):
            value = value.strip()
        setattr(n, field, value)
    db.session.commit()
    return n


def toggle_notification(notification_id: int) -> Notification:
    n = get_notification(notification_id)
    n.is_active = not n.is_active
    db.session.commit()
    return n


def delete_notification(notification_id: int) -> None:
    n = get_notification(notification_id)
    db.session.delete(n)
    db.session.commit()
