# blueprints/users/services.py
from __future__ import annotations
import logging

from sqlalchemy import or_

from errors import AppError, Conflict, Forbidden, NotFound
from extensions import db
from models import StudentProfile, User
from blueprints.auth.services import audit, email_in_use

from .schemas import UserAdminUpdate

log = logging.getLogger(__name__)


def list_query(*, role: str | None = None, is_active: bool | None = None, search: str | None = None):
    q = User.query.outerjoin(StudentProfile)
    if role:
        q = q.filter(User.role == role.upper())
    if is_active is not None:
        q = q.filter(User.is_active.is_(is_active))
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(
            User.email.ilike(like),
            StudentProfile.first_name.ilike(like),
            StudentProfile.last_name.ilike(like),
            StudentProfile.student_id.ilike(like),
        ))
    return q.order_by(User.id.desc())


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def update_user(actor: User, user_id: int, data: UserAdminUpdate) -> User:
    if actor.id == user_id:
        raise Forbidden("You cannot update your own account from here")
    user = get_user(user_id)
    changes = data.model_dump(exclude_unset=True)
    old = {"email": user.email, "role": user.role, "isActive": user.is_active}

    if changes.get("email") and changes["email"] != user.email:
        if email_in_use(changes["email"], exclude_user_id=user.id):
            raise Conflict("Email already in use")
        user.email = changes["email"]
    if changes.get("role") is not None:
        user.role = changes["role"].value
    if changes.get("is_active") is not None:
        user.is_active = changes["is_active"]

    db.session.commit()
    audit(actor.id, "USER_UPDATE", "User", user.id, old_values=old,
          new_values={"email": user.email, "role": user.role, "isActive": user.is_active})
    return user


def delete_user(actor: User, user_id: int) -> None:
    if actor.id == user_id:
        raise AppError("You cannot delete your own account")
    user = get_user(user_id)
    # profile and its enrollments go with the user (ORM cascade)
    email = user.email
    db.session.delete(user)
    db.session.commit()
    log.info("user deleted id=%s by=%s", user_id, actor.id)
    audit(actor.id, "USER_DELETE", "User", user_id, old_values={"email": email})


def set_active(actor: User, user_id: int, active: bool) -> User:
    if actor.id == user_id:
        verb = "activate" if active else "deactivate"
        raise AppError(f"You cannot {verb} your own account")
    user = get_user(user_id)
    user.is_active = active
    db.session.commit()
    audit(actor.id, "USER_ACTIVATE" if active else "USER_DEACTIVATE", "User", user.id)
    return user
