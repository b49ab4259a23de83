# blueprints/auth/services.py
from __future__ import annotations
import json
import logging
import secrets
from datetime import datetime, timedelta
from typing import Any

from flask import current_app, render_template
from jose import JWTError, jwt
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from errors import AppError, Conflict, Forbidden, NotFound, Unauthorized
from extensions import db
from mailer import MailError, send_email
from models import AuditLog, PasswordReset, Role, StudentProfile, User, utcnow

from .schemas import ProfileUpdateIn, RegisterIn

log = logging.getLogger(__name__)

PROFILE_FIELDS = (
    "first_name", "last_name", "email_address", "address",
    "phone", "program", "year_level", "date_of_birth",
)


# ---------- tokens ----------
def _encode(claims: dict, key: str) -> str:
    return jwt.encode(claims, key, algorithm=current_app.config["JWT_ALGORITHM"])


def issue_tokens(user: User) -> dict:
    cfg = current_app.config
    now = datetime.utcnow()
    access = _encode({
        "sub": str(user.id),
        "role": user.role,
        "type": "access",
        "iat": now,
        "exp": now + timedelta(minutes=cfg["JWT_ACCESS_EXPIRES_MINUTES"]),
    }, cfg["JWT_SECRET_KEY"])
    refresh = _encode({
        "sub": str(user.id),
        "type": "refresh",
        "iat": now,
        "exp": now + timedelta(days=cfg["JWT_REFRESH_EXPIRES_DAYS"]),
    }, cfg["JWT_REFRESH_SECRET_KEY"])
    return {"accessToken": access, "refreshToken": refresh}


def _decode(token: str, key: str, kind: str) -> dict:
    try:
        claims = jwt.decode(token, key, algorithms=[current_app.config["JWT_ALGORITHM"]])
    except JWTError as e:
        log.info("rejected %s token: %s", kind, e)
        raise Unauthorized("Invalid token.")
    if claims.get("type") != kind or not str(claims.get("sub", "")).isdigit():
        raise Unauthorized("Invalid token.")
    return claims


def decode_access_token(token: str) -> dict:
    return _decode(token, current_app.config["JWT_SECRET_KEY"], "access")


def decode_refresh_token(token: str) -> dict:
    return _decode(token, current_app.config["JWT_REFRESH_SECRET_KEY"], "refresh")


# ---------- audit ----------
def audit(user_id: int | None, action: str, entity_type: str, entity_id: int | None = None,
          old_values: Any = None, new_values: Any = None) -> None:
    """Record an audit entry. A failed write is logged and does not fail the caller."""
    entry = AuditLog(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        old_values=json.dumps(old_values, default=str) if old_values is not None else None,
        new_values=json.dumps(new_values, default=str) if new_values is not None else None,
    )
    try:
        db.session.add(entry)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        log.exception("audit log write failed action=%s entity=%s:%s", action, entity_type, entity_id)


# ---------- helpers ----------
def generate_student_id(attempts: int = 50) -> str:
    prefix = current_app.config.get("STUDENT_ID_PREFIX", "CIHE")
    for _ in range(attempts):
        candidate = f"{prefix}{secrets.randbelow(10_000):04d}"
        if not StudentProfile.query.filter_by(student_id=candidate).first():
            return candidate
    raise AppError("Could not allocate a student ID", 500)


def generate_otp() -> str:
    return f"{secrets.randbelow(1_000_000):06d}"


def email_in_use(email: str, exclude_user_id: int | None = None) -> bool:
    q = User.query.filter(User.email == email)
    if exclude_user_id is not None:
        q = q.filter(User.id != exclude_user_id)
    return db.session.query(q.exists()).scalar()


# ---------- operations ----------
def register(data: RegisterIn, *, actor: User | None = None) -> User:
    if data.role != Role.STUDENT and getattr(actor, "role", None) != Role.ADMIN.value:
        raise Forbidden("Only administrators can create non-student accounts")
    if email_in_use(data.email):
        raise Conflict("User with this email already exists")
    if data.role == Role.STUDENT and data.profile_data is None:
        raise AppError("Profile data is required for student registration")

    user = User(
        email=data.email,
        password_hash=generate_password_hash(data.password),
        role=data.role.value,
        is_active=True,
    )
    if data.profile_data is not None:
        pd = data.profile_data
        student_id = pd.student_id or generate_student_id()
        if StudentProfile.query.filter_by(student_id=student_id).first():
            raise Conflict("Student ID already exists")
        user.student_profile = StudentProfile(
            student_id=student_id,
            first_name=pd.first_name,
            last_name=pd.last_name,
            email_address=pd.email_address or data.email,
            address=pd.address,
            phone=pd.phone,
            program=pd.program,
            year_level=pd.year_level,
            date_of_birth=pd.date_of_birth,
        )
    db.session.add(user)
    db.session.commit()
    log.info("user registered id=%s role=%s", user.id, user.role)
    audit(user.id, "USER_REGISTER", "User", user.id, new_values={"email": user.email, "role": user.role})
    return user


def authenticate(email: str, password: str) -> User:
    user = User.query.filter_by(email=email).first()
    if not user or not check_password_hash(user.password_hash, password):
        raise Unauthorized("Invalid credentials")
    if not user.is_active:
        raise Unauthorized("Account is deactivated")
    audit(user.id, "USER_LOGIN", "User", user.id)
    return user


def refresh(token: str) -> tuple[User, dict]:
    claims = decode_refresh_token(token)
    user = db.session.get(User, int(claims["sub"]))
    if not user or not user.is_active:
        raise Unauthorized("Invalid refresh token")
    return user, issue_tokens(user)


def change_password(user: User, current_password: str, new_password: str) -> None:
    if not check_password_hash(user.password_hash, current_password):
        raise AppError("Current password is incorrect")
    user.password_hash = generate_password_hash(new_password)
    db.session.commit()
    audit(user.id, "PASSWORD_CHANGE", "User", user.id)


def request_password_reset(email: str) -> None:
    user = User.query.filter_by(email=email).first()
    if not user:
        raise NotFound("User not found")

    minutes = current_app.config.get("PASSWORD_RESET_OTP_MINUTES", 15)
    PasswordReset.query.filter_by(user_id=user.id).delete()
    reset = PasswordReset(user_id=user.id, otp=generate_otp(), expires_at=utcnow() + timedelta(minutes=minutes))
    db.session.add(reset)
    db.session.commit()

    name = display_name(user)
    ctx = {"name": name, "otp": reset.otp, "minutes": minutes}
    try:
        send_email(
            user.email,
            "Password Reset OTP",
            f"Hello {name},\n\nYour password reset code is {reset.otp}. It expires in {minutes} minutes.\n",
            render_template("emails/password_reset.html", **ctx),
        )
    except MailError as e:
        log.error("password reset mail failed user_id=%s: %s", user.id, e)
        raise AppError("Failed to send password reset email", 500)
    audit(user.id, "PASSWORD_RESET_REQUEST", "User", user.id)


def reset_password(email: str, otp: str, new_password: str) -> None:
    user = User.query.filter_by(email=email).first()
    if not user:
        raise NotFound("User not found")
    latest = (PasswordReset.query.filter_by(user_id=user.id)
              .order_by(PasswordReset.created_at.desc(), PasswordReset.id.desc())
              .first())
    if not latest or latest.otp != otp or latest.expires_at < utcnow():
        raise AppError("Invalid or expired OTP")

    user.password_hash = generate_password_hash(new_password)
    PasswordReset.query.filter_by(user_id=user.id).delete()
    db.session.commit()
    audit(user.id, "PASSWORD_RESET", "User", user.id)


def update_profile(user: User, data: ProfileUpdateIn) -> User:
    changes = data.model_dump(exclude_unset=True)
    old: dict = {}

    new_email = changes.pop("email", None)
    if new_email and new_email != user.email:
        if email_in_use(new_email, exclude_user_id=user.id):
            raise Conflict("Email is already in use")
        old["email"] = user.email
        user.email = new_email

    profile = user.student_profile
    if profile is not None:
        for field in PROFILE_FIELDS:
            if field in changes:
                old[field] = getattr(profile, field)
                setattr(profile, field, changes[field])

    db.session.commit()
    audit(user.id, "PROFILE_UPDATE", "User", user.id, old_values=old, new_values=data.model_dump(exclude_unset=True))
    return user


def display_name(user: User) -> str:
    p = user.student_profile
    if p is not None:
        return f"{p.first_name} {p.last_name}"
    return user.email.split("@", 1)[0]
