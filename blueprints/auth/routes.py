# blueprints/auth/routes.py
from __future__ import annotations
from functools import wraps
from typing import Callable, Optional

from flask import Blueprint, g, jsonify, request
from flask_login import current_user, login_required

from errors import Forbidden, Unauthorized
from extensions import db, login_manager
from models import Role, User
from blueprints.core.responses import created, ok

from . import services
from .schemas import (
    ChangePasswordIn, ForgotPasswordIn, LoginIn, ProfileUpdateIn,
    RefreshIn, RegisterIn, ResetPasswordIn, user_out,
)

bp = Blueprint("auth", __name__)

NO_TOKEN = "Access denied. No token provided."


def _json() -> dict:
    return request.get_json(silent=True) or {}


# ---------- identity from the bearer token ----------
@login_manager.user_loader
def load_user(uid: str) -> Optional[User]:
    if not str(uid).isdigit():
        return None
    return db.session.get(User, int(uid))


@login_manager.request_loader
def load_user_from_request(req) -> Optional[User]:
    header = req.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        g.auth_error = NO_TOKEN
        return None
    try:
        claims = services.decode_access_token(token.strip())
    except Unauthorized as e:
        g.auth_error = e.message
        return None
    user = db.session.get(User, int(claims["sub"]))
    if user is None:
        g.auth_error = "User not found."
        return None
    if not user.is_active:
        g.auth_error = "Account is deactivated."
        return None
    g.api_user = user
    return user


@login_manager.unauthorized_handler
def _unauth():
    return jsonify({"success": False, "message": g.get("auth_error", NO_TOKEN)}), 401


# ---------- role decorators ----------
def roles_required(*roles: str) -> Callable:
    allowed = {getattr(r, "value", r) for r in roles}

    def decorator(fn: Callable):
        @wraps(fn)
        @login_required
        def wrapper(*args, **kwargs):
            if getattr(current_user, "role", None) not in allowed:
                raise Forbidden("Access denied. Insufficient permissions.")
            return fn(*args, **kwargs)
        return wrapper
    return decorator


admin_required = roles_required(Role.ADMIN)
student_required = roles_required(Role.STUDENT)
staff_required = roles_required(Role.ADMIN, Role.TUTOR)


def me() -> User:
    """The authenticated user as a plain model instance, not the proxy."""
    return current_user._get_current_object()


def optional_user() -> Optional[User]:
    """The caller if a valid bearer token was sent, else None (no 401)."""
    return me() if current_user.is_authenticated else None


# ---------- API ----------
@bp.post("/register")
def register():
    data = RegisterIn.model_validate(_json())
    user = services.register(data, actor=optional_user())
    return created(
        {"user": user_out(user), **services.issue_tokens(user)},
        "User registered successfully",
    )


@bp.post("/login")
def login():
    data = LoginIn.model_validate(_json())
    user = services.authenticate(data.email, data.password)
    return ok({"user": user_out(user), **services.issue_tokens(user)}, "Login successful")


@bp.post("/refresh")
def refresh():
    data = RefreshIn.model_validate(_json())
    _, tokens = services.refresh(data.refresh_token)
    return ok(tokens, "Token refreshed successfully")


@bp.post("/logout")
@login_required
def logout():
    # tokens are stateless; only the audit trail changes
    services.audit(me().id, "USER_LOGOUT", "User", me().id)
    return ok(message="Logout successful")


@bp.post("/change-password")
@login_required
def change_password():
    data = ChangePasswordIn.model_validate(_json())
    services.change_password(me(), data.current_password, data.new_password)
    return ok(message="Password changed successfully")


@bp.post("/forgot-password")
def forgot_password():
    data = ForgotPasswordIn.model_validate(_json())
    services.request_password_reset(data.email)
    return ok(message="OTP sent to your email")


@bp.post("/reset-password")
def reset_password():
    data = ResetPasswordIn.model_validate(_json())
    services.reset_password(data.email, data.otp, data.new_password)
    return ok(message="Password reset successfully")


@bp.get("/profile")
@login_required
def get_profile():
    return ok(user_out(me()), "Profile retrieved successfully")


@bp.put("/profile")
@login_required
def update_profile():
    data = ProfileUpdateIn.model_validate(_json())
    user = services.update_profile(me(), data)
    return ok(user_out(user), "Profile updated successfully")
