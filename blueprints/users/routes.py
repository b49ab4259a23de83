from __future__ import annotations

from flask import request
from flask_login import login_required

from blueprints.auth import services as auth_services
from blueprints.auth.routes import admin_required, me
from blueprints.auth.schemas import ChangePasswordIn, ProfileUpdateIn, user_out
from blueprints.core.responses import arg_bool, ok, page_args, paginate

from . import bp, services
from .schemas import UserAdminUpdate


def _json() -> dict:
    return request.get_json(silent=True) or {}


# ---------- the caller ----------
@bp.get("/profile")
@login_required
def get_profile():
    return ok(user_out(me()), "Profile retrieved successfully")


@bp.put("/profile")
@login_required
def update_profile():
    data = ProfileUpdateIn.model_validate(_json())
    return ok(user_out(auth_services.update_profile(me(), data)), "Profile updated successfully")


@bp.post("/change-password")
@login_required
def change_password():
    data = ChangePasswordIn.model_validate(_json())
    auth_services.change_password(me(), data.current_password, data.new_password)
    return ok(message="Password changed successfully")


# ---------- admin ----------
@bp.get("/")
@admin_required
def list_users():
    page, limit = page_args()
    q = services.list_query(
        role=request.args.get("role"),
        is_active=arg_bool("isActive"),
        search=request.args.get("search"),
    )
    return ok(paginate(q, user_out, page=page, limit=limit), "Users retrieved successfully")


@bp.get("/<int:user_id>")
@admin_required
def get_user(user_id: int):
    return ok(user_out(services.get_user(user_id)), "User retrieved successfully")


@bp.put("/<int:user_id>")
@admin_required
def update_user(user_id: int):
    data = UserAdminUpdate.model_validate(_json())
    return ok(user_out(services.update_user(me(), user_id, data)), "User updated successfully")


@bp.delete("/<int:user_id>")
@admin_required
def delete_user(user_id: int):
    services.delete_user(me(), user_id)
    return ok(message="User deleted successfully")


@bp.post("/deactivate/<int:user_id>")
@admin_required
def deactivate_user(user_id: int):
    return ok(user_out(services.set_active(me(), user_id, False)), "User deactivated successfully")


@bp.post("/activate/<int:user_id>")
@admin_required
def activate_user(user_id: int):
    return ok(user_out(services.set_active(me(), user_id, True)), "User activated successfully")
