from __future__ import annotations

from flask import request
from flask_login import login_required

from blueprints.auth.routes import admin_required, me
from blueprints.core.responses import arg_bool, created, ok, page_args, paginate

from . import bp, services
from .schemas import NotificationIn, NotificationUpdate, notification_out


@bp.get("/active")
@login_required
def active():
    return ok([notification_out(n) for n in services.active_notifications()],
              "Active notifications retrieved successfully")


@bp.get("/<int:notification_id>")
@login_required
def get_notification(notification_id: int):
    return ok(notification_out(services.get_notification(notification_id)), "Notification retrieved successfully")


@bp.get("/")
@admin_required
def list_notifications():
    page, limit = page_args(default_limit=10)
    q = services.list_query(
        type_=request.args.get("type"),
        is_active=arg_bool("isActive"),
        search=request.args.get("search"),
    )
    return ok(paginate(q, notification_out, page=page, limit=limit), "Notifications retrieved successfully")


@bp.post("/")
@admin_required
def create_notification():
    data = NotificationIn.model_validate(request.get_json(silent=True) or {})
    notification, email_result = services.create_notification(data, me())
    if email_result is None:
        return created(notification_out(notification), "Notification created successfully")
    return ok(
        notification_out(notification),
        "Notification created and emails sent successfully",
        status=201,
        emailResult=email_result,
    )


@bp.put("/<int:notification_id>")
@admin_required
def update_notification(notification_id: int):
    data = NotificationUpdate.model_validate(request.get_json(silent=True) or {})
    return ok(notification_out(services.update_notification(notification_id, data)),
              "Notification updated successfully")


@bp.patch("/<int:notification_id>/toggle")
@admin_required
def toggle_notification(notification_id: int):
    n = services.toggle_notification(notification_id)
    state = "activated" if n.is_active else "deactivated"
    return ok(notification_out(n), f"Notification {state} successfully")


@bp.delete("/<int:notification_id>")
@admin_required
def delete_notification(notification_id: int):
    services.delete_notification(notification_id)
    return ok(message="Notification deleted successfully")
