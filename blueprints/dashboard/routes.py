from __future__ import annotations

from flask_login import login_required

from blueprints.auth.routes import admin_required, me
from blueprints.core.responses import ok

from . import bp, services


@bp.get("/admin/stats")
@admin_required
def admin_stats():
    return ok(services.admin_stats(), "Admin statistics retrieved successfully")


@bp.get("/student/stats")
@login_required
def student_stats():
    return ok(services.student_stats(me()), "Student statistics retrieved successfully")
