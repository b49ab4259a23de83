from __future__ import annotations

from flask import request
from flask_login import login_required

from blueprints.auth.routes import admin_required
from blueprints.core.responses import created, ok
from blueprints.core.schemas import DayOut, TimeSlotOut

from . import bp, services
from .schemas import DayIn, DaySlotOut, DayUpdate, DayWithAvailabilities, DayWithCount


def _out(day) -> dict:
    return DayOut.model_validate(day).dump()


@bp.get("/")
@login_required
def list_days():
    data = [
        DayWithCount.model_validate(d).model_copy(update={"availability_count": n}).dump()
        for d, n in services.all_days_with_counts()
    ]
    return ok(data, "Days retrieved successfully")


@bp.get("/weekdays")
@login_required
def weekdays():
    return ok([_out(d) for d in services.days_in_range(1, 5)], "Weekdays retrieved successfully")


@bp.get("/weekends")
@login_required
def weekends():
    return ok([_out(d) for d in services.days_in_range(6, 7)], "Weekend days retrieved successfully")


@bp.get("/with-availabilities")
@login_required
def with_availabilities():
    approved = services.approved_counts()
    data = []
    for day, _ in services.all_days_with_counts():
        slots = sorted(day.availabilities, key=lambda a: a.time_slot.start_time)
        data.append(DayWithAvailabilities(
            **DayOut.model_validate(day).model_dump(),
            availabilities=[
                DaySlotOut(
                    id=a.id,
                    time_slot=TimeSlotOut.model_validate(a.time_slot),
                    approved_enrollments=approved.get(a.id, 0),
                )
                for a in slots
            ],
        ).dump())
    return ok(data, "Days with availabilities retrieved successfully")


@bp.get("/<int:day_id>")
@login_required
def get_day(day_id: int):
    return ok(_out(services.get_day(day_id)), "Day retrieved successfully")


@bp.get("/name/<name>")
@login_required
def get_day_by_name(name: str):
    return ok(_out(services.get_by_name(name)), "Day retrieved successfully")


@bp.post("/")
@admin_required
def create_day():
    data = DayIn.model_validate(request.get_json(silent=True) or {})
    return created(_out(services.create_day(data)), "Day created successfully")


@bp.put("/<int:day_id>")
@admin_required
def update_day(day_id: int):
    data = DayUpdate.model_validate(request.get_json(silent=True) or {})
    return ok(_out(services.update_day(day_id, data)), "Day updated successfully")


@bp.delete("/<int:day_id>")
@admin_required
def delete_day(day_id: int):
    services.delete_day(day_id)
    return ok(message="Day deleted successfully")
