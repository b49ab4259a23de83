from __future__ import annotations

from flask import request
from flask_login import login_required

from blueprints.auth.routes import admin_required
from blueprints.core.responses import created, ok
from blueprints.core.schemas import DayOut, TimeSlotOut

from . import bp, services
from .schemas import SlotAvailabilityOut, TimeSlotDetail, TimeSlotIn, TimeSlotUpdate, TimeSlotWithCount


def _out(slot) -> dict:
    return TimeSlotOut.model_validate(slot).dump()


@bp.get("/")
@login_required
def list_slots():
    data = [
        TimeSlotWithCount.model_validate(t).model_copy(update={"availability_count": n}).dump()
        for t, n in services.all_with_counts()
    ]
    return ok(data, "Time slots retrieved successfully")


@bp.get("/<int:slot_id>")
@login_required
def get_slot(slot_id: int):
    slot = services.get_slot(slot_id)
    avails = sorted(slot.availabilities, key=lambda a: a.day.day_order)
    detail = TimeSlotDetail(
        **TimeSlotOut.model_validate(slot).model_dump(),
        availabilities=[
            SlotAvailabilityOut(id=a.id, day=DayOut.model_validate(a.day), enrollment_count=len(a.enrollments))
            for a in avails
        ],
    )
    return ok(detail.dump(), "Time slot retrieved successfully")


@bp.post("/")
@admin_required
def create_slot():
    data = TimeSlotIn.model_validate(request.get_json(silent=True) or {})
    return created(_out(services.create_slot(data)), "Time slot created successfully")


@bp.put("/<int:slot_id>")
@admin_required
def update_slot(slot_id: int):
    data = TimeSlotUpdate.model_validate(request.get_json(silent=True) or {})
    return ok(_out(services.update_slot(slot_id, data)), "Time slot updated successfully")


@bp.delete("/<int:slot_id>")
@admin_required
def delete_slot(slot_id: int):
    services.delete_slot(slot_id)
    return ok(message="Time slot deleted successfully")
