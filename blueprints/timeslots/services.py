# blueprints/timeslots/services.py
from __future__ import annotations
import logging
from datetime import time

from sqlalchemy import func

from errors import AppError, Conflict, NotFound
from extensions import db
from models import Availability, TimeSlot

from .schemas import TimeSlotIn, TimeSlotUpdate

log = logging.getLogger(__name__)

DUPLICATE = "A time slot with this start and end time already exists"


def slot_name(start: time, end: time) -> str:
    return f"{start:%H:%M}-{end:%H:%M}"


def all_with_counts() -> list[tuple[TimeSlot, int]]:
    rows = (db.session.query(TimeSlot, func.count(Availability.id))
            .outerjoin(Availability, Availability.time_slot_id == TimeSlot.id)
            .group_by(TimeSlot.id)
            .order_by(TimeSlot.start_time.asc(), TimeSlot.end_time.asc())
            .all())
    return [(t, int(n)) for t, n in rows]


def get_slot(slot_id: int) -> TimeSlot:
    slot = db.session.get(TimeSlot, slot_id)
    if not slot:
        raise NotFound("Time slot not found")
    return slot


def _range_taken(start: time, end: time, exclude_id: int | None = None) -> bool:
    q = TimeSlot.query.filter_by(start_time=start, end_time=end)
    if exclude_id is not None:
        q = q.filter(TimeSlot.id != exclude_id)
    return db.session.query(q.exists()).scalar()


def create_slot(data: TimeSlotIn) -> TimeSlot:
    if _range_taken(data.start_time, data.end_time):
        raise Conflict(DUPLICATE)
    slot = TimeSlot(
        name=(data.name or "").strip() or slot_name(data.start_time, data.end_time),
        start_time=data.start_time,
        end_time=data.end_time,
    )
    db.session.add(slot)
    db.session.commit()
    return slot


def update_slot(slot_id: int, data: TimeSlotUpdate) -> TimeSlot:
    slot = get_slot(slot_id)
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    start = changes.get("start_time", slot.start_time)
    end = changes.get("end_time", slot.end_time)
    if end <= start:
        raise AppError("End time must be after start time")
    if (start, end) != (slot.start_time, slot.end_time) and _range_taken(start, end, slot.id):
        raise Conflict(DUPLICATE)
    for field, value in changes.items():
        setattr(slot, field, value)
    db.session.commit()
    return slot


def delete_slot(slot_id: int) -> None:
    slot = get_slot(slot_id)
    in_use = db.session.query(Availability.query.filter_by(time_slot_id=slot.id).exists()).scalar()
    if in_use:
        raise AppError("Cannot delete time slot as it is used in an availability")
    db.session.delete(slot)
    db.session.commit()
