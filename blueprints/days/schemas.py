from __future__ import annotations
from typing import Optional

from pydantic import Field

from blueprints.core.schemas import ApiModel, DayOut, TimeSlotOut


class DayIn(ApiModel):
    name: str = Field(min_length=1, max_length=16)
    short_name: str = Field(min_length=1, max_length=8)
    day_order: int = Field(ge=1, le=7)


class DayUpdate(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=16)
    short_name: Optional[str] = Field(None, min_length=1, max_length=8)
    day_order: Optional[int] = Field(None, ge=1, le=7)


class DayWithCount(DayOut):
    availability_count: int = 0


class DaySlotOut(ApiModel):
    id: int
    time_slot: TimeSlotOut
    approved_enrollments: int = 0


class DayWithAvailabilities(DayOut):
    availabilities: list[DaySlotOut] = []
