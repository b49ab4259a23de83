from __future__ import annotations
from datetime import time
from typing import Optional

from pydantic import Field, model_validator

from blueprints.core.schemas import ApiModel, DayOut, TimeSlotOut


class TimeSlotIn(ApiModel):
    name: Optional[str] = Field(None, max_length=100)
    start_time: time
    end_time: time

    @model_validator(mode="after")
    def check_range(self):
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self


class TimeSlotUpdate(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    start_time: Optional[time] = None
    end_time: Optional[time] = None


class TimeSlotWithCount(TimeSlotOut):
    availability_count: int = 0


class SlotAvailabilityOut(ApiModel):
    id: int
    day: DayOut
    enrollment_count: int = 0


class TimeSlotDetail(TimeSlotOut):
    availabilities: list[SlotAvailabilityOut] = []
