from __future__ import annotations
from datetime import time
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Wire format is camelCase; python side stays snake_case."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def dump(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def fmt_time(value: time | None) -> str:
    if not value:
        return ""
    return value.strftime("%H:%M")


# times go out as "HH:MM", not "HH:MM:SS"
HHMM = Annotated[time, PlainSerializer(fmt_time, return_type=str, when_used="json")]


# ---------- shared reference shapes ----------
class DayOut(ApiModel):
    id: int
    name: str
    short_name: str
    day_order: int


class TimeSlotOut(ApiModel):
    id: int
    name: str
    start_time: HHMM
    end_time: HHMM


class AvailabilityOut(ApiModel):
    id: int
    day_id: int
    time_slot_id: int
    day: DayOut
    time_slot: TimeSlotOut
