from __future__ import annotations
from datetime import date, datetime
from typing import Optional

from pydantic import Field

from blueprints.core.schemas import ApiModel, AvailabilityOut
from blueprints.units.schemas import UnitOut
from models import EnrollmentStatus


# ---------- input ----------
class ScheduleSlotIn(ApiModel):
    day_name: str = Field(min_length=1)
    time_slot: str = Field(min_length=1)


class EnrollmentIn(ApiModel):
    student_profile_id: int
    unit_id: int
    semester_id: int
    availability_ids: Optional[list[int]] = None
    schedule_slots: Optional[list[ScheduleSlotIn]] = None


class MyEnrollmentIn(ApiModel):
    unit_id: int
    semester_id: int
    schedule_slots: Optional[list[ScheduleSlotIn]] = None
    availability_ids: Optional[list[int]] = None


class EnrollmentUpdate(ApiModel):
    availability_ids: Optional[list[int]] = None
    schedule_slots: Optional[list[ScheduleSlotIn]] = None
    status: Optional[EnrollmentStatus] = None


# ---------- output ----------
class StudentBrief(ApiModel):
    id: int
    student_id: str
    first_name: str
    last_name: str
    email_address: Optional[str] = None
    program: Optional[str] = None
    year_level: Optional[int] = None


class SemesterBrief(ApiModel):
    id: int
    name: str
    academic_year: int
    semester_number: int
    start_date: date
    end_date: date


class EnrollmentOut(ApiModel):
    id: int
    student_profile_id: int
    unit_id: int
    semester_id: int
    status: str
    enrolled_at: datetime
    student_profile: StudentBrief
    unit: UnitOut
    semester: SemesterBrief
    availabilities: list[AvailabilityOut] = []


def enrollment_out(enrollment) -> dict:
    return EnrollmentOut.model_validate(enrollment).dump()
