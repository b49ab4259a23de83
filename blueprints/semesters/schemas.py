from __future__ import annotations
from datetime import date, datetime, timezone
from typing import Annotated, Optional

from pydantic import AfterValidator, Field, model_validator

from blueprints.core.schemas import ApiModel


def naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored datetimes are naive UTC."""
    if value is not None and value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


UtcDateTime = Annotated[datetime, AfterValidator(naive_utc)]


class SemesterIn(ApiModel):
    name: str = Field(min_length=1, max_length=100)
    academic_year: int = Field(ge=2000, le=2100)
    semester_number: int = Field(ge=1, le=4)
    start_date: date
    end_date: date
    enrollment_start: Optional[UtcDateTime] = None
    enrollment_end: Optional[UtcDateTime] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date >= self.end_date:
            raise ValueError("End date must be after start date")
        if (self.enrollment_start and self.enrollment_end
                and self.enrollment_start >= self.enrollment_end):
            raise ValueError("Enrollment end date must be after enrollment start date")
        return self


class SemesterUpdate(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    academic_year: Optional[int] = Field(None, ge=2000, le=2100)
    semester_number: Optional[int] = Field(None, ge=1, le=4)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    enrollment_start: Optional[UtcDateTime] = None
    enrollment_end: Optional[UtcDateTime] = None


class SemesterOut(ApiModel):
    id: int
    name: str
    academic_year: int
    semester_number: int
    start_date: date
    end_date: date
    enrollment_start: datetime
    enrollment_end: datetime
    is_enrollment_open: bool = False
    enrollment_count: Optional[int] = None


def semester_out(semester, enrollment_count: int | None = None, now: datetime | None = None) -> dict:
    out = SemesterOut.model_validate(semester).model_copy(update={
        "is_enrollment_open": semester.enrollment_open(now),
        "enrollment_count": enrollment_count,
    })
    return out.model_dump(mode="json", by_alias=True, exclude_none=True)
