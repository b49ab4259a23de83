from __future__ import annotations
from typing import Optional

from pydantic import Field, field_validator

from blueprints.core.schemas import ApiModel


def _code(v: Optional[str]) -> Optional[str]:
    return v.strip().upper() if v is not None else v


class UnitIn(ApiModel):
    unit_code: str = Field(min_length=1, max_length=32)
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    credits: int = Field(ge=0, le=100)

    @field_validator("unit_code")
    @classmethod
    def _upper(cls, v):
        return _code(v)


class UnitUpdate(ApiModel):
    unit_code: Optional[str] = Field(None, min_length=1, max_length=32)
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    credits: Optional[int] = Field(None, ge=0, le=100)

    @field_validator("unit_code")
    @classmethod
    def _upper(cls, v):
        return _code(v)


class UnitOut(ApiModel):
    id: int
    unit_code: str
    title: str
    description: Optional[str] = None
    credits: int


class UnitWithCount(UnitOut):
    enrollment_count: int = 0
