from __future__ import annotations
from datetime import datetime
from typing import Literal, Optional, Union

from pydantic import Field, field_validator

from blueprints.core.schemas import ApiModel
from models import NotificationType, Role


class NotificationIn(ApiModel):
    title: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1)
    type: NotificationType = NotificationType.GENERAL
    send_email: bool = False
    role: Union[Role, Literal["ALL"]] = "ALL"
    year_level: Optional[int] = None
    program: Optional[str] = None

    @field_validator("title", "message")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title and message are required")
        return v

    @field_validator("year_level", "program", mode="before")
    @classmethod
    def _blank_is_none(cls, v):
        return None if v == "" else v


class NotificationUpdate(ApiModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    message: Optional[str] = Field(None, min_length=1)
    type: Optional[NotificationType] = None
    is_active: Optional[bool] = None


class CreatorOut(ApiModel):
    id: int
    email: str
    role: str


class NotificationOut(ApiModel):
    id: int
    title: str
    message: str
    type: str
    is_active: bool
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    creator: Optional[CreatorOut] = None


def notification_out(n) -> dict:
    return NotificationOut.model_validate(n).dump()
