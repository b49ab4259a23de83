from __future__ import annotations
import re
from datetime import date, datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BeforeValidator, EmailStr, Field, field_validator

from blueprints.core.schemas import ApiModel
from models import Role

PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[^\w\s]).{8,}$")

PASSWORD_RULE = (
    "Password must be at least 8 characters long and contain "
    "uppercase, lowercase, number and special character"
)


def _strip(value):
    return value.strip() if isinstance(value, str) else value


def check_password(value: str) -> str:
    if not PASSWORD_RE.match(value or ""):
        raise ValueError(PASSWORD_RULE)
    return value


# stored lower-cased so lookups and uniqueness ignore case
Email = Annotated[EmailStr, BeforeValidator(_strip), AfterValidator(str.lower)]
Password = Annotated[str, AfterValidator(check_password)]


# ---------- input ----------
class ProfileDataIn(ApiModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    phone: str = Field(min_length=1, max_length=32)
    program: str = Field(min_length=1, max_length=255)
    year_level: int = Field(ge=1, le=10)
    student_id: Optional[str] = Field(None, max_length=32)
    email_address: Optional[str] = None
    address: Optional[str] = Field(None, max_length=255)
    date_of_birth: Optional[date] = None


class RegisterIn(ApiModel):
    email: Email
    password: Password
    role: Role = Role.STUDENT
    profile_data: Optional[ProfileDataIn] = None


class LoginIn(ApiModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def _norm(cls, v: str) -> str:
        return v.strip().lower()


class RefreshIn(ApiModel):
    refresh_token: str = Field(min_length=1)


class ChangePasswordIn(ApiModel):
    current_password: str = Field(min_length=1)
    new_password: Password


class ForgotPasswordIn(ApiModel):
    email: Email


class ResetPasswordIn(ApiModel):
    email: Email
    otp: str = Field(pattern=r"^\d{6}$")
    new_password: Password


class ProfileUpdateIn(ApiModel):
    email: Optional[Email] = None
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email_address: Optional[str] = None
    address: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=32)
    program: Optional[str] = Field(None, max_length=255)
    year_level: Optional[int] = Field(None, ge=1, le=10)
    date_of_birth: Optional[date] = None


# ---------- output ----------
class StudentProfileOut(ApiModel):
    id: int
    student_id: str
    first_name: str
    last_name: str
    email_address: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    program: Optional[str] = None
    year_level: Optional[int] = None
    date_of_birth: Optional[date] = None


class UserOut(ApiModel):
    id: int
    email: str
    role: str
    is_active: bool
    created_at: datetime
    updated_at: datetime
    student_profile: Optional[StudentProfileOut] = None


def user_out(user) -> dict:
    return UserOut.model_validate(user).dump()
