from datetime import datetime, time, date
from enum import Enum as PyEnum

from flask_login import UserMixin
from sqlalchemy import (
    ForeignKey, UniqueConstraint, Index, Boolean, Date, DateTime, Time,
    Integer, String, Text,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from extensions import db


def utcnow() -> datetime:
    # naive UTC, same as what SQLite hands back
    return datetime.utcnow()


# ---------- Enums ----------
class Role(str, PyEnum):
    STUDENT = "STUDENT"
    ADMIN = "ADMIN"
    TUTOR = "TUTOR"
    TEACHER = "TEACHER"


class EnrollmentStatus(str, PyEnum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    WAITLISTED = "WAITLISTED"
    REJECTED = "REJECTED"


class NotificationType(str, PyEnum):
    GENERAL = "GENERAL"
    ACADEMIC = "ACADEMIC"
    URGENT = "URGENT"
    SYSTEM = "SYSTEM"


# ---------- Association Tables ----------
enrollment_availabilities = db.Table(
    "enrollment_availabilities",
    db.Column("enrollment_id", db.Integer, db.ForeignKey("enrollment.id", ondelete="CASCADE"), primary_key=True),
    db.Column("availability_id", db.Integer, db.ForeignKey("availability.id", ondelete="CASCADE"), primary_key=True),
)


# ---------- Identity ----------
class User(UserMixin, db.Model):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    # plain string column, not tied to a DB enum type
    role: Mapped[str] = mapped_column(String(16), index=True, nullable=False, default=Role.STUDENT.value)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    student_profile = relationship(
        "StudentProfile", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<User {self.email}>"


class StudentProfile(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    student_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email_address: Mapped[str | None] = mapped_column(String(255))
    address: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(32))
    program: Mapped[str | None] = mapped_column(String(255), index=True)
    year_level: Mapped[int | None] = mapped_column(Integer, index=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date)

    user = relationship("User", back_populates="student_profile")
    enrollments = relationship("Enrollment", back_populates="student_profile", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<StudentProfile {self.student_id}>"


# ---------- Catalogue ----------
class Unit(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    unit_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    credits: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    enrollments = relationship("Enrollment", back_populates="unit")

    def __repr__(self):
        return f"<Unit {self.unit_code}>"


class Semester(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    academic_year: Mapped[int] = mapped_column(Integer, nullable=False)
    semester_number: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    enrollment_start: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    enrollment_end: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    enrollments = relationship("Enrollment", back_populates="semester")

    __table_args__ = (
        UniqueConstraint("academic_year", "semester_number", name="uq_semester_year_number"),
    )

    def enrollment_open(self, now: datetime | None = None) -> bool:
        now = now or utcnow()
        return self.enrollment_start <= now <= self.enrollment_end

    def __repr__(self):
        return f"<Semester {self.name}>"


# ---------- Time descriptors ----------
class Day(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    short_name: Mapped[str] = mapped_column(String(8), unique=True, nullable=False)
    day_order: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)  # 1=Mon .. 7=Sun

    availabilities = relationship("Availability", back_populates="day")

    def __repr__(self):
        return f"<Day {self.name}>"


class TimeSlot(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)

    availabilities = relationship("Availability", back_populates="time_slot")

    __table_args__ = (
        UniqueConstraint("start_time", "end_time", name="uq_timeslot_range"),
        Index("ix_timeslot_start", "start_time"),
    )


class Availability(db.Model):
    """A (day, time slot) pairing. Created on demand, shared by enrollments."""
    id: Mapped[int] = mapped_column(primary_key=True)
    day_id: Mapped[int] = mapped_column(ForeignKey("day.id", ondelete="RESTRICT"), nullable=False)
    time_slot_id: Mapped[int] = mapped_column(ForeignKey("time_slot.id", ondelete="RESTRICT"), nullable=False)

    day = relationship("Day", back_populates="availabilities")
    time_slot = relationship("TimeSlot", back_populates="availabilities")
    enrollments = relationship("Enrollment", secondary=enrollment_availabilities, back_populates="availabilities")

    __table_args__ = (
        UniqueConstraint("day_id", "time_slot_id", name="uq_availability_day_slot"),
    )


# ---------- Enrollment ----------
class Enrollment(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    student_profile_id: Mapped[int] = mapped_column(ForeignKey("student_profile.id", ondelete="CASCADE"), nullable=False, index=True)
    unit_id: Mapped[int] = mapped_column(ForeignKey("unit.id", ondelete="RESTRICT"), nullable=False, index=True)
    semester_id: Mapped[int] = mapped_column(ForeignKey("semester.id", ondelete="RESTRICT"), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=EnrollmentStatus.PENDING.value)
    enrolled_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False, index=True)

    student_profile = relationship("StudentProfile", back_populates="enrollments")
    unit = relationship("Unit", back_populates="enrollments")
    semester = relationship("Semester", back_populates="enrollments")
    availabilities = relationship(
        "Availability", secondary=enrollment_availabilities, back_populates="enrollments",
        order_by="Availability.id",
    )

    __table_args__ = (
        UniqueConstraint("student_profile_id", "unit_id", "semester_id", name="uq_enrollment_student_unit_semester"),
    )


# ---------- Messaging ----------
class Notification(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False, default=NotificationType.GENERAL.value)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    creator = relationship("User")


class PasswordReset(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    otp: Mapped[str] = mapped_column(String(6), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


class AuditLog(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(64), nullable=False)
    entity_id: Mapped[int | None] = mapped_column(Integer)
    old_values: Mapped[str | None] = mapped_column(Text)
    new_values: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
