from __future__ import annotations
from datetime import date, datetime, timedelta
from itertools import count

import pytest
from werkzeug.security import generate_password_hash

from app import create_app
from extensions import db
from models import Semester, StudentProfile, Unit, User
from blueprints.auth.services import issue_tokens
from blueprints.days.services import ensure_days

PASSWORD = "Passw0rd!"
_seq = count(1)


@pytest.fixture()
def app():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        ensure_days()
    # requests push their own app context; keep none open here so
    # per-request state (current user) never carries over
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()
    app.extensions.get("mail_outbox", []).clear()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def make_user(app):
    def _make(email: str | None = None, role: str = "STUDENT", *, password: str = PASSWORD,
              is_active: bool = True, profile: dict | None = None) -> int:
        n = next(_seq)
        email = email or f"user{n}@example.com"
        with app.app_context():
            user = User(email=email, password_hash=generate_password_hash(password), role=role, is_active=is_active)
            if role == "STUDENT" or profile is not None:
                data = {
                    "student_id": f"CIHE{n:04d}",
                    "first_name": "Stu",
                    "last_name": f"Dent{n}",
                    "program": "BIT",
                    "year_level": 1,
                    "phone": "0400000000",
                }
                data.update(profile or {})
                user.student_profile = StudentProfile(**data)
            db.session.add(user)
            db.session.commit()
            return user.id
    return _make


@pytest.fixture()
def auth(app):
    """Bearer header for a user id."""
    def _auth(user_id: int) -> dict:
        with app.app_context():
            token = issue_tokens(db.session.get(User, user_id))["accessToken"]
        return {"Authorization": f"Bearer {token}"}
    return _auth


@pytest.fixture()
def admin(make_user, auth):
    uid = make_user("admin@example.com", role="ADMIN")
    return uid, auth(uid)


@pytest.fixture()
def student(app, make_user, auth):
    """(user id, student profile id, headers)"""
    uid = make_user("student@example.com")
    with app.app_context():
        profile_id = StudentProfile.query.filter_by(user_id=uid).one().id
    return uid, profile_id, auth(uid)


@pytest.fixture()
def make_unit(app):
    def _make(code: str = "ICT101", title: str = "Intro to IT", credits: int = 10) -> int:
        with app.app_context():
            unit = Unit(unit_code=code, title=title, credits=credits)
            db.session.add(unit)
            db.session.commit()
            return unit.id
    return _make


@pytest.fixture()
def make_semester(app):
    def _make(*, open_window: bool = True, year: int = 2025, number: int = 1) -> int:
        now = datetime.utcnow()
        if open_window:
            e_start, e_end = now - timedelta(days=1), now + timedelta(days=30)
        else:
            e_start, e_end = now - timedelta(days=60), now - timedelta(days=30)
        with app.app_context():
            s = Semester(
                name=f"Semester {number} {year}",
                academic_year=year,
                semester_number=number,
                start_date=date.today() - timedelta(days=7),
                end_date=date.today() + timedelta(days=90),
                enrollment_start=e_start,
                enrollment_end=e_end,
            )
            db.session.add(s)
            db.session.commit()
            return s.id
    return _make
