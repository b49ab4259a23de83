# scripts/dev_db_init.py
from datetime import date, datetime, time, timedelta
from werkzeug.security import generate_password_hash

from app import create_app
from extensions import db
from models import Semester, TimeSlot, Unit, User
from blueprints.days.services import ensure_days
from blueprints.timeslots.services import slot_name

COMMON_SLOTS = [
    (time(9, 0), time(12, 0)),
    (time(11, 30), time(14, 30)),
    (time(13, 0), time(16, 0)),
    (time(18, 0), time(21, 0)),
]

UNITS = [
    ("ICT101", "Introduction to Information Technology", 10),
    ("ICT102", "Programming Fundamentals", 10),
    ("ICT201", "Database Systems", 10),
    ("ICT202", "Networking Essentials", 10),
]


def seed_minimal():
    ensure_days()

    for start, end in COMMON_SLOTS:
        if not TimeSlot.query.filter_by(start_time=start, end_time=end).first():
            db.session.add(TimeSlot(name=slot_name(start, end), start_time=start, end_time=end))

    for code, title, credits in UNITS:
        if not Unit.query.filter_by(unit_code=code).first():
            db.session.add(Unit(unit_code=code, title=title, credits=credits))

    today = date.today()
    if not Semester.query.filter_by(academic_year=today.year, semester_number=1).first():
        start = today - timedelta(days=14)
        end = today + timedelta(days=120)
        db.session.add(Semester(
            name=f"Semester 1 {today.year}",
            academic_year=today.year,
            semester_number=1,
            start_date=start,
            end_date=end,
            enrollment_start=datetime.combine(start, time.min),
            enrollment_end=datetime.combine(today + timedelta(days=30), time.max),
        ))

    # admin for logging in
    if not User.query.filter_by(email="admin@example.com").first():
        db.session.add(User(
            email="admin@example.com",
            role="ADMIN",
            password_hash=generate_password_hash("Admin@1234"),
        ))

    db.session.commit()


if __name__ == "__main__":
    app = create_app("dev")
    with app.app_context():
        db.create_all()
        seed_minimal()
        print("DB initialized and seeded")
