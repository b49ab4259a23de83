from __future__ import annotations
from datetime import datetime, time, timedelta

from sqlalchemy import false

from extensions import db
from models import Availability, Enrollment, Semester, StudentProfile, TimeSlot

URL = "/api/enrollments/my-enrollments"


def _slots(*pairs):
    return [{"dayName": d, "timeSlot": t} for d, t in pairs]


def _enroll(client, headers, unit_id, semester_id, slots=(("Tuesday", "11:30am - 2:30pm"),)):
    return client.post(URL, headers=headers, json={
        "unitId": unit_id,
        "semesterId": semester_id,
        "scheduleSlots": _slots(*slots),
    })


def test_student_submits_schedule_slot(client, student, make_unit, make_semester):
    _, profile_id, headers = student
    unit_id, sem_id = make_unit(), make_semester()

    r = _enroll(client, headers, unit_id, sem_id)
    assert r.status_code == 201, r.get_json()
    data = r.get_json()["data"]
    assert data["status"] == "PENDING"
    assert data["studentProfileId"] == profile_id
    assert data["unit"]["unitCode"] == "ICT101"
    assert len(data["availabilities"]) == 1
    avail = data["availabilities"][0]
    assert avail["day"]["name"] == "Tuesday"
    assert avail["timeSlot"]["startTime"] == "11:30"
    assert avail["timeSlot"]["endTime"] == "14:30"


def test_evening_slot_is_normalized(client, app, student, make_unit, make_semester):
    _, _, headers = student
    r = _enroll(client, headers, make_unit(), make_semester(), [("monday", "6:00pm - 9:00pm")])
    assert r.status_code == 201
    slot = r.get_json()["data"]["availabilities"][0]["timeSlot"]
    assert (slot["startTime"], slot["endTime"]) == ("18:00", "21:00")
    assert slot["name"] == "18:00-21:00"


def test_duplicate_enrollment_conflicts(client, app, student, make_unit, make_semester):
    _, _, headers = student
    unit_id, sem_id = make_unit(), make_semester()
    assert _enroll(client, headers, unit_id, sem_id).status_code == 201

    # a different schedule does not make it a different enrollment
    r = _enroll(client, headers, unit_id, sem_id, [("Friday", "9:00 - 12:00")])
    assert r.status_code == 409
    assert r.get_json()["message"] == "Student is already enrolled in this unit for this semester"
    with app.app_context():
        assert Enrollment.query.count() == 1


def test_closed_window_rejected_without_writes(client, app, student, make_unit, make_semester):
    _, _, headers = student
    r = _enroll(client, headers, make_unit(), make_semester(open_window=False))
    assert r.status_code == 400
    assert r.get_json()["message"] == "Enrollment period is not active for this semester"
    with app.app_context():
        assert Enrollment.query.count() == 0
        assert Availability.query.count() == 0


def test_unknown_day_and_bad_range(client, app, student, make_unit, make_semester):
    _, _, headers = student
    unit_id, sem_id = make_unit(), make_semester()

    r = _enroll(client, headers, unit_id, sem_id, [("Funday", "9:00-12:00")])
    assert r.status_code == 400
    assert r.get_json()["message"] == "Day 'Funday' not found"

    r = _enroll(client, headers, unit_id, sem_id, [("Monday", "whenever")])
    assert r.status_code == 400
    assert "Invalid time slot format" in r.get_json()["message"]
    with app.app_context():
        assert Enrollment.query.count() == 0


def test_missing_unit_or_semester(client, student, make_unit, make_semester):
    _, _, headers = student
    r = _enroll(client, headers, 9999, make_semester())
    assert r.status_code == 404
    r = _enroll(client, headers, make_unit(), 9999)
    assert r.status_code == 404


def test_availability_rows_are_shared(client, app, make_user, auth, make_unit, make_semester):
    unit_id, sem_id = make_unit(), make_semester()
    h1, h2 = auth(make_user()), auth(make_user())
    a = _enroll(client, h1, unit_id, sem_id, [("Tuesday", "11:30am - 2:30pm")]).get_json()["data"]
    b = _enroll(client, h2, unit_id, sem_id, [("tuesday", "11:30-14:30")]).get_json()["data"]
    assert a["availabilities"][0]["id"] == b["availabilities"][0]["id"]
    with app.app_context():
        assert Availability.query.count() == 1
        assert TimeSlot.query.count() == 1


def test_repeated_slot_in_one_request_is_collapsed(client, student, make_unit, make_semester):
    _, _, headers = student
    r = _enroll(client, headers, make_unit(), make_semester(),
                [("Wednesday", "9am-12pm"), ("Wednesday", "09:00-12:00")])
    assert r.status_code == 201
    assert len(r.get_json()["data"]["availabilities"]) == 1


def test_explicit_availability_ids(client, app, student, make_unit, make_semester):
    _, _, headers = student
    unit_id, sem_id = make_unit(), make_semester()
    r = client.post(URL, headers=headers, json={"unitId": unit_id, "semesterId": sem_id, "availabilityIds": [42]})
    assert r.status_code == 400
    assert r.get_json()["message"] == "Some availability slots not found"


def test_student_without_profile(client, app, make_user, auth, make_unit, make_semester):
    uid = make_user()
    with app.app_context():
        StudentProfile.query.filter_by(user_id=uid).delete()
        db.session.commit()
    r = _enroll(client, auth(uid), make_unit(), make_semester())
    assert r.status_code == 404
    assert r.get_json()["message"] == "Student profile not found for current user"


def test_my_enrollments_and_ownership(client, make_user, auth, student, make_unit, make_semester):
    _, _, headers = student
    unit_id, sem_id = make_unit(), make_semester()
    mine = _enroll(client, headers, unit_id, sem_id).get_json()["data"]

    other = auth(make_user())
    theirs = _enroll(client, other, unit_id, sem_id).get_json()["data"]

    r = client.get(URL, headers=headers)
    assert r.status_code == 200
    assert [e["id"] for e in r.get_json()["data"]] == [mine["id"]]

    assert client.get(f"/api/enrollments/{mine['id']}", headers=headers).status_code == 200
    r = client.get(f"/api/enrollments/{theirs['id']}", headers=headers)
    assert r.status_code == 403

    r = client.put(f"{URL}/{theirs['id']}", headers=headers, json={"scheduleSlots": _slots(("Monday", "9-12"))})
    assert r.status_code == 403
    assert r.get_json()["message"] == "You can only update your own enrollments"
    r = client.delete(f"{URL}/{theirs['id']}", headers=headers)
    assert r.status_code == 403
    assert r.get_json()["message"] == "You can only cancel your own enrollments"


def test_student_updates_and_cancels(client, app, student, make_unit, make_semester):
    _, _, headers = student
    enrollment = _enroll(client, headers, make_unit(), make_semester()).get_json()["data"]
    url = f"{URL}/{enrollment['id']}"

    r = client.put(url, headers=headers, json={"scheduleSlots": _slots(("Thursday", "1pm-4pm"), ("Friday", "1pm-4pm"))})
    assert r.status_code == 200
    days = [a["day"]["name"] for a in r.get_json()["data"]["availabilities"]]
    assert sorted(days) == ["Friday", "Thursday"]

    assert client.put(url, headers=headers, json={"status": "APPROVED"}).status_code == 403

    assert client.delete(url, headers=headers).status_code == 200
    with app.app_context():
        assert Enrollment.query.count() == 0
        # shared availabilities outlive the enrollment
        assert Availability.query.count() == 3


def test_changes_blocked_after_window(client, app, student, make_unit, make_semester):
    _, _, headers = student
    sem_id = make_semester()
    enrollment = _enroll(client, headers, make_unit(), sem_id).get_json()["data"]
    with app.app_context():
        db.session.get(Semester, sem_id).enrollment_end = datetime.utcnow() - timedelta(hours=1)
        db.session.commit()

    r = client.put(f"{URL}/{enrollment['id']}", headers=headers, json={"availabilityIds": []})
    assert r.status_code == 400
    assert r.get_json()["message"] == "Cannot modify enrollment after enrollment period has ended"
    r = client.delete(f"{URL}/{enrollment['id']}", headers=headers)
    assert r.status_code == 400
    assert r.get_json()["message"] == "Cannot cancel enrollment after enrollment period has ended"


def test_staff_routes(client, admin, student, make_unit, make_semester):
    _, admin_headers = admin
    _, profile_id, student_headers = student
    unit_id, sem_id = make_unit(), make_semester()

    assert client.get("/api/enrollments/", headers=student_headers).status_code == 403

    r = client.post("/api/enrollments/", headers=admin_headers, json={
        "studentProfileId": profile_id, "unitId": unit_id, "semesterId": sem_id,
        "scheduleSlots": _slots(("Monday", "6:00pm - 9:00pm")),
    })
    assert r.status_code == 201
    eid = r.get_json()["data"]["id"]

    r = client.get("/api/enrollments/?search=ICT", headers=admin_headers)
    body = r.get_json()["data"]
    assert body["pagination"]["total"] == 1
    assert body["items"][0]["id"] == eid

    r = client.put(f"/api/enrollments/{eid}", headers=admin_headers, json={"status": "APPROVED"})
    assert r.status_code == 200
    assert r.get_json()["data"]["status"] == "APPROVED"
    assert client.put(f"/api/enrollments/{eid}", headers=admin_headers, json={"status": "MAYBE"}).status_code == 400

    for path in (f"student/{profile_id}", f"unit/{unit_id}", f"semester/{sem_id}"):
        r = client.get(f"/api/enrollments/{path}", headers=admin_headers)
        assert [e["id"] for e in r.get_json()["data"]] == [eid]

    assert client.delete(f"/api/enrollments/{eid}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/enrollments/{eid}", headers=admin_headers).status_code == 404


def test_tutor_is_staff_but_admin_cannot_use_student_routes(client, make_user, auth, admin):
    tutor = auth(make_user(role="TUTOR"))
    assert client.get("/api/enrollments/", headers=tutor).status_code == 200
    _, admin_headers = admin
    assert client.get(URL, headers=admin_headers).status_code == 403


def test_repeated_availability_id_rejected(client, app, student, make_unit, make_semester):
    _, _, headers = student
    sem_id = make_semester()
    first = _enroll(client, headers, make_unit("ICT101"), sem_id).get_json()["data"]
    aid = first["availabilities"][0]["id"]

    r = client.post(URL, headers=headers, json={
        "unitId": make_unit("ICT102"), "semesterId": sem_id, "availabilityIds": [aid, aid],
    })
    assert r.status_code == 400
    assert r.get_json()["message"] == "Some availability slots not found"
    r = client.post(URL, headers=headers, json={
        "unitId": make_unit("ICT103"), "semesterId": sem_id, "availabilityIds": [aid],
    })
    assert r.status_code == 201


class _MissFirstLookup:
    """Replaces ``Model.query``: the first ``filter_by`` finds nothing and
    runs ``on_miss``, as if another request committed right after the read."""

    def __init__(self, model, on_miss):
        self.model = model
        self.on_miss = on_miss
        self.missed = False

    def filter_by(self, **keys):
        q = db.session.query(self.model).filter_by(**keys)
        if self.missed:
            return q
        self.missed = True
        self.on_miss()
        return q.filter(false())


def test_time_slot_created_concurrently_is_reused(client, app, student, make_unit, make_semester, monkeypatch):
    _, _, headers = student
    unit_id, sem_id = make_unit(), make_semester()

    def competing_insert():
        with db.engine.begin() as conn:
            conn.execute(TimeSlot.__table__.insert().values(
                name="09:00-12:00", start_time=time(9, 0), end_time=time(12, 0)))

    with app.app_context():
        monkeypatch.setattr(TimeSlot, "query", _MissFirstLookup(TimeSlot, competing_insert))
    r = _enroll(client, headers, unit_id, sem_id, [("Monday", "9am-12pm")])
    assert r.status_code == 201, r.get_json()
    slot = r.get_json()["data"]["availabilities"][0]["timeSlot"]
    assert (slot["startTime"], slot["endTime"]) == ("09:00", "12:00")

    monkeypatch.undo()
    with app.app_context():
        assert TimeSlot.query.count() == 1
        assert Availability.query.one().time_slot_id == slot["id"]


def test_concurrent_duplicate_enrollment_conflicts(client, app, student, make_unit, make_semester, monkeypatch):
    _, profile_id, headers = student
    unit_id, sem_id = make_unit(), make_semester()

    def competing_insert():
        with db.engine.begin() as conn:
            conn.execute(Enrollment.__table__.insert().values(
                student_profile_id=profile_id, unit_id=unit_id, semester_id=sem_id))

    with app.app_context():
        monkeypatch.setattr(Enrollment, "query", _MissFirstLookup(Enrollment, competing_insert))
    r = _enroll(client, headers, unit_id, sem_id)
    assert r.status_code == 409
    assert r.get_json()["message"] == "Student is already enrolled in this unit for this semester"

    monkeypatch.undo()
    with app.app_context():
        assert Enrollment.query.count() == 1
