from __future__ import annotations

from extensions import db
from models import StudentProfile


def test_admin_stats(client, admin, student, make_user, make_unit, make_semester):
    _, headers = admin
    _, _, sh = student
    make_user(role="TUTOR")
    unit_id, sem_id = make_unit(), make_semester()
    make_unit("ICT102")
    client.post("/api/enrollments/my-enrollments", headers=sh, json={"unitId": unit_id, "semesterId": sem_id})
    client.post("/api/notifications/", headers=headers, json={"title": "a", "message": "b"})
    nid = client.post("/api/notifications/", headers=headers, json={"title": "c", "message": "d"}).get_json()["data"]["id"]
    client.patch(f"/api/notifications/{nid}/toggle", headers=headers)

    r = client.get("/api/dashboard/admin/stats", headers=headers)
    assert r.get_json()["data"] == {
        "totalUnits": 2,
        "totalUsers": 1,
        "totalEnrollments": 1,
        "totalSemesters": 1,
        "activeNotifications": 1,
    }
    assert client.get("/api/dashboard/admin/stats", headers=sh).status_code == 403


def test_student_stats(client, student, make_unit, make_semester):
    _, _, sh = student
    unit_id, sem_id = make_unit(), make_semester()
    client.post("/api/enrollments/my-enrollments", headers=sh, json={"unitId": unit_id, "semesterId": sem_id})
    r = client.get("/api/dashboard/student/stats", headers=sh)
    assert r.get_json()["data"] == {"myEnrollments": 1, "availableUnits": 1, "totalSemesters": 1}


def test_student_stats_without_profile(client, app, make_user, auth):
    uid = make_user()
    with app.app_context():
        StudentProfile.query.filter_by(user_id=uid).delete()
        db.session.commit()
    r = client.get("/api/dashboard/student/stats", headers=auth(uid))
    assert r.get_json()["data"] == {"myEnrollments": 0, "availableUnits": 0, "totalSemesters": 0}
