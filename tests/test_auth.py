from __future__ import annotations
import re
from datetime import datetime, timedelta

from extensions import db
from models import AuditLog, PasswordReset, User

from conftest import PASSWORD

PROFILE = {
    "firstName": "Ada",
    "lastName": "Lovelace",
    "phone": "0400111222",
    "program": "Bachelor of IT",
    "yearLevel": 2,
}


def _register(client, email="ada@example.com", password="Str0ng!pass", **extra):
    body = {"email": email, "password": password, "profileData": PROFILE, **extra}
    return client.post("/api/auth/register", json=body)


def test_register_student_generates_id_and_tokens(client, app):
    r = _register(client)
    assert r.status_code == 201
    js = r.get_json()
    assert js["success"] is True
    data = js["data"]
    assert data["user"]["role"] == "STUDENT"
    assert re.fullmatch(r"CIHE\d{4}", data["user"]["studentProfile"]["studentId"])
    assert data["accessToken"] and data["refreshToken"]
    with app.app_context():
        assert AuditLog.query.filter_by(action="USER_REGISTER").count() == 1


def test_register_rejects_weak_password_and_bad_email(client):
    assert _register(client, password="password").status_code == 400
    assert _register(client, email="not-an-email").status_code == 400


def test_register_duplicate_email_conflict(client):
    assert _register(client).status_code == 201
    r = _register(client, email="ADA@example.com")
    assert r.status_code == 409
    assert r.get_json()["success"] is False


def test_register_student_requires_profile(client):
    r = client.post("/api/auth/register", json={"email": "x@example.com", "password": "Str0ng!pass"})
    assert r.status_code == 400


def test_public_register_cannot_create_admin(client, admin):
    r = _register(client, email="boss@example.com", role="ADMIN")
    assert r.status_code == 403

    _, headers = admin
    r = client.post("/api/auth/register", headers=headers,
                    json={"email": "boss@example.com", "password": "Str0ng!pass", "role": "ADMIN"})
    assert r.status_code == 201
    assert r.get_json()["data"]["user"]["role"] == "ADMIN"


def test_login_and_profile(client, make_user):
    make_user("s1@example.com")
    r = client.post("/api/auth/login", json={"email": "S1@example.com", "password": PASSWORD})
    assert r.status_code == 200
    token = r.get_json()["data"]["accessToken"]

    r = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.get_json()["data"]["email"] == "s1@example.com"


def test_login_failures(client, make_user):
    make_user("s1@example.com")
    make_user("off@example.com", is_active=False)
    assert client.post("/api/auth/login", json={"email": "s1@example.com"}).status_code == 400
    r = client.post("/api/auth/login", json={"email": "s1@example.com", "password": "nope"})
    assert r.status_code == 401
    assert r.get_json()["message"] == "Invalid credentials"
    r = client.post("/api/auth/login", json={"email": "off@example.com", "password": PASSWORD})
    assert r.status_code == 401
    assert r.get_json()["message"] == "Account is deactivated"


def test_bearer_token_errors(client, app, make_user, auth):
    r = client.get("/api/auth/profile")
    assert r.status_code == 401
    assert r.get_json() == {"success": False, "message": "Access denied. No token provided."}

    r = client.get("/api/auth/profile", headers={"Authorization": "Bearer garbage"})
    assert r.status_code == 401
    assert r.get_json()["message"] == "Invalid token."

    uid = make_user()
    headers = auth(uid)
    with app.app_context():
        db.session.get(User, uid).is_active = False
        db.session.commit()
    r = client.get("/api/auth/profile", headers=headers)
    assert r.status_code == 401
    assert r.get_json()["message"] == "Account is deactivated."


def test_refresh_token_roundtrip(client, make_user):
    make_user("s1@example.com")
    tokens = client.post("/api/auth/login", json={"email": "s1@example.com", "password": PASSWORD}).get_json()["data"]

    r = client.post("/api/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert r.status_code == 200
    assert r.get_json()["data"]["accessToken"]

    # an access token is not a refresh token
    r = client.post("/api/auth/refresh", json={"refreshToken": tokens["accessToken"]})
    assert r.status_code == 401


def test_change_password(client, make_user, auth):
    uid = make_user("s1@example.com")
    headers = auth(uid)
    r = client.post("/api/auth/change-password", headers=headers,
                    json={"currentPassword": "wrong", "newPassword": "N3w!passw"})
    assert r.status_code == 400
    r = client.post("/api/auth/change-password", headers=headers,
                    json={"currentPassword": PASSWORD, "newPassword": "N3w!passw"})
    assert r.status_code == 200
    r = client.post("/api/auth/login", json={"email": "s1@example.com", "password": "N3w!passw"})
    assert r.status_code == 200


def test_forgot_and_reset_password(client, app, make_user):
    uid = make_user("s1@example.com")
    assert client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"}).status_code == 404

    r = client.post("/api/auth/forgot-password", json={"email": "s1@example.com"})
    assert r.status_code == 200
    outbox = app.extensions["mail_outbox"]
    assert len(outbox) == 1 and outbox[0]["To"] == "s1@example.com"

    with app.app_context():
        otp = PasswordReset.query.filter_by(user_id=uid).one().otp
    assert re.fullmatch(r"\d{6}", otp)

    wrong = "000000" if otp != "000000" else "111111"
    r = client.post("/api/auth/reset-password",
                    json={"email": "s1@example.com", "otp": wrong, "newPassword": "R3set!pass"})
    assert r.status_code == 400

    r = client.post("/api/auth/reset-password",
                    json={"email": "s1@example.com", "otp": otp, "newPassword": "R3set!pass"})
    assert r.status_code == 200
    with app.app_context():
        assert PasswordReset.query.filter_by(user_id=uid).count() == 0
    assert client.post("/api/auth/login", json={"email": "s1@example.com", "password": "R3set!pass"}).status_code == 200


def test_reset_rejects_expired_otp(client, app, make_user):
    uid = make_user("s1@example.com")
    client.post("/api/auth/forgot-password", json={"email": "s1@example.com"})
    with app.app_context():
        reset = PasswordReset.query.filter_by(user_id=uid).one()
        reset.expires_at = datetime.utcnow() - timedelta(minutes=1)
        otp = reset.otp
        db.session.commit()
    r = client.post("/api/auth/reset-password",
                    json={"email": "s1@example.com", "otp": otp, "newPassword": "R3set!pass"})
    assert r.status_code == 400


def test_update_profile_email_taken(client, make_user, auth):
    make_user("taken@example.com")
    uid = make_user("s1@example.com")
    headers = auth(uid)
    r = client.put("/api/auth/profile", headers=headers, json={"email": "taken@example.com"})
    assert r.status_code == 409
    r = client.put("/api/auth/profile", headers=headers, json={"phone": "0499999999", "yearLevel": 3})
    assert r.status_code == 200
    profile = r.get_json()["data"]["studentProfile"]
    assert profile["phone"] == "0499999999" and profile["yearLevel"] == 3


def test_register_email_normalized_and_validated(client):
    assert _register(client, email="a@b..c").status_code == 400
    assert _register(client, email="no-at-sign.example.com").status_code == 400

    r = _register(client, email="  Ada.L@Example.COM ")
    assert r.status_code == 201
    assert r.get_json()["data"]["user"]["email"] == "ada.l@example.com"
    r = client.post("/api/auth/login", json={"email": "ADA.L@example.com", "password": "Str0ng!pass"})
    assert r.status_code == 200
