from __future__ import annotations
import logging
from pathlib import Path

from flask_migrate import upgrade
from sqlalchemy import inspect

from app import create_app
from blueprints.core.routes import JSONFormatter
from extensions import db
from models import Day


def test_health_ok(client):
    rv = client.get("/api/health")
    assert rv.status_code == 200
    data = rv.get_json()
    assert data["status"] == "ok"
    assert data["db"] == "connected"
    assert data["ts"].endswith("Z")


def test_unknown_route_uses_error_envelope(client):
    rv = client.get("/api/nope")
    assert rv.status_code == 404
    body = rv.get_json()
    assert body["success"] is False
    assert body["message"]


def test_wrong_method_is_json(client):
    rv = client.delete("/api/health")
    assert rv.status_code == 405
    assert rv.get_json()["success"] is False


def test_validation_errors_name_the_field(client, admin):
    _, headers = admin
    rv = client.post("/api/units/", headers=headers, json={"title": "No code", "credits": 10})
    assert rv.status_code == 400
    body = rv.get_json()
    assert body["message"].startswith("unitCode")
    assert body["details"][0]["field"] == "unitCode"


def test_trailing_slash_optional(client, student):
    _, _, headers = student
    assert client.get("/api/days", headers=headers).status_code == 200
    assert client.get("/api/days/", headers=headers).status_code == 200


def test_pagination_clamped(client, admin, make_unit):
    _, headers = admin
    for i in range(3):
        make_unit(f"ICT10{i}")
    rv = client.get("/api/units/?page=2&limit=2", headers=headers)
    body = rv.get_json()["data"]
    assert [u["unitCode"] for u in body["items"]] == ["ICT102"]
    assert body["pagination"] == {
        "page": 2, "limit": 2, "total": 3, "totalPages": 2, "hasNext": False, "hasPrev": True,
    }
    rv = client.get("/api/units/?page=0&limit=junk", headers=headers)
    assert rv.get_json()["data"]["pagination"]["page"] == 1


def test_json_formatter_fields():
    record = logging.LogRecord("app", logging.INFO, __file__, 1, "request handled", None, None)
    record.path = "/api/health"
    record.status = 200
    out = JSONFormatter().format(record)
    assert '"path": "/api/health"' in out
    assert '"status": 200' in out
    assert '"level": "INFO"' in out


def test_migrations_build_schema_and_seed_days():
    app = create_app("test")
    with app.app_context():
        upgrade(directory=str(Path(__file__).resolve().parents[1] / "migrations"))
        tables = set(inspect(db.engine).get_table_names())
        assert {"users", "enrollment", "enrollment_availabilities", "alembic_version"} <= tables
        assert Day.query.count() == 7
        db.session.remove()
        db.drop_all()
