from __future__ import annotations
import os
from importlib import import_module
from flask import Flask
from config import config_map
from extensions import db, migrate, login_manager
from werkzeug.security import generate_password_hash
from sqlalchemy import inspect

API_BLUEPRINTS = (
    # (module, url prefix)
    ("blueprints.auth.routes", "/api/auth"),
    ("blueprints.users", "/api/users"),
    ("blueprints.units", "/api/units"),
    ("blueprints.semesters", "/api/semesters"),
    ("blueprints.days", "/api/days"),
    ("blueprints.timeslots", "/api/timeslots"),
    ("blueprints.enrollments", "/api/enrollments"),
    ("blueprints.notifications", "/api/notifications"),
    ("blueprints.dashboard", "/api/dashboard"),
)


def _seed_from_config(app):
    if not app.config.get("SEED_TEST_DATA"):
        return
    with app.app_context():
        # tables may not exist yet (before `flask db upgrade`)
        if not inspect(db.engine).has_table("users"):
            return

        from models import User  # local import avoids a cycle
        from blueprints.days.services import ensure_days
        ensure_days()

        created = 0
        for u in app.config.get("DEFAULT_USERS", []):
            if User.query.filter_by(email=u["email"]).first():
                continue
            db.session.add(User(
                email=u["email"],
                password_hash=generate_password_hash(u["password"]),
                role=u["role"],
                is_active=True,
            ))
            created += 1
        if created:
            db.session.commit()
            app.logger.info("seeded %s default users", created)


def register_blueprints(app: Flask) -> None:
    # core carries the error handlers and request log, so it goes first
    import_module("blueprints.core.routes")
    from blueprints.core import bp as core_bp
    app.register_blueprint(core_bp)

    for module_name, prefix in API_BLUEPRINTS:
        module = import_module(module_name)
        app.register_blueprint(module.bp, url_prefix=prefix)


def create_app(config_name: str | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    cfg_name = config_name or os.getenv("FLASK_CONFIG", "default")
    app.config.from_object(config_map[cfg_name])
    # pytest sets PYTEST_CURRENT_TEST; never let a test touch a file database
    if os.environ.get("PYTEST_CURRENT_TEST"):
        app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite:///:memory:"
        app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", {"connect_args": {"check_same_thread": False}})
    app.json.ensure_ascii = False
    app.json.sort_keys = False
    # "/api/units" and "/api/units/" are the same collection
    app.url_map.strict_slashes = False

    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError:
        pass
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    register_blueprints(app)
    _seed_from_config(app)
    return app
