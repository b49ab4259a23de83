import logging
from logging.config import fileConfig
from pathlib import Path
import sys

from alembic import context
from flask import current_app, has_app_context

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)
log = logging.getLogger("alembic.env")

if not has_app_context():
    # plain `alembic ...` outside `flask db`: build the app ourselves
    sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
    from app import create_app

    create_app().app_context().push()

import models  # noqa: E402,F401

db = current_app.extensions["migrate"].db


def _engine_url() -> str:
    return db.engine.url.render_as_string(hide_password=False).replace("%", "%%")


config.set_main_option("sqlalchemy.url", config.get_main_option("sqlalchemy.url") or _engine_url())


def _skip_empty_autogenerate(context_, revision, directives):
    if getattr(config.cmd_opts, "autogenerate", False) and directives[0].upgrade_ops.is_empty():
        directives[:] = []
        log.info("No schema changes detected")


def _options() -> dict:
    # batch mode so SQLite can rebuild tables for ALTERs
    return {
        "target_metadata": db.metadata,
        "render_as_batch": True,
        "compare_type": True,
        "process_revision_directives": _skip_empty_autogenerate,
    }


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_options(),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    with db.engine.connect() as connection:
        context.configure(connection=connection, **_options())
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
