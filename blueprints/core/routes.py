from __future__ import annotations
import json, logging
from datetime import datetime

from flask import current_app, g, jsonify, request
from pydantic import ValidationError
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.exceptions import HTTPException
from werkzeug.wrappers.response import Response

from errors import AppError
from extensions import db

from . import bp

log = logging.getLogger(__name__)


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.utcnow().isoformat(timespec="milliseconds") + "Z",
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in ("event", "path", "method", "status", "duration_ms", "user_id"):
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _setup_structured_logging(app):
    logger = app.logger
    has_json = any(
        isinstance(h, logging.StreamHandler)
        and isinstance(getattr(h, "formatter", None), JSONFormatter)
        for h in logger.handlers
    )
    if not has_json:
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)


@bp.record_once
def _on_register(state):
    _setup_structured_logging(state.app)


# ---------- request log ----------
@bp.before_app_request
def _start_timer():
    g._req_start = datetime.utcnow()


@bp.after_app_request
def _log_request(response: Response):
    try:
        duration_ms = int((datetime.utcnow() - g._req_start).total_seconds() * 1000)
    except AttributeError:
        duration_ms = None
    user = getattr(g, "api_user", None)
    extra = {
        "event": "http_request",
        "path": request.path,
        "method": request.method,
        "status": response.status_code,
        "duration_ms": duration_ms,
        "user_id": getattr(user, "id", None),
    }
    current_app.logger.info("request handled", extra=extra)
    return response


# ---------- errors -> {"success": false, "message": ...} ----------
@bp.app_errorhandler(AppError)
def _app_error(e: AppError):
    return jsonify(e.to_dict()), e.status_code


@bp.app_errorhandler(ValidationError)
def _validation_error(e: ValidationError):
    details = []
    for err in e.errors(include_url=False, include_context=False):
        loc = ".".join(str(p) for p in err.get("loc", ()))
        details.append({"field": loc, "message": err.get("msg")})
    first = details[0] if details else {"field": "", "message": "invalid input"}
    message = f"{first['field']}: {first['message']}" if first["field"] else first["message"]
    return jsonify({"success": False, "message": message, "details": details}), 400


@bp.app_errorhandler(IntegrityError)
def _integrity_error(e: IntegrityError):
    db.session.rollback()
    log.warning("integrity error: %s", getattr(e, "orig", e))
    return jsonify({"success": False, "message": "Unique constraint violation"}), 409


@bp.app_errorhandler(HTTPException)
def _http_error(e: HTTPException):
    return jsonify({"success": False, "message": e.description or e.name}), e.code


@bp.app_errorhandler(Exception)
def _unhandled(e: Exception):
    db.session.rollback()
    log.exception("unhandled error on %s %s", request.method, request.path)
    return jsonify({"success": False, "message": "Internal server error"}), 500


# ---------- health ----------
@bp.get("/api/health")
def health():
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        log.error("health check failed: %s", e)
        return jsonify({"status": "error", "db": "disconnected", "error": str(e)}), 500
    return jsonify({
        "status": "ok",
        "db": "connected",
        "ts": datetime.utcnow().isoformat(timespec="seconds") + "Z",
    })
