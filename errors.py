from __future__ import annotations


class AppError(Exception):
    """Application error carrying the HTTP status it should be reported with.

    Services raise it; the core blueprint turns it into
    ``{"success": false, "message": ...}``.
    """

    status_code = 400

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"success": False, "message": self.message}


class Unauthorized(AppError):
    status_code = 401


class Forbidden(AppError):
    status_code = 403


class NotFound(AppError):
    status_code = 404


class Conflict(AppError):
    status_code = 409
