from __future__ import annotations
import os
from pathlib import Path


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    BASE_DIR = Path(__file__).resolve().parent
    # SQLite file in project directory
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'app.db'}")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # bearer tokens
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "your-secret-key")
    JWT_REFRESH_SECRET_KEY = os.getenv("JWT_REFRESH_SECRET_KEY", "your-refresh-secret")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ACCESS_EXPIRES_MINUTES = int(os.getenv("JWT_ACCESS_EXPIRES_MINUTES", "120"))
    JWT_REFRESH_EXPIRES_DAYS = int(os.getenv("JWT_REFRESH_EXPIRES_DAYS", "7"))

    # outgoing mail
    SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "465"))
    SMTP_USER = os.getenv("SMTP_USER")
    SMTP_PASS = os.getenv("SMTP_PASS")
    SMTP_USE_SSL = _env_bool("SMTP_USE_SSL", True)
    FROM_EMAIL = os.getenv("FROM_EMAIL") or os.getenv("SMTP_USER") or "no-reply@localhost"
    MAIL_SENDER_NAME = os.getenv("MAIL_SENDER_NAME", "CIHE Pre-Enrollment System")
    MAIL_SUPPRESS_SEND = _env_bool("MAIL_SUPPRESS_SEND", False)

    PASSWORD_RESET_OTP_MINUTES = 15
    STUDENT_ID_PREFIX = os.getenv("STUDENT_ID_PREFIX", "CIHE")

    DEFAULT_PAGE_SIZE = 20
    MAX_PAGE_SIZE = 100


class DevConfig(BaseConfig):
    DEBUG = True
    SEED_TEST_DATA = True
    MAIL_SUPPRESS_SEND = _env_bool("MAIL_SUPPRESS_SEND", True)
    DEFAULT_USERS = [
        {"email": "admin@example.com", "password": "Admin@1234", "role": "ADMIN"},
    ]


class TestConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SEED_TEST_DATA = False
    DEFAULT_USERS = []
    MAIL_SUPPRESS_SEND = True
    JWT_SECRET_KEY = "test-secret"
    JWT_REFRESH_SECRET_KEY = "test-refresh-secret"


class ProdConfig(BaseConfig):
    DEBUG = False
    SEED_TEST_DATA = False
    DEFAULT_USERS = []


config_map = {
    "dev": DevConfig,
    "test": TestConfig,
    "prod": ProdConfig,
    "default": DevConfig,
}
