# backend/armory/config.py
from __future__ import annotations
import os


def _origins(raw: str) -> set[str]:
    return {o.strip() for o in raw.split(",") if o.strip()}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/armory.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///armory.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # SQLite waits this many seconds on a locked database before raising
    SQLALCHEMY_ENGINE_OPTIONS = {
        "connect_args": {"timeout": float(os.environ.get("DB_BUSY_TIMEOUT", "15"))},
    } if SQLALCHEMY_DATABASE_URI.startswith("sqlite") else {}

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Total attempts for a unit of work that hits a concurrent-update conflict
    CONFLICT_RETRY_ATTEMPTS = int(os.environ.get("CONFLICT_RETRY_ATTEMPTS", "2"))

    CORS_ALLOWED_ORIGINS = _origins(os.environ.get(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
    ))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    BCRYPT_ROUNDS = 4
