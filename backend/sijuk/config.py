# backend/sijuk/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/sijuk.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///sijuk.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Distribution visits whose unit margin falls below this are flagged
    LOW_MARGIN_THRESHOLD_PERCENT = float(os.environ.get("LOW_MARGIN_THRESHOLD_PERCENT", "10"))

    APP_NAME = "SIJUK"
    APP_VERSION = os.environ.get("APP_VERSION", "1.0.0")

    # bcrypt cost factor (tests lower this to keep hashing fast)
    BCRYPT_LOG_ROUNDS = int(os.environ.get("BCRYPT_LOG_ROUNDS", "12"))

    # Session lifetime for bearer tokens
    SESSION_ABSOLUTE_TIMEOUT_HOURS = int(os.environ.get("SESSION_ABSOLUTE_TIMEOUT_HOURS", "24"))
    SESSION_IDLE_TIMEOUT_MINUTES = int(os.environ.get("SESSION_IDLE_TIMEOUT_MINUTES", "120"))
