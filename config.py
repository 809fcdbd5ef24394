"""
Application configuration — environment-aware settings.

All environment variables are documented here. See .env.example for a template.
"""

from __future__ import annotations

import os
import warnings
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

BASE_DIR = Path(__file__).parent

load_dotenv()


class BaseConfig:
    # Core Flask
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-key-change-in-production")
    DATABASE = os.environ.get("DATABASE_URL", str(BASE_DIR / "study_buddy.db"))
    WTF_CSRF_ENABLED = True

    # Session security
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    PERMANENT_SESSION_LIFETIME = 86400

    # Notes are plain text; keep request bodies small
    MAX_CONTENT_LENGTH = 1 * 1024 * 1024  # 1 MB

    # Generative AI
    GOOGLE_API_KEY = os.environ.get("GOOGLE_API_KEY", "")
    GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")
    AI_MAX_ATTEMPTS = int(os.environ.get("AI_MAX_ATTEMPTS", "1"))
    QUIZ_LANGUAGE = os.environ.get("QUIZ_LANGUAGE", "Korean")

    # UI language ("ko" or "en"); empty follows QUIZ_LANGUAGE
    UI_LOCALE = os.environ.get("UI_LOCALE", "")
    BABEL_TRANSLATION_DIRECTORIES = str(BASE_DIR / "translations")

    # Review dates are computed on this zone's calendar ("" = server local time)
    TIMEZONE = os.environ.get("TIMEZONE", "")

    # Logging
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "text")  # "json" or "text"
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Google OAuth
    GOOGLE_OAUTH_CLIENT_ID = os.environ.get("GOOGLE_OAUTH_CLIENT_ID", "")
    GOOGLE_OAUTH_CLIENT_SECRET = os.environ.get("GOOGLE_OAUTH_CLIENT_SECRET", "")

    # Rate limiting (in-memory unless a storage URI is given)
    RATELIMIT_STORAGE_URI = os.environ.get("RATELIMIT_STORAGE_URI", "") or "memory://"

    # Server-side sessions hold the in-progress quiz
    SESSION_TYPE = "filesystem"
    SESSION_FILE_DIR = str(BASE_DIR / "flask_session")
    SESSION_PERMANENT = True
    SESSION_KEY_PREFIX = "studybuddy:"


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "text")


class ProductionConfig(BaseConfig):
    DEBUG = False
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "json")
    SESSION_COOKIE_SECURE = True

    @classmethod
    def validate(cls):
        """Fail fast on missing or insecure configuration in production."""
        errors: list[str] = []

        if cls.SECRET_KEY in ("dev-key-change-in-production", ""):
            errors.append("SECRET_KEY must be set to a secure value in production.")

        if cls.AI_MAX_ATTEMPTS < 1:
            errors.append("AI_MAX_ATTEMPTS must be at least 1.")

        if cls.TIMEZONE:
            try:
                ZoneInfo(cls.TIMEZONE)
            except (ZoneInfoNotFoundError, ValueError):
                errors.append(f"TIMEZONE {cls.TIMEZONE!r} is not a known IANA zone name.")

        if not cls.GOOGLE_API_KEY:
            warnings.warn("GOOGLE_API_KEY is not set — quizzes will be unavailable.")

        if not cls.GOOGLE_OAUTH_CLIENT_ID:
            warnings.warn("GOOGLE_OAUTH_CLIENT_ID is not set — nobody will be able to log in.")

        if errors:
            raise RuntimeError(
                "Production configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
            )


class TestingConfig(BaseConfig):
    TESTING = True
    WTF_CSRF_ENABLED = False
    TIMEZONE = "UTC"
    UI_LOCALE = "en"


config_by_name = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
