"""Backend settings (single source of truth).

This module loads `.env` from the project root (if present) and exposes typed-ish constants.
Keep it lightweight to avoid circular imports.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

_env_path = Path(__file__).resolve().parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)


APP_TITLE = "DSA Notes"
APP_VERSION = "1.0.0"
APP_DESCRIPTION = "DSA question reference site with an admin panel"


def _split_csv(value: str) -> List[str]:
    parts = [p.strip() for p in value.split(",")]
    return [p for p in parts if p]


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "y")


ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
IS_PRODUCTION: bool = ENVIRONMENT == "production"


# CORS
# Explicit origins only. Empty (the default) means no cross-origin access at all;
# "*" is never honoured because the admin panel authenticates with a cookie.
CORS_ALLOW_ORIGINS: List[str] = _split_csv(os.getenv("CORS_ALLOW_ORIGINS", ""))


# Signing key for session cookies.
# Dev default is deterministic so restarts keep sessions; set SECRET_KEY in production.
JWT_ALGORITHM = "HS256"
SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-change-me")


# Database
DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./dsa_notes.db")


# Sessions
SESSION_COOKIE_NAME: str = os.getenv("SESSION_COOKIE_NAME", "coding-documenty.sid")
SESSION_TTL_SECONDS: int = int(os.getenv("SESSION_TTL_SECONDS", str(14 * 24 * 60 * 60)))
SESSION_COOKIE_SECURE: bool = IS_PRODUCTION
SESSION_COOKIE_SAMESITE: str = os.getenv("SESSION_COOKIE_SAMESITE", "lax").lower()


# Admin bootstrap / password reset
# Empty means the first-run signup form does not ask for a shared secret.
SIGNUP_SECRET_KEY: str = os.getenv("SIGNUP_SECRET_KEY", "")
RESET_TOKEN_TTL_SECONDS: int = 60 * 60
PASSWORD_MIN_LENGTH: int = 6
# Used to build reset links; falls back to the incoming request's base URL.
PUBLIC_BASE_URL: str = os.getenv("PUBLIC_BASE_URL", "").rstrip("/")


# Outbound mail
SMTP_HOST: str = os.getenv("SMTP_HOST", "")
SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER: str = os.getenv("SMTP_USER", "")
SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
SMTP_USE_TLS: bool = _env_flag("SMTP_USE_TLS", "true")
SMTP_TIMEOUT_SECONDS: int = 10
EMAIL_FROM: str = os.getenv("EMAIL_FROM", "no-reply@dsa-notes.local")
