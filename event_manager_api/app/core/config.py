"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
application starts without any configuration; in a production
deployment override them via environment variables.
"""

import os
from dataclasses import dataclass


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Event Manager API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = _flag("DEBUG", "false")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")
    secret_key: str = os.getenv("SECRET_KEY", "change_me")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))

    # Path to the SQLite database.  Relative paths are resolved against
    # the project root by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "event_manager.db")

    # Directory holding uploaded material blobs.  Relative paths are
    # resolved the same way as ``database_url``.
    storage_root: str = os.getenv("STORAGE_ROOT", "storage")
    max_upload_bytes: int = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

    # Base URL used when building RSVP and feedback links inside mails.
    app_url: str = os.getenv("APP_URL", "http://localhost:8000")

    # ``smtp`` delivers through the configured server, ``console`` only
    # writes rendered messages to the log.
    mail_backend: str = os.getenv("MAIL_BACKEND", "console")
    mail_from: str = os.getenv("MAIL_FROM", "events@example.com")
    smtp_host: str = os.getenv("SMTP_HOST", "localhost")
    smtp_port: int = int(os.getenv("SMTP_PORT", "587"))
    smtp_username: str = os.getenv("SMTP_USERNAME", "")
    smtp_password: str = os.getenv("SMTP_PASSWORD", "")
    smtp_use_tls: bool = _flag("SMTP_USE_TLS", "true")

    # When true, anyone holding a participant id may submit feedback or
    # answer an invitation without authenticating.  When false the caller
    # must be the event owner or the participant itself.
    public_feedback: bool = _flag("PUBLIC_FEEDBACK", "true")


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# should be set before importing this module.
settings = Settings()
