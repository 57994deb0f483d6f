"""
Application configuration.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
service starts out of the box for local development; in production
override them via the environment (``SECRET_KEY`` in particular).
"""

import os
from dataclasses import dataclass, field
from typing import List


def _split_csv(value: str) -> List[str]:
    return [item.strip().lower() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Dial a Service API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")
    secret_key: str = os.getenv("SECRET_KEY", "change_me")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))
    algorithm: str = os.getenv("ALGORITHM", "HS256")

    # Accounts registered with one of these addresses are created with
    # the ``admin`` role.  Comma-separated, compared case-insensitively.
    admin_emails: List[str] = field(default_factory=lambda: _split_csv(os.getenv("ADMIN_EMAILS", "")))

    # Lifetime of a passwordless sign-in link.
    magic_link_ttl_minutes: int = int(os.getenv("MAGIC_LINK_TTL_MINUTES", "15"))

    # Path to the SQLite database file.  Relative paths are resolved
    # against the project root by ``core.db``.
    database_url: str = os.getenv("DATABASE_URL", "dial_a_service.db")

    # Root directory for uploaded files; each bucket is a subdirectory.
    media_root: str = os.getenv("MEDIA_ROOT", "media")
    max_upload_bytes: int = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))

    # Base URL under which this API is reachable (used for public file
    # URLs) and the URL of the front end (used in e-mails).
    public_base_url: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")
    app_url: str = os.getenv("APP_URL", "http://localhost:3000")

    sendgrid_api_key: str = os.getenv("SENDGRID_API_KEY", "")
    email_from: str = os.getenv("EMAIL_FROM", "noreply@dialaservice.com")
    sendgrid_template_approved: str = os.getenv("SENDGRID_TEMPLATE_APPROVED", "")
    sendgrid_template_rejected: str = os.getenv("SENDGRID_TEMPLATE_REJECTED", "")


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# must be set before this module is imported.
settings = Settings()
