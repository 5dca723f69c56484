"""Application configuration."""

import json
import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_TRIGGER_KEYWORDS = ("驗證", "認證")


class ConfigurationError(RuntimeError):
    """Raised when credentials or backend settings are missing or malformed."""


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    line_channel_access_token: str
    line_channel_secret: str
    google_service_account_json: str
    google_sheets_id: str
    sheet_name: str = "Sheet1"
    trigger_keywords: str = ",".join(DEFAULT_TRIGGER_KEYWORDS)
    artifact_backend: str = "inline"
    google_drive_folder_id: str | None = None
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    supabase_bucket: str = "verification-images"
    supabase_folder: str | None = None
    session_idle_timeout_seconds: float | None = None
    port: int = 10000
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_trigger_keywords(raw: str | None) -> frozenset[str]:
    """Parse the comma-separated trigger keywords, falling back to defaults."""
    if raw is None:
        return frozenset(DEFAULT_TRIGGER_KEYWORDS)
    keywords = {chunk.strip() for chunk in raw.split(",")}
    keywords.discard("")
    return frozenset(keywords) or frozenset(DEFAULT_TRIGGER_KEYWORDS)


def parse_service_account_info(raw: str) -> dict[str, object]:
    """Parse the Google service account JSON blob."""
    try:
        info = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(
            "GOOGLE_SERVICE_ACCOUNT_JSON is not valid JSON"
        ) from exc
    if not isinstance(info, dict):
        raise ConfigurationError("GOOGLE_SERVICE_ACCOUNT_JSON must be an object")
    missing = [key for key in ("client_email", "private_key") if not info.get(key)]
    if missing:
        raise ConfigurationError(
            f"GOOGLE_SERVICE_ACCOUNT_JSON is missing: {', '.join(missing)}"
        )
    return info
