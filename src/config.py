"""Runtime configuration loaded once per invocation from the environment."""

import os
from typing import Optional
from pydantic import BaseModel, Field
from src.utils.errors import ConfigurationError


# Field name -> environment variable reported when the value is missing
ENV_NAMES = {
    "intercom_access_token": "INTERCOM_ACCESS_TOKEN",
    "intercom_webhook_secret": "INTERCOM_WEBHOOK_SECRET",
    "intercom_admin_id": "INTERCOM_ADMIN_ID",
    "ghl_access_token": "GHL_ACCESS_TOKEN",
    "ghl_location_id": "GHL_LOCATION_ID",
    "google_sheet_id": "GOOGLE_SHEET_ID",
    "google_sheets_credentials": "GOOGLE_SHEETS_CREDENTIALS",
    "supabase_url": "SUPABASE_URL",
    "supabase_service_role_key": "SUPABASE_SERVICE_ROLE_KEY",
    "anthropic_api_key": "ANTHROPIC_API_KEY",
    "openai_api_key": "OPENAI_API_KEY",
}

# Values every ticket-writing path needs
TICKET_SYNC_FIELDS = (
    "intercom_access_token",
    "ghl_access_token",
    "ghl_location_id",
    "google_sheet_id",
    "google_sheets_credentials",
)


def _env(*names: str) -> Optional[str]:
    """First non-empty value among the given environment variables."""
    for name in names:
        value = os.environ.get(name, "").strip()
        if value:
            return value
    return None


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Configuration for one handler invocation."""
    intercom_access_token: Optional[str] = Field(None, description="Intercom API access token")
    intercom_webhook_secret: Optional[str] = Field(None, description="Shared secret for x-hub-signature")
    intercom_admin_id: Optional[str] = Field(None, description="Default admin for conversation actions")
    ghl_access_token: Optional[str] = Field(None, description="GoHighLevel API token")
    ghl_location_id: Optional[str] = Field(None, description="GoHighLevel location (sub-account) ID")
    google_sheet_id: Optional[str] = Field(None, description="Spreadsheet holding counter and audit log")
    google_sheets_credentials: Optional[str] = Field(None, description="Service account JSON")
    supabase_url: Optional[str] = None
    supabase_service_role_key: Optional[str] = None
    llm_provider: str = Field(default="anthropic", description="anthropic or openai")
    llm_model: str = Field(default="claude-sonnet-4-20250514")
    anthropic_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    counter_fallback_enabled: bool = Field(
        default=True,
        description="Substitute a timestamp-derived ticket number when the counter is unavailable"
    )
    http_timeout_seconds: float = Field(default=30.0, gt=0)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        return cls(
            intercom_access_token=_env("INTERCOM_ACCESS_TOKEN"),
            intercom_webhook_secret=_env("INTERCOM_WEBHOOK_SECRET"),
            intercom_admin_id=_env("INTERCOM_ADMIN_ID"),
            ghl_access_token=_env("GHL_ACCESS_TOKEN", "GHL_ACCESS_TOKEN_TEMP"),
            ghl_location_id=_env("GHL_LOCATION_ID", "VITE_GHL_LOCATION_ID"),
            google_sheet_id=_env("GOOGLE_SHEET_ID"),
            google_sheets_credentials=_env("GOOGLE_SHEETS_CREDENTIALS"),
            supabase_url=_env("SUPABASE_URL"),
            supabase_service_role_key=_env("SUPABASE_SERVICE_ROLE_KEY"),
            llm_provider=(_env("LLM_PROVIDER") or "anthropic").lower(),
            llm_model=_env("LLM_MODEL") or "claude-sonnet-4-20250514",
            anthropic_api_key=_env("ANTHROPIC_API_KEY"),
            openai_api_key=_env("OPENAI_API_KEY"),
            counter_fallback_enabled=_env_flag("TICKET_COUNTER_FALLBACK_ENABLED", True),
            http_timeout_seconds=float(_env("HTTP_TIMEOUT_SECONDS") or 30),
        )

    def missing(self, *fields: str) -> list[str]:
        """Environment variable names of the given fields that are unset."""
        return [ENV_NAMES.get(f, f.upper()) for f in fields if not getattr(self, f)]

    def require(self, *fields: str) -> None:
        """Raise ConfigurationError naming every missing value."""
        missing = self.missing(*fields)
        if missing:
            raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key)

    def config_flags(self) -> dict[str, bool]:
        """Presence flags for the health check (never the values themselves)."""
        return {
            "hasIntercomToken": bool(self.intercom_access_token),
            "hasWebhookSecret": bool(self.intercom_webhook_secret),
            "hasGhlToken": bool(self.ghl_access_token),
            "hasGhlLocationId": bool(self.ghl_location_id),
            "hasGoogleSheetId": bool(self.google_sheet_id),
            "hasGoogleSheetsCredentials": bool(self.google_sheets_credentials),
            "hasSupabase": self.supabase_configured,
        }
