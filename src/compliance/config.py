"""Configuration management for the compliance tracker."""

import logging
import os
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

COMPLIANCE_HOME = Path(os.environ.get("COMPLIANCE_HOME", Path.home() / ".compliance"))
CONFIG_FILE = COMPLIANCE_HOME / "config" / "compliance.conf"
GOOGLE_TOKEN_DIR = COMPLIANCE_HOME / "config" / "google"

# Secrets may come from the environment instead of the config file
ENV_OVERRIDES = {
    "SUPABASE_URL": "supabase_url",
    "SUPABASE_SERVICE_ROLE_KEY": "supabase_service_role_key",
    "RESEND_API_KEY": "resend_api_key",
}


class ConfigError(Exception):
    """Raised when a required setting is missing."""

    pass


@dataclass
class Config:
    """Compliance tracker configuration."""

    supabase_url: str = ""
    supabase_service_role_key: str = ""
    resend_api_key: str = ""
    email_from: str = "Compliance Tracker <onboarding@resend.dev>"
    # Default tenant scope for CLI commands
    organization_id: str = ""
    user_id: str = ""
    timezone: str = "Asia/Kolkata"
    # Pause between outbound emails, in seconds
    send_delay: float = 0.5
    # Trigger rate limits: requests per window, per caller
    task_reminder_limit: int = 5
    client_reminder_limit: int = 10
    rate_limit_window: int = 60
    # Google Calendar
    google_client_secret_file: str = ""
    google_token_folder: str = str(GOOGLE_TOKEN_DIR)
    google_calendar_id: str = "primary"
    calendar_sync_enabled: bool = True
    calendar_reminder_days: list[int] = field(default_factory=lambda: [1])

    def today(self) -> date:
        """Current date in the configured timezone."""
        return datetime.now(ZoneInfo(self.timezone)).date()

    def require(self, *names: str) -> None:
        """Raise ConfigError if any of the named settings is empty."""
        missing = [n.upper() for n in names if not getattr(self, n)]
        if missing:
            raise ConfigError(f"Missing config: {', '.join(missing)}. Add to {CONFIG_FILE}")


def _unquote(value: str) -> str:
    """Strip quotes, or an inline comment on unquoted values."""
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        if end_quote != -1:
            return value[1:end_quote]
        return value[1:]
    # Unquoted: strip inline comments
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config(path: Path | None = None) -> Config:
    """Load configuration from compliance.conf, then apply environment overrides."""
    config = Config()
    path = path or CONFIG_FILE

    if path.exists():
        for line in path.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            if "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip().lower()
            value = _unquote(value.strip())

            match key:
                case "supabase_url":
                    config.supabase_url = value.rstrip("/")
                case "supabase_service_role_key":
                    config.supabase_service_role_key = value
                case "resend_api_key":
                    config.resend_api_key = value
                case "email_from":
                    config.email_from = value
                case "organization_id":
                    config.organization_id = value
                case "user_id":
                    config.user_id = value
                case "timezone":
                    config.timezone = value
                case "send_delay":
                    config.send_delay = float(value)
                case "task_reminder_limit":
                    config.task_reminder_limit = int(value)
                case "client_reminder_limit":
                    config.client_reminder_limit = int(value)
                case "rate_limit_window":
                    config.rate_limit_window = int(value)
                case "google_client_secret_file":
                    config.google_client_secret_file = value
                case "google_token_folder":
                    config.google_token_folder = value
                case "google_calendar_id":
                    config.google_calendar_id = value
                case "calendar_sync_enabled":
                    config.calendar_sync_enabled = _parse_bool(value)
                case "calendar_reminder_days":
                    try:
                        config.calendar_reminder_days = [int(d.strip()) for d in value.split(",") if d.strip()]
                    except ValueError as e:
                        logger.warning(f"Failed to parse CALENDAR_REMINDER_DAYS: {e}")
                case _:
                    logger.debug(f"Ignoring unknown config key: {key}")

    for env_name, attr in ENV_OVERRIDES.items():
        env_value = os.environ.get(env_name)
        if env_value:
            setattr(config, attr, env_value.rstrip("/") if attr == "supabase_url" else env_value)

    return config
