"""Tests for config loading."""

from datetime import datetime, timezone

import pytest

from compliance.config import Config, ConfigError, load_config


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    for name in ("SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "RESEND_API_KEY"):
        monkeypatch.delenv(name, raising=False)


def write_conf(tmp_path, text):
    path = tmp_path / "compliance.conf"
    path.write_text(text)
    return path


def test_missing_file_gives_defaults(tmp_path):
    config = load_config(tmp_path / "absent.conf")
    assert config == Config()
    assert config.calendar_reminder_days == [1]


def test_parses_values(tmp_path):
    path = write_conf(
        tmp_path,
        """
# Supabase
SUPABASE_URL="https://proj.supabase.co/"
SUPABASE_SERVICE_ROLE_KEY='service-key'
RESEND_API_KEY=re_123  # inline comment
EMAIL_FROM="Office <office@example.com>"
ORGANIZATION_ID=o1
TIMEZONE=UTC
SEND_DELAY=0.2
TASK_REMINDER_LIMIT=3
CLIENT_REMINDER_LIMIT=7
RATE_LIMIT_WINDOW=120
CALENDAR_SYNC_ENABLED=no
CALENDAR_REMINDER_DAYS=1, 3,7
not a setting
""",
    )

    config = load_config(path)

    assert config.supabase_url == "https://proj.supabase.co"
    assert config.supabase_service_role_key == "service-key"
    assert config.resend_api_key == "re_123"
    assert config.email_from == "Office <office@example.com>"
    assert config.organization_id == "o1"
    assert config.timezone == "UTC"
    assert config.send_delay == 0.2
    assert config.task_reminder_limit == 3
    assert config.client_reminder_limit == 7
    assert config.rate_limit_window == 120
    assert config.calendar_sync_enabled is False
    assert config.calendar_reminder_days == [1, 3, 7]


def test_bad_reminder_days_keeps_default(tmp_path):
    config = load_config(write_conf(tmp_path, "CALENDAR_REMINDER_DAYS=one,two\n"))
    assert config.calendar_reminder_days == [1]


def test_unknown_keys_ignored(tmp_path):
    config = load_config(write_conf(tmp_path, "TELEGRAM_TOKEN=abc\n"))
    assert config == Config()


def test_env_overrides_file(tmp_path, monkeypatch):
    path = write_conf(tmp_path, "SUPABASE_URL=https://file.supabase.co\nRESEND_API_KEY=from-file\n")
    monkeypatch.setenv("SUPABASE_URL", "https://env.supabase.co/")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "env-key")

    config = load_config(path)

    assert config.supabase_url == "https://env.supabase.co"
    assert config.supabase_service_role_key == "env-key"
    assert config.resend_api_key == "from-file"


class TestRequire:
    def test_missing_names_listed(self):
        with pytest.raises(ConfigError) as exc:
            Config(supabase_url="https://x").require("supabase_url", "supabase_service_role_key", "resend_api_key")
        assert str(exc.value).startswith("Missing config: SUPABASE_SERVICE_ROLE_KEY, RESEND_API_KEY.")

    def test_present(self):
        Config(resend_api_key="re_123").require("resend_api_key")


def test_today_uses_timezone():
    assert Config(timezone="UTC").today() == datetime.now(timezone.utc).date()
