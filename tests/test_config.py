import pytest

from weather_notify.config import get_settings


def test_defaults(monkeypatch):
    for name in ("PORT", "DATABASE_PATH", "SMTP_PORT", "WEBSITE_URL",
                 "HOURLY_INTERVAL_SECONDS", "DAILY_INTERVAL_SECONDS", "SCHEDULER_ENABLED"):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.port == 8000
    assert settings.database_path == "subscriptions.db"
    assert settings.smtp_port == 587
    assert settings.website_url == "http://localhost:8000"
    assert settings.hourly_interval_seconds == 3600
    assert settings.daily_interval_seconds == 86400
    assert settings.scheduler_enabled is True


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PORT", "9090")
    monkeypatch.setenv("WEATHER_API_KEY", "abc")
    monkeypatch.setenv("SMTP_USE_TLS", "false")
    monkeypatch.setenv("WEBSITE_URL", "https://weather.example.org/")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.test,https://b.test")
    monkeypatch.setenv("SCHEDULER_ENABLED", "0")

    settings = get_settings()

    assert settings.port == 9090
    assert settings.weather_api_key == "abc"
    assert settings.smtp_use_tls is False
    assert settings.website_url == "https://weather.example.org"
    assert settings.cors_origins == ["https://a.test", "https://b.test"]
    assert settings.scheduler_enabled is False


def test_invalid_integer(monkeypatch):
    monkeypatch.setenv("SMTP_PORT", "not-a-port")

    with pytest.raises(ValueError, match="SMTP_PORT"):
        get_settings()
