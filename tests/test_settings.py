import pytest

from config.settings import Settings


def test_defaults(monkeypatch):
    for key in ("DATABASE_URL", "DB_HOST", "DB_PORT", "DB_NAME", "AUTO_REFRESH_INTERVAL_MINUTES", "USE_GEMINI"):
        monkeypatch.delenv(key, raising=False)
    settings = Settings()

    assert settings.DATABASE_URL.startswith("mysql+pymysql://")
    assert settings.DATABASE_URL.endswith("@localhost:3306/price_compare")
    assert settings.AUTO_REFRESH_INTERVAL_MINUTES == 60
    assert settings.AI_MAX_ATTEMPTS == 2
    assert settings.USE_GEMINI is True
    assert settings.APP_THEME == "dark"


def test_environment_is_read(monkeypatch):
    monkeypatch.setenv("AUTO_REFRESH_INTERVAL_MINUTES", "15")
    monkeypatch.setenv("USE_GEMINI", "false")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///env.db")

    settings = Settings()

    assert settings.AUTO_REFRESH_INTERVAL_MINUTES == 15
    assert settings.USE_GEMINI is False
    assert settings.DATABASE_URL == "sqlite:///env.db"


def test_overrides_win_over_environment(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///env.db")
    settings = Settings(DATABASE_URL="sqlite:///override.db", SCRAPE_ENGINES=" HTTP , browser ,")

    assert settings.DATABASE_URL == "sqlite:///override.db"
    assert settings.scrape_engines == ["http", "browser"]


def test_unknown_override_is_an_error():
    with pytest.raises(AttributeError):
        Settings(NOT_A_SETTING=1)


def test_gemini_key_placeholder_is_not_configured():
    assert not Settings(GEMINI_API_KEY="YOUR_GEMINI_API_KEY").gemini_configured
    assert not Settings(GEMINI_API_KEY="").gemini_configured
    assert Settings(GEMINI_API_KEY="AIzaSyExample").gemini_configured
