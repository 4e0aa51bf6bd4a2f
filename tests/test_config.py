"""Settings loaded from the environment."""

from config import Settings

ENV_VARS = (
    "DATA_DIR",
    "TITLE_FILTER",
    "LOCATION_FILTER",
    "REFRESH_INTERVAL_MINUTES",
    "MAX_PAGES",
    "TIKTOK_MAX_PAGES",
    "ENABLE_META",
    "ENABLE_TIKTOK",
    "HTTP_PROXY",
    "HTTPS_PROXY",
    "VERIFY_SSL",
    "LOG_LEVEL",
)


def clear_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults(monkeypatch):
    clear_env(monkeypatch)
    settings = Settings.from_env()
    assert settings.data_dir == "data"
    assert settings.refresh_interval_seconds == 1800
    assert settings.max_pages == 5 and settings.tiktok_max_pages == 350
    assert settings.enable_microsoft and settings.enable_tiktok and not settings.enable_meta
    assert settings.proxy is None
    assert settings.verify_ssl
    assert settings.log_level == "INFO"


def test_overrides(monkeypatch, tmp_path):
    clear_env(monkeypatch)
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.setenv("TITLE_FILTER", " engineer, ,design ")
    monkeypatch.setenv("REFRESH_INTERVAL_MINUTES", "5")
    monkeypatch.setenv("ENABLE_META", "yes")
    monkeypatch.setenv("ENABLE_TIKTOK", "off")
    monkeypatch.setenv("HTTPS_PROXY", "http://proxy:8080")
    monkeypatch.setenv("VERIFY_SSL", "false")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.data_dir == str(tmp_path)
    assert settings.title_keywords == ["engineer", "design"]
    assert settings.refresh_interval_seconds == 300
    assert settings.enable_meta and not settings.enable_tiktok
    assert settings.proxy == "http://proxy:8080"
    assert not settings.verify_ssl
    assert settings.log_level == "DEBUG"
