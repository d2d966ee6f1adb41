from home_scheduler.config import Config, get_config


def test_defaults(monkeypatch):
    for name in ("HTS_HORIZON_DAYS", "HTS_DEFAULT_TASK_HOURS", "HTS_CACHE_MAXSIZE", "HTS_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    cfg = Config.from_env()

    assert cfg.horizon_days == 90
    assert cfg.default_task_hours == 1.0
    assert cfg.cache_maxsize == 128
    assert cfg.log_level == "INFO"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("HTS_HORIZON_DAYS", "30")
    monkeypatch.setenv("HTS_DEFAULT_TASK_HOURS", "2.5")
    monkeypatch.setenv("HTS_CACHE_TTL_SECONDS", "10")
    monkeypatch.setenv("HTS_LOG_LEVEL", "debug")
    monkeypatch.setenv("HTS_AZURE_BLOB_CONTAINER_NAME", "household")

    cfg = Config.from_env()

    assert cfg.horizon_days == 30
    assert cfg.default_task_hours == 2.5
    assert cfg.cache_ttl_seconds == 10.0
    assert cfg.log_level == "DEBUG"
    assert cfg.azure_blob_container_name == "household"


def test_invalid_values_fall_back(monkeypatch):
    monkeypatch.setenv("HTS_HORIZON_DAYS", "-5")
    monkeypatch.setenv("HTS_CACHE_MAXSIZE", "lots")

    cfg = Config.from_env()

    assert cfg.horizon_days == 90
    assert cfg.cache_maxsize == 128


def test_get_config_is_shared_until_reloaded(monkeypatch):
    first = get_config(force_reload=True)
    assert get_config() is first

    monkeypatch.setenv("HTS_HORIZON_DAYS", "14")
    reloaded = get_config(force_reload=True)
    try:
        assert reloaded is not first
        assert reloaded.horizon_days == 14
    finally:
        monkeypatch.delenv("HTS_HORIZON_DAYS")
        get_config(force_reload=True)
