from __future__ import annotations

from envelope_cache.config import Settings, get_settings, reset_settings


def test_defaults():
    settings = Settings()

    assert settings.redis_host == "127.0.0.1"
    assert settings.redis_port == 6379
    assert settings.redis_url is None
    assert settings.redis_sentinels == []
    assert settings.redis_db is None
    assert settings.cache_partition is None
    assert settings.cache_compression == "lz4"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "rediss://cache.internal:6380/1")
    monkeypatch.setenv("REDIS_PASSWORD", "s3cret")
    monkeypatch.setenv("cache_partition", "lower-case-works")

    settings = Settings()

    assert settings.redis_url == "rediss://cache.internal:6380/1"
    assert settings.redis_password == "s3cret"
    assert settings.cache_partition == "lower-case-works"


def test_sentinels_are_parsed_from_json(monkeypatch):
    monkeypatch.setenv("REDIS_SENTINELS", '[["10.0.0.1", 26379], ["10.0.0.2", 26380]]')
    monkeypatch.setenv("REDIS_SENTINEL_NAME", "mymaster")

    settings = Settings()

    assert settings.redis_sentinels == [("10.0.0.1", 26379), ("10.0.0.2", 26380)]
    assert settings.redis_sentinel_name == "mymaster"


def test_get_settings_is_cached_until_reset(monkeypatch):
    first = get_settings()
    assert get_settings() is first

    monkeypatch.setenv("REDIS_PORT", "6390")
    assert get_settings().redis_port == first.redis_port

    reset_settings()
    assert get_settings().redis_port == 6390
