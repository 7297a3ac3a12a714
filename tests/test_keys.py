from __future__ import annotations

import pytest

from envelope_cache.providers.cache_provider import (
    CacheConfig,
    CacheKey,
    CacheKeyError,
    RedisProvider,
    generate_key,
)


def test_generate_key_joins_partition_segment_and_id():
    assert generate_key(CacheKey("users", "1"), "p") == "p:users:1"


def test_generate_key_without_partition():
    assert generate_key(CacheKey("users", "1")) == "users:1"
    assert generate_key(CacheKey("users", "1"), "") == "users:1"


def test_generate_key_is_deterministic():
    key = CacheKey("a", "1")
    assert generate_key(key, "p") == generate_key(CacheKey("a", "1"), "p")


def test_partition_changes_store_key():
    key = CacheKey("a", "1")
    assert generate_key(key, "p") != generate_key(key, "q")
    assert generate_key(key, "p") != generate_key(key)


def test_empty_id_does_not_collide():
    assert generate_key(CacheKey("a", "1"), "p") != generate_key(CacheKey("a1", ""), "p")


@pytest.mark.parametrize(
    "left, right",
    [
        (CacheKey("a:1", "x"), CacheKey("a", "1:x")),
        (CacheKey("a", ""), CacheKey("", "a")),
        (CacheKey("a%3A1", "x"), CacheKey("a:1", "x")),
    ],
)
def test_separator_inside_components_does_not_collide(left, right):
    assert generate_key(left, "p") != generate_key(right, "p")


def test_separator_is_escaped():
    assert generate_key(CacheKey("a:b", "100%"), "p") == "p:a%3Ab:100%25"


def test_partition_is_used_verbatim():
    assert generate_key(CacheKey("users", "1"), "app:v2") == "app:v2:users:1"


def test_provider_uses_configured_partition():
    provider = RedisProvider(CacheConfig(partition="tenant"))
    assert provider.generate_key(CacheKey("users", "7")) == "tenant:users:7"


@pytest.mark.parametrize("name, message", [("", "Empty string"), ("bad\0name", "Includes null character")])
def test_validate_segment_name_rejects(name, message):
    provider = RedisProvider(CacheConfig())
    with pytest.raises(CacheKeyError, match=message):
        provider.validate_segment_name(name)


def test_validate_segment_name_accepts_plain_names():
    RedisProvider(CacheConfig()).validate_segment_name("users")
