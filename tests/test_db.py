"""Tests for the local cache store."""
from solar.db import CacheStore


def test_get_set_overwrite(tmp_path):
    cache = CacheStore(tmp_path / "nested" / "cache.db")
    assert cache.get("forecast") is None

    cache.set("forecast", '{"watts": {}}')
    cache.set("forecast", '{"watts": {"a": 1}}')
    assert cache.get("forecast") == '{"watts": {"a": 1}}'

    cache.delete("forecast")
    assert cache.get("forecast") is None


def test_survives_reopen(tmp_path):
    CacheStore(tmp_path / "cache.db").set("apiKey", "abc")
    assert CacheStore(tmp_path / "cache.db").get("apiKey") == "abc"
