import time

from cache.cache import _MemoryCache, cache_get, cache_set, cache_size, stable_hash


def test_cache_set_get_roundtrip():
    cache_set("insights", "k1", {"v": 1}, 5)
    assert cache_get("insights", "k1") == {"v": 1}


def test_cache_entries_expire():
    cache_set("insights", "k2", {"v": 2}, -1)
    time.sleep(0.01)
    assert cache_get("insights", "k2") is None


def test_expired_entries_are_purged_on_write():
    cache_set("insights", "stale-a", {"v": 1}, -1)
    cache_set("insights", "stale-b", {"v": 2}, -1)
    time.sleep(0.01)

    cache_set("insights", "fresh", {"v": 3}, 60)

    assert cache_size() == 1
    assert cache_get("insights", "fresh") == {"v": 3}


def test_oldest_entry_is_evicted_at_capacity():
    cache = _MemoryCache(max_entries=2)
    cache.set("a", 1, 60)
    cache.set("b", 2, 60)
    cache.set("c", 3, 60)

    assert len(cache) == 2
    assert cache.get("a") is None
    assert cache.get("b") == 2
    assert cache.get("c") == 3


def test_rewriting_a_key_does_not_evict_others():
    cache = _MemoryCache(max_entries=2)
    cache.set("a", 1, 60)
    cache.set("b", 2, 60)
    cache.set("a", 10, 60)

    assert cache.get("a") == 10
    assert cache.get("b") == 2


def test_stable_hash_ignores_key_order():
    h1 = stable_hash({"workflows": [], "executions": [{"id": "a", "status": "failed"}]})
    h2 = stable_hash({"executions": [{"status": "failed", "id": "a"}], "workflows": []})
    assert h1 == h2
    assert h1 != stable_hash({"workflows": [], "executions": [{"id": "b"}]})
