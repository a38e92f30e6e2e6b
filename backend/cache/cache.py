import os
import time
import json
import hashlib
import threading
from typing import Any, Optional, Dict


CACHE_ENABLED = os.getenv("CACHE_ENABLED", "true").lower() != "false"
INSIGHTS_CACHE_TTL_SECONDS = int(os.getenv("INSIGHTS_CACHE_TTL_SECONDS", "120"))  # 2m
INSIGHTS_CACHE_MAX_ENTRIES = int(os.getenv("INSIGHTS_CACHE_MAX_ENTRIES", "256"))


class _MemoryCache:
    """Expiring key/value store; insertion order doubles as eviction order."""

    def __init__(self, max_entries: int = INSIGHTS_CACHE_MAX_ENTRIES):
        self.store: Dict[str, tuple[float, Any]] = {}
        self.max_entries = max(1, max_entries)
        self.lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        now = time.time()
        with self.lock:
            entry = self.store.get(key)
            if not entry:
                return None
            exp, data = entry
            if exp < now:
                self.store.pop(key, None)
                return None
            return data

    def _purge_expired(self, now: float):
        for key in [k for k, (exp, _) in self.store.items() if exp < now]:
            del self.store[key]

    def set(self, key: str, value: Any, ttl: int):
        now = time.time()
        with self.lock:
            self.store.pop(key, None)
            self._purge_expired(now)
            while len(self.store) >= self.max_entries:
                self.store.pop(next(iter(self.store)))
            self.store[key] = (now + ttl, value)

    def __len__(self) -> int:
        with self.lock:
            return len(self.store)

    def clear(self):
        with self.lock:
            self.store.clear()


_memory_cache = _MemoryCache()


def stable_hash(obj: Any) -> str:
    # default=str keeps odd payload values (decimals, datetimes) hashable
    txt = json.dumps(obj, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(txt.encode("utf-8")).hexdigest()


def _namespaced_key(ns: str, key: str) -> str:
    return f"{ns}:{key}"


def cache_get(ns: str, key: str) -> Optional[Any]:
    if not CACHE_ENABLED:
        return None
    return _memory_cache.get(_namespaced_key(ns, key))


def cache_set(ns: str, key: str, value: Any, ttl_seconds: int):
    if not CACHE_ENABLED:
        return
    _memory_cache.set(_namespaced_key(ns, key), value, ttl_seconds)


def cache_size() -> int:
    return len(_memory_cache)


def cache_clear():
    _memory_cache.clear()
