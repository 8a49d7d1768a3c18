from __future__ import annotations

import hashlib
import json
import threading
from typing import Any, Awaitable, Callable, Optional

from cachetools import TTLCache

from labor_app.core.config import settings

DAILY_REPORTS = "DAILY_REPORTS"
DAILY_REPORT = "DAILY_REPORT"
EDIT_HISTORY = "EDIT_HISTORY"


def _sha256_16(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:16]


def make_cache_key(namespace: str, *, scope: list[str] | None = None, params: dict[str, Any] | None = None) -> str:
    ns = str(namespace or "").strip().upper()
    scope = scope or []
    parts = [ns] + [str(s or "").strip() for s in scope if str(s or "").strip()]
    if params is not None:
        blob = json.dumps(params, sort_keys=True, separators=(",", ":"), default=str)
        parts.append(_sha256_16(blob))
    return ":".join(parts)


class QueryCache:
    def __init__(self, ttl: Optional[int] = None, max_items: Optional[int] = None):
        ttl = max(1, min(3600, ttl or settings.CACHE_TTL_SECONDS))
        max_items = max(100, max_items or settings.CACHE_MAX_ITEMS)
        self._cache = TTLCache(maxsize=max_items, ttl=ttl)
        self._lock = threading.RLock()

    def get(self, key: str) -> Any:
        with self._lock:
            return self._cache.get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._cache[key] = value

    async def get_or_load(self, key: str, loader: Callable[[], Awaitable[Any]]) -> Any:
        cached = self.get(key)
        if cached is not None:
            return cached
        value = await loader()
        if value is not None:
            self.set(key, value)
        return value

    def invalidate(self, key: str) -> int:
        with self._lock:
            if self._cache.pop(key, None) is None:
                return 0
            return 1

    def invalidate_prefix(self, prefix: str) -> int:
        pfx = str(prefix or "")
        if not pfx:
            return 0
        with self._lock:
            keys = [k for k in list(self._cache.keys()) if str(k).startswith(pfx)]
            for k in keys:
                self._cache.pop(k, None)
        return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)


query_cache = QueryCache()


def invalidate_daily_report(report_id: Optional[str] = None) -> int:
    """Drop cached report lists, plus the single report and its history when given."""
    removed = query_cache.invalidate_prefix(DAILY_REPORTS + ":")
    if report_id:
        removed += query_cache.invalidate(make_cache_key(DAILY_REPORT, scope=[report_id]))
        removed += query_cache.invalidate(make_cache_key(EDIT_HISTORY, scope=[report_id]))
    return removed
