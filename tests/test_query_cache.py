from __future__ import annotations

from labor_app.services.query_cache import (
    DAILY_REPORT,
    DAILY_REPORTS,
    EDIT_HISTORY,
    QueryCache,
    invalidate_daily_report,
    make_cache_key,
    query_cache,
)


def test_cache_key_is_stable_and_namespaced():
    a = make_cache_key("daily_reports", scope=["P001"], params={"b": 1, "a": 2})
    b = make_cache_key("DAILY_REPORTS", scope=["P001"], params={"a": 2, "b": 1})
    assert a == b
    assert a.startswith("DAILY_REPORTS:P001:")
    assert make_cache_key(DAILY_REPORT, scope=["abc"]) == "DAILY_REPORT:abc"


def test_report_mutation_invalidates_related_keys():
    list_key = make_cache_key(DAILY_REPORTS, scope=["P001"], params={"x": 1})
    report_key = make_cache_key(DAILY_REPORT, scope=["r1"])
    history_key = make_cache_key(EDIT_HISTORY, scope=["r1"])
    other_key = make_cache_key(DAILY_REPORT, scope=["r2"])
    for key in (list_key, report_key, history_key, other_key):
        query_cache.set(key, {"cached": key})

    removed = invalidate_daily_report("r1")

    assert removed == 3
    assert query_cache.get(list_key) is None
    assert query_cache.get(report_key) is None
    assert query_cache.get(history_key) is None
    assert query_cache.get(other_key) == {"cached": other_key}


async def test_get_or_load_calls_loader_once():
    cache = QueryCache(ttl=60, max_items=100)
    calls = []

    async def loader():
        calls.append(1)
        return ["row"]

    assert await cache.get_or_load("k", loader) == ["row"]
    assert await cache.get_or_load("k", loader) == ["row"]
    assert len(calls) == 1


async def test_missing_values_are_not_cached():
    cache = QueryCache(ttl=60, max_items=100)

    async def loader():
        return None

    assert await cache.get_or_load("missing", loader) is None
    assert len(cache) == 0
