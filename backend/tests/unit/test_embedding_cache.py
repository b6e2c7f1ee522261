"""Unit tests for the EmbeddingCache."""

import pytest

from audit_query.application.services.embedding_cache import EmbeddingCache


def test_put_then_get_returns_same_vector():
    cache = EmbeddingCache()
    cache.put("F1", [0.1, 0.2])
    assert cache.get("F1") == [0.1, 0.2]
    assert "F1" in cache
    assert len(cache) == 1


def test_stats_track_hits_and_misses():
    cache = EmbeddingCache()
    cache.get("missing")
    cache.put("F1", [1.0])
    cache.get("F1")
    cache.get("F1")
    assert cache.stats() == {"size": 1, "hits": 2, "misses": 1}


def test_last_write_wins():
    cache = EmbeddingCache()
    cache.put("F1", [1.0])
    cache.put("F1", [2.0])
    assert cache.get("F1") == [2.0]


def test_clear_resets_entries_and_counters():
    cache = EmbeddingCache()
    cache.put("F1", [1.0])
    cache.get("F1")
    cache.clear()
    assert len(cache) == 0
    assert cache.get("F1") is None
    assert cache.stats() == {"size": 0, "hits": 0, "misses": 1}


@pytest.mark.asyncio
async def test_get_or_compute_memoizes_result():
    cache = EmbeddingCache()
    calls = []

    async def compute():
        calls.append("F1")
        return [0.5, 0.5]

    first = await cache.get_or_compute("F1", compute)
    second = await cache.get_or_compute("F1", compute)

    assert first == second == [0.5, 0.5]
    assert calls == ["F1"]
    assert cache.stats() == {"size": 1, "hits": 1, "misses": 1}


@pytest.mark.asyncio
async def test_get_or_compute_failure_is_not_cached():
    cache = EmbeddingCache()

    async def boom():
        raise RuntimeError("embedding backend down")

    with pytest.raises(RuntimeError):
        await cache.get_or_compute("F1", boom)

    assert "F1" not in cache
    assert await cache.get_or_compute("F1", lambda: _vector([1.0])) == [1.0]


async def _vector(value):
    return value
