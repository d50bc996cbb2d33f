import pytest

from yeast.runtime.memory import MemoryCache


def test_unbounded_keeps_everything() -> None:
    cache: MemoryCache[int] = MemoryCache()
    for i in range(100):
        cache.put(i, i)
    assert len(cache) == 100
    assert cache.get(0) == 0


def test_lru_eviction() -> None:
    cache: MemoryCache[str] = MemoryCache(max_entries=2)
    cache.put("a", "A")
    cache.put("b", "B")
    assert cache.get("a") == "A"
    cache.put("c", "C")
    assert "b" not in cache
    assert cache.get("a") == "A"
    assert cache.get("c") == "C"


def test_discard_and_clear() -> None:
    cache: MemoryCache[str] = MemoryCache()
    cache.put("a", "A")
    cache.put("b", "B")
    cache.discard("a")
    cache.discard("missing")
    assert cache.get("a") is None
    cache.clear()
    assert len(cache) == 0


def test_invalid_size() -> None:
    with pytest.raises(ValueError):
        MemoryCache(max_entries=0)
