import pytest

from ellyn.lru_cache import LRUCache, Recyclable


class PoolVal(Recyclable):
    def __init__(self, value):
        self.value = value
        self.recycled = False

    def recycle(self):
        self.recycled = True

    def __eq__(self, other):
        return isinstance(other, PoolVal) and other.value == self.value

    def __repr__(self):
        return f"PoolVal({self.value})"


def test_basic():
    cache = LRUCache(3)
    values = {i: PoolVal(i) for i in range(1, 5)}
    cache.set(1, values[1])
    assert cache.get(1) == PoolVal(1)
    cache.set(2, values[2])
    assert cache.get(2) == PoolVal(2)
    cache.set(3, values[3])
    cache.set(4, values[4])
    assert cache.get(1) is None
    assert values[1].recycled
    assert cache.values() == [PoolVal(4), PoolVal(3), PoolVal(2)]
    cache.remove(3)
    assert values[3].recycled
    assert cache.values() == [PoolVal(4), PoolVal(2)]
    assert len(cache) == 2


def test_get_refreshes_recency():
    cache = LRUCache(2)
    cache.set("a", PoolVal(1))
    cache.set("b", PoolVal(2))
    cache.get("a")
    cache.set("c", PoolVal(3))
    assert cache.get("b") is None
    assert cache.get("a") == PoolVal(1)


def test_get_with_default():
    cache = LRUCache(2)
    created = []

    def factory():
        created.append(1)
        return PoolVal(7)

    first = cache.get_with_default("k", factory)
    second = cache.get_with_default("k", factory)
    assert first is second
    assert created == [1]


def test_remove_missing_raises():
    cache = LRUCache(2)
    with pytest.raises(KeyError):
        cache.remove("missing")


def test_invalid_capacity():
    with pytest.raises(ValueError):
        LRUCache(0)


def test_get_default_value():
    cache = LRUCache(1)
    fallback = PoolVal(0)
    assert cache.get("x", fallback) is fallback