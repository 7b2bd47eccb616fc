import pytest

from rag_dispatch.store import InMemoryKeyValueStore


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_set_get_and_expiry() -> None:
    clock = FakeClock()
    store = InMemoryKeyValueStore(clock=clock)

    store.set("k", {"answer": "x"}, ttl_seconds=10)
    assert store.get("k") == {"answer": "x"}
    assert store.ttl("k") == pytest.approx(10)

    clock.now += 10
    assert store.get("k") is None
    assert len(store) == 0


def test_set_requires_positive_ttl() -> None:
    store = InMemoryKeyValueStore()
    with pytest.raises(ValueError):
        store.set("k", "v", ttl_seconds=0)


def test_set_overwrites_last_write_wins() -> None:
    store = InMemoryKeyValueStore()
    store.set("k", "old", ttl_seconds=60)
    store.set("k", "new", ttl_seconds=60)
    assert store.get("k") == "new"


def test_increment_and_expire_window() -> None:
    clock = FakeClock()
    store = InMemoryKeyValueStore(clock=clock)

    assert store.increment("c") == 1
    assert store.expire("c", 60) is True
    assert store.increment("c") == 2

    clock.now += 30
    assert store.increment("c") == 3
    clock.now += 30
    assert store.get("c") is None
    assert store.increment("c") == 1


def test_expire_missing_key_and_delete() -> None:
    store = InMemoryKeyValueStore()
    assert store.expire("missing", 5) is False
    store.set("k", "v", ttl_seconds=5)
    assert store.delete("k") is True
    assert store.delete("k") is False
