"""Tests for the in-memory store and values."""

import threading

from confwatch import MemoryStore, Store, Values


def test_memory_store_satisfies_protocol():
    assert isinstance(MemoryStore(), Store)


def test_update_merges_last_writer_wins():
    store = MemoryStore({"a": 1, "b": 2})

    store.update({"b": 3, "c": 4})

    assert store.snapshot() == {"a": 1, "b": 3, "c": 4}
    assert len(store) == 3


def test_snapshot_is_a_copy():
    store = MemoryStore({"a": 1})

    snap = store.snapshot()
    snap["a"] = 2

    assert store.get("a") == 1


def test_reset_clears():
    store = MemoryStore({"a": 1})
    store.reset()

    assert "a" not in store
    assert store.get("a", "default") == "default"


def test_delete_missing_key_is_ignored():
    store = MemoryStore({"a": 1, "b": 2})

    store.delete("a")
    store.delete("missing")

    assert store.snapshot() == {"b": 2}


def test_concurrent_updates():
    store = MemoryStore()

    def writer(prefix: str) -> None:
        for i in range(200):
            store.update({f"{prefix}.{i}": i})

    threads = [threading.Thread(target=writer, args=(p,)) for p in ("a", "b", "c")]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(store) == 600


def test_values_equality_is_structural():
    values = Values()
    values.set("db.host", "localhost")

    assert values == Values({"db.host": "localhost"})
    assert values == {"db.host": "localhost"}
    assert Values() == Values()
