"""Tests for the single-read result store."""

from vigil.store import ResultStore


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestResultStore:

    def test_take_once_removes_entry(self):
        store = ResultStore()
        store.put("session", {"verdict": "clean"})

        assert store.take_once("session") == {"verdict": "clean"}
        assert store.take_once("session") is None

    def test_missing_key(self):
        assert ResultStore().take_once("nobody") is None

    def test_put_replaces_unread_entry(self):
        store = ResultStore()
        store.put("s", 1)
        store.put("s", 2)

        assert store.take_once("s") == 2
        assert len(store) == 0

    def test_keys_are_isolated(self):
        store = ResultStore()
        store.put("a", "first")
        store.put("b", "second")

        assert store.take_once("b") == "second"
        assert store.take_once("a") == "first"

    def test_expired_entries_are_dropped(self):
        clock = FakeClock()
        store = ResultStore(ttl_seconds=10, clock=clock)
        store.put("s", "value")

        clock.now = 11
        assert store.take_once("s") is None

    def test_put_prunes_expired(self):
        clock = FakeClock()
        store = ResultStore(ttl_seconds=10, clock=clock)
        store.put("old", 1)
        clock.now = 20
        store.put("new", 2)

        assert len(store) == 1
