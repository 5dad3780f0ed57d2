"""Unit tests for bounded conversation history stores."""

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from hablar.conversation.history import (
    HistoryEntry,
    HistoryStore,
    InMemoryHistoryStore,
    SQLiteHistoryStore,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2026, 5, 1, 8, 0, 0)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture(params=["memory", "sqlite"])
def make_store(request, cache_dir: Path):
    def factory(window: int = 10) -> HistoryStore:
        if request.param == "memory":
            return InMemoryHistoryStore(window=window, now=FakeClock())
        return SQLiteHistoryStore(
            cache_dir / "history.db", window=window, now=FakeClock()
        )

    return factory


class TestHistoryStores:
    """Behaviour shared by every backend."""

    def test_unknown_session_is_empty(self, make_store) -> None:
        assert make_store().get("nobody") == []

    def test_append_and_get_in_order(self, make_store) -> None:
        store = make_store()
        store.append("s1", "user", "Hola")
        store.append("s1", "assistant", "¡Hola! ¿Qué tal?")

        entries = store.get("s1")

        assert [(e.role, e.content) for e in entries] == [
            ("user", "Hola"),
            ("assistant", "¡Hola! ¿Qué tal?"),
        ]
        assert entries[0].timestamp < entries[1].timestamp

    def test_window_keeps_most_recent(self, make_store) -> None:
        store = make_store(window=10)
        for i in range(15):
            store.append("s1", "user", f"m{i}")

        entries = store.get("s1")

        assert [e.content for e in entries] == [f"m{i}" for i in range(5, 15)]

    def test_sessions_are_independent(self, make_store) -> None:
        store = make_store()
        store.append("a", "user", "uno")
        store.append("b", "user", "dos")

        assert [e.content for e in store.get("a")] == ["uno"]
        assert [e.content for e in store.get("b")] == ["dos"]

    def test_reset_clears_session(self, make_store) -> None:
        store = make_store()
        store.append("s1", "user", "Hola")
        store.append("s2", "user", "Adiós")

        store.reset("s1")

        assert store.get("s1") == []
        assert len(store.get("s2")) == 1

    def test_invalid_role_rejected(self, make_store) -> None:
        with pytest.raises(ValueError, match="role must be one of"):
            make_store().append("s1", "model", "Hola")

    def test_invalid_window_rejected(self, make_store) -> None:
        with pytest.raises(ValueError, match="window must be >= 1"):
            make_store(window=0)

    def test_invalid_role_stores_nothing(self, make_store) -> None:
        store = make_store()

        with pytest.raises(ValueError):
            store.append("s1", "system", "Hola")

        assert store.get("s1") == []


class RecordingStore(InMemoryHistoryStore):
    def __init__(self) -> None:
        super().__init__(window=2, now=FakeClock())
        self.appended: list[HistoryEntry] = []

    def _append(self, session_id: str, entry: HistoryEntry) -> None:
        self.appended.append(entry)
        super()._append(session_id, entry)


class TestHistoryStoreTemplate:
    def test_append_delegates_one_stamped_entry(self) -> None:
        store = RecordingStore()

        store.append("s1", "user", "uno")
        store.append("s1", "assistant", "dos")
        store.append("s1", "user", "tres")

        assert [e.content for e in store.appended] == ["uno", "dos", "tres"]
        assert store.appended[0].timestamp < store.appended[1].timestamp
        assert [e.content for e in store.get("s1")] == ["dos", "tres"]

    def test_sqlite_store_has_no_bulk_writer(self) -> None:
        assert not hasattr(SQLiteHistoryStore, "_write")
        assert "_append" in SQLiteHistoryStore.__dict__


class TestSQLiteHistoryStore:
    def test_persists_across_instances(self, cache_dir: Path) -> None:
        db = cache_dir / "nested" / "history.db"
        SQLiteHistoryStore(db).append("s1", "user", "¿Dónde está la estación?")

        entries = SQLiteHistoryStore(db).get("s1")

        assert [e.content for e in entries] == ["¿Dónde está la estación?"]


class TestHistoryEntry:
    def test_dict_round_trip(self) -> None:
        entry = HistoryEntry("user", "Hola", datetime(2026, 5, 1, 8, 0, 0))

        assert HistoryEntry.from_dict(entry.to_dict()) == entry
