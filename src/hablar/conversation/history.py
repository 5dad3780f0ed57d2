"""Bounded per-session conversation history.

Each session keeps only its most recent ``window`` messages. Two backends:
an in-memory store for tests and development, and a SQLite store that keeps
one JSON document of messages per session.
"""

import json
import sqlite3
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

DEFAULT_WINDOW = 10
ROLES = ("user", "assistant")


@dataclass(frozen=True)
class HistoryEntry:
    """One message in a conversation session."""

    role: str
    content: str
    timestamp: datetime

    def to_dict(self) -> dict[str, str]:
        return {
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, str]) -> "HistoryEntry":
        return cls(
            role=data["role"],
            content=data["content"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )


class HistoryStore(ABC):
    """Append-only, bounded message log keyed by session id."""

    def __init__(
        self, window: int = DEFAULT_WINDOW, now: Callable[[], datetime] = datetime.now
    ) -> None:
        if window < 1:
            raise ValueError(f"window must be >= 1, got {window}")
        self.window = window
        self._now = now

    def append(self, session_id: str, role: str, content: str) -> None:
        """Append a message, keeping only the most recent ``window`` entries.

        Raises:
            ValueError: If role is not "user" or "assistant"
        """
        if role not in ROLES:
            raise ValueError(f"role must be one of {ROLES}, got {role!r}")
        self._append(
            session_id, HistoryEntry(role=role, content=content, timestamp=self._now())
        )

    @abstractmethod
    def get(self, session_id: str) -> list[HistoryEntry]:
        """Return the session's messages, oldest first (empty if unknown)."""
        pass

    @abstractmethod
    def reset(self, session_id: str) -> None:
        """Delete the session's history entirely."""
        pass

    @abstractmethod
    def _append(self, session_id: str, entry: HistoryEntry) -> None:
        """Store one validated entry and drop anything older than the window.

        Must be atomic per session: concurrent appends may not lose entries.
        """
        pass


class InMemoryHistoryStore(HistoryStore):
    """Process-local history store."""

    def __init__(
        self, window: int = DEFAULT_WINDOW, now: Callable[[], datetime] = datetime.now
    ) -> None:
        super().__init__(window, now)
        self._sessions: dict[str, list[HistoryEntry]] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> list[HistoryEntry]:
        return list(self._sessions.get(session_id, []))

    def reset(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def _append(self, session_id: str, entry: HistoryEntry) -> None:
        with self._lock:
            entries = self._sessions.get(session_id, []) + [entry]
            self._sessions[session_id] = entries[-self.window :]


class SQLiteHistoryStore(HistoryStore):
    """Durable history store, one JSON document per session."""

    def __init__(
        self,
        db_path: Path,
        window: int = DEFAULT_WINDOW,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        super().__init__(window, now)
        self.db_path = db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a new database connection with WAL mode for concurrency."""
        conn = sqlite3.connect(str(self.db_path), timeout=30.0, check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA busy_timeout=30000")
        return conn

    def _init_db(self) -> None:
        conn = self._get_connection()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS sessions (
                    session_id TEXT PRIMARY KEY,
                    messages TEXT NOT NULL,
                    last_updated TEXT NOT NULL
                )
            """)
            conn.commit()
        finally:
            conn.close()

    def _append(self, session_id: str, entry: HistoryEntry) -> None:
        conn = self._get_connection()
        try:
            # Read-modify-write inside one IMMEDIATE transaction so concurrent
            # appends to the same session serialize.
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT messages FROM sessions WHERE session_id = ?", (session_id,)
            ).fetchone()
            messages = json.loads(row[0]) if row else []
            messages.append(entry.to_dict())
            conn.execute(
                """
                INSERT OR REPLACE INTO sessions (session_id, messages, last_updated)
                VALUES (?, ?, ?)
            """,
                (
                    session_id,
                    json.dumps(messages[-self.window :], ensure_ascii=False),
                    entry.timestamp.isoformat(),
                ),
            )
            conn.commit()
        finally:
            conn.close()

    def get(self, session_id: str) -> list[HistoryEntry]:
        conn = self._get_connection()
        try:
            row = conn.execute(
                "SELECT messages FROM sessions WHERE session_id = ?", (session_id,)
            ).fetchone()
        finally:
            conn.close()
        if row is None:
            return []
        return [HistoryEntry.from_dict(item) for item in json.loads(row[0])]

    def reset(self, session_id: str) -> None:
        conn = self._get_connection()
        try:
            conn.execute("DELETE FROM sessions WHERE session_id = ?", (session_id,))
            conn.commit()
        finally:
            conn.close()
