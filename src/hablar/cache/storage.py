"""SQLite cache storage implementation."""

import sqlite3
from datetime import datetime
from pathlib import Path

from .models import CacheEntry


class CacheStorage:
    """SQLite-based cache storage for artifact metadata.

    Stores cache entry metadata in SQLite database while audio files
    are stored separately on the filesystem.
    """

    def __init__(self, cache_dir: Path):
        """Initialize cache storage with database in given directory.

        Args:
            cache_dir: Directory containing cache database
        """
        self.cache_dir = cache_dir

        # Create cache directory if it doesn't exist
        cache_dir.mkdir(parents=True, exist_ok=True)

        self.db_path = cache_dir / "cache.db"
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a new database connection with WAL mode for concurrency."""
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=30.0,  # 30 second timeout if locked
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA busy_timeout=30000")
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    def _init_db(self) -> None:
        """Initialize database schema with tables and indexes."""
        conn = self._get_connection()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS artifacts (
                    fingerprint TEXT PRIMARY KEY,
                    provider TEXT NOT NULL,
                    content_type TEXT NOT NULL,
                    audio_path TEXT NOT NULL,
                    size INTEGER NOT NULL,
                    created_at TEXT NOT NULL,
                    last_accessed TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_last_accessed
                ON artifacts(last_accessed)
            """)
            conn.commit()
        finally:
            conn.close()

    def save(self, entry: CacheEntry) -> None:
        """Save cache entry, replacing any existing row for the fingerprint.

        Args:
            entry: Cache entry to save
        """
        conn = self._get_connection()
        try:
            conn.execute(
                """
                INSERT OR REPLACE INTO artifacts
                    (fingerprint, provider, content_type, audio_path, size,
                     created_at, last_accessed)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    entry.fingerprint,
                    entry.provider,
                    entry.content_type,
                    str(entry.audio_path),
                    entry.size,
                    entry.created_at.isoformat(),
                    entry.last_accessed.isoformat(),
                ),
            )
            conn.commit()
        finally:
            conn.close()

    def get(self, fingerprint: str) -> CacheEntry | None:
        """Retrieve cache entry by fingerprint.

        Returns:
            Cache entry if found, None otherwise
        """
        conn = self._get_connection()
        try:
            row = conn.execute(
                "SELECT * FROM artifacts WHERE fingerprint = ?", (fingerprint,)
            ).fetchone()
        finally:
            conn.close()
        if row is None:
            return None
        return self._row_to_entry(row)

    def touch(self, fingerprint: str, when: datetime) -> None:
        """Record an access for LRU ordering."""
        conn = self._get_connection()
        try:
            conn.execute(
                "UPDATE artifacts SET last_accessed = ? WHERE fingerprint = ?",
                (when.isoformat(), fingerprint),
            )
            conn.commit()
        finally:
            conn.close()

    def delete(self, fingerprint: str) -> None:
        conn = self._get_connection()
        try:
            conn.execute("DELETE FROM artifacts WHERE fingerprint = ?", (fingerprint,))
            conn.commit()
        finally:
            conn.close()

    def least_recently_used(self, keep: int) -> list[CacheEntry]:
        """Return entries beyond the ``keep`` most recently accessed ones."""
        conn = self._get_connection()
        try:
            rows = conn.execute(
                """
                SELECT * FROM artifacts
                ORDER BY last_accessed DESC
                LIMIT -1 OFFSET ?
            """,
                (keep,),
            ).fetchall()
        finally:
            conn.close()
        return [self._row_to_entry(row) for row in rows]

    def created_before(self, cutoff: datetime) -> list[CacheEntry]:
        """Return entries created before ``cutoff``."""
        conn = self._get_connection()
        try:
            rows = conn.execute(
                "SELECT * FROM artifacts WHERE created_at < ?",
                (cutoff.isoformat(),),
            ).fetchall()
        finally:
            conn.close()
        return [self._row_to_entry(row) for row in rows]

    def all(self) -> list[CacheEntry]:
        conn = self._get_connection()
        try:
            rows = conn.execute("SELECT * FROM artifacts").fetchall()
        finally:
            conn.close()
        return [self._row_to_entry(row) for row in rows]

    def stats(self) -> tuple[int, int]:
        """Return (entry count, total bytes)."""
        conn = self._get_connection()
        try:
            row = conn.execute(
                "SELECT COUNT(*) AS n, COALESCE(SUM(size), 0) AS total FROM artifacts"
            ).fetchone()
        finally:
            conn.close()
        return row["n"], row["total"]

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> CacheEntry:
        # Convert stored strings back to proper types
        return CacheEntry(
            fingerprint=row["fingerprint"],
            provider=row["provider"],
            content_type=row["content_type"],
            audio_path=Path(row["audio_path"]),
            size=row["size"],
            created_at=datetime.fromisoformat(row["created_at"]),
            last_accessed=datetime.fromisoformat(row["last_accessed"]),
        )
