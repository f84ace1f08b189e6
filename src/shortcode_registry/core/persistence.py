"""Persistence backends for the registry store.

A backend only knows how to load and save a full snapshot of records:
the store calls ``save`` after every mutation and ``load`` once at startup.
"""

import logging
import os
import sqlite3
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence, Union

from pydantic import TypeAdapter

from ..models.url import ClickEvent, UrlRecord

logger = logging.getLogger(__name__)

_records_adapter = TypeAdapter(list[UrlRecord])


def dump_records(records: Sequence[UrlRecord], indent: Optional[int] = None) -> str:
    """Serialize records to a JSON array with ISO-8601 timestamps."""
    return _records_adapter.dump_json(list(records), by_alias=True, indent=indent).decode()


def load_records(data: Union[str, bytes]) -> list[UrlRecord]:
    """Deserialize a JSON array produced by ``dump_records``."""
    return _records_adapter.validate_json(data)


class PersistenceBackend(ABC):
    """Abstract base class for record persistence."""

    kind = "abstract"

    @abstractmethod
    def load(self) -> list[UrlRecord]:
        """Load every persisted record, in creation order."""

    @abstractmethod
    def save(self, records: Sequence[UrlRecord]) -> None:
        """Replace the persisted snapshot with ``records``."""

    def close(self) -> None:
        """Release any resources held by the backend."""


class InMemoryBackend(PersistenceBackend):
    """Keeps the serialized snapshot in memory."""

    kind = "memory"

    def __init__(self, initial: Optional[Sequence[UrlRecord]] = None):
        self.document = dump_records(initial or [])
        self.saves = 0

    def load(self) -> list[UrlRecord]:
        return load_records(self.document)

    def save(self, records: Sequence[UrlRecord]) -> None:
        self.document = dump_records(records)
        self.saves += 1


class JsonFileBackend(PersistenceBackend):
    """Stores the snapshot as one JSON array in a file."""

    kind = "json"

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> list[UrlRecord]:
        if not self.path.exists():
            logger.info(f"No registry file at {self.path}, starting empty")
            return []
        records = load_records(self.path.read_bytes())
        logger.info(f"Loaded {len(records)} records from {self.path}")
        return records

    def save(self, records: Sequence[UrlRecord]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(dump_records(records, indent=2))
            os.replace(tmp_name, self.path)
        except OSError as e:
            logger.error(f"Saving registry to {self.path} failed: {e}")
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise


class SQLiteBackend(PersistenceBackend):
    """Stores records and click history in SQLite tables."""

    kind = "sqlite"

    def __init__(self, db_path: str):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. Use ":memory:" for in-memory database.
        """
        self.db_path = db_path
        self._connection: Optional[sqlite3.Connection] = None
        self.init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Create or return the database connection.

        The store serialises writes itself, so the connection may be used
        from whichever thread performs the mutation.

        Returns:
            SQLite connection.
        """
        if self._connection is None:
            self._connection = sqlite3.connect(self.db_path, check_same_thread=False)
            self._connection.row_factory = sqlite3.Row
            self._connection.execute("PRAGMA foreign_keys = ON")
        return self._connection

    def close(self) -> None:
        """Close database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def init_db(self) -> None:
        """Initialize database tables."""
        create_tables_sql = """
        CREATE TABLE IF NOT EXISTS urls (
            id TEXT PRIMARY KEY,
            shortcode TEXT NOT NULL UNIQUE,
            original_url TEXT NOT NULL,
            created_at TEXT NOT NULL,
            expiry_at TEXT NOT NULL
        );
        CREATE TABLE IF NOT EXISTS clicks (
            shortcode TEXT NOT NULL REFERENCES urls(shortcode) ON DELETE CASCADE,
            seq INTEGER NOT NULL,
            timestamp TEXT NOT NULL,
            source TEXT NOT NULL,
            location TEXT NOT NULL,
            PRIMARY KEY (shortcode, seq)
        );
        """
        conn = self._get_connection()
        try:
            conn.executescript(create_tables_sql)
            conn.commit()
            logger.info("Database initialized successfully")
        except sqlite3.Error as e:
            logger.error(f"Database initialization failed: {e}")
            raise

    def load(self) -> list[UrlRecord]:
        conn = self._get_connection()
        try:
            url_rows = conn.execute("SELECT * FROM urls ORDER BY rowid").fetchall()
            click_rows = conn.execute(
                "SELECT * FROM clicks ORDER BY shortcode, seq"
            ).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Loading records failed: {e}")
            raise

        history: dict[str, list[ClickEvent]] = {}
        for row in click_rows:
            history.setdefault(row["shortcode"], []).append(
                ClickEvent(
                    timestamp=datetime.fromisoformat(row["timestamp"]),
                    source=row["source"],
                    location=row["location"],
                )
            )
        return [
            UrlRecord(
                id=row["id"],
                original_url=row["original_url"],
                shortcode=row["shortcode"],
                created_at=datetime.fromisoformat(row["created_at"]),
                expiry_at=datetime.fromisoformat(row["expiry_at"]),
                click_history=tuple(history.get(row["shortcode"], ())),
            )
            for row in url_rows
        ]

    def save(self, records: Sequence[UrlRecord]) -> None:
        conn = self._get_connection()
        try:
            with conn:
                conn.execute("DELETE FROM clicks")
                conn.execute("DELETE FROM urls")
                conn.executemany(
                    "INSERT INTO urls (id, shortcode, original_url, created_at, expiry_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    [
                        (
                            r.id,
                            r.shortcode,
                            r.original_url,
                            r.created_at.isoformat(),
                            r.expiry_at.isoformat(),
                        )
                        for r in records
                    ],
                )
                conn.executemany(
                    "INSERT INTO clicks (shortcode, seq, timestamp, source, location) "
                    "VALUES (?, ?, ?, ?, ?)",
                    [
                        (r.shortcode, seq, c.timestamp.isoformat(), c.source, c.location)
                        for r in records
                        for seq, c in enumerate(r.click_history)
                    ],
                )
        except sqlite3.Error as e:
            logger.error(f"Saving records failed: {e}")
            raise


def create_backend(kind: str, path: str) -> PersistenceBackend:
    """Build the backend named by ``kind`` ("memory", "json" or "sqlite")."""
    if kind == "memory":
        return InMemoryBackend()
    if kind == "json":
        return JsonFileBackend(path)
    if kind == "sqlite":
        return SQLiteBackend(path)
    raise ValueError(f"Unknown storage backend: {kind}")
