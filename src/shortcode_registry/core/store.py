"""Registry store for Shortcode Registry.

Holds every UrlRecord in memory keyed by shortcode. Each mutation schedules
a write of the full snapshot, which a single writer thread hands to the
persistence backend.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Iterable, Optional

from .errors import DuplicateShortcode, ShortcodeExpired, ShortcodeNotFound
from .persistence import PersistenceBackend
from ..models.url import ClickEvent, UrlRecord, utc_now

logger = logging.getLogger(__name__)


class RegistryStore:
    """Shortcode -> UrlRecord map persisted by a background writer.

    Mutations of one shortcode are serialised by a per-key lock and only
    touch memory. Every mutation bumps a version counter; the writer thread
    saves the newest snapshot whenever the counter moves past what it last
    attempted, so backend I/O never sits on the request path and disk always
    converges on the in-memory state.
    """

    def __init__(
        self,
        backend: PersistenceBackend,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the store, load persisted records and start the writer.

        Args:
            backend: Persistence backend used for load/save.
            clock: Source of the current time, used for expiry checks.
        """
        self.backend = backend
        self.clock = clock
        self._guard = threading.Lock()
        self._changed = threading.Condition(self._guard)
        self._key_locks: dict[str, threading.Lock] = {}
        self._records: dict[str, UrlRecord] = {}
        self._version = 0
        self._saved_version = 0
        self._failed_version = 0
        self._save_error: Optional[Exception] = None
        self._closed = False

        for record in sorted(backend.load(), key=lambda r: r.created_at):
            if record.shortcode in self._records:
                raise DuplicateShortcode(record.shortcode)
            self._records[record.shortcode] = record

        self._writer = threading.Thread(
            target=self._write_loop, name="registry-writer", daemon=True
        )
        self._writer.start()
        logger.info(f"Registry store ready with {len(self._records)} records")

    def _lock_for(self, shortcode: str) -> Optional[threading.Lock]:
        # Only issued shortcodes get a lock; records are never removed.
        with self._guard:
            if shortcode not in self._records:
                return None
            lock = self._key_locks.get(shortcode)
            if lock is None:
                lock = self._key_locks[shortcode] = threading.Lock()
            return lock

    def _mark_changed(self) -> None:
        # Caller holds self._guard.
        if self._closed:
            raise RuntimeError("Registry store is closed")
        self._version += 1
        self._changed.notify_all()

    def _write_loop(self) -> None:
        attempted = self._saved_version
        while True:
            with self._changed:
                self._changed.wait_for(lambda: self._closed or self._version > attempted)
                if self._closed:
                    return
                attempted = self._version
                snapshot = list(self._records.values())

            try:
                self.backend.save(snapshot)
            except Exception as e:
                logger.error(f"Failed to persist registry snapshot: {e}")
                with self._changed:
                    self._failed_version = attempted
                    self._save_error = e
                    self._changed.notify_all()
                continue

            with self._changed:
                self._saved_version = attempted
                self._save_error = None
                self._changed.notify_all()

    def flush(self, timeout: Optional[float] = None) -> None:
        """Wait until every mutation made so far has been saved.

        Raises:
            TimeoutError: If the writer did not catch up within ``timeout``.
            Exception: The backend error, if the latest save attempt failed.
                The next mutation retries the write.
        """
        with self._changed:
            target = self._version
            settled = self._changed.wait_for(
                lambda: self._saved_version >= target
                or self._failed_version >= target
                or self._closed,
                timeout,
            )
            if not settled:
                raise TimeoutError("Registry writer did not catch up")
            if self._saved_version < target and self._save_error is not None:
                raise self._save_error

    def close(self) -> None:
        """Stop the writer, save anything still pending and close the backend."""
        with self._changed:
            if self._closed:
                return
            self._closed = True
            self._changed.notify_all()
        self._writer.join()

        with self._guard:
            pending = self._version > self._saved_version
            version = self._version
            snapshot = list(self._records.values())
        try:
            if pending:
                self.backend.save(snapshot)
                self._saved_version = version
        finally:
            self.backend.close()
        logger.info("Registry store closed")

    @property
    def last_save_failed(self) -> bool:
        """Whether the most recent backend save raised."""
        with self._guard:
            return self._save_error is not None

    def put(self, record: UrlRecord) -> UrlRecord:
        """Insert a new record.

        Raises:
            DuplicateShortcode: If the shortcode was already issued.
        """
        self.put_all([record])
        return record

    def put_all(self, records: Iterable[UrlRecord]) -> list[UrlRecord]:
        """Insert several records as one unit.

        Either every record is inserted or none is, and they reach the
        backend in the same snapshot.

        Raises:
            DuplicateShortcode: If any shortcode was already issued, or is
                repeated within ``records``.
        """
        records = list(records)
        with self._guard:
            seen: set[str] = set()
            for record in records:
                if record.shortcode in self._records or record.shortcode in seen:
                    raise DuplicateShortcode(record.shortcode)
                seen.add(record.shortcode)
            self._mark_changed()
            for record in records:
                self._records[record.shortcode] = record

        for record in records:
            logger.info(f"Stored shortcode: {record.shortcode}")
        return records

    def get_by_shortcode(self, shortcode: str) -> Optional[UrlRecord]:
        """Get a record by shortcode, active or expired.

        Returns:
            UrlRecord or None if not found.
        """
        with self._guard:
            return self._records.get(shortcode)

    def append_click(self, shortcode: str, event: ClickEvent) -> UrlRecord:
        """Append a click event to an active record.

        Args:
            shortcode: The shortcode that was visited.
            event: The click event to record.

        Returns:
            The updated record.

        Raises:
            ShortcodeNotFound: If the shortcode is unknown.
            ShortcodeExpired: If the record is past its expiry.
        """
        lock = self._lock_for(shortcode)
        if lock is None:
            raise ShortcodeNotFound(shortcode)

        with lock:
            current = self.get_by_shortcode(shortcode)
            if not current.is_active(self.clock()):
                raise ShortcodeExpired(shortcode)

            updated = current.with_click(event)
            with self._guard:
                self._mark_changed()
                self._records[shortcode] = updated

        logger.debug(f"Click recorded for {shortcode}. Total clicks: {updated.click_count}")
        return updated

    def list_all(self) -> list[UrlRecord]:
        """Get all records ordered by creation time."""
        with self._guard:
            records = list(self._records.values())
        return sorted(records, key=lambda r: r.created_at)

    def partition(
        self, now: Optional[datetime] = None
    ) -> tuple[list[UrlRecord], list[UrlRecord]]:
        """Split all records into (active, expired) at ``now``."""
        now = now or self.clock()
        active, expired = [], []
        for record in self.list_all():
            (active if record.is_active(now) else expired).append(record)
        return active, expired

    def existing_shortcodes(self) -> frozenset[str]:
        """Every shortcode ever issued by this store."""
        with self._guard:
            return frozenset(self._records)

    def __len__(self) -> int:
        with self._guard:
            return len(self._records)

    def __contains__(self, shortcode: str) -> bool:
        with self._guard:
            return shortcode in self._records
