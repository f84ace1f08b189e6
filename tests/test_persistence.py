"""Tests for persistence backends and the JSON layout."""

import json
from datetime import timedelta

import pytest

from shortcode_registry.core.persistence import (
    InMemoryBackend,
    JsonFileBackend,
    SQLiteBackend,
    create_backend,
    dump_records,
    load_records,
)
from shortcode_registry.core.store import RegistryStore
from shortcode_registry.models import ClickEvent, UrlRecord


@pytest.fixture
def records(clock):
    """Two records, one with clicks, timestamps with microseconds."""
    clock.advance(microseconds=123456)
    first = UrlRecord.create("https://example.com/a", "first1", 30, created_at=clock())
    clock.advance(seconds=1, microseconds=7)
    second = UrlRecord.create("https://example.com/b?x=1", "second2", 90, created_at=clock())
    for source in ["https://ref.example", "Direct", "https://other.example"]:
        clock.advance(milliseconds=250)
        second = second.with_click(ClickEvent(timestamp=clock(), source=source))
    return [first, second]


class TestJsonLayout:
    """Tests for the serialized record layout."""

    def test_round_trip(self, records):
        """Test dump then load gives field-for-field equal records."""
        assert load_records(dump_records(records)) == records

    def test_camel_case_fields_and_iso_timestamps(self, records):
        data = json.loads(dump_records(records))

        assert isinstance(data, list)
        assert set(data[1]) == {
            "id",
            "originalUrl",
            "shortcode",
            "createdAt",
            "expiryAt",
            "clickCount",
            "clickHistory",
        }
        assert data[1]["clickCount"] == 3
        assert data[0]["createdAt"].startswith("2026-10-19T12:00:00.123456")
        assert [c["source"] for c in data[1]["clickHistory"]] == [
            "https://ref.example",
            "Direct",
            "https://other.example",
        ]

    def test_naive_timestamps_read_as_utc(self, records):
        data = json.loads(dump_records(records))
        data[0]["createdAt"] = "2026-10-19T12:00:00"
        data[0]["expiryAt"] = "2026-10-19T12:30:00"

        loaded = load_records(json.dumps(data))

        assert loaded[0].expiry_at - loaded[0].created_at == timedelta(minutes=30)
        assert loaded[0].created_at.utcoffset() == timedelta(0)


class TestBackends:
    """Tests for each persistence backend."""

    def test_in_memory_round_trip(self, records):
        backend = InMemoryBackend()
        backend.save(records)
        assert backend.load() == records

    def test_json_file_round_trip(self, tmp_path, records):
        path = tmp_path / "nested" / "registry.json"
        backend = JsonFileBackend(path)
        backend.save(records)

        assert path.exists()
        assert JsonFileBackend(path).load() == records
        assert [p.name for p in path.parent.iterdir()] == ["registry.json"]

    def test_json_file_missing_loads_empty(self, tmp_path):
        assert JsonFileBackend(tmp_path / "absent.json").load() == []

    def test_sqlite_round_trip(self, tmp_path, records):
        path = str(tmp_path / "registry.db")
        backend = SQLiteBackend(path)
        backend.save(records)
        backend.close()

        reopened = SQLiteBackend(path)
        try:
            assert reopened.load() == records
        finally:
            reopened.close()

    def test_sqlite_save_replaces_snapshot(self, records):
        backend = SQLiteBackend(":memory:")
        backend.save(records)
        backend.save(records[:1])

        assert backend.load() == records[:1]
        backend.close()

    def test_create_backend(self, tmp_path):
        assert isinstance(create_backend("memory", ""), InMemoryBackend)
        assert isinstance(create_backend("json", str(tmp_path / "r.json")), JsonFileBackend)
        sqlite_backend = create_backend("sqlite", str(tmp_path / "r.db"))
        assert isinstance(sqlite_backend, SQLiteBackend)
        sqlite_backend.close()
        with pytest.raises(ValueError):
            create_backend("redis", "")


class TestRestart:
    """Tests for surviving a process restart."""

    @pytest.mark.parametrize("kind", ["json", "sqlite"])
    def test_store_survives_restart(self, tmp_path, clock, kind):
        path = str(tmp_path / f"registry.{kind}")
        store = RegistryStore(create_backend(kind, path), clock=clock)
        store.put(UrlRecord.create("https://example.com", "persist1", 30, created_at=clock()))
        store.append_click("persist1", ClickEvent(timestamp=clock(), source="https://ref.example"))
        before = store.list_all()
        store.close()

        restarted = RegistryStore(create_backend(kind, path), clock=clock)

        assert restarted.list_all() == before
        assert restarted.existing_shortcodes() == frozenset({"persist1"})
        restarted.close()
