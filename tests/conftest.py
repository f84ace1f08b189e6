"""Shared fixtures for Shortcode Registry tests."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from shortcode_registry.core.persistence import InMemoryBackend
from shortcode_registry.core.store import RegistryStore
from shortcode_registry.core.telemetry import AuditEvent, TelemetrySink
from shortcode_registry.main import app
from shortcode_registry.services.registry import RegistryService, get_registry_service
from shortcode_registry.utils.shortener import ShortcodeGenerator
from shortcode_registry.utils.validation import SubmissionValidator


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class RecordingSink(TelemetrySink):
    """Telemetry sink that keeps every event."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    def emit(self, event: AuditEvent) -> None:
        self.events.append(event)

    def messages(self, level: str = None) -> list[str]:
        return [e.message for e in self.events if level is None or e.level == level]


@pytest.fixture
def clock():
    """Clock starting at a fixed instant."""
    return FakeClock(datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def backend():
    """In-memory persistence backend."""
    return InMemoryBackend()


@pytest.fixture
def store(backend, clock):
    """Empty registry store."""
    store = RegistryStore(backend, clock=clock)
    yield store
    store.close()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def service(store, sink, clock):
    """Registry service wired to the in-memory store."""
    return RegistryService(
        store=store,
        generator=ShortcodeGenerator(length=6),
        validator=SubmissionValidator(),
        sink=sink,
        clock=clock,
    )


@pytest.fixture
def client(service):
    """Create a test client using the test service."""
    app.dependency_overrides[get_registry_service] = lambda: service
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
    app.dependency_overrides.clear()
