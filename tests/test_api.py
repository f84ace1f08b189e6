"""Tests for the HTTP API."""

import sqlite3

import pytest
from fastapi.testclient import TestClient

from shortcode_registry.core.persistence import InMemoryBackend
from shortcode_registry.core.store import RegistryStore
from shortcode_registry.main import app, create_app
from shortcode_registry.services.registry import RegistryService, get_registry_service


def shorten(client, *entries):
    return client.post("/shorten", json={"urls": list(entries)})


class TestHealthEndpoint:
    """Tests for health check endpoint."""

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "records": 0, "storage": "memory"}

    def test_health_counts_records(self, client):
        shorten(client, {"url": "https://a.example"}, {"url": "https://b.example"})

        assert client.get("/health").json()["records"] == 2

    def test_health_degraded_after_failed_save(self, clock):
        """Test a failing backend is reported while records are still served."""

        class BrokenBackend(InMemoryBackend):
            broken = True

            def save(self, records):
                if self.broken:
                    raise OSError("read-only file system")
                super().save(records)

        backend = BrokenBackend()
        store = RegistryStore(backend, clock=clock)
        service = RegistryService(store=store, clock=clock)
        app.dependency_overrides[get_registry_service] = lambda: service
        try:
            with TestClient(app) as client:
                assert shorten(client, {"url": "https://example.com"}).status_code == 201
                with pytest.raises(OSError):
                    store.flush(timeout=5)

                response = client.get("/health")
        finally:
            app.dependency_overrides.clear()
            backend.broken = False
            store.close()

        assert response.json() == {"status": "degraded", "records": 1, "storage": "memory"}


class TestErrorHandlers:
    """Tests for the application-level exception handlers."""

    @pytest.mark.parametrize(
        "error", [OSError("disk full"), sqlite3.OperationalError("database is locked")]
    )
    def test_storage_errors_map_to_503(self, error):
        def unavailable():
            raise error

        registry_app = create_app()
        registry_app.dependency_overrides[get_registry_service] = unavailable
        client = TestClient(registry_app, raise_server_exceptions=False)

        response = client.get("/urls")

        assert response.status_code == 503
        assert response.json() == {"detail": "Registry storage unavailable"}

    def test_unexpected_errors_map_to_500(self):
        def broken():
            raise RuntimeError("boom")

        registry_app = create_app()
        registry_app.dependency_overrides[get_registry_service] = broken
        client = TestClient(registry_app, raise_server_exceptions=False)

        response = client.get("/urls")

        assert response.status_code == 500
        assert response.json() == {"detail": "Registry request failed"}


class TestShortenEndpoint:
    """Tests for POST /shorten endpoint."""

    def test_shorten_success(self, client):
        """Test shortening a URL with defaults."""
        response = shorten(
            client, {"url": "https://example.com", "validity": "", "customShortcode": ""}
        )

        assert response.status_code == 201
        created = response.json()["created"]
        assert len(created) == 1
        data = created[0]
        assert data["originalUrl"] == "https://example.com"
        assert len(data["shortcode"]) == 6
        assert data["shortUrl"] == f"http://testserver/{data['shortcode']}"
        assert data["clickCount"] == 0
        assert data["clickHistory"] == []
        assert data["isActive"] is True
        assert "createdAt" in data and "expiryAt" in data

    def test_shorten_batch_with_custom_code(self, client):
        response = shorten(
            client,
            {"url": "https://a.example", "customShortcode": "alpha1", "validity": 10},
            {"url": ""},
            {"url": "https://b.example"},
        )

        assert response.status_code == 201
        created = response.json()["created"]
        assert [c["originalUrl"] for c in created] == ["https://a.example", "https://b.example"]
        assert created[0]["shortcode"] == "alpha1"

    def test_shorten_duplicate_custom_code(self, client):
        assert shorten(client, {"url": "https://example.com", "customShortcode": "dup1"}).status_code == 201

        response = shorten(client, {"url": "https://example2.com", "customShortcode": "dup1"})

        assert response.status_code == 409
        assert response.json()["detail"] == ["URL 1: Custom shortcode 'dup1' already exists"]

    def test_shorten_invalid_entries(self, client, store):
        response = shorten(
            client,
            {"url": "https://fine.example"},
            {"url": "not-a-valid-url", "validity": "-1"},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == [
            "URL 2: Invalid URL format",
            "URL 2: Validity must be a positive integer",
        ]
        assert len(store) == 0

    def test_shorten_reserved_custom_code(self, client):
        """Test a code that a fixed route would shadow is never issued."""
        response = shorten(client, {"url": "https://example.com", "customShortcode": "health"})

        assert response.status_code == 400
        assert response.json()["detail"] == ["URL 1: Custom shortcode 'health' is reserved"]
        assert client.get("/health").json()["records"] == 0

    def test_shorten_empty_batch(self, client):
        response = shorten(client, {"url": "  "})

        assert response.status_code == 400
        assert response.json()["detail"] == "Please enter at least one URL"

    def test_shorten_malformed_body(self, client):
        response = client.post("/shorten", json={"links": []})
        assert response.status_code == 422


class TestRedirectEndpoint:
    """Tests for GET /{shortcode} endpoint."""

    def test_redirect_records_click(self, client):
        shorten(client, {"url": "https://example.com/page", "customShortcode": "go1"})

        response = client.get(
            "/go1", headers={"Referer": "https://ref.example"}, follow_redirects=False
        )

        assert response.status_code == 302
        assert response.headers["location"] == "https://example.com/page"
        history = client.get("/go1/info").json()["clickHistory"]
        assert len(history) == 1
        assert history[0]["source"] == "https://ref.example"
        assert history[0]["location"] == "Unknown"

    def test_redirect_direct_visit(self, client):
        shorten(client, {"url": "https://example.com", "customShortcode": "go2"})

        client.get("/go2", follow_redirects=False)

        assert client.get("/go2/info").json()["clickHistory"][0]["source"] == "Direct"

    def test_redirect_not_found(self, client):
        response = client.get("/nonexistent", follow_redirects=False)
        assert response.status_code == 404

    def test_redirect_expired(self, client, clock):
        shorten(client, {"url": "https://example.com", "customShortcode": "old1", "validity": 1})
        clock.advance(minutes=2)

        response = client.get("/old1", follow_redirects=False)

        assert response.status_code == 410
        info = client.get("/old1/info").json()
        assert info["isActive"] is False
        assert info["clickCount"] == 0


class TestInfoEndpoint:
    """Tests for GET /{shortcode}/info endpoint."""

    def test_info_success(self, client):
        shorten(client, {"url": "https://example.com", "customShortcode": "info1"})
        for _ in range(3):
            client.get("/info1", follow_redirects=False)

        response = client.get("/info1/info")

        assert response.status_code == 200
        data = response.json()
        assert data["shortcode"] == "info1"
        assert data["clickCount"] == 3
        assert len(data["clickHistory"]) == 3

    def test_info_not_found(self, client):
        response = client.get("/nonexistent/info")
        assert response.status_code == 404


class TestListEndpoint:
    """Tests for GET /urls endpoint."""

    def test_list_split_by_status(self, client, clock):
        shorten(
            client,
            {"url": "https://short.example", "customShortcode": "short", "validity": 5},
            {"url": "https://long.example", "customShortcode": "long", "validity": 60},
        )
        clock.advance(minutes=10)

        response = client.get("/urls")

        assert response.status_code == 200
        data = response.json()
        assert [r["shortcode"] for r in data["active"]] == ["long"]
        assert [r["shortcode"] for r in data["expired"]] == ["short"]
        assert data["expired"][0]["isActive"] is False

    def test_list_empty(self, client):
        assert client.get("/urls").json() == {"active": [], "expired": []}
