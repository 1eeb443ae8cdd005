"""Tests for the diagnostic app endpoints."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from keystone.main import app


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def configured(monkeypatch):
    """Point the app's settings at a fully configured deployment."""
    from keystone.main import settings

    monkeypatch.setattr(settings, "port", 3100)
    monkeypatch.setattr(settings, "host", "0.0.0.0")
    monkeypatch.setattr(settings, "db_host", "db.internal")
    monkeypatch.setattr(settings, "db_database", "directus")
    monkeypatch.setattr(settings, "public_url", "https://cms.example.com")
    monkeypatch.setattr(settings, "key", "super-secret-key")
    monkeypatch.setattr(settings, "secret", "super-secret-secret")
    monkeypatch.setattr(settings, "node_env", "production")
    return settings


@pytest.fixture
def unconfigured(monkeypatch):
    from keystone.main import settings

    for name in ("port", "db_host", "db_database", "public_url", "key", "secret", "node_env"):
        monkeypatch.setattr(settings, name, None)
    return settings


class TestHealthEndpoint:
    """Tests for the /health endpoint."""

    def test_health_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200

    def test_health_response_body(self, client):
        assert client.get("/health").json() == {"status": "healthy"}


class TestEnvironmentReport:
    """Tests for the / environment report."""

    def test_configured(self, client, configured):
        data = client.get("/").json()
        assert data["status"] == "OK"
        assert data["port"] == 3100
        assert data["host"] == "0.0.0.0"
        assert data["env"] == {
            "DB_HOST": "db.internal",
            "DB_DATABASE": "directus",
            "PUBLIC_URL": "https://cms.example.com",
            "KEY": "SET",
            "SECRET": "SET",
            "NODE_ENV": "production",
        }

    def test_secrets_never_echoed(self, client, configured):
        body = client.get("/").text
        assert "super-secret" not in body

    def test_unconfigured(self, client, unconfigured):
        data = client.get("/").json()
        assert data["port"] == 3000
        assert set(data["env"].values()) == {"NOT SET"}
