"""Tests for the /extensions API endpoint."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from core.types import InstalledExtension


@pytest.fixture
def client():
    from api.main import app

    return TestClient(app)


def _store(installed, preload):
    store = MagicMock()
    store.list_installed.return_value = installed
    store.preload_libraries.return_value = preload
    return store


def test_extensions_fully_provisioned(client, catalog_rows):
    installed = [InstalledExtension(name=n, version=v) for n, v in sorted(catalog_rows)]
    with patch("api.main._get_store", return_value=_store(installed, ["timescaledb", "pg_search"])):
        response = client.get("/extensions")

    assert response.status_code == 200
    data = response.json()
    assert data["missing"] == []
    assert data["preload_missing"] == []
    by_name = {e["name"]: e for e in data["extensions"]}
    assert by_name["plpgsql"]["bundled"] is False
    assert by_name["vector"] == {"name": "vector", "version": "0.8.0", "bundled": True}


def test_extensions_reports_missing(client):
    installed = [InstalledExtension(name="postgis", version="3.5.2")]
    with patch("api.main._get_store", return_value=_store(installed, ["timescaledb"])):
        data = client.get("/extensions").json()

    assert data["missing"] == ["postgis_topology", "timescaledb", "vector", "pg_search"]
    assert data["preload_missing"] == ["pg_search"]


def test_extensions_database_down(client):
    store = MagicMock()
    store.list_installed.side_effect = ConnectionError("refused")
    with patch("api.main._get_store", return_value=store):
        response = client.get("/extensions")

    assert response.status_code == 503
    assert response.json()["detail"] == {"status": "error", "error": "ConnectionError"}
