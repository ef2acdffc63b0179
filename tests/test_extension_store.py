"""Tests for ExtensionStore catalog access."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from core.errors import CatalogError
from core.storage.postgres.config import PostgresConfig
from core.storage.postgres.stores import ExtensionStore, parse_preload_setting
from core.types import InstalledExtension


@pytest.fixture
def store(mock_db_engine):
    store = ExtensionStore(config=PostgresConfig(database_url="postgresql://fake"))
    with patch.object(store, "_get_engine", return_value=mock_db_engine):
        yield store


def _executed_sql(mock_conn) -> list[str]:
    return [str(call.args[0]) for call in mock_conn.execute.call_args_list]


def test_create_extensions_defaults_to_catalog_order(store, mock_conn):
    names = store.create_extensions()

    assert names == ["postgis", "postgis_topology", "timescaledb", "vector", "pg_search"]
    assert _executed_sql(mock_conn) == [f"CREATE EXTENSION IF NOT EXISTS {n}" for n in names]


def test_create_extensions_is_repeatable(store, mock_conn):
    store.create_extensions(["vector"])
    store.create_extensions(["vector"])

    assert _executed_sql(mock_conn) == ["CREATE EXTENSION IF NOT EXISTS vector"] * 2


def test_create_extensions_rejects_unsafe_names(store, mock_conn):
    with pytest.raises(CatalogError, match="Invalid extension name"):
        store.create_extensions(["vector; DROP TABLE x"])
    mock_conn.execute.assert_not_called()


def test_list_installed(store, mock_conn):
    mock_conn.execute.return_value.fetchall.return_value = [("postgis", "3.5.2"), ("vector", None)]

    assert store.list_installed() == [
        InstalledExtension(name="postgis", version="3.5.2"),
        InstalledExtension(name="vector", version=None),
    ]
    assert "ORDER BY extname" in _executed_sql(mock_conn)[0]


def test_preload_libraries(store, mock_conn):
    mock_conn.execute.return_value.scalar.return_value = "timescaledb,pg_search"

    assert store.preload_libraries() == ["timescaledb", "pg_search"]


@pytest.mark.parametrize(
    "value, expected",
    [
        ("", []),
        (None, []),
        ("timescaledb", ["timescaledb"]),
        ("timescaledb, pg_search", ["timescaledb", "pg_search"]),
        ('"timescaledb",pg_search,', ["timescaledb", "pg_search"]),
    ],
)
def test_parse_preload_setting(value, expected):
    assert parse_preload_setting(value) == expected
