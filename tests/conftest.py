"""Shared test fixtures for pytest.

Provides mocked SQLAlchemy engines and recipe fixtures used across test files.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock, Mock

import pytest

from core.image.recipe import ImageRecipe


@pytest.fixture(autouse=True)
def _clear_engine_cache():
    """HealthChecker caches engines per URL; keep tests isolated."""
    from core.health import checker

    checker._engine_cache.clear()
    yield
    checker._engine_cache.clear()


@pytest.fixture
def recipe() -> ImageRecipe:
    return ImageRecipe()


@pytest.fixture
def mock_conn() -> MagicMock:
    conn = MagicMock()
    result = MagicMock()
    result.fetchall.return_value = []
    result.fetchone.return_value = None
    result.scalar.return_value = None
    conn.execute.return_value = result
    return conn


@pytest.fixture
def mock_db_engine(mock_conn: MagicMock) -> Mock:
    """Mock SQLAlchemy engine whose begin() and connect() yield ``mock_conn``."""
    mock_engine = Mock()
    mock_engine.begin.return_value.__enter__ = Mock(return_value=mock_conn)
    mock_engine.begin.return_value.__exit__ = Mock(return_value=False)
    mock_engine.connect.return_value.__enter__ = Mock(return_value=mock_conn)
    mock_engine.connect.return_value.__exit__ = Mock(return_value=False)
    return mock_engine


@pytest.fixture
def catalog_rows() -> list[tuple[str, Any]]:
    """pg_extension rows for a fully provisioned database."""
    return [
        ("plpgsql", "1.0"),
        ("postgis", "3.5.2"),
        ("postgis_topology", "3.5.2"),
        ("timescaledb", "2.19.0"),
        ("vector", "0.8.0"),
        ("pg_search", "0.19.4"),
    ]
