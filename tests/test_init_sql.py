"""Tests for the first-boot extension script."""

from __future__ import annotations

from pathlib import Path

from core.image.init_sql import render_init_sql
from db.init_db import _iter_sql_statements

ROOT = Path(__file__).resolve().parents[1]


def test_checked_in_init_script_is_up_to_date():
    script = (ROOT / "init-extensions.sql").read_text(encoding="utf-8")
    assert script == render_init_sql(), "Run scripts/render_recipe.py"


def test_init_script_statements():
    statements = list(_iter_sql_statements(render_init_sql()))
    assert statements == [
        "CREATE EXTENSION IF NOT EXISTS postgis",
        "CREATE EXTENSION IF NOT EXISTS postgis_topology",
        "CREATE EXTENSION IF NOT EXISTS timescaledb",
        "CREATE EXTENSION IF NOT EXISTS vector",
        "CREATE EXTENSION IF NOT EXISTS pg_search",
        "SELECT extname, extversion FROM pg_extension",
    ]


def test_every_create_is_guarded():
    """Re-running the script must never fail on existing extensions."""
    lines = [line for line in render_init_sql().splitlines() if line.startswith("CREATE")]
    assert len(lines) == 5
    for line in lines:
        assert "IF NOT EXISTS" in line, f"CREATE should use IF NOT EXISTS: {line}"


def test_splitter_skips_comments_and_keeps_quotes():
    sql = """
    -- comment; with a semicolon
    SELECT 'a;b';
    SELECT 'it''s';
    SELECT "odd;name" FROM t
    """
    assert list(_iter_sql_statements(sql)) == [
        "SELECT 'a;b'",
        "SELECT 'it''s'",
        'SELECT "odd;name" FROM t',
    ]


def test_splitter_empty_script():
    assert list(_iter_sql_statements("-- nothing here\n;\n")) == []
