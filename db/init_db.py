#!/usr/bin/env python3
"""Enable the bundled extensions on an existing database.

The image runs init-extensions.sql once through the base image entrypoint.
This script applies the same statements on demand, e.g. to a database created
after first boot. Every statement is guarded with IF NOT EXISTS, so running it
again is a no-op.

Usage:
  python -m db.init_db
  python -m db.init_db --file init-extensions.sql

Requirements:
  - DATABASE_URL, or POSTGRES_PASSWORD (+ optional POSTGRES_USER/POSTGRES_DB/
    POSTGRES_HOST/POSTGRES_PORT) must be set
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable

import psycopg2
from sqlalchemy import create_engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from core.errors import ConfigError
from core.storage.postgres.config import PostgresConfig
from core.storage.postgres.stores import ExtensionStore

logger = logging.getLogger(__name__)


def _iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a SQL script into executable statements.

    Supports:
    - `--` line comments
    - quoted strings (single and double quotes)

    No $$ quoting; the init script never needs it.
    """

    buf: list[str] = []
    in_single = False
    in_double = False
    i = 0
    while i < len(sql):
        ch = sql[i]

        # Handle -- comments (only when not in quotes)
        if not in_single and not in_double and ch == "-" and i + 1 < len(sql) and sql[i + 1] == "-":
            while i < len(sql) and sql[i] not in ("\n", "\r"):
                i += 1
            continue

        if ch == "'" and not in_double:
            # Toggle single quote state unless escaped by doubling ''
            if in_single and i + 1 < len(sql) and sql[i + 1] == "'":
                buf.append("''")
                i += 2
                continue
            in_single = not in_single
            buf.append(ch)
            i += 1
            continue

        if ch == '"' and not in_single:
            in_double = not in_double
            buf.append(ch)
            i += 1
            continue

        if ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf = []
            if stmt:
                yield stmt
            i += 1
            continue

        buf.append(ch)
        i += 1

    tail = "".join(buf).strip()
    if tail:
        yield tail


def apply_init_script(database_url: str, sql: str) -> list[tuple[str, str]]:
    """Run every statement of ``sql`` in one transaction.

    Returns:
        Rows of the last statement that produced a result set (the
        extension listing for the init script).
    """
    engine = create_engine(database_url, echo=False)
    rows: list[tuple[str, str]] = []

    raw = engine.raw_connection()
    try:
        cur = raw.cursor()
        for stmt in _iter_sql_statements(sql):
            logger.debug(f"Executing: {stmt}")
            cur.execute(stmt)
            if cur.description is not None:
                rows = [tuple(r) for r in cur.fetchall()]
        raw.commit()
    except Exception:
        raw.rollback()
        raise
    finally:
        raw.close()
        engine.dispose()

    return rows


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Enable the bundled PostgreSQL extensions (idempotent).")
    p.add_argument(
        "--file",
        type=Path,
        default=None,
        help="SQL script to apply (default: create every catalog extension in creation order)",
    )
    p.add_argument("--verbose", action="store_true", help="Log every statement")
    return p.parse_args(argv)


def _describe_driver_error(exc: Exception) -> str:
    """Server message of a driver error, or just its type for client-side failures."""
    orig = getattr(exc, "orig", None) or exc
    pgerror = getattr(orig, "pgerror", None)
    if pgerror:
        return f"{type(orig).__name__}: {pgerror.strip().splitlines()[0]}"
    return type(orig).__name__


def _enable_catalog_extensions(config: PostgresConfig) -> list[tuple[str, str]]:
    store = ExtensionStore(config=config)
    try:
        store.create_extensions()
        return [(ext.name, ext.version) for ext in store.list_installed()]
    finally:
        store.dispose()


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = PostgresConfig.from_env()
    except ConfigError as exc:
        print(f"❌ {exc}", file=sys.stderr)
        return 1

    try:
        if args.file is None:
            rows = _enable_catalog_extensions(config)
        else:
            rows = apply_init_script(config.database_url, args.file.read_text(encoding="utf-8"))
    except (DBAPIError, psycopg2.Error) as exc:
        # Do not echo the database_url (contains credentials)
        print(f"❌ init-fail: {_describe_driver_error(exc)}", file=sys.stderr)
        return 1
    except SQLAlchemyError as exc:
        print(f"❌ init-fail: unable to connect ({type(exc).__name__})", file=sys.stderr)
        return 1

    print("✅ Extensions enabled")
    for name, version in rows:
        print(f"   {name:<20} {version}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
