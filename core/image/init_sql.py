"""Render the first-boot extension script.

The base image entrypoint runs every file in /docker-entrypoint-initdb.d/
exactly once against a freshly initialized cluster. Every statement is
guarded with IF NOT EXISTS so the script can also be re-run by hand.
"""

from __future__ import annotations

from typing import Sequence

from core.extensions.catalog import EXTENSIONS, creation_order, get_extension
from core.types import ExtensionSpec

HEADER = "-- Generated by scripts/render_recipe.py. Do not edit by hand."
LIST_EXTENSIONS_SQL = "SELECT extname, extversion FROM pg_extension"


def create_extension_sql(name: str) -> str:
    return f"CREATE EXTENSION IF NOT EXISTS {name}"


def render_init_sql(specs: Sequence[ExtensionSpec] = EXTENSIONS) -> str:
    lines = [HEADER, ""]

    for name in creation_order(specs):
        spec = get_extension(name, specs)
        lines.append(f"-- Enable {spec.label} ({spec.description})")
        lines.append(f"{create_extension_sql(name)};")
        lines.append("")

    lines.append("-- Display installed extensions")
    lines.append(f"{LIST_EXTENSIONS_SQL};")
    return "\n".join(lines) + "\n"
