"""Declarative catalog of the extensions baked into the image.

The order of ``EXTENSIONS`` is the order the init script creates them in:
PostGIS family first, then TimescaleDB, pgvector and pg_search.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from core.errors import CatalogError
from core.types import ExtensionSpec

EXTENSIONS: tuple[ExtensionSpec, ...] = (
    ExtensionSpec(
        name="postgis",
        label="PostGIS",
        source="apt",
        description="geometry, geography and raster support",
    ),
    ExtensionSpec(
        name="postgis_topology",
        label="PostGIS topology",
        source="apt",
        description="topology types and functions",
        requires=("postgis",),
    ),
    ExtensionSpec(
        name="timescaledb",
        label="TimescaleDB",
        source="apt-repo",
        description="hypertables and time-bucketed aggregation",
        preload=True,
    ),
    ExtensionSpec(
        name="vector",
        label="pgvector",
        source="apt",
        description="vector similarity search",
    ),
    ExtensionSpec(
        name="pg_search",
        label="pg_search",
        source="deb",
        description="BM25 full-text search",
        preload=True,
    ),
)


def get_extension(name: str, specs: Sequence[ExtensionSpec] = EXTENSIONS) -> ExtensionSpec:
    for spec in specs:
        if spec.name == name:
            return spec
    raise CatalogError(f"Unknown extension: {name}")


def creation_order(specs: Sequence[ExtensionSpec] = EXTENSIONS) -> list[str]:
    """Return extension names in the order they must be created.

    Catalog order is kept as-is; it is only validated. Every name listed in
    ``requires`` must be in the catalog and appear before its dependent.

    Raises:
        CatalogError: duplicate name, unknown requirement, or a requirement
            listed after the extension that needs it.
    """
    seen: set[str] = set()
    known = {spec.name for spec in specs}
    order: list[str] = []

    for spec in specs:
        if spec.name in seen:
            raise CatalogError(f"Duplicate extension in catalog: {spec.name}")
        for dep in spec.requires:
            if dep not in known:
                raise CatalogError(f"{spec.name} requires unknown extension {dep}")
            if dep not in seen:
                raise CatalogError(f"{spec.name} requires {dep}, which must be listed first")
        seen.add(spec.name)
        order.append(spec.name)

    return order


def preload_libraries(specs: Iterable[ExtensionSpec] = EXTENSIONS) -> list[str]:
    """Names of extensions that must be in shared_preload_libraries."""
    return [spec.name for spec in specs if spec.preload]
