from __future__ import annotations

import logging
import re
from typing import Any, Sequence

from sqlalchemy import create_engine, text

from core.errors import CatalogError
from core.extensions.catalog import creation_order
from core.image.init_sql import LIST_EXTENSIONS_SQL, create_extension_sql
from core.storage.postgres.config import PostgresConfig
from core.types import InstalledExtension

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")


def parse_preload_setting(value: str | None) -> list[str]:
    """Split a shared_preload_libraries value into library names."""
    if not value:
        return []
    names = []
    for part in value.split(","):
        name = part.strip().strip('"').strip()
        if name:
            names.append(name)
    return names


class ExtensionStore:
    """Extension catalog access for a single PostgreSQL database."""

    def __init__(self, *, config: PostgresConfig) -> None:
        self._config = config
        self._engine: Any | None = None

    def _get_engine(self) -> Any:
        if self._engine is None:
            # Do not log the URL (it may contain secrets).
            self._engine = create_engine(self._config.database_url, echo=False, pool_pre_ping=True)
        return self._engine

    def create_extensions(self, names: Sequence[str] | None = None) -> list[str]:
        """Create extensions that are not present yet.

        Statements are guarded with IF NOT EXISTS, so repeated calls are no-ops.
        A missing shared library surfaces as the driver error; nothing is retried.
        """
        names = list(names) if names is not None else creation_order()
        for name in names:
            if not _IDENTIFIER.match(name):
                raise CatalogError(f"Invalid extension name: {name!r}")

        engine = self._get_engine()
        with engine.begin() as conn:
            for name in names:
                logger.info(f"Creating extension {name}")
                conn.execute(text(create_extension_sql(name)))

        return names

    def list_installed(self) -> list[InstalledExtension]:
        engine = self._get_engine()
        with engine.begin() as conn:
            rows = conn.execute(text(f"{LIST_EXTENSIONS_SQL} ORDER BY extname")).fetchall()

        return [InstalledExtension(name=str(r[0]), version=None if r[1] is None else str(r[1])) for r in rows]

    def preload_libraries(self) -> list[str]:
        engine = self._get_engine()
        with engine.begin() as conn:
            value = conn.execute(text("SHOW shared_preload_libraries")).scalar()
        return parse_preload_setting(value)

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
