"""Health check logic for the database and its extensions."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Literal, Optional

from sqlalchemy import create_engine, text

from core.errors import ConfigError
from core.extensions.catalog import EXTENSIONS, preload_libraries
from core.image.init_sql import LIST_EXTENSIONS_SQL
from core.storage.postgres.config import PostgresConfig
from core.storage.postgres.stores import parse_preload_setting

# Module-level engine singleton to avoid creating engines on every request
_engine_cache: dict[str, Any] = {}


@dataclass
class HealthStatus:
    """Health status for a component."""

    status: Literal["ok", "degraded", "error"]
    latency_ms: Optional[float] = None
    message: Optional[str] = None
    details: Optional[dict] = None


def _url_from_env() -> Optional[str]:
    try:
        return PostgresConfig.from_env().database_url
    except ConfigError:
        return None


class HealthChecker:
    """Health checker for the database, its extensions and preload libraries."""

    def __init__(self, database_url: Optional[str] = None):
        """Initialize health checker.

        Args:
            database_url: Database connection URL. If not provided, resolved from
                DATABASE_URL or the POSTGRES_* variables.
        """
        self.database_url = database_url or _url_from_env()

    def _get_engine(self):
        """Get or create a cached database engine."""
        if not self.database_url:
            return None

        if self.database_url not in _engine_cache:
            _engine_cache[self.database_url] = create_engine(self.database_url, echo=False, pool_pre_ping=True)
        return _engine_cache[self.database_url]

    def _not_configured(self) -> HealthStatus:
        return HealthStatus(status="error", message="Database not configured (set DATABASE_URL or POSTGRES_PASSWORD)")

    def check_database(self) -> HealthStatus:
        """Check database connectivity and measure latency."""
        if not self.database_url:
            return self._not_configured()

        try:
            engine = self._get_engine()
            start_time = time.time()
            with engine.begin() as conn:
                version = conn.execute(text("SHOW server_version")).scalar()
            latency_ms = (time.time() - start_time) * 1000

            return HealthStatus(
                status="ok",
                latency_ms=round(latency_ms, 2),
                message="Database connected",
                details={"server_version": version},
            )
        except Exception as exc:
            return HealthStatus(
                status="error",
                message=f"Database error: {type(exc).__name__}",
                details={"error": str(exc)},
            )

    def check_extensions(self) -> HealthStatus:
        """Check every catalog extension is installed with a version."""
        if not self.database_url:
            return self._not_configured()

        expected = [spec.name for spec in EXTENSIONS]
        try:
            engine = self._get_engine()
            with engine.begin() as conn:
                rows = conn.execute(text(LIST_EXTENSIONS_SQL)).fetchall()
        except Exception as exc:
            return HealthStatus(
                status="error",
                message=f"Cannot read extension catalog: {type(exc).__name__}",
                details={"error": str(exc)},
            )

        installed = {str(r[0]): r[1] for r in rows}
        missing = [name for name in expected if installed.get(name) is None]
        versions = {name: installed.get(name) for name in expected}

        if missing:
            return HealthStatus(
                status="error",
                message=f"Missing extensions: {', '.join(missing)}",
                details={"missing": missing, "versions": versions},
            )
        return HealthStatus(
            status="ok",
            message=f"All {len(expected)} extensions installed",
            details={"versions": versions},
        )

    def check_preload(self) -> HealthStatus:
        """Check the libraries that need preloading are active in the server."""
        if not self.database_url:
            return self._not_configured()

        required = preload_libraries(EXTENSIONS)
        try:
            engine = self._get_engine()
            with engine.begin() as conn:
                value = conn.execute(text("SHOW shared_preload_libraries")).scalar()
        except Exception as exc:
            return HealthStatus(
                status="error",
                message=f"Cannot read shared_preload_libraries: {type(exc).__name__}",
                details={"error": str(exc)},
            )

        active = parse_preload_setting(value)
        missing = [name for name in required if name not in active]
        if missing:
            return HealthStatus(
                status="error",
                message=f"Not preloaded: {', '.join(missing)}",
                details={"active": active, "missing": missing},
            )
        return HealthStatus(
            status="ok",
            message="Preload libraries active",
            details={"active": active},
        )

    def check_all(self) -> dict[str, HealthStatus]:
        """Check all components."""
        return {
            "database": self.check_database(),
            "extensions": self.check_extensions(),
            "preload": self.check_preload(),
        }
