"""FastAPI application exposing database and extension status.

Endpoints:
- GET /health - Database connectivity
- GET /system/health - Database, extension catalog and preload status
- GET /extensions - Installed extensions and active preload libraries

Requirements:
- DATABASE_URL (or POSTGRES_PASSWORD and friends) must be set in environment
- No authentication (local network only)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from sqlalchemy import text

from api.routes.health import router as health_router
from core.extensions.catalog import EXTENSIONS, preload_libraries
from core.storage.postgres.config import PostgresConfig
from core.storage.postgres.stores import ExtensionStore

logger = logging.getLogger(__name__)

app = FastAPI(
    title="pgstack API",
    description="Status of the PostgreSQL server and its bundled extensions",
    version="1.0.0",
)
app.include_router(health_router)

# Global store instance (initialized on first request)
_store: ExtensionStore | None = None


def _get_store() -> ExtensionStore:
    """Get or initialize the extension store."""
    global _store
    if _store is None:
        _store = ExtensionStore(config=PostgresConfig.from_env())
    return _store


class ExtensionInfo(BaseModel):
    name: str
    version: Optional[str] = None
    bundled: bool


class ExtensionsResponse(BaseModel):
    extensions: list[ExtensionInfo]
    missing: list[str]
    preload_active: list[str]
    preload_missing: list[str]


@app.get("/health")
async def health() -> dict[str, Any]:
    """Health check endpoint.

    Raises:
        HTTPException: 503 if the database is unreachable.
    """
    try:
        engine = _get_store()._get_engine()  # noqa: SLF001

        def _ping() -> str:
            with engine.begin() as conn:
                return conn.execute(text("SHOW server_version")).scalar()

        version = await asyncio.to_thread(_ping)
        return {"status": "ok", "database": {"connected": True, "server_version": version}}

    except Exception as e:
        raise HTTPException(
            status_code=503,
            detail={
                "status": "error",
                "database": {
                    "connected": False,
                    "error": type(e).__name__,
                },
            },
        ) from e


@app.get("/extensions", response_model=ExtensionsResponse)
async def list_extensions() -> ExtensionsResponse:
    """Installed extensions, flagged against the bundled catalog."""
    try:
        store = _get_store()
        installed = await asyncio.to_thread(store.list_installed)
        active = await asyncio.to_thread(store.preload_libraries)
    except Exception as e:
        logger.warning(f"Extension listing failed: {type(e).__name__}")
        raise HTTPException(
            status_code=503,
            detail={"status": "error", "error": type(e).__name__},
        ) from e

    bundled = {spec.name for spec in EXTENSIONS}
    present = {ext.name for ext in installed if ext.version is not None}

    return ExtensionsResponse(
        extensions=[
            ExtensionInfo(name=ext.name, version=ext.version, bundled=ext.name in bundled) for ext in installed
        ],
        missing=[spec.name for spec in EXTENSIONS if spec.name not in present],
        preload_active=active,
        preload_missing=[name for name in preload_libraries() if name not in active],
    )
