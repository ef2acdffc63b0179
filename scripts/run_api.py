#!/usr/bin/env python3
"""Run the status API server.

Usage:
    python scripts/run_api.py [--host HOST] [--port PORT]

Environment:
    DATABASE_URL, or POSTGRES_PASSWORD (+ POSTGRES_USER/POSTGRES_DB/POSTGRES_HOST/POSTGRES_PORT).
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import uvicorn

# Ensure imports work when invoked as a script
_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from core.errors import ConfigError  # noqa: E402
from core.storage.postgres.config import PostgresConfig  # noqa: E402


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the pgstack status API.")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to (default: 8000)")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    try:
        PostgresConfig.from_env()
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Starting API server on {args.host}:{args.port}")
    print("Endpoints:")
    for path in ("/health", "/system/health", "/extensions"):
        print(f"  - GET http://{args.host}:{args.port}{path}")
    print()

    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
