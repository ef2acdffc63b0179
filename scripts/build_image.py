#!/usr/bin/env python3
"""Build the PostgreSQL + extensions image.

Checks the pinned pg_search release artifact first, then renders a fresh build
context and runs `docker build`. Any failure aborts the build; nothing retries.

Usage:
  python scripts/build_image.py --tag pgstack:16
  python scripts/build_image.py --tag pgstack:16 --dry-run
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from core.errors import BuildError  # noqa: E402
from core.image.builder import ImageBuilder, check_artifact  # noqa: E402
from core.image.recipe import ImageRecipe  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Build the PostgreSQL 16 + extensions image.")
    p.add_argument("--tag", default="pgstack:16", help="Image tag (default: pgstack:16)")
    p.add_argument("--dry-run", action="store_true", help="Render the context and print the command only")
    p.add_argument("--skip-artifact-check", action="store_true", help="Do not probe the pg_search release URL")
    p.add_argument("--tune", action="store_true", help="Run timescaledb-tune during the build")
    p.add_argument("--docker", default="docker", help="Docker CLI executable (default: docker)")
    p.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    recipe = ImageRecipe.from_env()
    if args.tune:
        recipe = dataclasses.replace(recipe, timescaledb_tune=True)

    try:
        if not args.skip_artifact_check:
            check_artifact(recipe)
        ImageBuilder(recipe, docker=args.docker, dry_run=args.dry_run).build(args.tag)
    except BuildError as exc:
        logger.error(f"Build failed: {exc}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
