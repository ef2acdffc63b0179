#!/usr/bin/env python3
"""Render the Dockerfile and init-extensions.sql from the extension catalog.

Usage:
  python scripts/render_recipe.py              # rewrite the checked-in files
  python scripts/render_recipe.py --out build/ # write them somewhere else
  python scripts/render_recipe.py --check      # exit 1 if checked-in files are stale
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

from core.image.builder import write_build_context  # noqa: E402
from core.image.dockerfile import render_dockerfile  # noqa: E402
from core.image.init_sql import render_init_sql  # noqa: E402
from core.image.recipe import ImageRecipe  # noqa: E402

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Render the image recipe from the extension catalog.")
    p.add_argument("--out", type=Path, default=_REPO_ROOT, help="Output directory (default: repo root)")
    p.add_argument("--check", action="store_true", help="Only compare; exit 1 when files differ")
    p.add_argument("--tune", action="store_true", help="Include the timescaledb-tune step")
    return p.parse_args(argv)


def stale_files(recipe: ImageRecipe, out_dir: Path) -> list[str]:
    expected = {
        "Dockerfile": render_dockerfile(recipe),
        recipe.init_script: render_init_sql(recipe.extensions),
    }
    stale = []
    for name, content in expected.items():
        path = out_dir / name
        if not path.exists() or path.read_text(encoding="utf-8") != content:
            stale.append(name)
    return stale


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    recipe = ImageRecipe.from_env()
    if args.tune:
        recipe = dataclasses.replace(recipe, timescaledb_tune=True)

    if args.check:
        stale = stale_files(recipe, args.out)
        if stale:
            print(f"❌ stale: {', '.join(stale)} (run scripts/render_recipe.py)", file=sys.stderr)
            return 1
        print("✅ recipe up to date")
        return 0

    for path in write_build_context(recipe, args.out):
        logger.info(f"Wrote {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
