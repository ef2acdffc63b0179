"""Write the Docker build context and run the image build.

Build failures are fatal and never retried; callers get a BuildError.
"""

from __future__ import annotations

import logging
import subprocess
import tempfile
from pathlib import Path

import requests

from core.errors import BuildError
from core.image.dockerfile import render_dockerfile
from core.image.init_sql import render_init_sql
from core.image.recipe import ImageRecipe

logger = logging.getLogger(__name__)


def write_build_context(recipe: ImageRecipe, out_dir: Path) -> list[Path]:
    """Render the Dockerfile and init script into ``out_dir``."""
    out_dir.mkdir(parents=True, exist_ok=True)

    dockerfile = out_dir / "Dockerfile"
    dockerfile.write_text(render_dockerfile(recipe), encoding="utf-8")

    init_script = out_dir / recipe.init_script
    init_script.write_text(render_init_sql(recipe.extensions), encoding="utf-8")

    logger.debug(f"Wrote build context to {out_dir}")
    return [dockerfile, init_script]


def check_artifact(recipe: ImageRecipe, timeout: int = 15, session: requests.Session | None = None) -> str:
    """Verify the pinned pg_search release artifact is downloadable.

    Returns:
        The artifact URL.

    Raises:
        BuildError: If the request fails or the host does not answer 2xx.
    """
    url = recipe.pg_search_url
    http = session or requests.Session()
    try:
        response = http.head(url, allow_redirects=True, timeout=timeout)
    except requests.RequestException as exc:
        raise BuildError(f"pg_search artifact unreachable: {type(exc).__name__}") from exc
    finally:
        if session is None:
            http.close()

    if not 200 <= response.status_code < 300:
        raise BuildError(f"pg_search artifact returned HTTP {response.status_code}: {url}")

    logger.info(f"pg_search artifact ok: {recipe.pg_search_filename}")
    return url


class ImageBuilder:
    """Runs ``docker build`` over a freshly rendered context."""

    def __init__(self, recipe: ImageRecipe | None = None, *, docker: str = "docker", dry_run: bool = False):
        self.recipe = recipe or ImageRecipe()
        self.docker = docker
        self.dry_run = dry_run

    def command(self, tag: str, context_dir: Path) -> list[str]:
        return [self.docker, "build", "-t", tag, str(context_dir)]

    def _run(self, cmd: list[str]) -> None:
        logger.info(f"Running: {' '.join(cmd)}")
        if self.dry_run:
            return
        try:
            subprocess.run(cmd, check=True)
        except FileNotFoundError as exc:
            raise BuildError(f"{self.docker} executable not found") from exc
        except subprocess.CalledProcessError as exc:
            raise BuildError(f"Image build failed with exit code {exc.returncode}") from exc

    def build(self, tag: str) -> str:
        with tempfile.TemporaryDirectory(prefix="pgstack-build-") as tmp:
            context_dir = Path(tmp)
            write_build_context(self.recipe, context_dir)
            self._run(self.command(tag, context_dir))

        if not self.dry_run:
            logger.info(f"Built image {tag}")
        return tag
