"""Tests for the image recipe and Dockerfile rendering."""

from __future__ import annotations

import dataclasses
from pathlib import Path

from core.extensions.catalog import EXTENSIONS
from core.image.dockerfile import render_dockerfile
from core.image.recipe import ImageRecipe

ROOT = Path(__file__).resolve().parents[1]


def _instructions(recipe: ImageRecipe) -> list[str]:
    return [step.instruction.split()[0] for step in recipe.build_steps()]


def test_checked_in_dockerfile_is_up_to_date(recipe):
    """The committed Dockerfile must match the renderer output."""
    dockerfile = (ROOT / "Dockerfile").read_text(encoding="utf-8")
    assert dockerfile == render_dockerfile(recipe), "Run scripts/render_recipe.py"


def test_pipeline_order(recipe):
    comments = [step.comment for step in recipe.build_steps()]
    assert comments == [
        "Base image",
        "Install dependencies",
        "Install pg_search from ParadeDB",
        "Add TimescaleDB repository and install",
        "Copy initialization script",
        "Set shared_preload_libraries",
        "Server port",
    ]
    assert _instructions(recipe) == ["FROM", "RUN", "RUN", "RUN", "COPY", "RUN", "EXPOSE"]


def test_base_image_is_pinned(recipe):
    assert recipe.build_steps()[0].instruction == "FROM postgres:16"


def test_apt_packages_follow_catalog(recipe):
    assert recipe.apt_packages == [
        "postgresql-16-postgis-3",
        "postgresql-16-postgis-3-scripts",
        "postgresql-16-pgvector",
    ]


def test_pg_search_url_is_version_pinned(recipe):
    assert recipe.pg_search_url == (
        "https://github.com/paradedb/paradedb/releases/download/v0.19.4/"
        "postgresql-16-pg-search_0.19.4-1PARADEDB-noble_amd64.deb"
    )


def test_pg_search_url_follows_overrides():
    recipe = ImageRecipe(pg_search_version="0.20.0", arch="arm64")
    assert "/v0.20.0/" in recipe.pg_search_url
    assert recipe.pg_search_url.endswith("postgresql-16-pg-search_0.20.0-1PARADEDB-noble_arm64.deb")


def test_preload_directive(recipe):
    assert recipe.preload_directive == "shared_preload_libraries = 'timescaledb,pg_search'"
    text = render_dockerfile(recipe)
    assert (
        "RUN echo \"shared_preload_libraries = 'timescaledb,pg_search'\" "
        ">> /usr/share/postgresql/postgresql.conf.sample" in text
    )


def test_init_script_copied_to_entrypoint_dir(recipe):
    assert "COPY init-extensions.sql /docker-entrypoint-initdb.d/" in render_dockerfile(recipe)


def test_timescale_repo_keyed_by_codename(recipe):
    text = render_dockerfile(recipe)
    assert "$(lsb_release -c -s) main" in text
    assert "gpg --dearmor -o /etc/apt/trusted.gpg.d/timescaledb.gpg" in text
    assert "apt-get install -y timescaledb-2-postgresql-16" in text


def test_port_exposed(recipe):
    assert render_dockerfile(recipe).rstrip().endswith("EXPOSE 5432")


def test_tune_step_is_opt_in(recipe):
    assert "timescaledb-tune" not in render_dockerfile(recipe)

    tuned = dataclasses.replace(recipe, timescaledb_tune=True)
    comments = [step.comment for step in tuned.build_steps()]
    idx = comments.index("Run timescaledb-tune with recommended settings")
    assert comments[idx - 1] == "Add TimescaleDB repository and install"
    assert "RUN timescaledb-tune --quiet --yes" in render_dockerfile(tuned)


def test_steps_follow_catalog_sources():
    """Dropping the external-source extensions drops their build steps."""
    apt_only = tuple(spec for spec in EXTENSIONS if spec.source == "apt")
    recipe = ImageRecipe(extensions=apt_only)
    text = render_dockerfile(recipe)

    assert "pg_search" not in text
    assert "timescaledb" not in text
    assert "shared_preload_libraries" not in text


def test_from_env_overrides(monkeypatch):
    monkeypatch.setenv("PGSTACK_PG_SEARCH_VERSION", "0.21.0")
    monkeypatch.setenv("PGSTACK_ARCH", "arm64")
    monkeypatch.setenv("PGSTACK_TIMESCALEDB_TUNE", "true")

    recipe = ImageRecipe.from_env()

    assert recipe.pg_search_version == "0.21.0"
    assert recipe.arch == "arm64"
    assert recipe.timescaledb_tune is True


def test_from_env_defaults(monkeypatch):
    for name in ("PGSTACK_PG_SEARCH_VERSION", "PGSTACK_PG_SEARCH_DISTRO", "PGSTACK_ARCH", "PGSTACK_TIMESCALEDB_TUNE"):
        monkeypatch.delenv(name, raising=False)
    assert ImageRecipe.from_env() == ImageRecipe()
