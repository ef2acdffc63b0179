"""Pinned build inputs and the ordered provisioning pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

from core.extensions.catalog import EXTENSIONS, creation_order, preload_libraries
from core.types import BuildStep, ExtensionSpec

# Distro packages per extension. postgis_topology ships inside the postgis package.
_APT_PACKAGES: dict[str, tuple[str, ...]] = {
    "postgis": (
        "postgresql-{pg_major}-postgis-{postgis_major}",
        "postgresql-{pg_major}-postgis-{postgis_major}-scripts",
    ),
    "postgis_topology": (),
    "vector": ("postgresql-{pg_major}-pgvector",),
}

_APT_CLEANUP = "rm -rf /var/lib/apt/lists/*"


@dataclass(frozen=True)
class ImageRecipe:
    """Every version-pinned input of the image build."""

    base_image: str = "postgres"
    pg_major: int = 16
    postgis_major: int = 3
    tools: tuple[str, ...] = (
        "wget",
        "gnupg",
        "lsb-release",
        "curl",
        "ca-certificates",
        "libicu-dev",
    )
    pg_search_version: str = "0.19.4"
    pg_search_distro: str = "noble"
    arch: str = "amd64"
    pg_search_release_base: str = "https://github.com/paradedb/paradedb/releases/download"
    timescale_repo_url: str = "https://packagecloud.io/timescale/timescaledb/debian/"
    timescale_key_url: str = "https://packagecloud.io/timescale/timescaledb/gpgkey"
    timescale_keyring: str = "/etc/apt/trusted.gpg.d/timescaledb.gpg"
    timescaledb_tune: bool = False
    init_script: str = "init-extensions.sql"
    init_dir: str = "/docker-entrypoint-initdb.d/"
    conf_sample: str = "/usr/share/postgresql/postgresql.conf.sample"
    port: int = 5432
    extensions: tuple[ExtensionSpec, ...] = EXTENSIONS

    @classmethod
    def from_env(cls) -> "ImageRecipe":
        """Default recipe with PGSTACK_* environment overrides applied."""
        recipe = cls()
        overrides: dict[str, object] = {}

        if os.getenv("PGSTACK_PG_SEARCH_VERSION"):
            overrides["pg_search_version"] = os.environ["PGSTACK_PG_SEARCH_VERSION"]
        if os.getenv("PGSTACK_PG_SEARCH_DISTRO"):
            overrides["pg_search_distro"] = os.environ["PGSTACK_PG_SEARCH_DISTRO"]
        if os.getenv("PGSTACK_ARCH"):
            overrides["arch"] = os.environ["PGSTACK_ARCH"]
        tune = os.getenv("PGSTACK_TIMESCALEDB_TUNE", "").lower()
        if tune:
            overrides["timescaledb_tune"] = tune in ("1", "true", "yes")

        return replace(recipe, **overrides) if overrides else recipe

    @property
    def base_tag(self) -> str:
        return f"{self.base_image}:{self.pg_major}"

    @property
    def apt_packages(self) -> list[str]:
        packages: list[str] = []
        for spec in self.extensions:
            if spec.source != "apt":
                continue
            for template in _APT_PACKAGES.get(spec.name, ()):
                package = template.format(pg_major=self.pg_major, postgis_major=self.postgis_major)
                if package not in packages:
                    packages.append(package)
        return packages

    @property
    def pg_search_filename(self) -> str:
        v = self.pg_search_version
        return f"postgresql-{self.pg_major}-pg-search_{v}-1PARADEDB-{self.pg_search_distro}_{self.arch}.deb"

    @property
    def pg_search_url(self) -> str:
        return f"{self.pg_search_release_base}/v{self.pg_search_version}/{self.pg_search_filename}"

    @property
    def timescale_package(self) -> str:
        return f"timescaledb-2-postgresql-{self.pg_major}"

    @property
    def preload_directive(self) -> str:
        return f"shared_preload_libraries = '{','.join(preload_libraries(self.extensions))}'"

    def _has_source(self, source: str) -> bool:
        return any(spec.source == source for spec in self.extensions)

    def build_steps(self) -> list[BuildStep]:
        """The provisioning pipeline, in build order."""
        # Validates requires ordering before anything is rendered.
        creation_order(self.extensions)

        steps = [BuildStep("Base image", f"FROM {self.base_tag}")]

        install = " \\\n".join(
            f"        {package}" for package in [*self.apt_packages, *self.tools]
        )
        steps.append(
            BuildStep(
                "Install dependencies",
                "RUN apt-get update \\\n"
                "    && apt-get install -y --no-install-recommends \\\n"
                f"{install} \\\n"
                f"    && {_APT_CLEANUP}",
            )
        )

        if self._has_source("deb"):
            steps.append(
                BuildStep(
                    "Install pg_search from ParadeDB",
                    f'RUN curl -L "{self.pg_search_url}" -o /tmp/pg_search.deb \\\n'
                    "    && apt-get update \\\n"
                    "    && apt-get install -y /tmp/pg_search.deb \\\n"
                    "    && rm /tmp/pg_search.deb \\\n"
                    f"    && {_APT_CLEANUP}",
                )
            )

        if self._has_source("apt-repo"):
            steps.append(
                BuildStep(
                    "Add TimescaleDB repository and install",
                    f'RUN echo "deb {self.timescale_repo_url} $(lsb_release -c -s) main" '
                    "| tee /etc/apt/sources.list.d/timescaledb.list \\\n"
                    f"    && wget --quiet -O - {self.timescale_key_url} "
                    f"| gpg --dearmor -o {self.timescale_keyring} \\\n"
                    "    && apt-get update \\\n"
                    f"    && apt-get install -y {self.timescale_package} \\\n"
                    f"    && {_APT_CLEANUP}",
                )
            )
            if self.timescaledb_tune:
                steps.append(
                    BuildStep(
                        "Run timescaledb-tune with recommended settings",
                        "RUN timescaledb-tune --quiet --yes",
                    )
                )

        steps.append(
            BuildStep("Copy initialization script", f"COPY {self.init_script} {self.init_dir}")
        )

        if preload_libraries(self.extensions):
            steps.append(
                BuildStep(
                    "Set shared_preload_libraries",
                    f'RUN echo "{self.preload_directive}" >> {self.conf_sample}',
                )
            )

        steps.append(BuildStep("Server port", f"EXPOSE {self.port}"))
        return steps
