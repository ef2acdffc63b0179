from __future__ import annotations

import os
from dataclasses import dataclass

from sqlalchemy.engine import URL

from core.errors import ConfigError


@dataclass(frozen=True)
class PostgresConfig:
    """Connection configuration.

    `database_url` should come from environment (e.g. DATABASE_URL).
    Do not log it.
    """

    database_url: str

    @classmethod
    def from_env(cls) -> "PostgresConfig":
        """Build config from DATABASE_URL, or the image's POSTGRES_* variables.

        Raises:
            ConfigError: DATABASE_URL is unset and POSTGRES_PASSWORD is missing.
        """
        database_url = os.getenv("DATABASE_URL")
        if database_url:
            return cls(database_url=database_url)

        password = os.getenv("POSTGRES_PASSWORD")
        if not password:
            raise ConfigError("Set DATABASE_URL or POSTGRES_PASSWORD")

        user = os.getenv("POSTGRES_USER") or "postgres"
        port = os.getenv("POSTGRES_PORT") or "5432"
        try:
            port_number = int(port)
        except ValueError as exc:
            raise ConfigError(f"POSTGRES_PORT must be an integer, got {port!r}") from exc

        url = URL.create(
            "postgresql+psycopg2",
            username=user,
            password=password,
            host=os.getenv("POSTGRES_HOST") or "localhost",
            port=port_number,
            database=os.getenv("POSTGRES_DB") or user,
        )
        return cls(database_url=url.render_as_string(hide_password=False))
