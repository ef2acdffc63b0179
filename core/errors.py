"""Exception hierarchy for pgstack."""

from __future__ import annotations


class PgStackError(Exception):
    """Base class for all pgstack errors."""


class CatalogError(PgStackError):
    """Extension catalog is inconsistent or a name is unknown."""


class ConfigError(PgStackError):
    """Required configuration is missing or malformed."""


class BuildError(PgStackError):
    """Image build or build-time artifact check failed.

    Build failures are fatal: nothing in pgstack retries them.
    """
