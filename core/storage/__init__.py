"""Storage implementations."""

from .postgres import ExtensionStore, PostgresConfig
