"""PostgreSQL access for the extension catalog.

Notes
- We avoid logging connection URLs to prevent accidental secret leakage.
"""

from .config import PostgresConfig
from .stores import ExtensionStore, parse_preload_setting
