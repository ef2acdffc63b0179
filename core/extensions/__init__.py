"""Extension catalog."""

from core.extensions.catalog import (
    EXTENSIONS,
    creation_order,
    get_extension,
    preload_libraries,
)

__all__ = ["EXTENSIONS", "creation_order", "get_extension", "preload_libraries"]
