"""Image recipe rendering and build."""

from core.image.builder import ImageBuilder, check_artifact, write_build_context
from core.image.dockerfile import render_dockerfile
from core.image.init_sql import render_init_sql
from core.image.recipe import ImageRecipe

__all__ = [
    "ImageBuilder",
    "ImageRecipe",
    "check_artifact",
    "render_dockerfile",
    "render_init_sql",
    "write_build_context",
]
