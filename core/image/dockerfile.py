from __future__ import annotations

from core.image.recipe import ImageRecipe

HEADER = "# Generated by scripts/render_recipe.py. Do not edit by hand."


def render_dockerfile(recipe: ImageRecipe | None = None) -> str:
    recipe = recipe or ImageRecipe()
    blocks = [HEADER] + [step.render() for step in recipe.build_steps()]
    return "\n\n".join(blocks) + "\n"
