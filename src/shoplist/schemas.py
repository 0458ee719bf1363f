"""Request schemas for shopping list generation."""

from pydantic import BaseModel, Field


class RecipeSelection(BaseModel):
    """A recipe to shop for, optionally scaled to a serving count."""

    recipe_id: str
    target_servings: int | None = Field(
        None, description="Servings to scale to; defaults to the recipe's own servings"
    )


class ShoppingListRequest(BaseModel):
    """Request to build a shopping list from up to 20 recipes."""

    items: list[RecipeSelection] = Field(default_factory=list)
