"""Scaling and shopping list aggregation."""

from shoplist.plan.scaling import (
    ScaledIngredient,
    format_ingredient,
    format_quantity,
    scale_ingredient,
)
from shoplist.plan.shopping_list import (
    ItemSource,
    RecipeUsage,
    ShoppingListAggregator,
    ShoppingListItem,
    ShoppingListResult,
    export_plain_text,
)

__all__ = [
    "ItemSource",
    "RecipeUsage",
    "ScaledIngredient",
    "ShoppingListAggregator",
    "ShoppingListItem",
    "ShoppingListResult",
    "export_plain_text",
    "format_ingredient",
    "format_quantity",
    "scale_ingredient",
]
