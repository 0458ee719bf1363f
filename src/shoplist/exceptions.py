"""Exceptions raised by the shopping list engine."""


class ShoppingListError(Exception):
    """Base class for request-level shopping list failures."""


class MalformedRequestError(ShoppingListError):
    """Raised when a shopping list request is structurally invalid."""


class RecipeNotFoundError(ShoppingListError):
    """Raised when one or more requested recipes cannot be resolved."""

    def __init__(self, recipe_ids: list[str]):
        self.recipe_ids = list(recipe_ids)
        super().__init__(f"Recipe(s) not found: {', '.join(self.recipe_ids)}")


class IncompatibleUnitsError(ValueError):
    """Raised when a quantity cannot be converted between two units."""

    def __init__(self, from_unit: str | None, to_unit: str | None):
        self.from_unit = from_unit
        self.to_unit = to_unit
        super().__init__(f"Cannot convert {from_unit!r} to {to_unit!r}")
