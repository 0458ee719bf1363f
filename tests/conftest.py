"""Pytest configuration and shared fixtures."""

import pytest

from shoplist.config import Settings
from shoplist.plan.shopping_list import ShoppingListAggregator
from shoplist.recipes import InMemoryRecipeSource, RecipeDocument, Servings
from shoplist.schemas import RecipeSelection, ShoppingListRequest

# =============================================================================
# Recipe Fixtures
# =============================================================================


def make_recipe(
    recipe_id: str,
    lines: list[str] | None = None,
    servings: int = 4,
    title: str | None = None,
    body: str | None = None,
    servings_unit: str | None = None,
) -> RecipeDocument:
    """Build a recipe document for tests."""
    return RecipeDocument(
        id=recipe_id,
        title=title or recipe_id.replace("-", " ").title(),
        servings=Servings(default=servings, unit=servings_unit),
        ingredient_lines=lines,
        body=body,
    )


def make_request(*selections: str | tuple[str, int]) -> ShoppingListRequest:
    """Build a request from recipe ids or (recipe_id, target_servings) pairs."""
    items = []
    for selection in selections:
        if isinstance(selection, tuple):
            items.append(RecipeSelection(recipe_id=selection[0], target_servings=selection[1]))
        else:
            items.append(RecipeSelection(recipe_id=selection))
    return ShoppingListRequest(items=items)


@pytest.fixture
def sample_recipes() -> list[RecipeDocument]:
    """A small set of recipes with overlapping ingredients."""
    return [
        make_recipe(
            "pasta",
            [
                "2 tbsp olive oil",
                "3 cloves garlic, minced",
                "1 (15 oz) can crushed tomatoes",
                "Salt and pepper to taste",
                "1 lb spaghetti",
            ],
            servings=4,
            title="Tomato Pasta",
        ),
        make_recipe(
            "salad",
            [
                "3 tbsp olive oil",
                "2 large tomatoes, diced",
                "1 clove garlic",
                "Salt and pepper to taste",
            ],
            servings=2,
            title="Tomato Salad",
        ),
        make_recipe(
            "pancakes",
            ["2 cups flour", "1 tsp salt", "2 eggs", "1 ½ cups milk"],
            servings=4,
            title="Pancakes",
        ),
        make_recipe("empty", [], servings=2, title="Nothing Here"),
    ]


@pytest.fixture
def recipe_source(sample_recipes) -> InMemoryRecipeSource:
    """In-memory recipe source loaded with the sample recipes."""
    return InMemoryRecipeSource(sample_recipes)


@pytest.fixture
def settings() -> Settings:
    """Settings with default limits, ignoring any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def aggregator(recipe_source, settings) -> ShoppingListAggregator:
    """Aggregator over the sample recipe source."""
    return ShoppingListAggregator(recipe_source, settings=settings)
