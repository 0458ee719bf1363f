"""Recipe source boundary: recipe documents and how the engine fetches them."""

import re
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, Field, TypeAdapter

from shoplist.logging_config import get_logger

logger = get_logger(__name__)

INGREDIENTS_HEADING = "ingredients"

H2_RE = re.compile(r"^##\s+(.+)$")
LIST_ITEM_RE = re.compile(r"^(\s*[-*+]|\s*\d+\.)\s+")


class Servings(BaseModel):
    """Default serving count of a recipe."""

    default: int = Field(ge=1)
    unit: str | None = Field(None, description="What a serving is, e.g. 'cookies'")


class RecipeDocument(BaseModel):
    """
    A recipe as handed to the engine.

    Ingredient lines come either from ``ingredient_lines`` or, when that is
    absent, from the list items of the ``## Ingredients`` section of the
    Markdown ``body``.
    """

    id: str
    title: str
    servings: Servings
    ingredient_lines: list[str] | None = None
    body: str | None = None

    def get_ingredient_lines(self) -> list[str]:
        if self.ingredient_lines is not None:
            return list(self.ingredient_lines)
        if self.body:
            return extract_ingredient_lines(self.body)
        return []


def extract_sections(body: str) -> dict[str, list[str]]:
    """Map each level-two heading (lowercased) to the lines beneath it."""
    sections: dict[str, list[str]] = {}
    current: str | None = None

    for line in body.splitlines():
        heading = H2_RE.match(line)
        if heading:
            current = heading.group(1).strip().lower()
            sections.setdefault(current, [])
        elif current is not None:
            sections[current].append(line)

    return sections


def extract_ingredient_lines(body: str) -> list[str]:
    """Return the list items of the ``## Ingredients`` section, in order."""
    lines = extract_sections(body).get(INGREDIENTS_HEADING, [])
    return [line.strip() for line in lines if LIST_ITEM_RE.match(line)]


class RecipeSource(Protocol):
    """Anything that can look up a recipe by id."""

    async def get_recipe(self, recipe_id: str) -> RecipeDocument | None:
        """Return the recipe, or None if it does not exist."""
        ...


class InMemoryRecipeSource:
    """Recipe source backed by a dict, optionally loaded from a JSON file."""

    def __init__(self, recipes: list[RecipeDocument] | None = None):
        self._recipes: dict[str, RecipeDocument] = {}
        for recipe in recipes or []:
            self.add(recipe)

    def __len__(self) -> int:
        return len(self._recipes)

    def add(self, recipe: RecipeDocument) -> None:
        self._recipes[recipe.id] = recipe

    async def get_recipe(self, recipe_id: str) -> RecipeDocument | None:
        return self._recipes.get(recipe_id)

    @classmethod
    def from_json_file(cls, path: str | Path) -> "InMemoryRecipeSource":
        """Load a JSON array of recipe documents."""
        data = Path(path).read_text(encoding="utf-8")
        recipes = TypeAdapter(list[RecipeDocument]).validate_json(data)
        logger.info(f"Loaded {len(recipes)} recipes from {path}")
        return cls(recipes)
