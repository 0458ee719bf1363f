"""Shopping list generation from a set of recipes."""

import asyncio
from collections import Counter
from dataclasses import dataclass, field

from shoplist.config import Settings, get_settings
from shoplist.exceptions import MalformedRequestError, RecipeNotFoundError
from shoplist.logging_config import LoggingContext, get_logger
from shoplist.normalize.names import normalize_ingredient_name
from shoplist.normalize.parser import parse_ingredient_line
from shoplist.normalize.units import DEFAULT_UNIT_TABLE, UnitTable
from shoplist.plan.scaling import ScaledIngredient, format_quantity, scale_ingredient
from shoplist.recipes import RecipeDocument, RecipeSource
from shoplist.schemas import RecipeSelection, ShoppingListRequest

logger = get_logger(__name__)


@dataclass
class ItemSource:
    """A recipe line that contributed to a shopping list item."""

    recipe_id: str
    recipe_title: str
    original_line: str


@dataclass
class ShoppingListItem:
    """A single item in the shopping list."""

    name: str
    match_key: str
    quantity: str | None = None
    unit: str | None = None
    sources: list[ItemSource] = field(default_factory=list)

    # Owned by the UI; the engine only ever initializes it
    checked: bool = False

    def to_text_line(self) -> str:
        """Render as "- <quantity> <unit> <name>", omitting missing parts."""
        parts = [part for part in (self.quantity, self.unit, self.name) if part]
        return "- " + " ".join(parts)


@dataclass
class RecipeUsage:
    """A recipe included in the list and the servings it was scaled to."""

    recipe_id: str
    title: str
    servings_used: int
    servings_unit: str | None = None

    @property
    def servings_label(self) -> str:
        unit = self.servings_unit or ("serving" if self.servings_used == 1 else "servings")
        return f"{self.servings_used} {unit}"


@dataclass
class ShoppingListResult:
    """Complete shopping list for one request."""

    items: list[ShoppingListItem] = field(default_factory=list)
    recipes: list[RecipeUsage] = field(default_factory=list)

    @property
    def unchecked_items(self) -> list[ShoppingListItem]:
        return [item for item in self.items if not item.checked]


def export_plain_text(result: ShoppingListResult) -> str:
    """
    Render a shopping list as plain text for printing or sharing.

    A header names each source recipe with its serving count, followed by
    one "- <quantity> <unit> <name>" line per unchecked item.
    """
    recipes = ", ".join(f"{r.title} ({r.servings_label})" for r in result.recipes)
    lines = ["Shopping list", f"Recipes: {recipes}", ""]
    lines.extend(item.to_text_line() for item in result.unchecked_items)
    return "\n".join(lines) + "\n"


@dataclass
class _Bucket:
    """Members of a match-key group that can be merged into one item."""

    kind: str  # "none" (no quantity), "unitless" or "unit"
    unit: str | None = None
    members: list[ScaledIngredient] = field(default_factory=list)


class ShoppingListAggregator:
    """
    Builds shopping lists from recipes with:
    - Ingredient line parsing and serving-ratio scaling
    - Grouping by normalized ingredient name
    - Unit-aware merging (e.g., 1 tsp + 2 tsp salt -> 1 tbsp)
    - Separate items for quantities that cannot be summed
    """

    def __init__(
        self,
        recipe_source: RecipeSource,
        unit_table: UnitTable = DEFAULT_UNIT_TABLE,
        settings: Settings | None = None,
    ):
        self.recipe_source = recipe_source
        self.unit_table = unit_table
        self.settings = settings or get_settings()

    async def aggregate(self, request: ShoppingListRequest) -> ShoppingListResult:
        """
        Generate a shopping list for the requested recipes.

        Raises:
            MalformedRequestError: Structurally invalid request or scale ratio.
            RecipeNotFoundError: Any requested recipe is missing.
        """
        self._validate_request(request)
        logger.info(f"Generating shopping list for {len(request.items)} recipes")

        # Step 1: Resolve all recipes, failing on any missing one
        recipes = await self._resolve_recipes([item.recipe_id for item in request.items])

        # Step 2: Check every scale ratio before parsing anything
        ratios = [
            self._scale_ratio(selection, recipe)
            for selection, recipe in zip(request.items, recipes)
        ]

        # Step 3: Parse and scale each recipe's ingredient lines
        scaled: list[ScaledIngredient] = []
        usages: list[RecipeUsage] = []
        for selection, recipe, ratio in zip(request.items, recipes, ratios):
            scaled.extend(self._scale_recipe(recipe, ratio))
            usages.append(
                RecipeUsage(
                    recipe_id=recipe.id,
                    title=recipe.title,
                    servings_used=selection.target_servings or recipe.servings.default,
                    servings_unit=recipe.servings.unit,
                )
            )

        # Step 4: Group and merge across recipes
        items = self.merge(scaled)

        logger.info(f"Generated shopping list: {len(items)} items from {len(scaled)} lines")
        return ShoppingListResult(items=items, recipes=usages)

    def _validate_request(self, request: ShoppingListRequest) -> None:
        max_recipes = self.settings.shopping_list_max_recipes

        if not request.items:
            raise MalformedRequestError("At least one recipe is required")
        if len(request.items) > max_recipes:
            raise MalformedRequestError(
                f"At most {max_recipes} recipes allowed (got {len(request.items)})"
            )

        counts = Counter(item.recipe_id for item in request.items)
        duplicates = [recipe_id for recipe_id, count in counts.items() if count > 1]
        if duplicates:
            raise MalformedRequestError(f"Duplicate recipe id(s): {', '.join(duplicates)}")

        for item in request.items:
            if item.target_servings is not None and item.target_servings <= 0:
                raise MalformedRequestError(
                    f"target_servings must be positive for recipe {item.recipe_id}"
                )

    async def _resolve_recipes(self, recipe_ids: list[str]) -> list[RecipeDocument]:
        """Look up all recipes concurrently."""
        results = await asyncio.gather(
            *(self.recipe_source.get_recipe(recipe_id) for recipe_id in recipe_ids)
        )

        missing = [rid for rid, recipe in zip(recipe_ids, results) if recipe is None]
        if missing:
            logger.warning(f"Recipes not found: {missing}")
            raise RecipeNotFoundError(missing)

        return list(results)

    def _scale_ratio(self, selection: RecipeSelection, recipe: RecipeDocument) -> float:
        if selection.target_servings is None:
            return 1.0

        ratio = selection.target_servings / recipe.servings.default
        low, high = self.settings.min_scale_ratio, self.settings.max_scale_ratio
        if not low <= ratio <= high:
            raise MalformedRequestError(
                f"Scale ratio {ratio:g} for recipe {recipe.id} is outside [{low:g}, {high:g}]"
            )
        return ratio

    def _scale_recipe(self, recipe: RecipeDocument, ratio: float) -> list[ScaledIngredient]:
        with LoggingContext(recipe_id=recipe.id):
            lines = [line for line in recipe.get_ingredient_lines() if line.strip()]
            logger.debug(f"Scaling {len(lines)} lines by {ratio:g}")
            return [
                scale_ingredient(
                    parse_ingredient_line(line, self.unit_table),
                    ratio,
                    recipe_id=recipe.id,
                    recipe_title=recipe.title,
                )
                for line in lines
            ]

    def merge(self, ingredients: list[ScaledIngredient]) -> list[ShoppingListItem]:
        """
        Merge scaled ingredients into shopping list items.

        Ingredients are grouped by match key in first-encountered order.
        Within a group, quantities in units of one type and measurement system
        are summed; everything else becomes a separate item under the same
        name.
        """
        groups: dict[str, list[ScaledIngredient]] = {}
        for ingredient in ingredients:
            key = normalize_ingredient_name(ingredient.name)
            groups.setdefault(key, []).append(ingredient)

        items: list[ShoppingListItem] = []
        for key, members in groups.items():
            display_name = members[0].name
            for bucket in self._partition(members):
                items.append(self._merge_bucket(display_name, key, bucket))
        return items

    def _partition(self, members: list[ScaledIngredient]) -> list[_Bucket]:
        buckets: list[_Bucket] = []
        for ingredient in members:
            bucket = self._find_bucket(buckets, ingredient)
            if bucket is None:
                if ingredient.quantity is None:
                    bucket = _Bucket(kind="none")
                elif ingredient.unit is None:
                    bucket = _Bucket(kind="unitless")
                else:
                    bucket = _Bucket(kind="unit", unit=ingredient.unit)
                buckets.append(bucket)
            bucket.members.append(ingredient)
        return buckets

    def _find_bucket(self, buckets: list[_Bucket], ingredient: ScaledIngredient) -> _Bucket | None:
        for bucket in buckets:
            if ingredient.quantity is None:
                if bucket.kind == "none":
                    return bucket
            elif ingredient.unit is None:
                if bucket.kind == "unitless":
                    return bucket
            elif bucket.kind == "unit" and self.unit_table.can_merge(ingredient.unit, bucket.unit):
                return bucket
        return None

    def _merge_bucket(self, name: str, key: str, bucket: _Bucket) -> ShoppingListItem:
        sources = [
            ItemSource(
                recipe_id=member.recipe_id,
                recipe_title=member.recipe_title,
                original_line=member.original_line,
            )
            for member in bucket.members
        ]
        item = ShoppingListItem(name=name, match_key=key, sources=sources)

        if bucket.kind == "unitless":
            total = sum(member.quantity for member in bucket.members)
            item.quantity = format_quantity(total, None, self.unit_table)

        elif bucket.kind == "unit":
            target = self.unit_table.most_granular(member.unit for member in bucket.members)
            total = sum(
                self.unit_table.convert(member.quantity, member.unit, target)
                for member in bucket.members
            )
            value, unit = self.unit_table.choose_display_unit(total, target)
            item.quantity = format_quantity(value, unit, self.unit_table)
            item.unit = unit

        return item
