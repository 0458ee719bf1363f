"""API routes for shopping list generation."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from shoplist.config import Settings, get_settings
from shoplist.exceptions import MalformedRequestError, RecipeNotFoundError
from shoplist.logging_config import LoggingContext, get_logger
from shoplist.plan.shopping_list import (
    ShoppingListAggregator,
    ShoppingListResult,
    export_plain_text,
)
from shoplist.recipes import RecipeSource
from shoplist.schemas import ShoppingListRequest

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/shopping-lists", tags=["shopping-lists"])


# =============================================================================
# Response Schemas
# =============================================================================


class ItemSourceSchema(BaseModel):
    """Recipe line that contributed to an item."""

    recipe_id: str
    recipe_title: str
    original_line: str


class ShoppingListItemSchema(BaseModel):
    """Single item in the shopping list."""

    name: str
    match_key: str
    quantity: str | None = None
    unit: str | None = None
    sources: list[ItemSourceSchema] = Field(default_factory=list)
    checked: bool = False


class RecipeUsedSchema(BaseModel):
    """Recipe included in the shopping list."""

    recipe_id: str
    title: str
    servings_used: int
    servings_unit: str | None = None


class ShoppingListResponse(BaseModel):
    """Aggregated shopping list for a set of recipes."""

    items: list[ShoppingListItemSchema]
    recipes: list[RecipeUsedSchema]


# =============================================================================
# Dependencies
# =============================================================================


def get_recipe_source(request: Request) -> RecipeSource:
    """Recipe source configured on the application at startup."""
    return request.app.state.recipe_source


def get_aggregator(
    recipe_source: RecipeSource = Depends(get_recipe_source),
    settings: Settings = Depends(get_settings),
) -> ShoppingListAggregator:
    return ShoppingListAggregator(recipe_source, settings=settings)


async def _build(
    request: ShoppingListRequest,
    aggregator: ShoppingListAggregator,
) -> ShoppingListResult:
    """Run the aggregator, translating request-level errors to HTTP errors."""
    with LoggingContext(request_id=str(uuid.uuid4())):
        try:
            return await aggregator.aggregate(request)
        except MalformedRequestError as e:
            logger.info(f"Rejected shopping list request: {e}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(e),
            ) from e
        except RecipeNotFoundError as e:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=str(e),
            ) from e


def _to_response(result: ShoppingListResult) -> ShoppingListResponse:
    return ShoppingListResponse(
        items=[
            ShoppingListItemSchema(
                name=item.name,
                match_key=item.match_key,
                quantity=item.quantity,
                unit=item.unit,
                sources=[
                    ItemSourceSchema(
                        recipe_id=source.recipe_id,
                        recipe_title=source.recipe_title,
                        original_line=source.original_line,
                    )
                    for source in item.sources
                ],
                checked=item.checked,
            )
            for item in result.items
        ],
        recipes=[
            RecipeUsedSchema(
                recipe_id=usage.recipe_id,
                title=usage.title,
                servings_used=usage.servings_used,
                servings_unit=usage.servings_unit,
            )
            for usage in result.recipes
        ],
    )


# =============================================================================
# Endpoints
# =============================================================================


@router.post("", response_model=ShoppingListResponse)
async def create_shopping_list(
    request: ShoppingListRequest,
    aggregator: ShoppingListAggregator = Depends(get_aggregator),
) -> ShoppingListResponse:
    """
    Build a merged shopping list from up to 20 recipes.

    Each recipe may be scaled to a target serving count. Ingredients that
    share a normalized name are merged when their units allow it.
    """
    result = await _build(request, aggregator)
    return _to_response(result)


@router.post("/export", response_class=PlainTextResponse)
async def export_shopping_list(
    request: ShoppingListRequest,
    aggregator: ShoppingListAggregator = Depends(get_aggregator),
) -> str:
    """Build a shopping list and return it as plain text."""
    result = await _build(request, aggregator)
    return export_plain_text(result)
