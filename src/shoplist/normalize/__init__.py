"""Parse ingredient lines and normalize their units and names."""

from shoplist.normalize.names import normalize_ingredient_name, singularize
from shoplist.normalize.parser import ParsedIngredient, parse_ingredient_line
from shoplist.normalize.units import (
    DEFAULT_UNIT_TABLE,
    DisplayPromotion,
    UnitDefinition,
    UnitTable,
    can_aggregate,
    choose_display_unit,
    convert,
    resolve_alias,
)

__all__ = [
    "DEFAULT_UNIT_TABLE",
    "DisplayPromotion",
    "ParsedIngredient",
    "UnitDefinition",
    "UnitTable",
    "can_aggregate",
    "choose_display_unit",
    "convert",
    "normalize_ingredient_name",
    "parse_ingredient_line",
    "resolve_alias",
    "singularize",
]
