"""Serving-ratio scaling and friendly quantity display."""

import math
from dataclasses import dataclass

from shoplist.normalize.parser import ParsedIngredient
from shoplist.normalize.units import (
    DEFAULT_UNIT_TABLE,
    METRIC,
    UnitTable,
    round_to_friendly,
    snap_to_third,
)

# Fraction glyphs keyed by numerator over 24 (common denominator of 8 and 3)
FRACTION_GLYPHS: dict[int, str] = {
    3: "⅛",
    6: "¼",
    8: "⅓",
    9: "⅜",
    12: "½",
    15: "⅝",
    16: "⅔",
    18: "¾",
    21: "⅞",
}


@dataclass(frozen=True)
class ScaledIngredient:
    """A parsed ingredient with its quantity scaled and its provenance attached."""

    raw: str
    quantity: float | None
    unit: str | None
    name: str
    prep: str | None
    note: str | None
    recipe_id: str
    recipe_title: str
    original_line: str


def scale_ingredient(
    ingredient: ParsedIngredient,
    ratio: float,
    recipe_id: str = "",
    recipe_title: str = "",
) -> ScaledIngredient:
    """
    Multiply an ingredient's quantity by a serving ratio.

    Ingredients without a quantity pass through unchanged. A scaled
    quantity that is not positive becomes None rather than 0.
    """
    quantity = ingredient.quantity
    if quantity is not None:
        quantity = quantity * ratio
        if quantity <= 0:
            quantity = None

    return ScaledIngredient(
        raw=ingredient.raw,
        quantity=quantity,
        unit=ingredient.unit,
        name=ingredient.name,
        prep=ingredient.prep,
        note=ingredient.note,
        recipe_id=recipe_id,
        recipe_title=recipe_title,
        original_line=ingredient.raw,
    )


def _format_decimal(value: float) -> str:
    """
    Format with at most two decimal places and no trailing zeros.

    Values too small for two places keep two significant digits in
    fixed-point notation ("0.0042"), never exponent notation.
    """
    decimals = 2
    if value < 0.005:
        decimals = 1 - math.floor(math.log10(value))
    return f"{value:.{decimals}f}".rstrip("0").rstrip(".")


def format_quantity(
    value: float | None,
    unit: str | None = None,
    unit_table: UnitTable = DEFAULT_UNIT_TABLE,
) -> str | None:
    """
    Render a quantity as a friendly fraction.

    - 0.5 -> "½", 2.25 -> "2 ¼", 5.0 -> "5", 0.33 -> "⅓"
    - Metric units and values too small to round keep decimals: "1.2", "0.05"
    """
    if value is None or value <= 0:
        return None

    definition = unit_table.get(unit)
    if definition is not None and definition.system == METRIC:
        return _format_decimal(value)

    rounded = snap_to_third(value)
    if rounded is None:
        rounded = round_to_friendly(value)
    if rounded <= 0:
        return _format_decimal(value)

    whole = int(rounded)
    twenty_fourths = round((rounded - whole) * 24)
    if twenty_fourths == 0:
        return str(whole)
    if twenty_fourths == 24:
        return str(whole + 1)

    glyph = FRACTION_GLYPHS.get(twenty_fourths)
    if glyph is None:
        return _format_decimal(value)
    return f"{whole} {glyph}" if whole else glyph


def format_ingredient(
    quantity: float | None,
    unit: str | None,
    name: str,
    unit_table: UnitTable = DEFAULT_UNIT_TABLE,
) -> str:
    """Render quantity, unit and name back into an ingredient line."""
    parts = [format_quantity(quantity, unit, unit_table), unit if quantity else None, name]
    return " ".join(part for part in parts if part)
