"""Unit registry, conversion and display-unit selection."""

import math
from collections.abc import Iterable
from dataclasses import dataclass
from types import MappingProxyType

from shoplist.exceptions import IncompatibleUnitsError
from shoplist.logging_config import get_logger

logger = get_logger(__name__)

VOLUME = "volume"
WEIGHT = "weight"
COUNT = "count"

US = "us"
METRIC = "metric"

# Tolerance for float comparisons after unit conversion
_EPSILON = 1e-6


# =============================================================================
# Friendly rounding
# =============================================================================


def round_to_friendly(value: float) -> float:
    """Round to the nearest 1/8 below 1 and the nearest 1/4 from 1 upwards."""
    step = 0.125 if abs(value) < 1 else 0.25
    return math.floor(value / step + 0.5) * step


def snap_to_third(value: float, tolerance: float = 0.02) -> float | None:
    """Return the nearest multiple of 1/3 if value is within tolerance of a third."""
    whole = math.floor(value)
    for thirds in (1, 2):
        candidate = whole + thirds / 3
        if abs(value - candidate) <= tolerance:
            return candidate
    return None


def is_friendly(value: float) -> bool:
    """Check whether a value is a whole number of friendly-rounding steps."""
    if value <= 0:
        return False
    return abs(round_to_friendly(value) - value) < _EPSILON


# =============================================================================
# Unit Definitions
# =============================================================================


@dataclass(frozen=True)
class UnitDefinition:
    """A canonical unit with its aliases and factor to the base unit of its type."""

    code: str
    unit_type: str  # "volume", "weight", "count"
    factor: float  # volume: ml, weight: g, count: 1
    aliases: tuple[str, ...] = ()
    system: str | None = None  # "us", "metric" or None for counts


@dataclass(frozen=True)
class DisplayPromotion:
    """Promote totals of from_unit to to_unit once they reach threshold (in from_unit)."""

    from_unit: str
    to_unit: str
    threshold: float
    require_friendly: bool = False


_TSP_ML = 4.92892159375
_OZ_G = 28.349523125

DEFAULT_UNITS: tuple[UnitDefinition, ...] = (
    # US customary volume
    UnitDefinition("tsp", VOLUME, _TSP_ML, ("tsp", "tsps", "teaspoon", "teaspoons"), US),
    UnitDefinition(
        "tbsp",
        VOLUME,
        3 * _TSP_ML,
        ("tbsp", "tbsps", "tbs", "tbl", "tablespoon", "tablespoons"),
        US,
    ),
    UnitDefinition(
        "fl oz", VOLUME, 6 * _TSP_ML, ("fl oz", "floz", "fluid ounce", "fluid ounces"), US
    ),
    UnitDefinition("cup", VOLUME, 48 * _TSP_ML, ("cup", "cups", "c"), US),
    UnitDefinition("pint", VOLUME, 96 * _TSP_ML, ("pint", "pints", "pt"), US),
    UnitDefinition("quart", VOLUME, 192 * _TSP_ML, ("quart", "quarts", "qt"), US),
    UnitDefinition("gallon", VOLUME, 768 * _TSP_ML, ("gallon", "gallons", "gal"), US),
    # Metric volume
    UnitDefinition(
        "ml",
        VOLUME,
        1.0,
        ("ml", "milliliter", "milliliters", "millilitre", "millilitres"),
        METRIC,
    ),
    UnitDefinition(
        "dl", VOLUME, 100.0, ("dl", "deciliter", "deciliters", "decilitre", "decilitres"), METRIC
    ),
    UnitDefinition("l", VOLUME, 1000.0, ("l", "liter", "liters", "litre", "litres"), METRIC),
    # Weight
    UnitDefinition("mg", WEIGHT, 0.001, ("mg", "milligram", "milligrams"), METRIC),
    UnitDefinition("g", WEIGHT, 1.0, ("g", "gr", "gram", "grams", "gramme", "grammes"), METRIC),
    UnitDefinition(
        "kg", WEIGHT, 1000.0, ("kg", "kgs", "kilo", "kilos", "kilogram", "kilograms"), METRIC
    ),
    UnitDefinition("oz", WEIGHT, _OZ_G, ("oz", "ounce", "ounces"), US),
    UnitDefinition("lb", WEIGHT, 16 * _OZ_G, ("lb", "lbs", "pound", "pounds"), US),
    # Count-based units (only convertible to themselves)
    UnitDefinition("clove", COUNT, 1.0, ("clove", "cloves")),
    UnitDefinition("can", COUNT, 1.0, ("can", "cans", "tin", "tins")),
    UnitDefinition("slice", COUNT, 1.0, ("slice", "slices")),
    UnitDefinition("piece", COUNT, 1.0, ("piece", "pieces", "pc", "pcs")),
    UnitDefinition("bunch", COUNT, 1.0, ("bunch", "bunches")),
    UnitDefinition("sprig", COUNT, 1.0, ("sprig", "sprigs")),
    UnitDefinition("head", COUNT, 1.0, ("head", "heads")),
    UnitDefinition("stick", COUNT, 1.0, ("stick", "sticks")),
    UnitDefinition("package", COUNT, 1.0, ("package", "packages", "pkg", "pack", "packs")),
    UnitDefinition("pinch", COUNT, 1.0, ("pinch", "pinches")),
    UnitDefinition("dash", COUNT, 1.0, ("dash", "dashes")),
)

DEFAULT_PROMOTIONS: tuple[DisplayPromotion, ...] = (
    DisplayPromotion("tsp", "tbsp", 3, require_friendly=True),
    DisplayPromotion("tbsp", "cup", 4, require_friendly=True),
    DisplayPromotion("oz", "lb", 16, require_friendly=True),
    DisplayPromotion("g", "kg", 1000),
    DisplayPromotion("ml", "l", 1000),
)


# =============================================================================
# Unit Table
# =============================================================================


class UnitTable:
    """
    Immutable registry of canonical units.

    Provides alias resolution for the parser, and conversion plus
    display-unit selection for the aggregator. Conversion is defined
    between any two units of the same type; merging on a shopping list
    also requires the same measurement system. Build a new table to change
    units or promotion policy; instances are never mutated.
    """

    def __init__(
        self,
        units: Iterable[UnitDefinition] = DEFAULT_UNITS,
        promotions: Iterable[DisplayPromotion] = DEFAULT_PROMOTIONS,
    ):
        units_by_code: dict[str, UnitDefinition] = {}
        aliases: dict[str, str] = {}

        for unit in units:
            if unit.code in units_by_code:
                raise ValueError(f"Duplicate unit code: {unit.code}")
            units_by_code[unit.code] = unit
            for alias in (unit.code, *unit.aliases):
                key = alias.lower()
                if aliases.get(key, unit.code) != unit.code:
                    raise ValueError(f"Alias {alias!r} maps to both {aliases[key]} and {unit.code}")
                aliases[key] = unit.code

        promotions = tuple(promotions)
        for rule in promotions:
            if rule.from_unit not in units_by_code or rule.to_unit not in units_by_code:
                raise ValueError(f"Promotion references unknown unit: {rule}")

        self._units = MappingProxyType(units_by_code)
        self._aliases = MappingProxyType(aliases)
        self._promotions = promotions
        self.max_alias_words = max((len(alias.split()) for alias in aliases), default=1)

    @property
    def units(self) -> MappingProxyType:
        """Canonical code to UnitDefinition mapping."""
        return self._units

    @property
    def promotions(self) -> tuple[DisplayPromotion, ...]:
        return self._promotions

    def with_promotions(self, promotions: Iterable[DisplayPromotion]) -> "UnitTable":
        """Return a copy of this table using a different display promotion policy."""
        return UnitTable(self._units.values(), promotions)

    def get(self, code: str | None) -> UnitDefinition | None:
        if code is None:
            return None
        return self._units.get(code)

    def resolve_alias(self, token: str) -> str | None:
        """Resolve a unit token (case-insensitive) to its canonical code."""
        if not token:
            return None
        return self._aliases.get(" ".join(token.lower().split()))

    def unit_type(self, code: str | None) -> str | None:
        unit = self.get(code)
        return unit.unit_type if unit else None

    def can_convert(self, from_unit: str | None, to_unit: str | None) -> bool:
        """Check whether a value can be converted between the two units."""
        source = self.get(from_unit)
        target = self.get(to_unit)
        if source is None or target is None:
            return False
        if source.code == target.code:
            return True
        if source.unit_type != target.unit_type:
            return False
        # Distinct count units (cloves vs cans) never convert
        return source.unit_type != COUNT

    def can_merge(self, unit1: str | None, unit2: str | None) -> bool:
        """
        Check whether quantities in the two units belong on one shopping list line.

        Merging additionally requires the same measurement system, so cups
        and millilitres of the same ingredient stay separate items.
        """
        if not self.can_convert(unit1, unit2):
            return False
        return self._units[unit1].system == self._units[unit2].system

    def convert(self, value: float, from_unit: str | None, to_unit: str | None) -> float:
        """
        Convert a value between two units of the same type.

        Raises:
            IncompatibleUnitsError: If the units are unknown, of different
                types, or distinct count units.
        """
        if not self.can_convert(from_unit, to_unit):
            raise IncompatibleUnitsError(from_unit, to_unit)
        if from_unit == to_unit:
            return value
        return value * self._units[from_unit].factor / self._units[to_unit].factor

    def most_granular(self, codes: Iterable[str]) -> str:
        """Pick the unit with the smallest base factor (first one wins on ties)."""
        best: UnitDefinition | None = None
        for code in codes:
            unit = self._units[code]
            if best is None or unit.factor < best.factor:
                best = unit
        if best is None:
            raise ValueError("most_granular() requires at least one unit")
        return best.code

    def choose_display_unit(self, total: float, unit: str) -> tuple[float, str]:
        """
        Re-express a total in a larger unit when the promotion policy allows.

        Rules are applied repeatedly so that e.g. 12 tsp becomes 1/4 cup.
        Rules marked require_friendly only fire when the promoted value is
        a clean fraction.
        """
        value, current = total, unit
        for _ in range(len(self._promotions) + 1):
            for rule in self._promotions:
                if rule.from_unit != current or value < rule.threshold - _EPSILON:
                    continue
                promoted = self.convert(value, current, rule.to_unit)
                if rule.require_friendly and not is_friendly(promoted):
                    continue
                logger.debug(f"Promoting {value:g} {current} to {promoted:g} {rule.to_unit}")
                value, current = promoted, rule.to_unit
                break
            else:
                break
        return value, current


DEFAULT_UNIT_TABLE = UnitTable()


def resolve_alias(token: str) -> str | None:
    """Resolve a unit token against the default unit table."""
    return DEFAULT_UNIT_TABLE.resolve_alias(token)


def convert(value: float, from_unit: str, to_unit: str) -> float:
    """Convert a value using the default unit table."""
    return DEFAULT_UNIT_TABLE.convert(value, from_unit, to_unit)


def can_aggregate(unit1: str | None, unit2: str | None) -> bool:
    """
    Check if two canonical units can be aggregated together.

    Two unitless quantities aggregate; unit present vs absent never does.
    Units of different measurement systems (cup vs ml) are kept apart.
    """
    if unit1 is None or unit2 is None:
        return unit1 is None and unit2 is None
    return DEFAULT_UNIT_TABLE.can_merge(unit1, unit2)


def choose_display_unit(total: float, unit: str) -> tuple[float, str]:
    """Pick a display unit for a total using the default promotion policy."""
    return DEFAULT_UNIT_TABLE.choose_display_unit(total, unit)
