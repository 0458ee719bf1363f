"""Unit tests for the unit table and display-unit selection."""

import pytest

from shoplist.exceptions import IncompatibleUnitsError
from shoplist.normalize.units import (
    COUNT,
    DEFAULT_UNIT_TABLE,
    DisplayPromotion,
    UnitDefinition,
    UnitTable,
    can_aggregate,
    choose_display_unit,
    convert,
    is_friendly,
    resolve_alias,
    round_to_friendly,
)


class TestResolveAlias:
    """Tests for alias resolution."""

    def test_canonical_codes(self):
        """Test canonical codes resolve to themselves."""
        assert resolve_alias("tsp") == "tsp"
        assert resolve_alias("kg") == "kg"
        assert resolve_alias("clove") == "clove"

    def test_plural_and_long_forms(self):
        """Test plural and spelled-out aliases."""
        assert resolve_alias("tablespoons") == "tbsp"
        assert resolve_alias("cups") == "cup"
        assert resolve_alias("pounds") == "lb"
        assert resolve_alias("litres") == "l"

    def test_case_insensitive(self):
        """Test aliases match regardless of case."""
        assert resolve_alias("Tablespoon") == "tbsp"
        assert resolve_alias("CUPS") == "cup"
        assert resolve_alias("G") == "g"

    def test_multi_word_alias(self):
        """Test two-word aliases."""
        assert resolve_alias("fl oz") == "fl oz"
        assert resolve_alias("Fluid  Ounces") == "fl oz"

    def test_unknown(self):
        """Test unknown tokens return None."""
        assert resolve_alias("handful") is None
        assert resolve_alias("large") is None
        assert resolve_alias("") is None


class TestConvert:
    """Tests for unit conversion."""

    def test_same_unit(self):
        """Test converting a unit to itself is a no-op."""
        assert convert(2.5, "cup", "cup") == 2.5
        assert convert(3, "clove", "clove") == 3

    def test_customary_volume(self):
        """Test conversions between US customary volumes."""
        assert convert(3, "tsp", "tbsp") == pytest.approx(1.0)
        assert convert(1, "cup", "tbsp") == pytest.approx(16.0)
        assert convert(2, "pint", "quart") == pytest.approx(1.0)

    def test_metric(self):
        """Test conversions between metric units."""
        assert convert(1.5, "kg", "g") == pytest.approx(1500.0)
        assert convert(250, "ml", "l") == pytest.approx(0.25)

    def test_customary_weight(self):
        """Test conversions between ounces and pounds."""
        assert convert(1, "lb", "oz") == pytest.approx(16.0)

    def test_volume_to_weight_fails(self):
        """Test cross-type conversion always fails."""
        with pytest.raises(IncompatibleUnitsError):
            convert(1, "cup", "g")
        with pytest.raises(IncompatibleUnitsError):
            convert(1, "oz", "tbsp")

    def test_across_systems(self):
        """Test customary and metric units of one type convert."""
        assert convert(1, "cup", "ml") == pytest.approx(236.588, rel=1e-4)
        assert convert(1, "lb", "kg") == pytest.approx(0.453592, rel=1e-4)
        assert convert(500, "ml", "cup") == pytest.approx(2.1134, rel=1e-4)

    def test_distinct_count_units_fail(self):
        """Test different count units never convert."""
        with pytest.raises(IncompatibleUnitsError):
            convert(2, "clove", "head")

    def test_unknown_unit_fails(self):
        """Test unknown units raise."""
        with pytest.raises(IncompatibleUnitsError):
            convert(1, "cup", "bucket")


class TestCanAggregate:
    """Tests for can_aggregate function."""

    def test_same_system_units(self):
        """Test units within a system aggregate."""
        assert can_aggregate("tsp", "cup")
        assert can_aggregate("g", "kg")
        assert can_aggregate("oz", "lb")

    def test_different_unit_types(self):
        """Test that different unit types cannot aggregate."""
        assert not can_aggregate("ml", "g")
        assert not can_aggregate("cup", "kg")

    def test_different_systems(self):
        """Test customary and metric units do not aggregate."""
        assert not can_aggregate("cup", "ml")
        assert not can_aggregate("lb", "kg")
        assert not can_aggregate("fl oz", "l")

    def test_unitless(self):
        """Test unitless quantities only aggregate with each other."""
        assert can_aggregate(None, None)
        assert not can_aggregate("cup", None)
        assert not can_aggregate(None, "clove")


class TestChooseDisplayUnit:
    """Tests for display-unit promotion."""

    def test_tsp_to_tbsp(self):
        """Test 3 tsp displays as 1 tbsp."""
        value, unit = choose_display_unit(3, "tsp")
        assert unit == "tbsp"
        assert value == pytest.approx(1.0)

    def test_below_threshold(self):
        """Test totals below the threshold keep their unit."""
        assert choose_display_unit(2, "tsp") == (2, "tsp")
        assert choose_display_unit(999, "g") == (999, "g")

    def test_unfriendly_promotion_skipped(self):
        """Test customary promotions need a clean fraction."""
        assert choose_display_unit(5, "tbsp") == (5, "tbsp")
        assert choose_display_unit(4, "tsp") == (4, "tsp")

    def test_tbsp_to_cup(self):
        """Test 4 tbsp displays as a quarter cup."""
        value, unit = choose_display_unit(4, "tbsp")
        assert unit == "cup"
        assert value == pytest.approx(0.25)

    def test_chained_promotion(self):
        """Test promotions apply repeatedly."""
        value, unit = choose_display_unit(12, "tsp")
        assert unit == "cup"
        assert value == pytest.approx(0.25)

    def test_oz_to_lb(self):
        """Test ounces promote to pounds."""
        value, unit = choose_display_unit(24, "oz")
        assert unit == "lb"
        assert value == pytest.approx(1.5)

    def test_metric_always_promotes(self):
        """Test metric promotions do not need a clean fraction."""
        value, unit = choose_display_unit(1234, "g")
        assert unit == "kg"
        assert value == pytest.approx(1.234)

        value, unit = choose_display_unit(1200, "ml")
        assert unit == "l"
        assert value == pytest.approx(1.2)

    def test_count_units_unchanged(self):
        """Test count units have no promotion."""
        assert choose_display_unit(40, "clove") == (40, "clove")

    def test_custom_policy(self):
        """Test the promotion policy can be replaced."""
        table = DEFAULT_UNIT_TABLE.with_promotions([])
        assert table.choose_display_unit(3, "tsp") == (3, "tsp")

        table = DEFAULT_UNIT_TABLE.with_promotions([DisplayPromotion("tbsp", "cup", 16)])
        assert table.choose_display_unit(5, "tbsp") == (5, "tbsp")
        value, unit = table.choose_display_unit(20, "tbsp")
        assert unit == "cup"
        assert value == pytest.approx(1.25)


class TestUnitTable:
    """Tests for building unit tables."""

    def test_can_merge(self):
        """Test merging needs one type and one measurement system."""
        assert DEFAULT_UNIT_TABLE.can_merge("tsp", "cup")
        assert DEFAULT_UNIT_TABLE.can_merge("clove", "clove")
        assert DEFAULT_UNIT_TABLE.can_convert("cup", "ml")
        assert not DEFAULT_UNIT_TABLE.can_merge("cup", "ml")
        assert not DEFAULT_UNIT_TABLE.can_merge("clove", "head")
        assert not DEFAULT_UNIT_TABLE.can_merge("cup", None)

    def test_most_granular(self):
        """Test the smallest unit is chosen."""
        assert DEFAULT_UNIT_TABLE.most_granular(["cup", "tbsp", "tsp"]) == "tsp"
        assert DEFAULT_UNIT_TABLE.most_granular(["kg", "g"]) == "g"

    def test_most_granular_requires_units(self):
        """Test an empty selection is rejected."""
        with pytest.raises(ValueError):
            DEFAULT_UNIT_TABLE.most_granular([])

    def test_custom_units(self):
        """Test a table built from custom definitions."""
        table = UnitTable([UnitDefinition("knob", COUNT, 1.0, ("knob", "knobs"))], promotions=())
        assert table.resolve_alias("Knobs") == "knob"
        assert table.resolve_alias("cup") is None
        assert table.unit_type("knob") == COUNT

    def test_conflicting_alias_rejected(self):
        """Test an alias mapping to two units is rejected."""
        with pytest.raises(ValueError):
            UnitTable(
                [
                    UnitDefinition("tsp", "volume", 5.0, ("t",)),
                    UnitDefinition("tbsp", "volume", 15.0, ("t",)),
                ],
                promotions=(),
            )

    def test_promotion_with_unknown_unit_rejected(self):
        """Test promotions must reference known units."""
        with pytest.raises(ValueError):
            UnitTable(promotions=[DisplayPromotion("tsp", "bucket", 3)])

    def test_units_are_read_only(self):
        """Test the registry cannot be mutated."""
        with pytest.raises(TypeError):
            DEFAULT_UNIT_TABLE.units["bucket"] = None


class TestFriendlyRounding:
    """Tests for friendly rounding helpers."""

    def test_round_to_eighths_below_one(self):
        """Test values below one round to the nearest eighth."""
        assert round_to_friendly(0.3) == 0.25
        assert round_to_friendly(0.4) == 0.375

    def test_round_to_quarters_from_one(self):
        """Test values from one upwards round to the nearest quarter."""
        assert round_to_friendly(1.1) == 1.0
        assert round_to_friendly(2.3) == 2.25

    def test_is_friendly(self):
        """Test clean fractions are recognised."""
        assert is_friendly(0.25)
        assert is_friendly(1.5)
        assert not is_friendly(1 / 3)
        assert not is_friendly(0.3125)
        assert not is_friendly(0)
