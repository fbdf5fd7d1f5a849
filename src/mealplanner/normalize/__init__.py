"""Unit normalization, conversion and aggregation for grocery lists."""

from mealplanner.normalize.units import (
    UNIT_CONVERSIONS,
    AggregateBucket,
    BaseQuantity,
    BucketSource,
    DisplayQuantity,
    IngredientLine,
    ServingsSelection,
    UnitConversion,
    aggregate_ingredient_lines,
    convert_from_base_unit,
    convert_to_base_unit,
    format_quantity,
    normalize_unit,
    present_quantity,
    round_quantity,
)

__all__ = [
    "UNIT_CONVERSIONS",
    "AggregateBucket",
    "BaseQuantity",
    "BucketSource",
    "DisplayQuantity",
    "IngredientLine",
    "ServingsSelection",
    "UnitConversion",
    "aggregate_ingredient_lines",
    "convert_from_base_unit",
    "convert_to_base_unit",
    "format_quantity",
    "normalize_unit",
    "present_quantity",
    "round_quantity",
]
