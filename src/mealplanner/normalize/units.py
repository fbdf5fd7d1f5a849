"""Unit normalization, conversion and ingredient aggregation for grocery lists."""

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType

from mealplanner.logging_config import get_logger

logger = get_logger(__name__)


# =============================================================================
# Unit Conversion Table
# =============================================================================


@dataclass(frozen=True)
class UnitConversion:
    """How to express one unit in its base unit."""

    base_unit: str
    factor: float


UNIT_CONVERSIONS: Mapping[str, UnitConversion] = MappingProxyType(
    {
        # Volume (base unit: tbsp)
        "tsp": UnitConversion("tbsp", 1 / 3),
        "tbsp": UnitConversion("tbsp", 1.0),
        "cup": UnitConversion("tbsp", 16.0),
        "ml": UnitConversion("tbsp", 1 / 15),
        "l": UnitConversion("tbsp", 67.628),
        # Weight (base unit: oz)
        "oz": UnitConversion("oz", 1.0),
        "lb": UnitConversion("oz", 16.0),
        "g": UnitConversion("oz", 1 / 28.35),
        "kg": UnitConversion("oz", 35.274),
        # Count
        "piece": UnitConversion("piece", 1.0),
        "pieces": UnitConversion("piece", 1.0),
        "clove": UnitConversion("clove", 1.0),
        "cloves": UnitConversion("clove", 1.0),
    }
)

# Base units promoted to a larger display unit once a quantity reaches the threshold
DISPLAY_PROMOTIONS: Mapping[str, tuple[str, float]] = MappingProxyType(
    {
        "tbsp": ("cup", 16.0),
        "oz": ("lb", 16.0),
    }
)


@dataclass(frozen=True)
class BaseQuantity:
    """A quantity expressed in a base unit."""

    quantity: float
    base_unit: str


@dataclass(frozen=True)
class DisplayQuantity:
    """A quantity expressed in a human-scale unit."""

    quantity: float
    unit: str


# =============================================================================
# Normalization and Conversion
# =============================================================================


def normalize_unit(unit: str) -> str:
    """
    Canonicalize a free-text unit string.

    Lowercases and trims the unit. A trailing "s" is dropped when the singular
    form is a known unit ("cups" -> "cup", "lbs" -> "lb"). "cloves" is never
    de-pluralized. Unknown units are returned as-is apart from casing.
    """
    lower = unit.lower().strip()
    if lower.endswith("s") and lower != "cloves":
        singular = lower[:-1]
        if singular in UNIT_CONVERSIONS:
            # recursing keeps normalize_unit idempotent: "piecess" -> "piece"
            return normalize_unit(singular)
    return lower


def convert_to_base_unit(quantity: float, unit: str) -> BaseQuantity:
    """
    Convert a quantity to its base unit.

    Unknown units become their own base unit so that identically named
    unknown units still aggregate with each other.
    """
    normalized = normalize_unit(unit)
    conversion = UNIT_CONVERSIONS.get(normalized)
    if conversion is None:
        return BaseQuantity(quantity=quantity, base_unit=normalized)
    return BaseQuantity(quantity=quantity * conversion.factor, base_unit=conversion.base_unit)


def convert_from_base_unit(quantity: float, base_unit: str) -> DisplayQuantity:
    """Promote a base-unit quantity one level (tbsp -> cup, oz -> lb) when large enough."""
    promotion = DISPLAY_PROMOTIONS.get(base_unit)
    if promotion is not None:
        display_unit, threshold = promotion
        if quantity >= threshold:
            return DisplayQuantity(quantity=quantity / threshold, unit=display_unit)
    return DisplayQuantity(quantity=quantity, unit=base_unit)


def _round_half_up(value: float) -> float:
    return float(math.floor(value + 0.5))


def round_quantity(qty: float) -> float:
    """
    Round a display quantity to a kitchen-friendly precision.

    - 10 and above: whole numbers
    - 1 up to 10: quarters
    - below 1: eighths
    """
    if qty >= 10:
        return _round_half_up(qty)
    if qty >= 1:
        return _round_half_up(qty * 4) / 4
    return _round_half_up(qty * 8) / 8


def format_quantity(qty: float) -> str:
    """Render a rounded quantity for storage ("4", "1.25", "0.125")."""
    if float(qty).is_integer():
        return str(int(qty))
    return repr(float(qty))


def present_quantity(base_quantity: float, base_unit: str) -> DisplayQuantity:
    """Convert an aggregated base quantity to its rounded display form."""
    display = convert_from_base_unit(base_quantity, base_unit)
    return DisplayQuantity(quantity=round_quantity(display.quantity), unit=display.unit)


# =============================================================================
# Ingredient Aggregation
# =============================================================================


@dataclass(frozen=True)
class ServingsSelection:
    """Requested servings for one recipe."""

    recipe_id: str
    original_servings: int
    scaled_servings: int

    @property
    def scale_factor(self) -> float:
        return self.scaled_servings / self.original_servings


@dataclass(frozen=True)
class IngredientLine:
    """One ingredient row of a recipe, as read from the recipe store."""

    recipe_id: str
    ingredient_id: str
    quantity: float | Decimal | str
    unit: str
    ingredient_name: str
    ingredient_category: str | None = None


@dataclass(frozen=True)
class BucketSource:
    """A recipe that contributed to an aggregated ingredient."""

    recipe_id: str
    original_servings: int
    scaled_servings: int


@dataclass
class AggregateBucket:
    """Running total for one ingredient in one base unit."""

    ingredient_id: str
    base_unit: str
    base_quantity: float
    ingredient_name: str
    ingredient_category: str | None = None
    sources: list[BucketSource] = field(default_factory=list)

    @property
    def key(self) -> str:
        return f"{self.ingredient_id}:{self.base_unit}"

    @property
    def first_source(self) -> BucketSource:
        return self.sources[0]

    def display_quantity(self) -> DisplayQuantity:
        """Get the rounded, human-scale quantity for this bucket."""
        return present_quantity(self.base_quantity, self.base_unit)


def aggregate_ingredient_lines(
    selections: Iterable[ServingsSelection],
    lines: Iterable[IngredientLine],
) -> list[AggregateBucket]:
    """
    Scale, convert and sum ingredient lines across recipes.

    Lines are grouped by ingredient id and base unit; the same ingredient
    measured in incompatible units (e.g. cups and pieces) stays in separate
    buckets. Buckets and their sources keep input order.

    Args:
        selections: One servings selection per recipe.
        lines: Ingredient lines of the selected recipes.

    Returns:
        Aggregated buckets in first-seen order.
    """
    servings_by_recipe = {selection.recipe_id: selection for selection in selections}
    aggregated: dict[str, AggregateBucket] = {}

    for line in lines:
        selection = servings_by_recipe.get(line.recipe_id)
        if selection is None:
            logger.debug(
                f"Skipping ingredient {line.ingredient_id}: recipe {line.recipe_id} not selected"
            )
            continue

        scaled_quantity = float(line.quantity) * selection.scale_factor
        base = convert_to_base_unit(scaled_quantity, line.unit)
        source = BucketSource(
            recipe_id=line.recipe_id,
            original_servings=selection.original_servings,
            scaled_servings=selection.scaled_servings,
        )

        key = f"{line.ingredient_id}:{base.base_unit}"
        existing = aggregated.get(key)
        if existing is not None:
            existing.base_quantity += base.quantity
            existing.sources.append(source)
        else:
            aggregated[key] = AggregateBucket(
                ingredient_id=line.ingredient_id,
                base_unit=base.base_unit,
                base_quantity=base.quantity,
                ingredient_name=line.ingredient_name,
                ingredient_category=line.ingredient_category,
                sources=[source],
            )

    return list(aggregated.values())
