"""Grocery list planning from household recipes."""

from mealplanner.plan.grocery_list import (
    EXPORT_CATEGORY_ORDER,
    GroceryListBuilder,
    build_export,
    plan_grocery_items,
)

__all__ = [
    "EXPORT_CATEGORY_ORDER",
    "GroceryListBuilder",
    "build_export",
    "plan_grocery_items",
]
