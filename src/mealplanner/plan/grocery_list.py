"""Grocery list generation from selected recipes."""

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError as SchemaValidationError

from mealplanner.exceptions import (
    GroceryItemNotFoundError,
    GroceryListNotFoundError,
    RecipeNotFoundError,
    ValidationError,
)
from mealplanner.logging_config import get_logger
from mealplanner.models import GroceryListStatus
from mealplanner.normalize.units import (
    AggregateBucket,
    IngredientLine,
    ServingsSelection,
    aggregate_ingredient_lines,
    format_quantity,
)
from mealplanner.repository import GroceryListRepository, NewGroceryItem
from mealplanner.schemas import (
    GroceryItemCreate,
    GroceryListCreate,
    GroceryListDetail,
    GroceryListExport,
    GroceryListItemOut,
    GroceryListSummary,
    GroceryListUpdate,
    GroceryTask,
    RecipeSummary,
)

logger = get_logger(__name__)

# Aisle order used when exporting a list as tasks
EXPORT_CATEGORY_ORDER: tuple[str, ...] = (
    "produce",
    "meat",
    "seafood",
    "dairy",
    "bakery",
    "frozen",
    "pantry",
    "beverages",
    "other",
)


def build_servings_selections(
    request: GroceryListCreate,
    recipes: Iterable[RecipeSummary],
) -> list[ServingsSelection]:
    """Pair each requested servings count with the recipe's original servings."""
    recipes_by_id = {recipe.id: recipe for recipe in recipes}
    selections = []
    for selection in request.recipes:
        recipe = recipes_by_id.get(selection.recipe_id)
        if recipe is None:
            continue
        selections.append(
            ServingsSelection(
                recipe_id=recipe.id,
                original_servings=recipe.servings,
                scaled_servings=selection.servings,
            )
        )
    return selections


def bucket_to_item(bucket: AggregateBucket) -> NewGroceryItem:
    """
    Turn an aggregate into a storable item.

    The quantity is converted back to a display unit and rounded. Only the
    first contributing recipe is kept as the item's provenance.
    """
    display = bucket.display_quantity()
    source = bucket.first_source
    return NewGroceryItem(
        ingredient_id=bucket.ingredient_id,
        quantity=format_quantity(display.quantity),
        unit=display.unit,
        recipe_id=source.recipe_id,
        original_servings=source.original_servings,
        scaled_servings=source.scaled_servings,
    )


def plan_grocery_items(
    selections: list[ServingsSelection],
    lines: Iterable[IngredientLine],
) -> list[NewGroceryItem]:
    """Aggregate ingredient lines into grocery items, ordered by recipe selection."""
    order = {selection.recipe_id: index for index, selection in enumerate(selections)}
    ordered_lines = sorted(lines, key=lambda line: order.get(line.recipe_id, len(order)))
    buckets = aggregate_ingredient_lines(selections, ordered_lines)
    return [bucket_to_item(bucket) for bucket in buckets]


def build_export(grocery_list: GroceryListDetail) -> GroceryListExport:
    """
    Format a grocery list as to-do tasks grouped in aisle order.

    Items in categories outside ``EXPORT_CATEGORY_ORDER`` are left out.
    """
    tasks = []
    grouped = grocery_list.items_by_category
    for category in EXPORT_CATEGORY_ORDER:
        for item in grouped.get(category, []):
            tasks.append(
                GroceryTask(
                    title=f"{item.quantity} {item.unit} {item.ingredient.name}",
                    notes=f"Category: {category}",
                    status="completed" if item.is_checked else "needsAction",
                )
            )

    plain_text = "\n".join(
        f"{'✓' if task.status == 'completed' else '○'} {task.title}" for task in tasks
    )
    return GroceryListExport(list_name=grocery_list.name, tasks=tasks, plain_text=plain_text)


class GroceryListBuilder:
    """
    Builds and manages household grocery lists:
    - Servings scaling per recipe
    - Unit conversion and aggregation of shared ingredients
    - Rounding to kitchen-friendly quantities
    - All-or-nothing persistence
    """

    def __init__(self, repository: GroceryListRepository):
        self.repository = repository

    async def build(
        self,
        household_id: str,
        user_id: str,
        request: GroceryListCreate | Mapping[str, Any],
    ) -> GroceryListDetail:
        """
        Build and store a grocery list from recipe selections.

        Args:
            household_id: Household the recipes and the new list belong to.
            user_id: User creating the list.
            request: Parsed request or a raw JSON body.

        Returns:
            The stored list with its items.

        Raises:
            ValidationError: If the request is malformed.
            RecipeNotFoundError: If any recipe is not in the household.
        """
        request = self._parse(request)
        recipe_ids = [selection.recipe_id for selection in request.recipes]

        logger.info(f"Building grocery list '{request.name}' from {len(recipe_ids)} recipes")

        recipes = await self.repository.get_recipes(household_id, recipe_ids)
        found_ids = {recipe.id for recipe in recipes}
        missing = [recipe_id for recipe_id in recipe_ids if recipe_id not in found_ids]
        if missing:
            logger.warning(f"Grocery list rejected, recipes not found: {missing}")
            raise RecipeNotFoundError(missing)

        selections = build_servings_selections(request, recipes)
        lines = await self.repository.get_ingredient_lines(recipe_ids)
        items = plan_grocery_items(selections, lines)

        grocery_list = await self.repository.create_grocery_list(
            household_id=household_id,
            user_id=user_id,
            name=request.name,
            items=items,
        )

        logger.info(
            f"Built grocery list {grocery_list.id}: {len(lines)} ingredient lines "
            f"-> {len(items)} items"
        )
        return grocery_list

    @staticmethod
    def _parse(request: GroceryListCreate | Mapping[str, Any]) -> GroceryListCreate:
        if isinstance(request, GroceryListCreate):
            return request
        try:
            return GroceryListCreate.model_validate(request)
        except SchemaValidationError as e:
            messages = "; ".join(error["msg"] for error in e.errors())
            raise ValidationError(messages) from e

    async def list_grocery_lists(
        self, household_id: str, status: GroceryListStatus | None = None
    ) -> list[GroceryListSummary]:
        return await self.repository.list_grocery_lists(household_id, status)

    async def get(self, household_id: str, list_id: str) -> GroceryListDetail:
        grocery_list = await self.repository.get_grocery_list(household_id, list_id)
        if grocery_list is None:
            raise GroceryListNotFoundError(list_id)
        return grocery_list

    async def update(
        self,
        household_id: str,
        user_id: str,
        list_id: str,
        update: GroceryListUpdate,
    ) -> GroceryListDetail:
        updated = await self.repository.update_grocery_list(
            household_id,
            list_id,
            user_id,
            name=update.name,
            status=update.status,
        )
        if updated is None:
            raise GroceryListNotFoundError(list_id)
        logger.info(f"Updated grocery list {list_id}")
        return updated

    async def delete(self, household_id: str, list_id: str) -> None:
        if not await self.repository.delete_grocery_list(household_id, list_id):
            raise GroceryListNotFoundError(list_id)
        logger.info(f"Deleted grocery list {list_id}")

    async def toggle_item(
        self,
        household_id: str,
        user_id: str,
        list_id: str,
        item_id: str,
        is_checked: bool,
    ) -> GroceryListItemOut:
        await self._require_list(household_id, list_id)
        item = await self.repository.set_item_checked(list_id, item_id, is_checked, user_id)
        if item is None:
            raise GroceryItemNotFoundError(item_id)
        return item

    async def add_manual_item(
        self,
        household_id: str,
        user_id: str,
        list_id: str,
        new_item: GroceryItemCreate,
    ) -> GroceryListItemOut:
        await self._require_list(household_id, list_id)
        item = await self.repository.add_item(
            list_id,
            user_id,
            ingredient_name=new_item.ingredient_name,
            quantity=new_item.quantity,
            unit=new_item.unit,
        )
        logger.info(f"Added manual item '{item.ingredient.name}' to grocery list {list_id}")
        return item

    async def remove_item(self, household_id: str, list_id: str, item_id: str) -> None:
        await self._require_list(household_id, list_id)
        if not await self.repository.delete_item(list_id, item_id):
            raise GroceryItemNotFoundError(item_id)

    async def export(self, household_id: str, list_id: str) -> GroceryListExport:
        return build_export(await self.get(household_id, list_id))

    async def _require_list(self, household_id: str, list_id: str) -> None:
        if not await self.repository.list_exists(household_id, list_id):
            raise GroceryListNotFoundError(list_id)

