"""Relational storage for recipes, the ingredient catalog and grocery lists."""

from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mealplanner.exceptions import GroceryListNotFoundError
from mealplanner.logging_config import get_logger
from mealplanner.models import (
    GroceryList,
    GroceryListItem,
    GroceryListStatus,
    Ingredient,
    IngredientCategory,
    Recipe,
    RecipeIngredient,
    User,
)
from mealplanner.normalize.units import IngredientLine, normalize_unit
from mealplanner.schemas import (
    GroceryListDetail,
    GroceryListItemOut,
    GroceryListSummary,
    IngredientRef,
    RecipeRef,
    RecipeSummary,
    UserRef,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class NewGroceryItem:
    """A grocery list item ready to be stored."""

    ingredient_id: str
    quantity: str
    unit: str
    recipe_id: str | None = None
    original_servings: int | None = None
    scaled_servings: int | None = None


async def resolve_ingredient(
    session: AsyncSession,
    name: str,
    category: str = IngredientCategory.OTHER.value,
    user_id: str | None = None,
    default_unit: str | None = None,
) -> Ingredient:
    """
    Find an ingredient by name or add it to the catalog.

    Names are matched lowercased. The caller owns the transaction; a new
    ingredient is flushed but not committed. The unit it was first used with
    becomes its normalized default unit.
    """
    normalized_name = name.strip().lower()
    result = await session.execute(select(Ingredient).where(Ingredient.name == normalized_name))
    ingredient = result.scalar_one_or_none()

    if ingredient is None:
        ingredient = Ingredient(
            name=normalized_name,
            category=category,
            default_unit=normalize_unit(default_unit) if default_unit else None,
            created_by_user_id=user_id,
            updated_by_user_id=user_id,
        )
        session.add(ingredient)
        await session.flush()
        logger.info(f"Added ingredient '{normalized_name}' to catalog ({category})")

    return ingredient


def _item_out(
    item: GroceryListItem, ingredient: Ingredient, recipe: Recipe | None
) -> GroceryListItemOut:
    return GroceryListItemOut(
        id=item.id,
        quantity=item.quantity,
        unit=item.unit,
        is_checked=item.is_checked,
        ingredient=IngredientRef(
            id=ingredient.id, name=ingredient.name, category=ingredient.category
        ),
        recipe=RecipeRef(id=recipe.id, title=recipe.title) if recipe is not None else None,
    )


class GroceryListRepository:
    """Household-scoped access to recipes, ingredients and grocery lists."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # =========================================================================
    # Recipe Store
    # =========================================================================

    async def get_recipes(
        self, household_id: str, recipe_ids: Sequence[str]
    ) -> list[RecipeSummary]:
        """Get the recipes among ``recipe_ids`` that belong to the household."""
        if not recipe_ids:
            return []
        result = await self.session.execute(
            select(Recipe.id, Recipe.title, Recipe.servings).where(
                Recipe.household_id == household_id,
                Recipe.id.in_(recipe_ids),
            )
        )
        return [
            RecipeSummary(id=row.id, title=row.title, servings=row.servings)
            for row in result.all()
        ]

    async def get_ingredient_lines(self, recipe_ids: Sequence[str]) -> list[IngredientLine]:
        """Get every ingredient line of the given recipes."""
        if not recipe_ids:
            return []
        result = await self.session.execute(
            select(
                RecipeIngredient.recipe_id,
                RecipeIngredient.ingredient_id,
                RecipeIngredient.quantity,
                RecipeIngredient.unit,
                Ingredient.name,
                Ingredient.category,
            )
            .join(Ingredient, RecipeIngredient.ingredient_id == Ingredient.id)
            .where(RecipeIngredient.recipe_id.in_(recipe_ids))
            .order_by(RecipeIngredient.recipe_id, RecipeIngredient.position)
        )
        return [
            IngredientLine(
                recipe_id=row.recipe_id,
                ingredient_id=row.ingredient_id,
                quantity=row.quantity,
                unit=row.unit,
                ingredient_name=row.name,
                ingredient_category=row.category,
            )
            for row in result.all()
        ]

    # =========================================================================
    # Ingredient Catalog
    # =========================================================================

    async def resolve_ingredient(
        self,
        name: str,
        category: str = IngredientCategory.OTHER.value,
        user_id: str | None = None,
        default_unit: str | None = None,
    ) -> Ingredient:
        return await resolve_ingredient(self.session, name, category, user_id, default_unit)

    # =========================================================================
    # Grocery List Store
    # =========================================================================

    async def create_grocery_list(
        self,
        household_id: str,
        user_id: str,
        name: str,
        items: Sequence[NewGroceryItem],
    ) -> GroceryListDetail:
        """
        Store a new active grocery list and its items in one transaction.

        Nothing is persisted if any insert fails.
        """
        grocery_list = GroceryList(
            household_id=household_id,
            name=name,
            status=GroceryListStatus.ACTIVE,
            created_by_user_id=user_id,
            updated_by_user_id=user_id,
        )
        try:
            self.session.add(grocery_list)
            await self.session.flush()

            for position, new_item in enumerate(items):
                self.session.add(
                    GroceryListItem(
                        grocery_list_id=grocery_list.id,
                        ingredient_id=new_item.ingredient_id,
                        quantity=new_item.quantity,
                        unit=new_item.unit,
                        is_checked=False,
                        position=position,
                        recipe_id=new_item.recipe_id,
                        original_servings=new_item.original_servings,
                        scaled_servings=new_item.scaled_servings,
                        created_by_user_id=user_id,
                        updated_by_user_id=user_id,
                    )
                )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(f"Stored grocery list {grocery_list.id} with {len(items)} items")

        detail = await self.get_grocery_list(household_id, grocery_list.id)
        if detail is None:
            raise GroceryListNotFoundError(grocery_list.id)
        return detail

    async def list_exists(self, household_id: str, list_id: str) -> bool:
        result = await self.session.execute(
            select(GroceryList.id).where(
                GroceryList.id == list_id,
                GroceryList.household_id == household_id,
            )
        )
        return result.scalar_one_or_none() is not None

    async def list_grocery_lists(
        self,
        household_id: str,
        status: GroceryListStatus | None = None,
    ) -> list[GroceryListSummary]:
        """List the household's grocery lists, oldest first."""
        query = (
            select(GroceryList, User.name)
            .outerjoin(User, GroceryList.created_by_user_id == User.id)
            .where(GroceryList.household_id == household_id)
            .order_by(GroceryList.created_at)
        )
        if status is not None:
            query = query.where(GroceryList.status == status)

        result = await self.session.execute(query)
        return [
            GroceryListSummary(
                id=grocery_list.id,
                name=grocery_list.name,
                status=grocery_list.status,
                created_at=grocery_list.created_at,
                created_by=(
                    UserRef(id=grocery_list.created_by_user_id, name=creator_name)
                    if grocery_list.created_by_user_id
                    else None
                ),
            )
            for grocery_list, creator_name in result.all()
        ]

    async def get_grocery_list(
        self, household_id: str, list_id: str
    ) -> GroceryListDetail | None:
        """Get a grocery list with its items in insertion order."""
        result = await self.session.execute(
            select(GroceryList).where(
                GroceryList.id == list_id,
                GroceryList.household_id == household_id,
            )
        )
        grocery_list = result.scalar_one_or_none()
        if grocery_list is None:
            return None

        items_result = await self.session.execute(
            select(GroceryListItem, Ingredient, Recipe)
            .join(Ingredient, GroceryListItem.ingredient_id == Ingredient.id)
            .outerjoin(Recipe, GroceryListItem.recipe_id == Recipe.id)
            .where(GroceryListItem.grocery_list_id == grocery_list.id)
            .order_by(GroceryListItem.position, GroceryListItem.created_at)
        )

        return GroceryListDetail(
            id=grocery_list.id,
            household_id=grocery_list.household_id,
            name=grocery_list.name,
            status=grocery_list.status,
            created_at=grocery_list.created_at,
            created_by_user_id=grocery_list.created_by_user_id,
            items=[
                _item_out(item, ingredient, recipe)
                for item, ingredient, recipe in items_result.all()
            ],
        )

    async def update_grocery_list(
        self,
        household_id: str,
        list_id: str,
        user_id: str,
        name: str | None = None,
        status: GroceryListStatus | None = None,
    ) -> GroceryListDetail | None:
        result = await self.session.execute(
            select(GroceryList).where(
                GroceryList.id == list_id,
                GroceryList.household_id == household_id,
            )
        )
        grocery_list = result.scalar_one_or_none()
        if grocery_list is None:
            return None

        if name is not None:
            grocery_list.name = name
        if status is not None:
            grocery_list.status = status
        grocery_list.updated_by_user_id = user_id
        await self.session.commit()

        return await self.get_grocery_list(household_id, list_id)

    async def delete_grocery_list(self, household_id: str, list_id: str) -> bool:
        result = await self.session.execute(
            delete(GroceryList)
            .where(
                GroceryList.id == list_id,
                GroceryList.household_id == household_id,
            )
            .returning(GroceryList.id)
        )
        deleted = result.scalar_one_or_none() is not None
        await self.session.commit()
        return deleted

    async def set_item_checked(
        self,
        list_id: str,
        item_id: str,
        is_checked: bool,
        user_id: str,
    ) -> GroceryListItemOut | None:
        result = await self.session.execute(
            select(GroceryListItem, Ingredient, Recipe)
            .join(Ingredient, GroceryListItem.ingredient_id == Ingredient.id)
            .outerjoin(Recipe, GroceryListItem.recipe_id == Recipe.id)
            .where(
                GroceryListItem.id == item_id,
                GroceryListItem.grocery_list_id == list_id,
            )
        )
        row = result.one_or_none()
        if row is None:
            return None

        item, ingredient, recipe = row
        item.is_checked = is_checked
        item.updated_by_user_id = user_id
        await self.session.commit()
        return _item_out(item, ingredient, recipe)

    async def add_item(
        self,
        list_id: str,
        user_id: str,
        ingredient_name: str,
        quantity: str,
        unit: str,
    ) -> GroceryListItemOut:
        """Add a manual item, resolving its ingredient through the catalog."""
        try:
            ingredient = await self.resolve_ingredient(
                ingredient_name, user_id=user_id, default_unit=unit
            )

            max_position = await self.session.execute(
                select(func.max(GroceryListItem.position)).where(
                    GroceryListItem.grocery_list_id == list_id
                )
            )
            current_max = max_position.scalar_one_or_none()

            item = GroceryListItem(
                grocery_list_id=list_id,
                ingredient_id=ingredient.id,
                quantity=quantity,
                unit=unit,
                is_checked=False,
                position=0 if current_max is None else current_max + 1,
                created_by_user_id=user_id,
                updated_by_user_id=user_id,
            )
            self.session.add(item)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        return _item_out(item, ingredient, None)

    async def delete_item(self, list_id: str, item_id: str) -> bool:
        result = await self.session.execute(
            delete(GroceryListItem)
            .where(
                GroceryListItem.id == item_id,
                GroceryListItem.grocery_list_id == list_id,
            )
            .returning(GroceryListItem.id)
        )
        deleted = result.scalar_one_or_none() is not None
        await self.session.commit()
        return deleted
