"""Integration tests for grocery list storage against PostgreSQL.

Prerequisites:
    - A PostgreSQL database reachable at TEST_DATABASE_URL

Run with:
    pytest tests/integration -v -m integration
"""

from contextlib import asynccontextmanager
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from mealplanner.database import Base
from mealplanner.exceptions import RecipeNotFoundError
from mealplanner.models import (
    GroceryList,
    GroceryListItem,
    GroceryListStatus,
    Household,
    Recipe,
    RecipeIngredient,
    User,
)
from mealplanner.plan.grocery_list import GroceryListBuilder
from mealplanner.repository import GroceryListRepository, resolve_ingredient
from mealplanner.schemas import (
    GroceryItemCreate,
    GroceryListCreate,
    GroceryListUpdate,
    RecipeSelection,
)


@asynccontextmanager
async def database_session(database_url: str):
    """Fresh schema and session for one test."""
    engine = create_async_engine(database_url, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    try:
        async with session_factory() as session:
            yield session
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()


async def seed_household(session):
    """Create a household with one member and two recipes sharing garlic."""
    household = Household(id="household-1", name="Home", invite_code="ABCD2345")
    session.add(household)
    await session.flush()
    session.add(User(id="user-1", email="sam@example.com", name="Sam", household_id=household.id))
    await session.flush()

    garlic = await resolve_ingredient(session, "Garlic", category="produce")
    butter = await resolve_ingredient(session, "butter", category="dairy")

    pasta = Recipe(id="recipe-pasta", household_id=household.id, title="Pasta", servings=4)
    curry = Recipe(id="recipe-curry", household_id=household.id, title="Curry", servings=2)
    session.add_all([pasta, curry])
    await session.flush()

    session.add_all(
        [
            RecipeIngredient(
                recipe_id=pasta.id,
                ingredient_id=garlic.id,
                quantity=Decimal("2"),
                unit="cloves",
                position=0,
            ),
            RecipeIngredient(
                recipe_id=pasta.id,
                ingredient_id=butter.id,
                quantity=Decimal("4"),
                unit="tbsp",
                position=1,
            ),
            RecipeIngredient(
                recipe_id=curry.id,
                ingredient_id=garlic.id,
                quantity=Decimal("1"),
                unit="clove",
                position=0,
            ),
            RecipeIngredient(
                recipe_id=curry.id,
                ingredient_id=butter.id,
                quantity=Decimal("0.5"),
                unit="cup",
                position=1,
            ),
        ]
    )
    await session.commit()


def weekly_request():
    return GroceryListCreate(
        name="Weekly shop",
        recipes=[
            RecipeSelection(recipe_id="recipe-pasta", servings=4),
            RecipeSelection(recipe_id="recipe-curry", servings=4),
        ],
    )


@pytest.mark.integration
class TestGroceryListPersistence:
    """Tests for building and storing grocery lists."""

    @pytest.mark.asyncio
    async def test_build_and_store(self, test_database_url):
        """Test a built list is stored with aggregated items."""
        async with database_session(test_database_url) as session:
            await seed_household(session)
            builder = GroceryListBuilder(GroceryListRepository(session))

            grocery_list = await builder.build("household-1", "user-1", weekly_request())

            assert grocery_list.status == GroceryListStatus.ACTIVE
            items = {item.ingredient.name: item for item in grocery_list.items}
            # 2 cloves + 1 clove doubled
            assert (items["garlic"].quantity, items["garlic"].unit) == ("4", "clove")
            # 4 tbsp + 1 cup doubled from half a cup
            assert (items["butter"].quantity, items["butter"].unit) == ("1.25", "cup")
            assert items["garlic"].recipe.id == "recipe-pasta"
            assert set(grocery_list.items_by_category) == {"produce", "dairy"}

            summaries = await builder.list_grocery_lists("household-1")
            assert [summary.id for summary in summaries] == [grocery_list.id]
            assert summaries[0].created_by.name == "Sam"

    @pytest.mark.asyncio
    async def test_missing_recipe_stores_nothing(self, test_database_url):
        """Test no list is created when a recipe is outside the household."""
        async with database_session(test_database_url) as session:
            await seed_household(session)
            builder = GroceryListBuilder(GroceryListRepository(session))

            request = GroceryListCreate(
                name="Weekly shop",
                recipes=[
                    RecipeSelection(recipe_id="recipe-pasta", servings=4),
                    RecipeSelection(recipe_id="recipe-elsewhere", servings=4),
                ],
            )
            with pytest.raises(RecipeNotFoundError):
                await builder.build("household-1", "user-1", request)

            count = await session.execute(select(func.count()).select_from(GroceryList))
            assert count.scalar_one() == 0

    @pytest.mark.asyncio
    async def test_other_household_cannot_see_list(self, test_database_url):
        """Test lists are scoped to their household."""
        async with database_session(test_database_url) as session:
            await seed_household(session)
            repository = GroceryListRepository(session)
            builder = GroceryListBuilder(repository)
            grocery_list = await builder.build("household-1", "user-1", weekly_request())

            assert await repository.get_grocery_list("household-2", grocery_list.id) is None
            assert await repository.list_exists("household-2", grocery_list.id) is False

    @pytest.mark.asyncio
    async def test_item_lifecycle(self, test_database_url):
        """Test items can be checked, added and removed."""
        async with database_session(test_database_url) as session:
            await seed_household(session)
            repository = GroceryListRepository(session)
            builder = GroceryListBuilder(repository)
            grocery_list = await builder.build("household-1", "user-1", weekly_request())
            first = grocery_list.items[0]

            checked = await builder.toggle_item(
                "household-1", "user-1", grocery_list.id, first.id, True
            )
            assert checked.is_checked is True

            added = await builder.add_manual_item(
                "household-1",
                "user-1",
                grocery_list.id,
                GroceryItemCreate(ingredient_name="Paper Towels", quantity="1", unit="pack"),
            )
            assert added.ingredient.name == "paper towels"
            assert added.ingredient.category == "other"

            reloaded = await builder.get("household-1", grocery_list.id)
            assert reloaded.items[-1].id == added.id

            await builder.remove_item("household-1", grocery_list.id, added.id)
            count = await session.execute(
                select(func.count())
                .select_from(GroceryListItem)
                .where(GroceryListItem.grocery_list_id == grocery_list.id)
            )
            assert count.scalar_one() == len(grocery_list.items)

    @pytest.mark.asyncio
    async def test_update_and_delete(self, test_database_url):
        """Test renaming, completing and deleting a list."""
        async with database_session(test_database_url) as session:
            await seed_household(session)
            builder = GroceryListBuilder(GroceryListRepository(session))
            grocery_list = await builder.build("household-1", "user-1", weekly_request())

            updated = await builder.update(
                "household-1",
                "user-1",
                grocery_list.id,
                GroceryListUpdate(name="Done", status=GroceryListStatus.COMPLETED),
            )
            assert updated.name == "Done"
            assert updated.status == GroceryListStatus.COMPLETED

            await builder.delete("household-1", grocery_list.id)

            items = await session.execute(select(func.count()).select_from(GroceryListItem))
            assert items.scalar_one() == 0
