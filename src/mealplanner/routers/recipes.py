"""API routes for household recipes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from mealplanner.database import get_db
from mealplanner.dependencies import HouseholdMember, require_household
from mealplanner.exceptions import NotFoundError
from mealplanner.logging_config import get_logger
from mealplanner.models import Recipe, RecipeIngredient
from mealplanner.repository import resolve_ingredient
from mealplanner.schemas import (
    DataResponse,
    RecipeCreate,
    RecipeDetail,
    RecipeIngredientOut,
    RecipeSummary,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/recipes", tags=["recipes"])


def _recipe_detail(recipe: Recipe) -> RecipeDetail:
    return RecipeDetail(
        id=recipe.id,
        title=recipe.title,
        description=recipe.description,
        servings=recipe.servings,
        prep_time=recipe.prep_time,
        cook_time=recipe.cook_time,
        cuisine=recipe.cuisine,
        instructions=recipe.instructions or [],
        source=recipe.source,
        created_at=recipe.created_at,
        ingredients=[
            RecipeIngredientOut(
                id=ri.ingredient.id,
                name=ri.ingredient.name,
                category=ri.ingredient.category,
                quantity=float(ri.quantity),
                unit=ri.unit,
                preparation=ri.preparation,
            )
            for ri in recipe.ingredients
        ],
    )


async def _load_recipe(db: AsyncSession, household_id: str, recipe_id: str) -> Recipe | None:
    result = await db.execute(
        select(Recipe)
        .where(Recipe.id == recipe_id, Recipe.household_id == household_id)
        .options(selectinload(Recipe.ingredients).selectinload(RecipeIngredient.ingredient))
    )
    return result.scalar_one_or_none()


@router.post("", response_model=DataResponse[RecipeDetail], status_code=status.HTTP_201_CREATED)
async def create_recipe(
    request: RecipeCreate,
    member: HouseholdMember = Depends(require_household),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[RecipeDetail]:
    """
    Save a recipe to the household.

    Ingredients are matched to the shared catalog by name and added to it
    when missing.
    """
    logger.info(f"Creating recipe '{request.title}' with {len(request.ingredients)} ingredients")

    recipe = Recipe(
        household_id=member.household_id,
        title=request.title,
        description=request.description,
        servings=request.servings,
        prep_time=request.prep_time,
        cook_time=request.cook_time,
        cuisine=request.cuisine,
        instructions=request.instructions,
        source=request.source.value,
        created_by_user_id=member.user_id,
        updated_by_user_id=member.user_id,
    )
    try:
        db.add(recipe)
        await db.flush()

        for position, ing in enumerate(request.ingredients):
            ingredient = await resolve_ingredient(
                db,
                ing.name,
                category=ing.category.value,
                user_id=member.user_id,
                default_unit=ing.unit,
            )
            db.add(
                RecipeIngredient(
                    recipe_id=recipe.id,
                    ingredient_id=ingredient.id,
                    quantity=ing.quantity,
                    unit=ing.unit,
                    preparation=ing.preparation,
                    position=position,
                    created_by_user_id=member.user_id,
                    updated_by_user_id=member.user_id,
                )
            )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    created = await _load_recipe(db, member.household_id, recipe.id)
    if created is None:
        raise NotFoundError("Recipe not found")
    return DataResponse(data=_recipe_detail(created))


@router.get("", response_model=DataResponse[list[RecipeSummary]])
async def list_recipes(
    member: HouseholdMember = Depends(require_household),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[list[RecipeSummary]]:
    """List the household's recipes, newest first."""
    result = await db.execute(
        select(Recipe.id, Recipe.title, Recipe.servings)
        .where(Recipe.household_id == member.household_id)
        .order_by(Recipe.created_at.desc())
    )
    recipes = [
        RecipeSummary(id=row.id, title=row.title, servings=row.servings) for row in result.all()
    ]
    return DataResponse(data=recipes)


@router.get("/{recipe_id}", response_model=DataResponse[RecipeDetail])
async def get_recipe(
    recipe_id: str,
    member: HouseholdMember = Depends(require_household),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[RecipeDetail]:
    """Get a recipe with its ingredients."""
    recipe = await _load_recipe(db, member.household_id, recipe_id)
    if recipe is None:
        raise NotFoundError("Recipe not found")
    return DataResponse(data=_recipe_detail(recipe))
