"""FastAPI dependencies for caller identity and services."""

from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mealplanner.config import settings
from mealplanner.database import get_db
from mealplanner.exceptions import AuthenticationError, HouseholdRequiredError
from mealplanner.logging_config import set_context
from mealplanner.models import User
from mealplanner.plan.grocery_list import GroceryListBuilder
from mealplanner.repository import GroceryListRepository


@dataclass(frozen=True)
class HouseholdMember:
    """The signed-in user and the household they act in."""

    user_id: str
    household_id: str


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Load the signed-in user.

    Sessions are handled by the auth provider in front of the API, which
    forwards the user id in a trusted header.
    """
    user_id = request.headers.get(settings.user_id_header)
    if not user_id:
        raise AuthenticationError("Unauthorized")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise AuthenticationError("Unauthorized")

    set_context(user_id=user.id, household_id=user.household_id)
    return user


async def require_household(user: User = Depends(get_current_user)) -> HouseholdMember:
    """Require the signed-in user to belong to a household."""
    if not user.household_id:
        raise HouseholdRequiredError()
    return HouseholdMember(user_id=user.id, household_id=user.household_id)


async def get_grocery_list_builder(db: AsyncSession = Depends(get_db)) -> GroceryListBuilder:
    return GroceryListBuilder(GroceryListRepository(db))
