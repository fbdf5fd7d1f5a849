"""API routers for the mealplanner application."""

from mealplanner.routers.grocery_lists import router as grocery_lists_router
from mealplanner.routers.households import router as households_router
from mealplanner.routers.recipes import router as recipes_router

__all__ = [
    "grocery_lists_router",
    "households_router",
    "recipes_router",
]
