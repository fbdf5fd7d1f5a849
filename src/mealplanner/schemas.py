"""Request and response schemas for the HTTP API.

JSON field names are camelCase on the wire; Python code uses snake_case.
"""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from mealplanner.invite_codes import normalize_invite_code
from mealplanner.models import GroceryListStatus, IngredientCategory, RecipeSource

T = TypeVar("T")

DEFAULT_CATEGORY = IngredientCategory.OTHER.value


class ApiModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class DataResponse(ApiModel, Generic[T]):
    """Envelope used by every endpoint that returns a resource."""

    data: T


class SuccessResponse(ApiModel):
    success: bool = True


# =============================================================================
# Grocery Lists
# =============================================================================


class RecipeSelection(ApiModel):
    """A recipe to shop for and the number of servings wanted."""

    recipe_id: str = Field(min_length=1)
    servings: int = Field(ge=1, strict=True)


class GroceryListCreate(ApiModel):
    """Request to build a grocery list from recipes."""

    name: str
    recipes: list[RecipeSelection] = Field(min_length=1)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value

    @field_validator("recipes")
    @classmethod
    def one_selection_per_recipe(cls, value: list[RecipeSelection]) -> list[RecipeSelection]:
        seen: set[str] = set()
        for selection in value:
            if selection.recipe_id in seen:
                raise ValueError(f"Recipe {selection.recipe_id} selected more than once")
            seen.add(selection.recipe_id)
        return value


class GroceryListUpdate(ApiModel):
    """Rename a list or move it through its lifecycle."""

    name: str | None = None
    status: GroceryListStatus | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str | None) -> str | None:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Name cannot be empty")
        return value

    @model_validator(mode="after")
    def at_least_one_field(self) -> "GroceryListUpdate":
        if self.name is None and self.status is None:
            raise ValueError("At least one field is required")
        return self


class GroceryItemToggle(ApiModel):
    is_checked: bool


class GroceryItemCreate(ApiModel):
    """A manually added grocery item."""

    ingredient_name: str = Field(min_length=1)
    quantity: str = Field(min_length=1)
    unit: str = Field(min_length=1)

    @field_validator("ingredient_name", "unit")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Field is required")
        return value


class IngredientRef(ApiModel):
    id: str
    name: str
    category: str | None = None


class RecipeRef(ApiModel):
    id: str
    title: str | None = None


class GroceryListItemOut(ApiModel):
    """Grocery list item as shown to the household."""

    id: str
    quantity: str
    unit: str
    is_checked: bool = False
    ingredient: IngredientRef
    recipe: RecipeRef | None = None


class GroceryListDetail(ApiModel):
    """Grocery list with its items, also grouped by ingredient category."""

    id: str
    household_id: str
    name: str
    status: GroceryListStatus
    created_at: datetime
    created_by_user_id: str | None = None
    items: list[GroceryListItemOut] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def items_by_category(self) -> dict[str, list[GroceryListItemOut]]:
        grouped: dict[str, list[GroceryListItemOut]] = {}
        for item in self.items:
            category = item.ingredient.category or DEFAULT_CATEGORY
            grouped.setdefault(category, []).append(item)
        return grouped


class UserRef(ApiModel):
    id: str
    name: str | None = None


class GroceryListSummary(ApiModel):
    """Grocery list without items, for index pages."""

    id: str
    name: str
    status: GroceryListStatus
    created_at: datetime
    created_by: UserRef | None = None


class GroceryTask(ApiModel):
    """A grocery item formatted as a to-do task."""

    title: str
    notes: str
    status: str  # "completed" or "needsAction"


class GroceryListExport(ApiModel):
    """Task-style export of a grocery list."""

    list_name: str
    tasks: list[GroceryTask]
    plain_text: str


# =============================================================================
# Recipes
# =============================================================================


class RecipeIngredientCreate(ApiModel):
    name: str = Field(min_length=1)
    quantity: float = Field(gt=0)
    unit: str
    category: IngredientCategory = IngredientCategory.OTHER
    preparation: str | None = None


class RecipeCreate(ApiModel):
    """Request to save a recipe to the household."""

    title: str = Field(min_length=1)
    description: str | None = None
    servings: int = Field(default=4, ge=1)
    prep_time: int | None = Field(default=None, ge=0)
    cook_time: int | None = Field(default=None, ge=0)
    cuisine: str | None = None
    instructions: list[Any] = Field(default_factory=list)
    ingredients: list[RecipeIngredientCreate] = Field(default_factory=list)
    source: RecipeSource = RecipeSource.AI_GENERATED

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Recipe title is required")
        return value


class RecipeSummary(ApiModel):
    id: str
    title: str
    servings: int


class RecipeIngredientOut(ApiModel):
    id: str
    name: str
    category: str | None = None
    quantity: float
    unit: str
    preparation: str | None = None


class RecipeDetail(ApiModel):
    id: str
    title: str
    description: str | None = None
    servings: int
    prep_time: int | None = None
    cook_time: int | None = None
    cuisine: str | None = None
    instructions: list[Any] = Field(default_factory=list)
    source: str
    created_at: datetime
    ingredients: list[RecipeIngredientOut] = Field(default_factory=list)


# =============================================================================
# Households
# =============================================================================


class HouseholdCreate(ApiModel):
    name: str = Field(min_length=1)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Household name is required")
        return value


class HouseholdJoin(ApiModel):
    invite_code: str = Field(min_length=1)

    @field_validator("invite_code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        value = normalize_invite_code(value)
        if not value:
            raise ValueError("Invite code is required")
        return value


class HouseholdMember(ApiModel):
    id: str
    name: str | None = None
    email: str


class HouseholdDetail(ApiModel):
    id: str
    name: str
    invite_code: str
    members: list[HouseholdMember] = Field(default_factory=list)
