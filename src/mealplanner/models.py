"""SQLAlchemy database models."""

import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mealplanner.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GroceryListStatus(str, enum.Enum):
    """Lifecycle of a grocery list."""

    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class IngredientCategory(str, enum.Enum):
    """Store aisle an ingredient is grouped under."""

    PRODUCE = "produce"
    DAIRY = "dairy"
    MEAT = "meat"
    SEAFOOD = "seafood"
    PANTRY = "pantry"
    FROZEN = "frozen"
    BAKERY = "bakery"
    BEVERAGES = "beverages"
    OTHER = "other"


class RecipeSource(str, enum.Enum):
    """Where a recipe came from."""

    AI_GENERATED = "ai_generated"
    MANUAL = "manual"
    IMPORTED = "imported"


class AuditMixin:
    """Created/updated timestamps and the users responsible."""

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    created_by_user_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )
    updated_by_user_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )


class Household(Base):
    """Tenancy boundary shared by the users of one home."""

    __tablename__ = "households"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    invite_code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    created_by_user_id: Mapped[str | None] = mapped_column(String, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    members: Mapped[list["User"]] = relationship(
        "User", back_populates="household", foreign_keys="User.household_id"
    )


class User(Base):
    """User account, provisioned by the auth provider."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    email: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    household_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("households.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    household: Mapped["Household | None"] = relationship(
        "Household", back_populates="members", foreign_keys=[household_id]
    )

    __table_args__ = (Index("idx_users_household_id", "household_id"),)


class Ingredient(AuditMixin, Base):
    """Shared ingredient catalog entry. Names are stored lowercased."""

    __tablename__ = "ingredients"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    category: Mapped[str] = mapped_column(
        String(50), default=IngredientCategory.OTHER.value, nullable=False
    )
    default_unit: Mapped[str | None] = mapped_column(String(50), nullable=True)


class Recipe(AuditMixin, Base):
    """Recipe owned by a household."""

    __tablename__ = "recipes"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    household_id: Mapped[str] = mapped_column(
        String, ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    servings: Mapped[int] = mapped_column(Integer, default=4, nullable=False)
    cuisine: Mapped[str | None] = mapped_column(String(100), nullable=True)
    prep_time: Mapped[int | None] = mapped_column(Integer, nullable=True)  # minutes
    cook_time: Mapped[int | None] = mapped_column(Integer, nullable=True)  # minutes
    instructions: Mapped[list] = mapped_column(JSON, default=list)
    source: Mapped[str] = mapped_column(
        String(50), default=RecipeSource.AI_GENERATED.value, nullable=False
    )

    ingredients: Mapped[list["RecipeIngredient"]] = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.position",
    )

    __table_args__ = (Index("idx_recipes_household_id", "household_id"),)


class RecipeIngredient(AuditMixin, Base):
    """Quantity of one ingredient in one recipe."""

    __tablename__ = "recipe_ingredients"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    recipe_id: Mapped[str] = mapped_column(
        String, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False
    )
    ingredient_id: Mapped[str] = mapped_column(
        String, ForeignKey("ingredients.id", ondelete="RESTRICT"), nullable=False
    )
    quantity: Mapped[Decimal] = mapped_column(Numeric(10, 3), nullable=False)
    unit: Mapped[str] = mapped_column(String(50), nullable=False)
    preparation: Mapped[str | None] = mapped_column(String(100), nullable=True)  # "diced"
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    recipe: Mapped["Recipe"] = relationship("Recipe", back_populates="ingredients")
    ingredient: Mapped["Ingredient"] = relationship("Ingredient")

    __table_args__ = (
        Index("idx_recipe_ingredients_recipe_id", "recipe_id"),
        Index("idx_recipe_ingredients_ingredient_id", "ingredient_id"),
    )


class GroceryList(AuditMixin, Base):
    """Shopping list generated from a set of recipes."""

    __tablename__ = "grocery_lists"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    household_id: Mapped[str] = mapped_column(
        String, ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[GroceryListStatus] = mapped_column(
        Enum(
            GroceryListStatus,
            name="grocery_list_status",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        default=GroceryListStatus.ACTIVE,
        nullable=False,
    )

    items: Mapped[list["GroceryListItem"]] = relationship(
        "GroceryListItem",
        back_populates="grocery_list",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_grocery_lists_household_id", "household_id"),
        Index("idx_grocery_lists_status", "status"),
    )


class GroceryListItem(AuditMixin, Base):
    """One line of a grocery list. Quantity is the rounded display quantity."""

    __tablename__ = "grocery_list_items"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    grocery_list_id: Mapped[str] = mapped_column(
        String, ForeignKey("grocery_lists.id", ondelete="CASCADE"), nullable=False
    )
    ingredient_id: Mapped[str] = mapped_column(
        String, ForeignKey("ingredients.id", ondelete="RESTRICT"), nullable=False
    )
    quantity: Mapped[str] = mapped_column(String(50), nullable=False)
    unit: Mapped[str] = mapped_column(String(50), nullable=False)
    is_checked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Provenance: first contributing recipe only
    recipe_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("recipes.id", ondelete="SET NULL"), nullable=True
    )
    original_servings: Mapped[int | None] = mapped_column(Integer, nullable=True)
    scaled_servings: Mapped[int | None] = mapped_column(Integer, nullable=True)

    grocery_list: Mapped["GroceryList"] = relationship("GroceryList", back_populates="items")
    ingredient: Mapped["Ingredient"] = relationship("Ingredient")
    recipe: Mapped["Recipe | None"] = relationship("Recipe")

    __table_args__ = (
        Index("idx_grocery_list_items_list_id", "grocery_list_id"),
        Index("idx_grocery_list_items_ingredient_id", "ingredient_id"),
    )
