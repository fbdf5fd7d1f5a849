"""Domain exceptions raised by the service layer and mapped to HTTP responses."""


class MealPlannerError(Exception):
    """Base exception for mealplanner errors."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(MealPlannerError):
    """Raised when a request is well-formed JSON but semantically invalid."""

    status_code = 400


class AuthenticationError(MealPlannerError):
    """Raised when the caller identity is missing or unknown."""

    status_code = 401


class HouseholdRequiredError(MealPlannerError):
    """Raised when the caller must belong to a household but does not."""

    status_code = 400

    def __init__(self, message: str = "You must be in a household"):
        super().__init__(message)


class HouseholdMembershipError(MealPlannerError):
    """Raised when the caller already belongs to a household."""

    status_code = 409


class NotFoundError(MealPlannerError):
    """Raised when a household-scoped resource does not exist."""

    status_code = 404


class RecipeNotFoundError(NotFoundError):
    """Raised when one or more requested recipes are not in the household."""

    def __init__(self, missing_ids: list[str] | None = None):
        super().__init__("One or more recipes not found")
        self.missing_ids = missing_ids or []


class GroceryListNotFoundError(NotFoundError):
    """Raised when a grocery list is not in the household."""

    def __init__(self, list_id: str):
        super().__init__("Grocery list not found")
        self.list_id = list_id


class GroceryItemNotFoundError(NotFoundError):
    """Raised when an item does not belong to the given grocery list."""

    def __init__(self, item_id: str):
        super().__init__("Item not found")
        self.item_id = item_id


class InvalidInviteCodeError(NotFoundError):
    """Raised when no household matches an invite code."""

    def __init__(self) -> None:
        super().__init__("Invalid invite code")
