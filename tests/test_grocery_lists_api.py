"""Tests for the grocery list API routes."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from mealplanner.database import get_db
from mealplanner.dependencies import HouseholdMember, get_grocery_list_builder, require_household
from mealplanner.main import app
from mealplanner.models import GroceryListStatus, User
from mealplanner.plan.grocery_list import GroceryListBuilder
from mealplanner.schemas import GroceryListSummary, UserRef

BASE_URL = "/api/v1/grocery-lists"


@pytest.fixture
def client(mock_repository):
    """Test client for a signed-in household member."""
    app.dependency_overrides[require_household] = lambda: HouseholdMember(
        user_id="user-1", household_id="household-1"
    )
    app.dependency_overrides[get_grocery_list_builder] = lambda: GroceryListBuilder(
        mock_repository
    )
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def mock_session():
    """Mock AsyncSession for routes that load the caller."""
    session = AsyncMock()
    app.dependency_overrides[get_db] = lambda: session
    yield session
    app.dependency_overrides.clear()


class TestCreateGroceryList:
    """Tests for POST /api/v1/grocery-lists."""

    def test_create(
        self, client, mock_repository, pasta_recipe, pasta_lines, sample_grocery_list
    ):
        """Test a list is built and returned with grouped items."""
        mock_repository.get_recipes.return_value = [pasta_recipe]
        mock_repository.get_ingredient_lines.return_value = pasta_lines
        mock_repository.create_grocery_list.return_value = sample_grocery_list

        response = client.post(
            BASE_URL,
            json={"name": "Weekly shop", "recipes": [{"recipeId": "recipe-pasta", "servings": 4}]},
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["id"] == "list-1"
        assert data["householdId"] == "household-1"
        assert data["status"] == "active"
        assert len(data["items"]) == 4
        assert data["items"][0]["isChecked"] is False
        assert data["items"][0]["recipe"] == {"id": "recipe-pasta", "title": None}
        assert data["items"][3]["recipe"] is None
        assert set(data["itemsByCategory"]) == {"pantry", "produce", "dairy", "other"}
        assert data["itemsByCategory"]["produce"][0]["ingredient"]["name"] == "garlic"

        mock_repository.get_recipes.assert_awaited_once_with("household-1", ["recipe-pasta"])

    def test_unknown_recipe(self, client, mock_repository):
        """Test an unknown recipe is a 404 and nothing is stored."""
        mock_repository.get_recipes.return_value = []

        response = client.post(
            BASE_URL,
            json={"name": "Weekly shop", "recipes": [{"recipeId": "elsewhere", "servings": 4}]},
        )

        assert response.status_code == 404
        assert response.json() == {"error": "One or more recipes not found"}
        mock_repository.create_grocery_list.assert_not_awaited()

    @pytest.mark.parametrize(
        "body",
        [
            {"name": "   ", "recipes": [{"recipeId": "r1", "servings": 4}]},
            {"name": "Weekly shop", "recipes": []},
            {"name": "Weekly shop", "recipes": [{"recipeId": "r1", "servings": 0}]},
            {"name": "Weekly shop", "recipes": [{"recipeId": "r1", "servings": True}]},
            {"name": "Weekly shop", "recipes": [{"recipeId": "r1", "servings": "4"}]},
            {"name": "Weekly shop", "recipes": [{"recipeId": "r1", "servings": 2.0}]},
            {"recipes": [{"recipeId": "r1", "servings": 4}]},
        ],
    )
    def test_invalid_body(self, client, mock_repository, body):
        """Test malformed requests are rejected with 400."""
        response = client.post(BASE_URL, json=body)

        assert response.status_code == 400
        assert "error" in response.json()
        assert response.json()["details"]
        mock_repository.get_recipes.assert_not_awaited()
        mock_repository.create_grocery_list.assert_not_awaited()


class TestGroceryListRoutes:
    """Tests for the grocery list lifecycle routes."""

    def test_list(self, client, mock_repository, sample_grocery_list):
        """Test listing filters by status."""
        mock_repository.list_grocery_lists.return_value = [
            GroceryListSummary(
                id="list-1",
                name="Weekly shop",
                status=GroceryListStatus.ACTIVE,
                created_at=sample_grocery_list.created_at,
                created_by=UserRef(id="user-1", name="Sam"),
            )
        ]

        response = client.get(BASE_URL, params={"status": "active"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data[0]["createdBy"] == {"id": "user-1", "name": "Sam"}
        mock_repository.list_grocery_lists.assert_awaited_once_with(
            "household-1", GroceryListStatus.ACTIVE
        )

    def test_list_invalid_status(self, client):
        """Test unknown statuses are rejected."""
        response = client.get(BASE_URL, params={"status": "lost"})

        assert response.status_code == 400

    def test_get(self, client, mock_repository, sample_grocery_list):
        """Test fetching a single list."""
        mock_repository.get_grocery_list.return_value = sample_grocery_list

        response = client.get(f"{BASE_URL}/list-1")

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Weekly shop"

    def test_get_missing(self, client, mock_repository):
        """Test a missing list is a 404."""
        mock_repository.get_grocery_list.return_value = None

        response = client.get(f"{BASE_URL}/list-x")

        assert response.status_code == 404
        assert response.json() == {"error": "Grocery list not found"}

    def test_update(self, client, mock_repository, sample_grocery_list):
        """Test a list can be completed."""
        mock_repository.update_grocery_list.return_value = sample_grocery_list.model_copy(
            update={"status": GroceryListStatus.COMPLETED}
        )

        response = client.patch(f"{BASE_URL}/list-1", json={"status": "completed"})

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "completed"

    def test_update_requires_a_field(self, client, mock_repository):
        """Test an empty update is rejected."""
        response = client.patch(f"{BASE_URL}/list-1", json={})

        assert response.status_code == 400
        mock_repository.update_grocery_list.assert_not_awaited()

    def test_delete(self, client, mock_repository):
        """Test deleting a list."""
        mock_repository.delete_grocery_list.return_value = True

        response = client.delete(f"{BASE_URL}/list-1")

        assert response.status_code == 200
        assert response.json() == {"success": True}

    def test_toggle_item(self, client, mock_repository, sample_grocery_list):
        """Test checking an item."""
        mock_repository.list_exists.return_value = True
        mock_repository.set_item_checked.return_value = sample_grocery_list.items[1].model_copy(
            update={"is_checked": True}
        )

        response = client.patch(f"{BASE_URL}/list-1/items/item-2", json={"isChecked": True})

        assert response.status_code == 200
        assert response.json()["data"]["isChecked"] is True
        mock_repository.set_item_checked.assert_awaited_once_with(
            "list-1", "item-2", True, "user-1"
        )

    def test_add_item(self, client, mock_repository, sample_grocery_list):
        """Test adding a manual item."""
        mock_repository.list_exists.return_value = True
        mock_repository.add_item.return_value = sample_grocery_list.items[3]

        response = client.post(
            f"{BASE_URL}/list-1/items",
            json={"ingredientName": "Paper towels", "quantity": "1", "unit": "pack"},
        )

        assert response.status_code == 201
        assert response.json()["data"]["ingredient"]["name"] == "paper towels"

    def test_delete_missing_item(self, client, mock_repository):
        """Test deleting an item that is not on the list."""
        mock_repository.list_exists.return_value = True
        mock_repository.delete_item.return_value = False

        response = client.delete(f"{BASE_URL}/list-1/items/item-x")

        assert response.status_code == 404
        assert response.json() == {"error": "Item not found"}

    def test_export(self, client, mock_repository, sample_grocery_list):
        """Test the task export."""
        mock_repository.get_grocery_list.return_value = sample_grocery_list

        response = client.get(f"{BASE_URL}/list-1/export")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["listName"] == "Weekly shop"
        assert data["tasks"][0] == {
            "title": "5 clove garlic",
            "notes": "Category: produce",
            "status": "needsAction",
        }
        assert data["plainText"].startswith("○ 5 clove garlic")

    def test_unexpected_error(self, client, mock_repository):
        """Test unexpected failures become a 500 with an error body."""
        mock_repository.get_grocery_list.side_effect = RuntimeError("database went away")

        response = client.get(f"{BASE_URL}/list-1")

        assert response.status_code == 500
        assert "error" in response.json()

    def test_request_id_header(self, client, mock_repository, sample_grocery_list):
        """Test the request id is echoed back."""
        mock_repository.get_grocery_list.return_value = sample_grocery_list

        response = client.get(f"{BASE_URL}/list-1", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"


class TestAuthentication:
    """Tests for caller identity on grocery list routes."""

    def test_missing_user_header(self, mock_session):
        """Test requests without a user are rejected."""
        client = TestClient(app)

        response = client.get(BASE_URL)

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}
        mock_session.execute.assert_not_awaited()

    def test_unknown_user(self, mock_session):
        """Test an unknown user id is rejected."""
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        mock_session.execute.return_value = result
        client = TestClient(app)

        response = client.get(BASE_URL, headers={"X-User-Id": "ghost"})

        assert response.status_code == 401

    def test_user_without_household(self, mock_session):
        """Test users outside a household cannot use grocery lists."""
        result = MagicMock()
        result.scalar_one_or_none.return_value = User(
            id="user-9", email="solo@example.com", household_id=None
        )
        mock_session.execute.return_value = result
        client = TestClient(app)

        response = client.get(BASE_URL, headers={"X-User-Id": "user-9"})

        assert response.status_code == 400
        assert response.json() == {"error": "You must be in a household"}
