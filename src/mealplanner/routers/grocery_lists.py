"""API routes for household grocery lists."""

from fastapi import APIRouter, Depends, Query, status

from mealplanner.dependencies import HouseholdMember, get_grocery_list_builder, require_household
from mealplanner.models import GroceryListStatus
from mealplanner.plan.grocery_list import GroceryListBuilder
from mealplanner.schemas import (
    DataResponse,
    GroceryItemCreate,
    GroceryItemToggle,
    GroceryListCreate,
    GroceryListDetail,
    GroceryListExport,
    GroceryListItemOut,
    GroceryListSummary,
    GroceryListUpdate,
    SuccessResponse,
)

router = APIRouter(prefix="/api/v1/grocery-lists", tags=["grocery-lists"])


@router.post(
    "",
    response_model=DataResponse[GroceryListDetail],
    status_code=status.HTTP_201_CREATED,
)
async def create_grocery_list(
    request: GroceryListCreate,
    member: HouseholdMember = Depends(require_household),
    builder: GroceryListBuilder = Depends(get_grocery_list_builder),
) -> DataResponse[GroceryListDetail]:
    """
    Create a grocery list from recipes.

    Ingredients shared between recipes are scaled to the requested servings,
    converted to common units, summed and rounded to practical quantities.
    """
    grocery_list = await builder.build(member.household_id, member.user_id, request)
    return DataResponse(data=grocery_list)


@router.get("", response_model=DataResponse[list[GroceryListSummary]])
async def list_grocery_lists(
    list_status: GroceryListStatus | None = Query(None, alias="status"),
    member: HouseholdMember = Depends(require_household),
    builder: GroceryListBuilder = Depends(get_grocery_list_builder),
) -> DataResponse[list[GroceryListSummary]]:
    """List the household's grocery lists, optionally filtered by status."""
    lists = await builder.list_grocery_lists(member.household_id, list_status)
    return DataResponse(data=lists)


@router.get("/{list_id}", response_model=DataResponse[GroceryListDetail])
async def get_grocery_list(
    list_id: str,
    member: HouseholdMember = Depends(require_household),
    builder: GroceryListBuilder = Depends(get_grocery_list_builder),
) -> DataResponse[GroceryListDetail]:
    """Get a grocery list with items grouped by category."""
    return DataResponse(data=await builder.get(member.household_id, list_id))


@router.patch("/{list_id}", response_model=DataResponse[GroceryListDetail])
async def update_grocery_list(
    list_id: str,
    update: GroceryListUpdate,
    member: HouseholdMember = Depends(require_household),
    builder: GroceryListBuilder = Depends(get_grocery_list_builder),
) -> DataResponse[GroceryListDetail]:
    """Rename a grocery list or change its status."""
    updated = await builder.update(member.household_id, member.user_id, list_id, update)
    return DataResponse(data=updated)


@router.delete("/{list_id}", response_model=SuccessResponse)
async def delete_grocery_list(
    list_id: str,
    member: HouseholdMember = Depends(require_household),
    builder: GroceryListBuilder = Depends(get_grocery_list_builder),
) -> SuccessResponse:
    await builder.delete(member.household_id, list_id)
    return SuccessResponse()


@router.patch("/{list_id}/items/{item_id}", response_model=DataResponse[GroceryListItemOut])
async def toggle_grocery_item(
    list_id: str,
    item_id: str,
    toggle: GroceryItemToggle,
    member: HouseholdMember = Depends(require_household),
    builder: GroceryListBuilder = Depends(get_grocery_list_builder),
) -> DataResponse[GroceryListItemOut]:
    """Check or uncheck an item."""
    item = await builder.toggle_item(
        member.household_id, member.user_id, list_id, item_id, toggle.is_checked
    )
    return DataResponse(data=item)


@router.post(
    "/{list_id}/items",
    response_model=DataResponse[GroceryListItemOut],
    status_code=status.HTTP_201_CREATED,
)
async def add_grocery_item(
    list_id: str,
    new_item: GroceryItemCreate,
    member: HouseholdMember = Depends(require_household),
    builder: GroceryListBuilder = Depends(get_grocery_list_builder),
) -> DataResponse[GroceryListItemOut]:
    """Add an item that does not come from a recipe."""
    item = await builder.add_manual_item(member.household_id, member.user_id, list_id, new_item)
    return DataResponse(data=item)


@router.delete("/{list_id}/items/{item_id}", response_model=SuccessResponse)
async def delete_grocery_item(
    list_id: str,
    item_id: str,
    member: HouseholdMember = Depends(require_household),
    builder: GroceryListBuilder = Depends(get_grocery_list_builder),
) -> SuccessResponse:
    await builder.remove_item(member.household_id, list_id, item_id)
    return SuccessResponse()


@router.get("/{list_id}/export", response_model=DataResponse[GroceryListExport])
async def export_grocery_list(
    list_id: str,
    member: HouseholdMember = Depends(require_household),
    builder: GroceryListBuilder = Depends(get_grocery_list_builder),
) -> DataResponse[GroceryListExport]:
    """Export a grocery list as tasks, ordered by store aisle."""
    return DataResponse(data=await builder.export(member.household_id, list_id))
