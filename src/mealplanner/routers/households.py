"""API routes for creating and joining households."""

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mealplanner.database import get_db
from mealplanner.dependencies import get_current_user
from mealplanner.exceptions import (
    HouseholdMembershipError,
    HouseholdRequiredError,
    InvalidInviteCodeError,
)
from mealplanner.invite_codes import generate_invite_code
from mealplanner.logging_config import get_logger
from mealplanner.models import Household, User
from mealplanner.schemas import (
    DataResponse,
    HouseholdCreate,
    HouseholdDetail,
    HouseholdJoin,
    HouseholdMember,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/households", tags=["households"])

MAX_INVITE_CODE_ATTEMPTS = 10


async def _household_detail(db: AsyncSession, household: Household) -> HouseholdDetail:
    result = await db.execute(
        select(User).where(User.household_id == household.id).order_by(User.created_at)
    )
    return HouseholdDetail(
        id=household.id,
        name=household.name,
        invite_code=household.invite_code,
        members=[
            HouseholdMember(id=member.id, name=member.name, email=member.email)
            for member in result.scalars().all()
        ],
    )


async def _unused_invite_code(db: AsyncSession) -> str:
    for _ in range(MAX_INVITE_CODE_ATTEMPTS):
        code = generate_invite_code()
        result = await db.execute(select(Household.id).where(Household.invite_code == code))
        if result.scalar_one_or_none() is None:
            return code
    raise RuntimeError("Could not generate a unique invite code")


@router.get("/me", response_model=DataResponse[HouseholdDetail])
async def get_my_household(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[HouseholdDetail]:
    """Get the caller's household and its members."""
    if not user.household_id:
        raise HouseholdRequiredError("You are not in a household")

    household = await db.get(Household, user.household_id)
    if household is None:
        raise HouseholdRequiredError("You are not in a household")
    return DataResponse(data=await _household_detail(db, household))


@router.post("", response_model=DataResponse[HouseholdDetail], status_code=status.HTTP_201_CREATED)
async def create_household(
    request: HouseholdCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[HouseholdDetail]:
    """Create a household and make the caller its first member."""
    if user.household_id:
        raise HouseholdMembershipError("You are already in a household")

    household = Household(
        name=request.name,
        invite_code=await _unused_invite_code(db),
        created_by_user_id=user.id,
    )
    db.add(household)
    await db.flush()
    user.household_id = household.id
    await db.commit()

    logger.info(f"Created household {household.id} for user {user.id}")
    return DataResponse(data=await _household_detail(db, household))


@router.post("/join", response_model=DataResponse[HouseholdDetail])
async def join_household(
    request: HouseholdJoin,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[HouseholdDetail]:
    """Join an existing household with its invite code."""
    if user.household_id:
        raise HouseholdMembershipError("You are already in a household")

    result = await db.execute(
        select(Household).where(Household.invite_code == request.invite_code)
    )
    household = result.scalar_one_or_none()
    if household is None:
        raise InvalidInviteCodeError()

    user.household_id = household.id
    await db.commit()

    logger.info(f"User {user.id} joined household {household.id}")
    return DataResponse(data=await _household_detail(db, household))
