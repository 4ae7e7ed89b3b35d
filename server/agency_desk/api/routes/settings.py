from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from agency_desk.api.dependencies.auth import get_current_user, require_admin
from agency_desk.api.dependencies.database import get_db
from agency_desk.models.user import User
from agency_desk.schemas.agency import AgencyRead, AgencyUpdate
from agency_desk.schemas.user import ProfileUpdate, UserRead
from agency_desk.services.activity_service import record_activity
from agency_desk.services.agency_service import get_agency, update_agency
from agency_desk.services.user_service import update_profile


router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/profile", response_model=UserRead)
async def read_profile(current_user: User = Depends(get_current_user)) -> UserRead:
    return UserRead.model_validate(current_user)


@router.patch("/profile", response_model=UserRead)
async def update_profile_endpoint(
    payload: ProfileUpdate,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UserRead:
    updated = await update_profile(session, current_user, payload)
    await session.commit()
    await session.refresh(updated)
    return UserRead.model_validate(updated)


@router.get("/agency", response_model=AgencyRead)
async def read_agency(
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AgencyRead:
    agency = await get_agency(session, current_user.agency_id)
    if agency is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Agency not found")
    return AgencyRead.model_validate(agency)


@router.patch("/agency", response_model=AgencyRead)
async def update_agency_endpoint(
    payload: AgencyUpdate,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> AgencyRead:
    agency = await get_agency(session, current_user.agency_id)
    if agency is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Agency not found")
    updated = await update_agency(session, agency, payload)
    await record_activity(
        session,
        current_user,
        action="agency.updated",
        entity_type="agency",
        entity_id=agency.id,
        details={"fields": sorted(payload.model_dump(exclude_unset=True))},
    )
    await session.commit()
    await session.refresh(updated)
    return AgencyRead.model_validate(updated)
