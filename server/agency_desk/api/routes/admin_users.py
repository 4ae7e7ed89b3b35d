from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from agency_desk.api.dependencies.auth import require_admin
from agency_desk.api.dependencies.database import get_db
from agency_desk.models.user import User
from agency_desk.schemas.user import TeamMember, TeamMemberCollection, UserInvite, UserRoleUpdate
from agency_desk.services.activity_service import record_activity
from agency_desk.services.user_service import (
    UserManagementError,
    find_owner_id,
    get_agency_user,
    invite_user,
    list_agency_users,
    remove_agency_user,
    update_agency_user,
)


router = APIRouter(prefix="/admin/users", tags=["admin"])


def _to_member(user: User, owner_id: str | None) -> TeamMember:
    if user.is_active:
        member_status = "active"
    elif user.hashed_password is None:
        member_status = "pending"
    else:
        member_status = "inactive"
    return TeamMember(
        id=user.id,
        email=user.email,
        name=user.full_name,
        role="owner" if user.id == owner_id else user.role.value,
        status=member_status,
        phone=user.phone,
        avatar_url=user.avatar_url,
    )


@router.get("", response_model=TeamMemberCollection)
async def list_users(
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> TeamMemberCollection:
    users = await list_agency_users(session, current_user.agency_id)
    owner_id = find_owner_id(users)
    return TeamMemberCollection(users=[_to_member(user, owner_id) for user in users])


@router.post("", response_model=TeamMember, status_code=status.HTTP_201_CREATED)
async def invite_user_endpoint(
    payload: UserInvite,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> TeamMember:
    try:
        user = await invite_user(session, current_user, payload)
    except UserManagementError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    await record_activity(
        session, current_user, action="user.invited", entity_type="user", entity_id=user.id,
        details={"email": user.email, "role": user.role.value},
    )
    await session.commit()
    await session.refresh(user)
    return _to_member(user, None)


@router.patch("/{user_id}", response_model=TeamMember)
async def update_user_endpoint(
    user_id: str,
    payload: UserRoleUpdate,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> TeamMember:
    target = await get_agency_user(session, current_user.agency_id, user_id)
    if target is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    try:
        updated = await update_agency_user(session, current_user, target, payload)
    except UserManagementError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    await record_activity(
        session, current_user, action="user.updated", entity_type="user", entity_id=updated.id,
        details=payload.model_dump(mode="json", exclude_unset=True),
    )
    await session.commit()
    await session.refresh(updated)
    return _to_member(updated, find_owner_id(await list_agency_users(session, current_user.agency_id)))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user_endpoint(
    user_id: str,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> Response:
    target = await get_agency_user(session, current_user.agency_id, user_id)
    if target is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    try:
        await remove_agency_user(session, current_user, target)
    except UserManagementError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    await record_activity(
        session, current_user, action="user.removed", entity_type="user", entity_id=user_id,
        details={"email": target.email},
    )
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
