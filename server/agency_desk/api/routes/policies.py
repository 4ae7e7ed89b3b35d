from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from agency_desk.api.dependencies.auth import get_current_user
from agency_desk.api.dependencies.database import get_db
from agency_desk.models.policy import LineOfBusiness, PolicyStatus
from agency_desk.models.user import User
from agency_desk.schemas.policy import PolicyCollection, PolicyCreate, PolicyRead, PolicyUpdate
from agency_desk.services.activity_service import record_activity
from agency_desk.services.policy_service import (
    PolicyFilters,
    PolicyReferenceError,
    create_policy,
    delete_policy,
    get_policy,
    list_policies,
    update_policy,
)


router = APIRouter(prefix="/policies", tags=["policies"])


Page = Annotated[int, Query(ge=1)]
PageSize = Annotated[int, Query(ge=1, le=100)]


@router.get("", response_model=PolicyCollection)
async def list_policies_endpoint(
    page: Page = 1,
    page_size: PageSize = 20,
    search: str | None = Query(default=None, min_length=1),
    status_filter: PolicyStatus | None = Query(default=None, alias="status"),
    line_of_business: LineOfBusiness | None = Query(default=None, alias="lob"),
    client_id: str | None = None,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PolicyCollection:
    filters = PolicyFilters(
        search=search,
        status=status_filter,
        line_of_business=line_of_business,
        client_id=client_id,
    )
    items, total = await list_policies(session, current_user.agency_id, filters=filters, page=page, page_size=page_size)
    return PolicyCollection(
        items=[PolicyRead.model_validate(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post("", response_model=PolicyRead, status_code=status.HTTP_201_CREATED)
async def create_policy_endpoint(
    payload: PolicyCreate,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PolicyRead:
    try:
        policy = await create_policy(session, current_user, payload)
    except PolicyReferenceError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    await record_activity(
        session,
        current_user,
        action="policy.created",
        entity_type="policy",
        entity_id=policy.id,
        details={"policy_number": policy.policy_number},
    )
    await session.commit()
    refreshed = await get_policy(session, current_user.agency_id, policy.id)
    if refreshed is None:  # pragma: no cover
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Policy not found post-creation")
    return PolicyRead.model_validate(refreshed)


@router.get("/{policy_id}", response_model=PolicyRead)
async def get_policy_endpoint(
    policy_id: str,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PolicyRead:
    policy = await get_policy(session, current_user.agency_id, policy_id)
    if policy is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Policy not found")
    return PolicyRead.model_validate(policy)


@router.patch("/{policy_id}", response_model=PolicyRead)
async def update_policy_endpoint(
    policy_id: str,
    payload: PolicyUpdate,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PolicyRead:
    policy = await get_policy(session, current_user.agency_id, policy_id)
    if policy is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Policy not found")
    try:
        await update_policy(session, policy, payload)
    except PolicyReferenceError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    await record_activity(
        session,
        current_user,
        action="policy.updated",
        entity_type="policy",
        entity_id=policy_id,
        details=payload.model_dump(mode="json", exclude_unset=True),
    )
    await session.commit()
    refreshed = await get_policy(session, current_user.agency_id, policy_id)
    return PolicyRead.model_validate(refreshed)


@router.delete("/{policy_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_policy_endpoint(
    policy_id: str,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Response:
    policy = await get_policy(session, current_user.agency_id, policy_id)
    if policy is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Policy not found")
    policy_number = policy.policy_number
    await delete_policy(session, policy)
    await record_activity(
        session,
        current_user,
        action="policy.deleted",
        entity_type="policy",
        entity_id=policy_id,
        details={"policy_number": policy_number},
    )
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
