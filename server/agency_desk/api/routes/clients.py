from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from agency_desk.api.dependencies.auth import get_current_user
from agency_desk.api.dependencies.database import get_db
from agency_desk.models.client import ClientType
from agency_desk.models.user import User
from agency_desk.schemas.client import ClientCollection, ClientCreate, ClientRead, ClientUpdate
from agency_desk.services.activity_service import record_activity
from agency_desk.services.client_service import (
    ClientFilters,
    create_client,
    delete_client,
    get_client,
    list_clients,
    update_client,
)


router = APIRouter(prefix="/clients", tags=["clients"])


Page = Annotated[int, Query(ge=1)]
PageSize = Annotated[int, Query(ge=1, le=100)]


@router.get("", response_model=ClientCollection)
async def list_clients_endpoint(
    page: Page = 1,
    page_size: PageSize = 20,
    search: str | None = Query(default=None, min_length=1),
    type: ClientType | None = None,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ClientCollection:
    items, total = await list_clients(
        session,
        current_user.agency_id,
        filters=ClientFilters(search=search, type=type),
        page=page,
        page_size=page_size,
    )
    return ClientCollection(
        items=[ClientRead.model_validate(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post("", response_model=ClientRead, status_code=status.HTTP_201_CREATED)
async def create_client_endpoint(
    payload: ClientCreate,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ClientRead:
    client = await create_client(session, current_user, payload)
    await record_activity(
        session,
        current_user,
        action="client.created",
        entity_type="client",
        entity_id=client.id,
        details={"name": client.display_name},
    )
    await session.commit()
    await session.refresh(client)
    return ClientRead.model_validate(client)


@router.get("/{client_id}", response_model=ClientRead)
async def get_client_endpoint(
    client_id: str,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ClientRead:
    client = await get_client(session, current_user.agency_id, client_id)
    if client is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
    return ClientRead.model_validate(client)


@router.patch("/{client_id}", response_model=ClientRead)
async def update_client_endpoint(
    client_id: str,
    payload: ClientUpdate,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ClientRead:
    client = await get_client(session, current_user.agency_id, client_id)
    if client is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
    updated = await update_client(session, client, payload)
    await record_activity(
        session,
        current_user,
        action="client.updated",
        entity_type="client",
        entity_id=client.id,
        details={"fields": sorted(payload.model_dump(exclude_unset=True))},
    )
    await session.commit()
    await session.refresh(updated)
    return ClientRead.model_validate(updated)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client_endpoint(
    client_id: str,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Response:
    client = await get_client(session, current_user.agency_id, client_id)
    if client is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
    name = client.display_name
    await delete_client(session, client)
    await record_activity(
        session, current_user, action="client.deleted", entity_type="client", entity_id=client_id,
        details={"name": name},
    )
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
