from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from agency_desk.models.client import Client, ClientType
from agency_desk.models.user import User
from agency_desk.schemas.client import ClientCreate, ClientUpdate


@dataclass(slots=True)
class ClientFilters:
    search: str | None = None
    type: ClientType | None = None


async def list_clients(
    session: AsyncSession,
    agency_id: str,
    *,
    filters: ClientFilters,
    page: int,
    page_size: int,
) -> tuple[Sequence[Client], int]:
    conditions = [Client.agency_id == agency_id]
    if filters.search:
        like_term = f"%{filters.search.lower()}%"
        conditions.append(
            or_(
                func.lower(Client.first_name).like(like_term),
                func.lower(Client.last_name).like(like_term),
                func.lower(Client.business_name).like(like_term),
                func.lower(Client.email).like(like_term),
            )
        )
    if filters.type:
        conditions.append(Client.type == filters.type)

    total = await session.scalar(select(func.count()).select_from(Client).where(and_(*conditions)))
    result = await session.execute(
        select(Client)
        .where(and_(*conditions))
        .order_by(Client.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return result.scalars().all(), int(total or 0)


async def get_client(session: AsyncSession, agency_id: str, client_id: str) -> Client | None:
    result = await session.execute(select(Client).where(Client.id == client_id, Client.agency_id == agency_id))
    return result.scalars().first()


async def create_client(session: AsyncSession, user: User, data: ClientCreate) -> Client:
    client = Client(agency_id=user.agency_id, created_by=user.id, **data.model_dump())
    session.add(client)
    await session.flush()
    await session.refresh(client)
    return client


async def update_client(session: AsyncSession, client: Client, data: ClientUpdate) -> Client:
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(client, field, value)
    await session.flush()
    await session.refresh(client)
    return client


async def delete_client(session: AsyncSession, client: Client) -> None:
    await session.delete(client)
    await session.flush()
