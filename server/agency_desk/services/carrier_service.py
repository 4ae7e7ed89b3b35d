from __future__ import annotations

from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from agency_desk.models.carrier import Carrier


async def list_carriers(session: AsyncSession, *, search: str | None = None, active: bool = True) -> Sequence[Carrier]:
    query = select(Carrier)
    if active:
        query = query.where(Carrier.is_active.is_(True))
    if search:
        query = query.where(func.lower(Carrier.name).like(f"%{search.lower()}%"))
    result = await session.execute(query.order_by(Carrier.name.asc()))
    return result.scalars().all()


async def get_carrier(session: AsyncSession, carrier_id: str) -> Carrier | None:
    return await session.get(Carrier, carrier_id)
