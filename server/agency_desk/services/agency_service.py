from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from agency_desk.models.agency import Agency
from agency_desk.schemas.agency import AgencyUpdate


async def get_agency(session: AsyncSession, agency_id: str) -> Agency | None:
    return await session.get(Agency, agency_id)


async def update_agency(session: AsyncSession, agency: Agency, data: AgencyUpdate) -> Agency:
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(agency, field, value)
    await session.flush()
    await session.refresh(agency)
    return agency
