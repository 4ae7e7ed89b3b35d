from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from agency_desk.models.activity import ActivityLog
from agency_desk.models.user import User


async def record_activity(
    session: AsyncSession,
    user: User,
    *,
    action: str,
    entity_type: str,
    entity_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> ActivityLog:
    entry = ActivityLog(
        agency_id=user.agency_id,
        user_id=user.id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details,
    )
    session.add(entry)
    await session.flush()
    return entry


async def list_recent_activity(session: AsyncSession, agency_id: str, *, limit: int = 10) -> Sequence[ActivityLog]:
    result = await session.execute(
        select(ActivityLog)
        .where(ActivityLog.agency_id == agency_id)
        .options(joinedload(ActivityLog.user))
        .order_by(ActivityLog.created_at.desc())
        .limit(limit)
    )
    return result.scalars().all()
