from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from agency_desk.models.client import Client
from agency_desk.models.document import AIProcessingStatus, Document
from agency_desk.models.mixins import utcnow
from agency_desk.models.policy import Policy, PolicyStatus
from agency_desk.schemas.dashboard import DashboardStats, ExpiringPolicy


async def _count(session: AsyncSession, model, *conditions) -> int:
    total = await session.scalar(select(func.count()).select_from(model).where(*conditions))
    return int(total or 0)


async def compute_dashboard_stats(session: AsyncSession, agency_id: str, *, today: date | None = None) -> DashboardStats:
    today = today or utcnow().date()
    active = (Policy.agency_id == agency_id, Policy.status == PolicyStatus.ACTIVE)

    total_clients = await _count(session, Client, Client.agency_id == agency_id)
    active_policies = await _count(session, Policy, *active)
    pending_renewals = await _count(
        session,
        Policy,
        *active,
        Policy.expiration_date >= today,
        Policy.expiration_date <= today + timedelta(days=30),
    )
    pending_documents = await _count(
        session,
        Document,
        Document.agency_id == agency_id,
        Document.ai_processing_status == AIProcessingStatus.PENDING,
    )
    annual_premium = await session.scalar(select(func.coalesce(func.sum(Policy.premium), 0)).where(*active))
    # Premiums are annual.
    monthly_premium = Decimal(annual_premium or 0) / 12

    return DashboardStats(
        total_clients=total_clients,
        active_policies=active_policies,
        pending_renewals=pending_renewals,
        pending_documents=pending_documents,
        monthly_premium=float(round(monthly_premium, 2)),
    )


async def list_expiring_policies(
    session: AsyncSession,
    agency_id: str,
    *,
    limit: int = 5,
    days: int = 30,
    today: date | None = None,
) -> list[ExpiringPolicy]:
    today = today or utcnow().date()
    result = await session.execute(
        select(Policy)
        .options(joinedload(Policy.client))
        .where(
            Policy.agency_id == agency_id,
            Policy.status == PolicyStatus.ACTIVE,
            Policy.expiration_date >= today,
            Policy.expiration_date <= today + timedelta(days=days),
        )
        .order_by(Policy.expiration_date.asc())
        .limit(limit)
    )
    policies: Sequence[Policy] = result.scalars().all()
    return [
        ExpiringPolicy(
            id=policy.id,
            policy_number=policy.policy_number,
            line_of_business=policy.line_of_business,
            premium=policy.premium,
            expiration_date=policy.expiration_date,
            client_id=policy.client_id,
            client_name=policy.client.display_name,
            days_until_expiration=(policy.expiration_date - today).days,
        )
        for policy in policies
    ]
