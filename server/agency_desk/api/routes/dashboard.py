from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from agency_desk.api.dependencies.auth import get_current_user
from agency_desk.api.dependencies.database import get_db
from agency_desk.models.user import User
from agency_desk.schemas.dashboard import ActivityCollection, ActivityRead, DashboardStats, ExpiringPolicyCollection
from agency_desk.services.activity_service import list_recent_activity
from agency_desk.services.dashboard_service import compute_dashboard_stats, list_expiring_policies


router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> DashboardStats:
    return await compute_dashboard_stats(session, current_user.agency_id)


@router.get("/expiring-policies", response_model=ExpiringPolicyCollection)
async def expiring_policies(
    limit: int = Query(default=5, ge=1, le=100),
    days: int = Query(default=30, ge=0, le=365),
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ExpiringPolicyCollection:
    policies = await list_expiring_policies(session, current_user.agency_id, limit=limit, days=days)
    return ExpiringPolicyCollection(policies=policies)


@router.get("/activity", response_model=ActivityCollection)
async def recent_activity(
    limit: int = Query(default=10, ge=1, le=100),
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ActivityCollection:
    entries = await list_recent_activity(session, current_user.agency_id, limit=limit)
    return ActivityCollection(
        activities=[
            ActivityRead(
                id=entry.id,
                action=entry.action,
                entity_type=entry.entity_type,
                entity_id=entry.entity_id,
                details=entry.details,
                user_id=entry.user_id,
                user_name=entry.user.full_name if entry.user else None,
                created_at=entry.created_at,
            )
            for entry in entries
        ]
    )
