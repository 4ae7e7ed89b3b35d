from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from agency_desk.api.dependencies.auth import get_current_user
from agency_desk.api.dependencies.database import get_db
from agency_desk.models.user import User
from agency_desk.schemas.report import ReportResponse, ReportType, TimeRange
from agency_desk.services.report_service import build_report


router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("", response_model=ReportResponse, response_model_exclude_none=True)
async def get_report(
    report_type: str = Query(default=ReportType.OVERVIEW.value, alias="type"),
    time_range: TimeRange = TimeRange.MONTH,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ReportResponse:
    try:
        resolved = ReportType(report_type)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid report type") from exc
    return await build_report(session, current_user.agency_id, resolved, time_range)
