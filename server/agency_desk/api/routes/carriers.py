from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from agency_desk.api.dependencies.auth import get_current_user
from agency_desk.api.dependencies.database import get_db
from agency_desk.models.user import User
from agency_desk.schemas.carrier import CarrierCollection, CarrierRead
from agency_desk.services.carrier_service import list_carriers


router = APIRouter(prefix="/carriers", tags=["carriers"])


@router.get("", response_model=CarrierCollection)
async def list_carriers_endpoint(
    search: str | None = Query(default=None, min_length=1),
    active: bool = True,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),  # noqa: ARG001
) -> CarrierCollection:
    carriers = await list_carriers(session, search=search, active=active)
    return CarrierCollection(carriers=[CarrierRead.model_validate(carrier) for carrier in carriers])
