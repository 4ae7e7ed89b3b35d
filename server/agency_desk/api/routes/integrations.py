from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from agency_desk.api.dependencies.auth import get_current_user, require_admin
from agency_desk.api.dependencies.database import get_db
from agency_desk.api.dependencies.integrations import get_integration_manager
from agency_desk.core.logging import get_logger
from agency_desk.integrations.actions import parse_action
from agency_desk.integrations.errors import IntegrationError
from agency_desk.models.user import User
from agency_desk.schemas.integration import (
    IntegrationActionRequest,
    IntegrationActionResponse,
    IntegrationCollection,
    IntegrationRead,
)
from agency_desk.services.activity_service import record_activity
from agency_desk.services.integration_service import IntegrationLifecycleManager
from agency_desk.services.settings_store import AgencyNotFound, StorageError

logger = get_logger(__name__)
router = APIRouter(prefix="/integrations", tags=["integrations"])


def _storage_failure(exc: StorageError) -> HTTPException:
    if isinstance(exc, AgencyNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Agency not found")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update integration")


@router.get("", response_model=IntegrationCollection)
async def list_integrations(
    current_user: User = Depends(get_current_user),
    manager: IntegrationLifecycleManager = Depends(get_integration_manager),
) -> IntegrationCollection:
    try:
        integrations = await manager.list(current_user.agency_id)
    except StorageError as exc:
        raise _storage_failure(exc) from exc
    return IntegrationCollection(integrations=[IntegrationRead.model_validate(item) for item in integrations])


@router.post("", response_model=IntegrationActionResponse)
async def apply_integration_action(
    payload: IntegrationActionRequest,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
    manager: IntegrationLifecycleManager = Depends(get_integration_manager),
) -> IntegrationActionResponse:
    try:
        action = parse_action(payload.action, payload.config)
        integration = await manager.apply(current_user.agency_id, payload.integration_id, action)
    except IntegrationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageError as exc:
        raise _storage_failure(exc) from exc

    await record_activity(
        session,
        current_user,
        action=f"integration.{action.name}",
        entity_type="integration",
        details={"integration_id": integration.id, "status": integration.status},
    )
    await session.commit()
    return IntegrationActionResponse(integration=IntegrationRead.model_validate(integration))
