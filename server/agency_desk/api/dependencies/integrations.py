from fastapi import HTTPException, Request, status

from agency_desk.services.integration_service import IntegrationLifecycleManager


def get_integration_manager(request: Request) -> IntegrationLifecycleManager:
    manager = getattr(request.app.state, "integration_manager", None)
    if manager is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Integration service is not initialised",
        )
    return manager
