from agency_desk.services import (
    activity_service,
    chat_service,
    client_service,
    dashboard_service,
    document_service,
    integration_service,
    policy_service,
    report_service,
    user_service,
)

__all__ = [
    "activity_service",
    "chat_service",
    "client_service",
    "dashboard_service",
    "document_service",
    "integration_service",
    "policy_service",
    "report_service",
    "user_service",
]
