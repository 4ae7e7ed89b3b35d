from datetime import datetime
from typing import Any, List

from pydantic import BaseModel, Field

from agency_desk.schemas.common import ORMModel


class IntegrationRead(ORMModel):
    id: str
    name: str
    description: str
    category: str
    connected: bool
    status: str
    last_sync: datetime | None = None
    config: dict[str, Any] | None = None
    last_error: str | None = None


class IntegrationCollection(BaseModel):
    integrations: List[IntegrationRead]


class IntegrationActionRequest(BaseModel):
    integration_id: str = Field(min_length=1)
    action: str = Field(min_length=1)
    config: dict[str, Any] | None = None


class IntegrationActionResponse(BaseModel):
    success: bool = True
    integration: IntegrationRead
