from datetime import date, datetime
from decimal import Decimal
from typing import Any, List

from pydantic import BaseModel

from agency_desk.models.policy import LineOfBusiness
from agency_desk.schemas.common import ORMModel


class DashboardStats(BaseModel):
    total_clients: int
    active_policies: int
    pending_renewals: int
    pending_documents: int
    monthly_premium: float


class ExpiringPolicy(BaseModel):
    id: str
    policy_number: str
    line_of_business: LineOfBusiness
    premium: Decimal | None = None
    expiration_date: date
    client_id: str
    client_name: str
    days_until_expiration: int


class ExpiringPolicyCollection(BaseModel):
    policies: List[ExpiringPolicy]


class ActivityRead(ORMModel):
    id: str
    action: str
    entity_type: str
    entity_id: str | None = None
    details: dict[str, Any] | None = None
    user_id: str | None = None
    user_name: str | None = None
    created_at: datetime


class ActivityCollection(BaseModel):
    activities: List[ActivityRead]
