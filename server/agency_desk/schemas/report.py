from datetime import date
from enum import Enum
from typing import List, Literal

from pydantic import BaseModel


class ReportType(str, Enum):
    OVERVIEW = "overview"
    EXPIRATIONS = "expirations"
    COMMISSIONS = "commissions"
    PRODUCTION = "production"


class TimeRange(str, Enum):
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


class OverviewReport(BaseModel):
    total_policies: int
    policies_change: float
    active_clients: int
    monthly_commissions: float
    expiring_this_month: int


class ExpiringPolicyRow(BaseModel):
    id: str
    policy_number: str
    client_name: str
    type: str
    carrier: str
    expiration_date: date
    premium: float
    days_until_expiry: int


class CommissionRow(BaseModel):
    id: str
    policy_number: str
    client_name: str
    carrier: str
    type: str
    premium: float
    commission_rate: int
    commission: float
    status: Literal["paid", "processing", "pending"]
    paid_date: date | None = None


class CommissionSummary(BaseModel):
    total_earned: float
    pending_payment: float
    avg_rate: float
    total_policies: int


class ProductionBucket(BaseModel):
    count: int
    premium: float


class ProductionByType(BaseModel):
    type: str
    count: int
    premium: float
    percentage: int


class ProductionReport(BaseModel):
    new_business: ProductionBucket
    renewals: ProductionBucket
    lapsed: ProductionBucket
    retention_rate: float
    production_by_type: List[ProductionByType]


class ReportResponse(BaseModel):
    type: ReportType
    time_range: TimeRange
    overview: OverviewReport | None = None
    expiring_policies: List[ExpiringPolicyRow] | None = None
    commissions: List[CommissionRow] | None = None
    summary: CommissionSummary | None = None
    production: ProductionReport | None = None
