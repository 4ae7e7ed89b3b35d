from datetime import date
from decimal import Decimal
from typing import List

from pydantic import Field, model_validator

from agency_desk.models.policy import LineOfBusiness, PolicyStatus
from agency_desk.schemas.client import ClientSummary
from agency_desk.schemas.common import ORMModel, PageMeta, Timestamped


class CarrierSummary(ORMModel):
    id: str
    name: str


class PolicyBase(ORMModel):
    client_id: str
    carrier_id: str | None = None
    policy_number: str = Field(min_length=1, max_length=80)
    line_of_business: LineOfBusiness
    status: PolicyStatus = PolicyStatus.QUOTE
    effective_date: date | None = None
    expiration_date: date | None = None
    premium: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    notes: str | None = None


class PolicyCreate(PolicyBase):
    @model_validator(mode="after")
    def check_term(self) -> "PolicyCreate":
        if self.effective_date and self.expiration_date and self.expiration_date < self.effective_date:
            raise ValueError("expiration_date must not be before effective_date")
        return self


class PolicyUpdate(ORMModel):
    client_id: str | None = None
    carrier_id: str | None = None
    policy_number: str | None = Field(default=None, min_length=1, max_length=80)
    line_of_business: LineOfBusiness | None = None
    status: PolicyStatus | None = None
    effective_date: date | None = None
    expiration_date: date | None = None
    premium: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    notes: str | None = None


class PolicyRead(PolicyBase, Timestamped):
    id: str
    client: ClientSummary | None = None
    carrier: CarrierSummary | None = None


class PolicyCollection(PageMeta):
    items: List[PolicyRead]
