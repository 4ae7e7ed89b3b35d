from datetime import date
from typing import List

from pydantic import EmailStr, Field, model_validator

from agency_desk.models.client import ClientType
from agency_desk.models.user import PreferredLanguage
from agency_desk.schemas.common import ORMModel, PageMeta, Timestamped


class ClientBase(ORMModel):
    type: ClientType = ClientType.INDIVIDUAL
    first_name: str | None = Field(default=None, max_length=120)
    last_name: str | None = Field(default=None, max_length=120)
    business_name: str | None = Field(default=None, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=40)
    secondary_phone: str | None = Field(default=None, max_length=40)
    date_of_birth: date | None = None
    address: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=120)
    state: str | None = Field(default=None, max_length=40)
    zip_code: str | None = Field(default=None, max_length=20)
    preferred_language: PreferredLanguage = PreferredLanguage.EN
    notes: str | None = None
    tags: List[str] | None = None
    external_id: str | None = Field(default=None, max_length=120)


class ClientCreate(ClientBase):
    @model_validator(mode="after")
    def require_name(self) -> "ClientCreate":
        if self.type is ClientType.BUSINESS and not self.business_name:
            raise ValueError("business_name is required for business clients")
        if self.type is ClientType.INDIVIDUAL and not (self.first_name and self.last_name):
            raise ValueError("first_name and last_name are required for individual clients")
        return self


class ClientUpdate(ORMModel):
    type: ClientType | None = None
    first_name: str | None = Field(default=None, max_length=120)
    last_name: str | None = Field(default=None, max_length=120)
    business_name: str | None = Field(default=None, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=40)
    secondary_phone: str | None = Field(default=None, max_length=40)
    date_of_birth: date | None = None
    address: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=120)
    state: str | None = Field(default=None, max_length=40)
    zip_code: str | None = Field(default=None, max_length=20)
    preferred_language: PreferredLanguage | None = None
    notes: str | None = None
    tags: List[str] | None = None
    external_id: str | None = Field(default=None, max_length=120)


class ClientRead(ClientBase, Timestamped):
    id: str
    display_name: str
    email: str | None = None


class ClientSummary(ORMModel):
    id: str
    type: ClientType
    display_name: str


class ClientCollection(PageMeta):
    items: List[ClientRead]
