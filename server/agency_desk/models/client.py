from __future__ import annotations

from datetime import date
from enum import Enum

from sqlalchemy import Date, Enum as SAEnum, ForeignKey, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from agency_desk.db.base import Base
from agency_desk.models.mixins import AgencyScopedMixin, Identifier, TimestampMixin
from agency_desk.models.user import PreferredLanguage


class ClientType(str, Enum):
    INDIVIDUAL = "individual"
    BUSINESS = "business"


class Client(AgencyScopedMixin, TimestampMixin, Base):
    __tablename__ = "clients"

    id: Mapped[Identifier]
    type: Mapped[ClientType] = mapped_column(SAEnum(ClientType), default=ClientType.INDIVIDUAL, nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    business_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True, index=True)
    phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    secondary_phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    city: Mapped[str | None] = mapped_column(String(120), nullable=True)
    state: Mapped[str | None] = mapped_column(String(40), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    preferred_language: Mapped[PreferredLanguage] = mapped_column(
        SAEnum(PreferredLanguage, values_callable=lambda enum: [item.value for item in enum]),
        default=PreferredLanguage.EN,
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    tags: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    external_id: Mapped[str | None] = mapped_column(String(120), nullable=True)
    created_by: Mapped[str | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    @property
    def display_name(self) -> str:
        if self.type is ClientType.BUSINESS:
            return self.business_name or ""
        return f"{self.first_name or ''} {self.last_name or ''}".strip()
