from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, Enum as SAEnum, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agency_desk.db.base import Base
from agency_desk.models.mixins import AgencyScopedMixin, Identifier, TimestampMixin


class PolicyStatus(str, Enum):
    QUOTE = "quote"
    PENDING = "pending"
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    NON_RENEWED = "non_renewed"


class LineOfBusiness(str, Enum):
    PERSONAL_AUTO = "personal_auto"
    HOMEOWNERS = "homeowners"
    COMMERCIAL = "commercial"
    HEALTH = "health"
    LIFE = "life"
    OTHER = "other"


class Policy(AgencyScopedMixin, TimestampMixin, Base):
    __tablename__ = "policies"

    id: Mapped[Identifier]
    client_id: Mapped[str] = mapped_column(ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True)
    carrier_id: Mapped[str | None] = mapped_column(ForeignKey("carriers.id", ondelete="SET NULL"), nullable=True)
    policy_number: Mapped[str] = mapped_column(String(80), nullable=False, index=True)
    line_of_business: Mapped[LineOfBusiness] = mapped_column(SAEnum(LineOfBusiness), nullable=False)
    status: Mapped[PolicyStatus] = mapped_column(SAEnum(PolicyStatus), default=PolicyStatus.QUOTE, nullable=False)
    effective_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    expiration_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    premium: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    client: Mapped["Client"] = relationship(lazy="raise")
    carrier: Mapped["Carrier | None"] = relationship(lazy="raise")
