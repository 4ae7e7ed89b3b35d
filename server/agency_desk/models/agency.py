from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from agency_desk.db.base import Base
from agency_desk.models.mixins import Identifier, TimestampMixin


class Agency(TimestampMixin, Base):
    __tablename__ = "agencies"

    id: Mapped[Identifier]
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    license_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    city: Mapped[str | None] = mapped_column(String(120), nullable=True)
    state: Mapped[str | None] = mapped_column(String(40), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    website: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # Opaque per-agency document; integration state lives under "integrations".
    settings: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True, default=dict)
