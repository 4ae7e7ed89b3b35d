from __future__ import annotations

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from agency_desk.db.base import Base
from agency_desk.models.mixins import Identifier, TimestampMixin


class Carrier(TimestampMixin, Base):
    """Insurance carrier shared by every agency."""

    __tablename__ = "carriers"

    id: Mapped[Identifier]
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    ivans_code: Mapped[str | None] = mapped_column(String(40), nullable=True)
    supported_lines: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    website: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
