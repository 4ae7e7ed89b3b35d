from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agency_desk.db.base import Base
from agency_desk.models.mixins import AgencyScopedMixin, Identifier, TimestampMixin


class DocumentType(str, Enum):
    ID_CARD = "id_card"
    DEC_PAGE = "dec_page"
    APPLICATION = "application"
    ENDORSEMENT = "endorsement"
    CANCELLATION = "cancellation"
    INVOICE = "invoice"
    CLAIM = "claim"
    OTHER = "other"


class AIProcessingStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Document(AgencyScopedMixin, TimestampMixin, Base):
    __tablename__ = "documents"

    id: Mapped[Identifier]
    client_id: Mapped[str | None] = mapped_column(ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True)
    policy_id: Mapped[str | None] = mapped_column(ForeignKey("policies.id", ondelete="SET NULL"), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[DocumentType] = mapped_column(SAEnum(DocumentType), default=DocumentType.OTHER, nullable=False)
    file_path: Mapped[str] = mapped_column(String(500), nullable=False)
    file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    mime_type: Mapped[str | None] = mapped_column(String(120), nullable=True)
    ai_extracted_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    ai_processing_status: Mapped[AIProcessingStatus | None] = mapped_column(
        SAEnum(AIProcessingStatus), default=AIProcessingStatus.PENDING, nullable=True
    )
    ai_processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    ivans_download_id: Mapped[str | None] = mapped_column(String(120), nullable=True)
    ivans_download_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[str | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    client: Mapped["Client | None"] = relationship(lazy="raise")
    policy: Mapped["Policy | None"] = relationship(lazy="raise")
