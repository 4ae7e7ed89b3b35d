import uuid
from datetime import datetime, timezone
from typing import Annotated

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, declared_attr, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


Identifier = Annotated[str, mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))]
Timestamp = Annotated[
    datetime,
    mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False),
]


class TimestampMixin:
    created_at: Mapped[Timestamp]
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )


class AgencyScopedMixin:
    """Rows owned by exactly one agency; every query filters on ``agency_id``."""

    @declared_attr
    def agency_id(cls) -> Mapped[str]:
        return mapped_column(ForeignKey("agencies.id", ondelete="CASCADE"), nullable=False, index=True)
