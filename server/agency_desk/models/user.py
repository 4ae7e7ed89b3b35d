from __future__ import annotations

from enum import Enum

from sqlalchemy import Enum as SAEnum, String
from sqlalchemy.orm import Mapped, mapped_column

from agency_desk.db.base import Base
from agency_desk.models.mixins import AgencyScopedMixin, Identifier, TimestampMixin


class UserRole(str, Enum):
    ADMIN = "admin"
    AGENT = "agent"
    STAFF = "staff"


class PreferredLanguage(str, Enum):
    EN = "en"
    ZH_CN = "zh-CN"


class User(AgencyScopedMixin, TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[Identifier]
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    # Invited users have no password until they accept.
    hashed_password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[UserRole] = mapped_column(SAEnum(UserRole), default=UserRole.AGENT, nullable=False)
    preferred_language: Mapped[PreferredLanguage] = mapped_column(
        SAEnum(PreferredLanguage, values_callable=lambda enum: [item.value for item in enum]),
        default=PreferredLanguage.EN,
        nullable=False,
    )
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN
