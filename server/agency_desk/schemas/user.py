from typing import List, Literal

from pydantic import BaseModel, EmailStr, Field

from agency_desk.models.user import PreferredLanguage, UserRole
from agency_desk.schemas.common import ORMModel, Timestamped


class UserRead(Timestamped):
    id: str
    agency_id: str
    email: EmailStr
    full_name: str
    role: UserRole
    preferred_language: PreferredLanguage
    avatar_url: str | None = None
    phone: str | None = None
    is_active: bool


class ProfileUpdate(ORMModel):
    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    phone: str | None = Field(default=None, max_length=40)
    preferred_language: PreferredLanguage | None = None
    avatar_url: str | None = Field(default=None, max_length=500)
    password: str | None = Field(default=None, min_length=8, max_length=128)


class UserInvite(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1, max_length=255)
    role: UserRole = UserRole.AGENT


class UserRoleUpdate(BaseModel):
    role: UserRole | None = None
    is_active: bool | None = None


class TeamMember(BaseModel):
    id: str
    email: EmailStr
    name: str
    role: Literal["owner", "admin", "agent", "staff"]
    status: Literal["active", "inactive", "pending"]
    phone: str | None = None
    avatar_url: str | None = None


class TeamMemberCollection(BaseModel):
    users: List[TeamMember]
