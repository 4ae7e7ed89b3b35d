from __future__ import annotations

from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from agency_desk.core.logging import get_logger
from agency_desk.core.security import get_password_hash, verify_password
from agency_desk.models.agency import Agency
from agency_desk.models.user import User, UserRole
from agency_desk.schemas.auth import RegistrationRequest
from agency_desk.schemas.user import ProfileUpdate, UserInvite, UserRoleUpdate

logger = get_logger(__name__)


class UserManagementError(Exception):
    """Rejected admin operation on a team member (maps to HTTP 400)."""


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalars().first()


async def get_user(session: AsyncSession, user_id: str) -> User | None:
    return await session.get(User, user_id)


async def register_agency(session: AsyncSession, data: RegistrationRequest) -> User:
    """Create a new agency together with its first (admin) user."""
    if await get_user_by_email(session, data.email):
        raise UserManagementError("A user with this email already exists")
    agency = Agency(name=data.agency_name, settings={})
    session.add(agency)
    await session.flush()
    user = User(
        agency_id=agency.id,
        email=data.email.lower(),
        full_name=data.full_name,
        hashed_password=get_password_hash(data.password),
        role=UserRole.ADMIN,
        is_active=True,
    )
    session.add(user)
    await session.flush()
    logger.info("agency.registered", agency_id=agency.id, user_id=user.id)
    return user


async def authenticate_user(session: AsyncSession, email: str, password: str) -> User | None:
    user = await get_user_by_email(session, email)
    if not user or not user.is_active or not verify_password(password, user.hashed_password):
        return None
    return user


async def update_profile(session: AsyncSession, user: User, data: ProfileUpdate) -> User:
    payload = data.model_dump(exclude_unset=True)
    if password := payload.pop("password", None):
        user.hashed_password = get_password_hash(password)
    for field, value in payload.items():
        setattr(user, field, value)
    await session.flush()
    await session.refresh(user)
    return user


async def list_agency_users(session: AsyncSession, agency_id: str) -> Sequence[User]:
    result = await session.execute(
        select(User).where(User.agency_id == agency_id).order_by(User.created_at.asc(), User.email.asc())
    )
    return result.scalars().all()


def find_owner_id(users: Sequence[User]) -> str | None:
    """The earliest admin of an agency is reported as its owner."""
    admins = [user for user in users if user.role is UserRole.ADMIN]
    if not admins:
        return None
    return min(admins, key=lambda user: user.created_at).id


async def invite_user(session: AsyncSession, admin: User, data: UserInvite) -> User:
    if await get_user_by_email(session, data.email):
        raise UserManagementError("A user with this email already exists")
    user = User(
        agency_id=admin.agency_id,
        email=data.email.lower(),
        full_name=data.name,
        role=data.role,
        hashed_password=None,
        is_active=False,
    )
    session.add(user)
    await session.flush()
    logger.info("user.invited", agency_id=admin.agency_id, user_id=user.id, role=data.role.value)
    return user


async def get_agency_user(session: AsyncSession, agency_id: str, user_id: str) -> User | None:
    result = await session.execute(select(User).where(User.id == user_id, User.agency_id == agency_id))
    return result.scalars().first()


async def _count_admins(session: AsyncSession, agency_id: str) -> int:
    total = await session.scalar(
        select(func.count()).select_from(User).where(User.agency_id == agency_id, User.role == UserRole.ADMIN)
    )
    return int(total or 0)


async def update_agency_user(session: AsyncSession, admin: User, target: User, data: UserRoleUpdate) -> User:
    payload = data.model_dump(exclude_unset=True)
    new_role = payload.get("role")
    if target.id == admin.id and new_role is not None and new_role is not UserRole.ADMIN:
        raise UserManagementError("You cannot change your own admin role")
    if target.id == admin.id and payload.get("is_active") is False:
        raise UserManagementError("You cannot deactivate your own account")
    for field, value in payload.items():
        setattr(target, field, value)
    await session.flush()
    await session.refresh(target)
    logger.info("user.updated", agency_id=admin.agency_id, user_id=target.id, fields=sorted(payload))
    return target


async def remove_agency_user(session: AsyncSession, admin: User, target: User) -> None:
    if target.id == admin.id:
        raise UserManagementError("You cannot delete your own account")
    if target.role is UserRole.ADMIN and await _count_admins(session, admin.agency_id) <= 1:
        raise UserManagementError("Cannot delete the last admin")
    await session.delete(target)
    await session.flush()
    logger.info("user.removed", agency_id=admin.agency_id, user_id=target.id)
