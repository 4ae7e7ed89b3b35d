from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from agency_desk.models.policy import LineOfBusiness, Policy, PolicyStatus
from agency_desk.models.user import User
from agency_desk.schemas.policy import PolicyCreate, PolicyUpdate
from agency_desk.services.carrier_service import get_carrier
from agency_desk.services.client_service import get_client


class PolicyReferenceError(LookupError):
    """A policy points at a client or carrier the agency cannot see."""


@dataclass(slots=True)
class PolicyFilters:
    search: str | None = None
    status: PolicyStatus | None = None
    line_of_business: LineOfBusiness | None = None
    client_id: str | None = None


def _with_relations(query):
    return query.options(joinedload(Policy.client), joinedload(Policy.carrier))


async def list_policies(
    session: AsyncSession,
    agency_id: str,
    *,
    filters: PolicyFilters,
    page: int,
    page_size: int,
) -> tuple[Sequence[Policy], int]:
    conditions = [Policy.agency_id == agency_id]
    if filters.search:
        conditions.append(func.lower(Policy.policy_number).like(f"%{filters.search.lower()}%"))
    if filters.status:
        conditions.append(Policy.status == filters.status)
    if filters.line_of_business:
        conditions.append(Policy.line_of_business == filters.line_of_business)
    if filters.client_id:
        conditions.append(Policy.client_id == filters.client_id)

    total = await session.scalar(select(func.count()).select_from(Policy).where(and_(*conditions)))
    result = await session.execute(
        _with_relations(select(Policy))
        .where(and_(*conditions))
        .order_by(Policy.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return result.scalars().unique().all(), int(total or 0)


async def get_policy(session: AsyncSession, agency_id: str, policy_id: str) -> Policy | None:
    result = await session.execute(
        _with_relations(select(Policy))
        .where(Policy.id == policy_id, Policy.agency_id == agency_id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def _check_references(session: AsyncSession, agency_id: str, client_id: str | None, carrier_id: str | None) -> None:
    if client_id is not None and await get_client(session, agency_id, client_id) is None:
        raise PolicyReferenceError("Client not found")
    if carrier_id is not None and await get_carrier(session, carrier_id) is None:
        raise PolicyReferenceError("Carrier not found")


async def create_policy(session: AsyncSession, user: User, data: PolicyCreate) -> Policy:
    await _check_references(session, user.agency_id, data.client_id, data.carrier_id)
    policy = Policy(agency_id=user.agency_id, created_by=user.id, **data.model_dump())
    session.add(policy)
    await session.flush()
    return policy


async def update_policy(session: AsyncSession, policy: Policy, data: PolicyUpdate) -> Policy:
    payload = data.model_dump(exclude_unset=True)
    await _check_references(session, policy.agency_id, payload.get("client_id"), payload.get("carrier_id"))
    for field, value in payload.items():
        setattr(policy, field, value)
    await session.flush()
    return policy


async def delete_policy(session: AsyncSession, policy: Policy) -> None:
    await session.delete(policy)
    await session.flush()
