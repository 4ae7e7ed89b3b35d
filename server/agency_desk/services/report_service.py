"""
Aggregate reports over an agency's book of business.

Commission rates and payment status are estimates: carriers do not report
commission statements back to the platform, so they are derived from the
line of business and the policy's age.
"""

from __future__ import annotations

import calendar
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from agency_desk.models.client import Client
from agency_desk.models.mixins import utcnow
from agency_desk.models.policy import LineOfBusiness, Policy, PolicyStatus
from agency_desk.schemas.report import (
    CommissionRow,
    CommissionSummary,
    ExpiringPolicyRow,
    OverviewReport,
    ProductionBucket,
    ProductionByType,
    ProductionReport,
    ReportResponse,
    ReportType,
    TimeRange,
)

TIME_RANGE_DAYS: dict[TimeRange, int] = {
    TimeRange.WEEK: 7,
    TimeRange.MONTH: 30,
    TimeRange.QUARTER: 90,
    TimeRange.YEAR: 365,
}

COMMISSION_RATES: dict[LineOfBusiness, int] = {
    LineOfBusiness.HEALTH: 10,
    LineOfBusiness.LIFE: 50,
    LineOfBusiness.PERSONAL_AUTO: 12,
    LineOfBusiness.HOMEOWNERS: 15,
    LineOfBusiness.COMMERCIAL: 12,
    LineOfBusiness.OTHER: 10,
}
DEFAULT_COMMISSION_RATE = 10
AVERAGE_COMMISSION = Decimal("0.10")
RENEWAL_SHARE = Decimal("0.7")
EXPIRATION_WINDOW_DAYS = 60
UNKNOWN_CARRIER = "Unknown"


def _round(value: Decimal | float | int, places: int = 2) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def _round_int(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _premium(policy: Policy) -> Decimal:
    return Decimal(policy.premium or 0)


def _carrier_name(policy: Policy) -> str:
    return policy.carrier.name if policy.carrier is not None else UNKNOWN_CARRIER


def commission_status(created_at: datetime, now: datetime) -> tuple[str, date | None]:
    created_at = _as_utc(created_at)
    age_days = (now - created_at).days
    if age_days > 30:
        return "paid", (created_at + timedelta(days=30)).date()
    if age_days > 14:
        return "processing", None
    return "pending", None


def one_month_later(day: date) -> date:
    """Same day next month, clamped to that month's last day (Jan 31 -> Feb 28/29)."""
    year, month = (day.year + 1, 1) if day.month == 12 else (day.year, day.month + 1)
    return day.replace(year=year, month=month, day=min(day.day, calendar.monthrange(year, month)[1]))


async def _count(session: AsyncSession, model, *conditions) -> int:
    total = await session.scalar(select(func.count()).select_from(model).where(*conditions))
    return int(total or 0)


async def overview_report(session: AsyncSession, agency_id: str, *, start: datetime, now: datetime) -> OverviewReport:
    active = (Policy.agency_id == agency_id, Policy.status == PolicyStatus.ACTIVE)
    today = now.date()

    total_policies = await _count(session, Policy, *active)
    active_clients = await _count(session, Client, Client.agency_id == agency_id)
    expiring = await _count(
        session,
        Policy,
        *active,
        Policy.expiration_date >= today,
        Policy.expiration_date <= one_month_later(today),
    )
    total_premium = await session.scalar(select(func.coalesce(func.sum(Policy.premium), 0)).where(*active))
    previous = await _count(session, Policy, Policy.agency_id == agency_id, Policy.created_at <= start)

    change = (Decimal(total_policies - previous) / previous * 100) if previous > 0 else Decimal(0)
    return OverviewReport(
        total_policies=total_policies,
        policies_change=_round(change, 1),
        active_clients=active_clients,
        monthly_commissions=_round(Decimal(total_premium or 0) * AVERAGE_COMMISSION / 12),
        expiring_this_month=expiring,
    )


async def expirations_report(session: AsyncSession, agency_id: str, *, now: datetime) -> list[ExpiringPolicyRow]:
    today = now.date()
    result = await session.execute(
        select(Policy)
        .options(joinedload(Policy.client), joinedload(Policy.carrier))
        .where(
            Policy.agency_id == agency_id,
            Policy.status == PolicyStatus.ACTIVE,
            Policy.expiration_date >= today,
            Policy.expiration_date <= today + timedelta(days=EXPIRATION_WINDOW_DAYS),
        )
        .order_by(Policy.expiration_date.asc())
    )
    return [
        ExpiringPolicyRow(
            id=policy.id,
            policy_number=policy.policy_number,
            client_name=policy.client.display_name,
            type=policy.line_of_business.value,
            carrier=_carrier_name(policy),
            expiration_date=policy.expiration_date,
            premium=_round(_premium(policy)),
            days_until_expiry=(policy.expiration_date - today).days,
        )
        for policy in result.scalars().all()
    ]


async def commissions_report(
    session: AsyncSession, agency_id: str, *, start: datetime, now: datetime
) -> tuple[list[CommissionRow], CommissionSummary]:
    result = await session.execute(
        select(Policy)
        .options(joinedload(Policy.client), joinedload(Policy.carrier))
        .where(Policy.agency_id == agency_id, Policy.created_at >= start)
        .order_by(Policy.created_at.desc())
    )
    rows: list[CommissionRow] = []
    for policy in result.scalars().all():
        rate = COMMISSION_RATES.get(policy.line_of_business, DEFAULT_COMMISSION_RATE)
        status, paid_date = commission_status(policy.created_at, now)
        rows.append(
            CommissionRow(
                id=policy.id,
                policy_number=policy.policy_number,
                client_name=policy.client.display_name,
                carrier=_carrier_name(policy),
                type=policy.line_of_business.value,
                premium=_round(_premium(policy)),
                commission_rate=rate,
                commission=_round(_premium(policy) * rate / 100),
                status=status,
                paid_date=paid_date,
            )
        )

    earned = sum((Decimal(str(row.commission)) for row in rows if row.status == "paid"), Decimal(0))
    pending = sum((Decimal(str(row.commission)) for row in rows if row.status != "paid"), Decimal(0))
    avg_rate = Decimal(sum(row.commission_rate for row in rows)) / len(rows) if rows else Decimal(0)
    summary = CommissionSummary(
        total_earned=_round(earned),
        pending_payment=_round(pending),
        avg_rate=_round(avg_rate, 1),
        total_policies=len(rows),
    )
    return rows, summary


async def production_report(session: AsyncSession, agency_id: str, *, start: datetime) -> ProductionReport:
    result = await session.execute(
        select(Policy).where(
            Policy.agency_id == agency_id,
            Policy.created_at >= start,
            Policy.status.in_([PolicyStatus.ACTIVE, PolicyStatus.PENDING]),
        )
    )
    written: Sequence[Policy] = result.scalars().all()
    total_active = await _count(
        session, Policy, Policy.agency_id == agency_id, Policy.status == PolicyStatus.ACTIVE
    )
    lapsed = await _count(
        session,
        Policy,
        Policy.agency_id == agency_id,
        Policy.status.in_([PolicyStatus.CANCELLED, PolicyStatus.NON_RENEWED]),
        Policy.updated_at >= start,
    )

    written_premium = sum((_premium(policy) for policy in written), Decimal(0))
    # No renewal lineage is tracked yet; split written business by a fixed share.
    renewal_count = _round_int(len(written) * RENEWAL_SHARE)
    renewal_premium = Decimal(_round_int(written_premium * RENEWAL_SHARE))

    by_type: dict[str, list[Decimal]] = defaultdict(list)
    for policy in written:
        by_type[policy.line_of_business.value].append(_premium(policy))
    total_production = sum((sum(values, Decimal(0)) for values in by_type.values()), Decimal(0))

    retained_base = total_active + lapsed
    retention = Decimal(total_active) / retained_base * 100 if retained_base else Decimal(100)

    return ProductionReport(
        new_business=ProductionBucket(
            count=len(written) - renewal_count,
            premium=_round(written_premium - renewal_premium),
        ),
        renewals=ProductionBucket(count=renewal_count, premium=_round(renewal_premium)),
        lapsed=ProductionBucket(count=lapsed, premium=0),
        retention_rate=_round(retention, 1),
        production_by_type=[
            ProductionByType(
                type=line,
                count=len(values),
                premium=_round(sum(values, Decimal(0))),
                percentage=_round_int(sum(values, Decimal(0)) / total_production * 100) if total_production else 0,
            )
            for line, values in by_type.items()
        ],
    )


async def build_report(
    session: AsyncSession,
    agency_id: str,
    report_type: ReportType,
    time_range: TimeRange = TimeRange.MONTH,
    *,
    now: datetime | None = None,
) -> ReportResponse:
    now = now or utcnow()
    start = now - timedelta(days=TIME_RANGE_DAYS[time_range])
    response = ReportResponse(type=report_type, time_range=time_range)

    if report_type is ReportType.OVERVIEW:
        response.overview = await overview_report(session, agency_id, start=start, now=now)
    elif report_type is ReportType.EXPIRATIONS:
        response.expiring_policies = await expirations_report(session, agency_id, now=now)
    elif report_type is ReportType.COMMISSIONS:
        response.commissions, response.summary = await commissions_report(session, agency_id, start=start, now=now)
    elif report_type is ReportType.PRODUCTION:
        response.production = await production_report(session, agency_id, start=start)
    else:
        raise ValueError(f"Invalid report type: {report_type}")
    return response
