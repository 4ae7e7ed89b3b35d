from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from agency_desk.models import Carrier, Document, LineOfBusiness, Policy, PolicyStatus
from agency_desk.schemas.report import ReportType, TimeRange
from agency_desk.services.dashboard_service import compute_dashboard_stats, list_expiring_policies
from agency_desk.services.report_service import build_report, commission_status, one_month_later

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
TODAY = NOW.date()


@pytest.fixture
def make_policy(db_session):
    async def _make_policy(agency, owner, number, **fields) -> Policy:
        values = {
            "line_of_business": LineOfBusiness.PERSONAL_AUTO,
            "status": PolicyStatus.ACTIVE,
            "premium": Decimal("1200.00"),
            "created_at": NOW - timedelta(days=2),
            "updated_at": NOW - timedelta(days=2),
        }
        values.update(fields)
        policy = Policy(agency_id=agency.id, client_id=owner.id, policy_number=number, **values)
        db_session.add(policy)
        await db_session.commit()
        return policy

    return _make_policy


class TestCommissionStatus:
    def test_age_buckets(self):
        assert commission_status(NOW - timedelta(days=3), NOW) == ("pending", None)
        assert commission_status(NOW - timedelta(days=20), NOW) == ("processing", None)
        created = NOW - timedelta(days=45)
        assert commission_status(created, NOW) == ("paid", (created + timedelta(days=30)).date())

    def test_naive_timestamps_are_treated_as_utc(self):
        naive = (NOW - timedelta(days=31)).replace(tzinfo=None)
        assert commission_status(naive, NOW)[0] == "paid"


class TestDashboard:
    async def test_stats(self, db_session, agency, other_agency, make_client, make_policy):
        owner = await make_client(agency)
        foreign = await make_client(other_agency)
        await make_policy(agency, owner, "A-1", expiration_date=TODAY + timedelta(days=10))
        await make_policy(agency, owner, "A-2", premium=Decimal("2400.00"), expiration_date=TODAY + timedelta(days=90))
        await make_policy(agency, owner, "Q-1", status=PolicyStatus.QUOTE)
        await make_policy(other_agency, foreign, "F-1")
        db_session.add(Document(agency_id=agency.id, name="scan.pdf", file_path="a/scan.pdf"))
        await db_session.commit()

        stats = await compute_dashboard_stats(db_session, agency.id, today=TODAY)

        assert stats.total_clients == 1
        assert stats.active_policies == 2
        assert stats.pending_renewals == 1
        assert stats.pending_documents == 1
        assert stats.monthly_premium == 300.0

    async def test_expiring_policies(self, db_session, agency, make_client, make_policy):
        owner = await make_client(agency)
        await make_policy(agency, owner, "LATE", expiration_date=TODAY + timedelta(days=20))
        await make_policy(agency, owner, "SOON", expiration_date=TODAY + timedelta(days=3))
        await make_policy(agency, owner, "FAR", expiration_date=TODAY + timedelta(days=200))
        await make_policy(agency, owner, "PAST", expiration_date=TODAY - timedelta(days=1))

        policies = await list_expiring_policies(db_session, agency.id, today=TODAY)

        assert [(p.policy_number, p.days_until_expiration) for p in policies] == [("SOON", 3), ("LATE", 20)]
        assert policies[0].client_name == "Mei Chen"

    async def test_stats_endpoint(self, client, agent_headers):
        response = await client.get("/dashboard/stats", headers=agent_headers)

        assert response.status_code == 200
        assert response.json()["total_clients"] == 0


class TestReports:
    async def test_overview(self, db_session, agency, make_client, make_policy):
        owner = await make_client(agency)
        await make_policy(agency, owner, "OLD", created_at=NOW - timedelta(days=60), premium=Decimal("6000.00"))
        await make_policy(agency, owner, "NEW-1", expiration_date=TODAY + timedelta(days=5), premium=Decimal("6000.00"))
        await make_policy(agency, owner, "NEW-2", status=PolicyStatus.PENDING)

        report = await build_report(db_session, agency.id, ReportType.OVERVIEW, TimeRange.MONTH, now=NOW)

        assert report.overview.total_policies == 2
        assert report.overview.active_clients == 1
        assert report.overview.monthly_commissions == 100.0
        assert report.overview.expiring_this_month == 1
        # 2 active now vs 1 created before the period started
        assert report.overview.policies_change == 100.0

    async def test_overview_expiring_uses_calendar_month(self, db_session, agency, make_client, make_policy):
        month_end = datetime(2024, 1, 31, 9, 0, tzinfo=timezone.utc)
        owner = await make_client(agency)
        await make_policy(agency, owner, "LEAP", expiration_date=date(2024, 2, 29), created_at=month_end)
        await make_policy(agency, owner, "MARCH", expiration_date=date(2024, 3, 1), created_at=month_end)

        report = await build_report(db_session, agency.id, ReportType.OVERVIEW, TimeRange.MONTH, now=month_end)

        assert report.overview.expiring_this_month == 1

    async def test_expirations_default_unknown_carrier(self, db_session, agency, make_client, make_policy):
        owner = await make_client(agency)
        carrier = Carrier(name="State Farm", supported_lines=[])
        db_session.add(carrier)
        await db_session.commit()
        await make_policy(agency, owner, "WITH", carrier_id=carrier.id, expiration_date=TODAY + timedelta(days=45))
        await make_policy(agency, owner, "WITHOUT", expiration_date=TODAY + timedelta(days=7))
        await make_policy(agency, owner, "BEYOND", expiration_date=TODAY + timedelta(days=61))

        report = await build_report(db_session, agency.id, ReportType.EXPIRATIONS, now=NOW)

        assert [(row.policy_number, row.carrier, row.days_until_expiry) for row in report.expiring_policies] == [
            ("WITHOUT", "Unknown", 7),
            ("WITH", "State Farm", 45),
        ]

    async def test_commissions(self, db_session, agency, make_client, make_policy):
        owner = await make_client(agency)
        await make_policy(
            agency, owner, "LIFE", line_of_business=LineOfBusiness.LIFE, premium=Decimal("1000.00"),
            created_at=NOW - timedelta(days=40),
        )
        await make_policy(
            agency, owner, "HOME", line_of_business=LineOfBusiness.HOMEOWNERS, premium=Decimal("2000.00"),
            created_at=NOW - timedelta(days=20),
        )
        await make_policy(agency, owner, "AUTO", premium=Decimal("1000.00"), created_at=NOW - timedelta(days=1))

        report = await build_report(db_session, agency.id, ReportType.COMMISSIONS, TimeRange.QUARTER, now=NOW)

        rows = {row.policy_number: row for row in report.commissions}
        assert rows["LIFE"].commission == 500.0 and rows["LIFE"].status == "paid"
        assert rows["HOME"].commission == 300.0 and rows["HOME"].status == "processing"
        assert rows["AUTO"].commission == 120.0 and rows["AUTO"].status == "pending"
        assert report.summary.total_earned == 500.0
        assert report.summary.pending_payment == 420.0
        assert report.summary.avg_rate == 25.7
        assert report.summary.total_policies == 3

    async def test_production(self, db_session, agency, make_client, make_policy):
        owner = await make_client(agency)
        for index in range(4):
            await make_policy(agency, owner, f"H-{index}", line_of_business=LineOfBusiness.HEALTH, premium=Decimal("500.00"))
        await make_policy(agency, owner, "L-1", line_of_business=LineOfBusiness.LIFE, premium=Decimal("2000.00"))
        await make_policy(agency, owner, "GONE", status=PolicyStatus.CANCELLED, updated_at=NOW - timedelta(days=1))

        report = await build_report(db_session, agency.id, ReportType.PRODUCTION, now=NOW)
        production = report.production

        assert production.renewals.count == 4
        assert production.new_business.count == 1
        assert production.renewals.premium == 2800.0
        assert production.new_business.premium == 1200.0
        assert production.lapsed.count == 1
        # 5 active, 1 lapsed
        assert production.retention_rate == 83.3
        shares = {row.type: (row.count, row.percentage) for row in production.production_by_type}
        assert shares == {"health": (4, 50), "life": (1, 50)}

    async def test_empty_production_retention_is_full(self, db_session, agency):
        report = await build_report(db_session, agency.id, ReportType.PRODUCTION, now=NOW)

        assert report.production.retention_rate == 100.0
        assert report.production.production_by_type == []

    async def test_invalid_report_type(self, client, agent_headers):
        response = await client.get("/reports", params={"type": "gossip"}, headers=agent_headers)

        assert response.status_code == 400

    async def test_report_endpoint_defaults_to_overview(self, client, agent_headers):
        response = await client.get("/reports", headers=agent_headers)

        assert response.status_code == 200
        assert response.json()["type"] == "overview"
        assert "overview" in response.json()


@pytest.mark.parametrize(
    "day, expected",
    [
        (date(2024, 6, 15), date(2024, 7, 15)),
        (date(2024, 1, 31), date(2024, 2, 29)),
        (date(2023, 1, 31), date(2023, 2, 28)),
        (date(2024, 12, 31), date(2025, 1, 31)),
    ],
)
def test_one_month_later(day, expected):
    assert one_month_later(day) == expected
