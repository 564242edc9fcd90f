# Overview: Pytest coverage for commission aggregation and the agent dashboard figures.

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from agentdesk.extensions import db
from agentdesk.models import Commission
from agentdesk.services import commission_service, commission_stats_service, commission_store
from agentdesk.services.commission_stats_service import CommissionStats, summarize
from agentdesk.services.results import ErrorKind


def _pay(identity, commission_id):
    result = commission_service.mark_commission_paid(
        identity, commission_id, {"payment_amount": 1, "payment_method": "cash"}
    )
    assert result.success, result.error


def _naive_rescan(org_id, **filters):
    """Independent re-scan of the filtered set, straight off the table."""
    q = db.session.query(Commission).filter(Commission.org_id == org_id)
    if filters.get("agent_id"):
        q = q.filter(Commission.agent_id == filters["agent_id"])
    if filters.get("start_date"):
        q = q.filter(Commission.transaction_date >= filters["start_date"])
    if filters.get("end_date"):
        q = q.filter(Commission.transaction_date <= filters["end_date"])
    rows = q.all()
    return {
        "total": len(rows),
        "total_amount": sum((r.final_commission for r in rows), Decimal("0.00")),
        "pending": sum(1 for r in rows if r.status == "pending"),
        "paid_amount": sum((r.final_commission for r in rows if r.status == "paid"), Decimal("0.00")),
    }


class TestSummarize:

    def test_empty(self):
        assert summarize([]) == CommissionStats()

    def test_rejected_counts_in_total_only(self):
        stats = summarize([("pending", 100), ("rejected", 250), ("approved", 50)])

        assert stats.total_commissions == 3
        assert stats.pending_commissions == 1
        assert stats.approved_commissions == 1
        assert stats.paid_commissions == 0
        assert stats.total_amount == Decimal("4.00")
        assert stats.pending_amount == Decimal("1.00")
        assert stats.paid_amount == Decimal("0.00")

    def test_to_dict_uses_plain_numbers(self):
        data = summarize([("paid", 123456)]).to_dict()
        assert data["paid_amount"] == 1234.56
        assert data["paid_commissions"] == 1


class TestComputeStats:

    def test_three_records_scenario(self, tenant_a, make_commission):
        identity, agent = tenant_a
        make_commission(identity, agent, sale_amount=100000, commission_rate=1)
        second = make_commission(identity, agent, sale_amount=50000, commission_rate=1)
        third = make_commission(identity, agent, sale_amount=50000, commission_rate=1)
        _pay(identity, second.id)
        _pay(identity, third.id)

        result = commission_stats_service.compute_stats(identity)

        assert result.success
        assert result.data.to_dict() == {
            "total_commissions": 3,
            "pending_commissions": 1,
            "approved_commissions": 0,
            "paid_commissions": 2,
            "total_amount": 2000.0,
            "pending_amount": 1000.0,
            "paid_amount": 1000.0,
        }

    def test_empty_tenant(self, tenant_a):
        identity, _ = tenant_a
        assert commission_stats_service.compute_stats(identity).data == CommissionStats()

    @pytest.mark.parametrize(
        "filters",
        [
            {},
            {"start_date": "2026-09-01", "end_date": "2026-09-30"},
            {"start_date": "2026-10-01"},
            {"agent": True},
        ],
    )
    def test_matches_naive_rescan(self, tenant_a, org_a, agent_a2, make_commission, filters):
        identity, agent = tenant_a
        seeds = [
            (agent, "2026-08-20", "1000.10", "pending"),
            (agent, "2026-09-05", "2500.00", "approved"),
            (agent_a2, "2026-09-12", "333.33", "paid"),
            (agent, "2026-09-30", "12000.00", "rejected"),
            (agent_a2, "2026-10-01", "777.77", "paid"),
            (agent, "2026-10-03", "45000.00", "pending"),
        ]
        for owner, tx_date, sale, status in seeds:
            record = make_commission(
                identity, owner, sale_amount=sale, commission_rate="2.5", split_percentage="60", transaction_date=tx_date
            )
            if status == "approved":
                commission_service.approve_commission(identity, record.id)
            elif status == "rejected":
                commission_service.reject_commission(identity, record.id, "not ours")
            elif status == "paid":
                _pay(identity, record.id)

        query = dict(filters)
        if query.pop("agent", False):
            query["agent_id"] = agent_a2.id

        stats = commission_stats_service.compute_stats(identity, query).data
        expected = _naive_rescan(org_a.id, **query)

        assert stats.total_commissions == expected["total"]
        assert stats.pending_commissions == expected["pending"]
        assert stats.total_amount == expected["total_amount"]
        assert stats.paid_amount == expected["paid_amount"]
        # Partitions never exceed the whole
        assert stats.pending_commissions + stats.approved_commissions + stats.paid_commissions <= stats.total_commissions
        assert stats.pending_amount + stats.paid_amount <= stats.total_amount

    def test_status_filter_is_ignored(self, tenant_a, make_commission):
        identity, agent = tenant_a
        make_commission(identity, agent)
        _pay(identity, make_commission(identity, agent).id)

        stats = commission_stats_service.compute_stats(identity, {"status": "paid"}).data
        assert stats.total_commissions == 2
        assert stats.pending_commissions == 1

    def test_invalid_date_range(self, tenant_a):
        identity, _ = tenant_a
        result = commission_stats_service.compute_stats(identity, {"start_date": "2026-12-01", "end_date": "2026-01-01"})
        assert result.error_kind == ErrorKind.VALIDATION_ERROR


class TestAgentDashboard:

    def test_figures(self, tenant_a, agent_a2, make_commission):
        identity, agent = tenant_a
        make_commission(identity, agent, sale_amount=100000, commission_rate=3)
        approved = make_commission(identity, agent, sale_amount=200000, commission_rate=3, split_percentage=50)
        paid = make_commission(identity, agent, sale_amount=300000, commission_rate=2)
        make_commission(identity, agent_a2, sale_amount=999999, commission_rate=5)
        commission_service.approve_commission(identity, approved.id)
        _pay(identity, paid.id)

        # Everything was created today, so a month start far in the past covers it all
        stats = commission_stats_service.agent_dashboard_stats(identity, agent.id, today=date(2000, 1, 15)).data

        assert stats.agent_id == agent.id
        assert stats.total_deals == 3
        assert stats.active_deals == 1
        assert stats.total_commission == Decimal("9000.00")
        assert stats.paid_commission == Decimal("6000.00")
        assert stats.monthly_commission == Decimal("15000.00")
        assert stats.average_deal_size == Decimal("200000.00")

    def test_monthly_excludes_earlier_months(self, tenant_a, make_commission):
        identity, agent = tenant_a
        make_commission(identity, agent)

        stats = commission_stats_service.agent_dashboard_stats(identity, agent.id, today=date(2999, 1, 1)).data

        assert stats.monthly_commission == Decimal("0.00")
        assert stats.total_deals == 1

    def test_agent_without_records(self, tenant_a):
        identity, agent = tenant_a
        stats = commission_stats_service.agent_dashboard_stats(identity, agent.id).data

        assert stats.to_dict() == {
            "agent_id": agent.id,
            "active_deals": 0,
            "total_deals": 0,
            "monthly_commission": 0.0,
            "total_commission": 0.0,
            "paid_commission": 0.0,
            "average_deal_size": 0.0,
        }

    def test_foreign_agent_is_not_found(self, tenant_a, tenant_b):
        identity_a, _ = tenant_a
        _, agent_b = tenant_b

        result = commission_stats_service.agent_dashboard_stats(identity_a, agent_b.id)

        assert result.error_kind == ErrorKind.NOT_FOUND
        assert result.error == "Agent not found"

    def test_aware_timestamps_are_converted_to_utc(self, tenant_a, monkeypatch):
        """01:30 on Oct 1 at +05:00 is still September in UTC."""
        identity, agent = tenant_a
        plus_five = timezone(timedelta(hours=5))
        rows = [
            ("pending", 100000, 3000, 3000, datetime(2026, 10, 1, 1, 30, tzinfo=plus_five)),
            ("pending", 100000, 2000, 2000, datetime(2026, 10, 1, 6, 0, tzinfo=plus_five)),
        ]
        monkeypatch.setattr(commission_store, "fetch_agent_rows", lambda ctx, agent_id: rows)

        stats = commission_stats_service.agent_dashboard_stats(identity, agent.id, today=date(2026, 10, 15)).data

        assert stats.monthly_commission == Decimal("20.00")
        assert stats.total_deals == 2
