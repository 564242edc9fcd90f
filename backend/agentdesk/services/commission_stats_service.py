# Overview: Service-layer reporting over commission records; counts and totals per status.

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal

from ..models import Agent
from ..money import as_json_number, from_cents
from ..time_utils import start_of_month, today as utc_today
from ..validation import parse_id
from . import commission_store
from .commission_store import CommissionFilters, NotFound
from .results import OperationResult, public_operation
from .tenant_service import resolve_context

"""
Aggregates are computed in Python over a narrow (status, amount) select.

SCALABILITY: compute_stats is a full scan of the tenant's filtered record
set; there is no pagination or cap. Large tenants should narrow by agent
or date range.
"""

ZERO = Decimal("0.00")

# Statuses that count as commission earned by the agent
EARNED_STATUSES = frozenset({"approved", "paid"})


@dataclass(frozen=True)
class CommissionStats:
    total_commissions: int = 0
    pending_commissions: int = 0
    approved_commissions: int = 0
    paid_commissions: int = 0
    total_amount: Decimal = ZERO
    pending_amount: Decimal = ZERO
    paid_amount: Decimal = ZERO

    def to_dict(self) -> dict:
        return {
            "total_commissions": self.total_commissions,
            "pending_commissions": self.pending_commissions,
            "approved_commissions": self.approved_commissions,
            "paid_commissions": self.paid_commissions,
            "total_amount": as_json_number(self.total_amount),
            "pending_amount": as_json_number(self.pending_amount),
            "paid_amount": as_json_number(self.paid_amount),
        }


@dataclass(frozen=True)
class AgentDashboardStats:
    agent_id: int
    active_deals: int
    total_deals: int
    monthly_commission: Decimal
    total_commission: Decimal
    paid_commission: Decimal
    average_deal_size: Decimal

    def to_dict(self) -> dict:
        return {
            "agent_id": self.agent_id,
            "active_deals": self.active_deals,
            "total_deals": self.total_deals,
            "monthly_commission": as_json_number(self.monthly_commission),
            "total_commission": as_json_number(self.total_commission),
            "paid_commission": as_json_number(self.paid_commission),
            "average_deal_size": as_json_number(self.average_deal_size),
        }


def _as_naive_utc(dt: datetime) -> datetime:
    """Aware timestamps (e.g. PostgreSQL timestamptz) are converted, not just stripped."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def summarize(rows: list[tuple[str, int]]) -> CommissionStats:
    """
    Partition (status, final_commission_cents) rows.

    total_amount covers every row regardless of status, rejected included:
    it is the total commission value in flight, not the amount earned.
    """
    counts = {"pending": 0, "approved": 0, "paid": 0}
    cents = {"pending": 0, "paid": 0}
    total_cents = 0

    for status, final_cents in rows:
        amount = final_cents or 0
        total_cents += amount
        if status in counts:
            counts[status] += 1
        if status in cents:
            cents[status] += amount

    return CommissionStats(
        total_commissions=len(rows),
        pending_commissions=counts["pending"],
        approved_commissions=counts["approved"],
        paid_commissions=counts["paid"],
        total_amount=from_cents(total_cents),
        pending_amount=from_cents(cents["pending"]),
        paid_amount=from_cents(cents["paid"]),
    )


@public_operation("fetch commission stats")
def compute_stats(caller_identity, filters=None) -> OperationResult:
    """
    Counts and totals for the caller's organization.

    filters: agent_id, start_date, end_date (a status filter is ignored;
    the result is partitioned by status).
    """
    ctx = resolve_context(caller_identity)
    if not isinstance(filters, CommissionFilters):
        filters = CommissionFilters.from_mapping(filters)
    rows = commission_store.fetch_status_amounts(ctx, filters.without_status())
    return OperationResult.ok(summarize(rows))


@public_operation("fetch agent dashboard stats")
def agent_dashboard_stats(caller_identity, agent_id, *, today: date | None = None) -> OperationResult:
    """
    Per-agent dashboard figures.

    - active_deals: pending records
    - monthly_commission: commission_amount of records created since the
      first of the current month
    - total_commission: final_commission of approved + paid records
    - paid_commission: final_commission of paid records
    - average_deal_size: mean sale_amount over all records
    """
    ctx = resolve_context(caller_identity)
    agent_id = parse_id("agent_id", agent_id, required=True)
    if not commission_store.reference_exists(ctx, Agent, agent_id):
        raise NotFound("Agent not found")

    month_start = start_of_month(today or utc_today())
    rows = commission_store.fetch_agent_rows(ctx, agent_id)

    active = 0
    monthly_cents = 0
    earned_cents = 0
    paid_cents = 0
    sales_cents = 0
    for status, sale_cents, commission_cents, final_cents, created_at in rows:
        sales_cents += sale_cents
        if status == "pending":
            active += 1
        if status in EARNED_STATUSES:
            earned_cents += final_cents
        if status == "paid":
            paid_cents += final_cents
        if created_at is not None and _as_naive_utc(created_at) >= month_start:
            monthly_cents += commission_cents

    average_cents = round(sales_cents / len(rows)) if rows else 0
    return OperationResult.ok(AgentDashboardStats(
        agent_id=agent_id,
        active_deals=active,
        total_deals=len(rows),
        monthly_commission=from_cents(monthly_cents),
        total_commission=from_cents(earned_cents),
        paid_commission=from_cents(paid_cents),
        average_deal_size=from_cents(average_cents),
    ))
