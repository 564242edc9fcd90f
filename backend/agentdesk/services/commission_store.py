# Overview: Store adapter for commission records; the only module that queries the commissions table.

"""
Commission Record Store Adapter

Every function takes the caller's TenantContext as its first argument and
filters by ctx.org_id. There is no unscoped read path: a record that
belongs to another organization is indistinguishable from one that does
not exist.

Writes are single-row and committed here. No locking: concurrent writers
are detected by the optimistic revision (Commission.version_id).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import Any

from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import Commission
from ..validation import parse_date, parse_id, validate_status, ValidationError
from .concurrency import check_expected_version, commit_session, run_store_call
from .ledger_service import EventDraft, append_commission_event
from .results import CommissionError, ErrorKind


class NotFound(CommissionError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Commission not found"


@dataclass(frozen=True)
class CommissionFilters:
    agent_id: int | None = None
    status: str | None = None
    start_date: date | None = None  # inclusive, on transaction_date
    end_date: date | None = None    # inclusive, on transaction_date

    @classmethod
    def from_mapping(cls, raw: dict | None) -> "CommissionFilters":
        """Build filters from loosely-typed input (query args, CLI options)."""
        raw = raw or {}
        status = raw.get("status")
        filters = cls(
            agent_id=parse_id("agent_id", raw.get("agent_id"), required=False),
            status=validate_status(status) if status not in (None, "") else None,
            start_date=parse_date("start_date", raw.get("start_date"), required=False),
            end_date=parse_date("end_date", raw.get("end_date"), required=False),
        )
        if filters.start_date and filters.end_date and filters.start_date > filters.end_date:
            raise ValidationError("start_date must be on or before end_date")
        return filters

    def without_status(self) -> "CommissionFilters":
        return replace(self, status=None)


def _scoped(ctx):
    return db.session.query(Commission).filter(Commission.org_id == ctx.org_id)


def _apply_filters(query, filters: CommissionFilters):
    if filters.agent_id is not None:
        query = query.filter(Commission.agent_id == filters.agent_id)
    if filters.status is not None:
        query = query.filter(Commission.status == filters.status)
    if filters.start_date is not None:
        query = query.filter(Commission.transaction_date >= filters.start_date)
    if filters.end_date is not None:
        query = query.filter(Commission.transaction_date <= filters.end_date)
    return query


def list_commissions(ctx, filters: CommissionFilters | None = None, *, limit: int | None = None) -> list[Commission]:
    """Newest first. Related rows are eager-loaded for display only."""
    filters = filters or CommissionFilters()

    def _op():
        q = _apply_filters(_scoped(ctx), filters).options(
            joinedload(Commission.agent),
            joinedload(Commission.deal_property),
            joinedload(Commission.lead),
            joinedload(Commission.approver),
        )
        q = q.order_by(Commission.created_at.desc(), Commission.id.desc())
        if limit is not None:
            q = q.limit(limit)
        return q.all()

    return run_store_call("list commissions", _op)


def get_commission(ctx, commission_id: int) -> Commission:
    record = run_store_call(
        "get commission",
        lambda: _scoped(ctx).filter(Commission.id == commission_id).first(),
    )
    if record is None:
        raise NotFound()
    return record


def fetch_status_amounts(ctx, filters: CommissionFilters) -> list[tuple[str, int]]:
    """Narrow select used by the aggregator: (status, final_commission_cents)."""
    def _op():
        q = db.session.query(Commission.status, Commission.final_commission_cents).filter(
            Commission.org_id == ctx.org_id
        )
        return [(row[0], row[1]) for row in _apply_filters(q, filters).all()]

    return run_store_call("fetch commission totals", _op)


def fetch_agent_rows(ctx, agent_id: int) -> list[tuple]:
    """(status, sale_amount_cents, commission_amount_cents, final_commission_cents, created_at) per record."""
    def _op():
        q = db.session.query(
            Commission.status,
            Commission.sale_amount_cents,
            Commission.commission_amount_cents,
            Commission.final_commission_cents,
            Commission.created_at,
        ).filter(Commission.org_id == ctx.org_id, Commission.agent_id == agent_id)
        return [tuple(row) for row in q.all()]

    return run_store_call("fetch agent commissions", _op)


def reference_exists(ctx, model, ref_id: int) -> bool:
    """Tenant-scoped existence check for agent/property/lead references."""
    return run_store_call(
        f"check {model.__tablename__} reference",
        lambda: db.session.query(model.id).filter(model.id == ref_id, model.org_id == ctx.org_id).first() is not None,
    )


def _apply_fields(record: Commission, fields: dict[str, Any]) -> None:
    for key, value in fields.items():
        if key in ("id", "org_id", "created_at", "version_id"):
            raise ValueError(f"{key} is not writable")
        setattr(record, key, value)


def insert_commission(ctx, fields: dict[str, Any], *, event: EventDraft | None = None) -> Commission:
    """id, created_at and the first revision are assigned here; org_id always comes from ctx."""
    record = Commission(org_id=ctx.org_id)
    _apply_fields(record, fields)

    def _op():
        db.session.add(record)
        db.session.flush()
        if event is not None:
            append_commission_event(ctx, record, event)

    run_store_call("insert commission", _op)
    commit_session("insert commission")
    return record


def update_commission(
    ctx,
    commission_id: int,
    fields: dict[str, Any],
    *,
    expected_version: int | None = None,
    event: EventDraft | None = None,
) -> Commission:
    record = get_commission(ctx, commission_id)
    check_expected_version(record, expected_version)
    _apply_fields(record, fields)

    def _op():
        db.session.flush()
        if event is not None:
            append_commission_event(ctx, record, event)

    run_store_call("update commission", _op)
    commit_session("update commission")
    return record


def delete_commission(ctx, commission_id: int, *, event: EventDraft | None = None) -> None:
    record = get_commission(ctx, commission_id)

    def _op():
        if event is not None:
            append_commission_event(ctx, record, event)
        db.session.delete(record)
        db.session.flush()

    run_store_call("delete commission", _op)
    commit_session("delete commission")
