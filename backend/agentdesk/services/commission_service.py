# Overview: Commission lifecycle controller; create/update/approve/reject/pay/delete over the store adapter.

"""
Commission Lifecycle Service

================================================================================
PURPOSE: Own the commission state machine and keep derived amounts consistent
================================================================================

STATE MACHINE:
    pending -> approved -> paid
    pending -> rejected
    pending -> paid          (payment recorded without a separate approval)
    approved -> rejected     (correcting an approval before payment)

    rejected and paid are terminal.

POLICY:
- The table above is enforced when COMMISSION_ENFORCE_TRANSITIONS is on
  (the default). Paid records are then also read-only.
- With the flag off every transition is allowed, reproducing the legacy
  console behaviour. Deletion is allowed at any status either way.

DERIVED FIELDS:
- commission_amount / final_commission are recalculated whenever any of
  sale_amount, commission_rate, split_percentage is written, and are
  written in the same commit as their inputs.

Every entry point resolves the caller's tenant once and returns an
OperationResult; see services/results.py.
================================================================================
"""

from __future__ import annotations

from flask import current_app

from ..models import Agent, Lead, Property
from ..time_utils import today
from ..validation import (
    MONETARY_INPUTS,
    ValidationError,
    parse_id,
    parse_revision,
    parse_text,
    validate_commission_payload,
    validate_payment_details,
)
from . import commission_store, ledger_service
from .commission_calculator import derive_stored_amounts
from .commission_store import CommissionFilters
from .ledger_service import EventDraft
from .results import CommissionError, ErrorKind, OperationResult, public_operation
from .tenant_service import resolve_context


TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"approved", "rejected", "paid"}),
    "approved": frozenset({"paid", "rejected"}),
    "rejected": frozenset(),
    "paid": frozenset(),
}

# Statuses whose records may still be edited under the enforced policy
EDITABLE_STATUSES = frozenset({"pending", "approved", "rejected"})

# UI views refreshed after a successful mutation
LIST_VIEW = "/agents/commissions"
MANAGER_VIEW = "/agents/manager"


class InvalidTransition(CommissionError):
    """
    Raised when a lifecycle transition violates the transition table.

    This is a domain error, not a technical error.
    """
    kind = ErrorKind.INVALID_TRANSITION
    default_message = "Invalid commission status transition"


def detail_view(commission_id: int) -> str:
    return f"{LIST_VIEW}/{commission_id}"


def _views(commission_id: int) -> tuple[str, ...]:
    return (LIST_VIEW, detail_view(commission_id), MANAGER_VIEW)


def transitions_enforced() -> bool:
    return bool(current_app.config.get("COMMISSION_ENFORCE_TRANSITIONS", True))


def can_transition(from_status: str, to_status: str) -> bool:
    """
    Check a transition against the table.

    Same-state transitions are not in the table: approving an approved
    record is rejected rather than silently re-stamping approval fields.
    """
    return to_status in TRANSITIONS.get(from_status, frozenset())


def _require_transition(record, to_status: str) -> None:
    if not transitions_enforced():
        return
    if not can_transition(record.status, to_status):
        raise InvalidTransition(
            f"Cannot move commission {record.id} from '{record.status}' to '{to_status}'"
        )


def _require_editable(record) -> None:
    if transitions_enforced() and record.status not in EDITABLE_STATUSES:
        raise InvalidTransition(
            f"Cannot edit commission {record.id}: status is '{record.status}'"
        )


def _require_references(ctx, fields: dict) -> None:
    """Referenced agent/property/lead must live in the caller's organization."""
    checks = (("agent_id", Agent), ("property_id", Property), ("lead_id", Lead))
    for key, model in checks:
        ref_id = fields.get(key)
        if ref_id is None:
            continue
        if not commission_store.reference_exists(ctx, model, ref_id):
            raise ValidationError(f"{key} {ref_id} not found")


def _log_transition(ctx, record, action: str) -> None:
    current_app.logger.info(
        "Commission %s %s (org=%s, profile=%s, status=%s)",
        record.id, action, ctx.org_id, ctx.profile_id, record.status,
    )


# ================================================================================
# MUTATIONS
# ================================================================================

@public_operation("create commission")
def create_commission(caller_identity, data: dict) -> OperationResult:
    """
    Create a pending, unpaid commission with derived amounts.

    Required: agent_id, sale_amount (> 0), commission_rate, transaction_date.
    split_percentage defaults to 100, transaction_type to "sale".
    """
    ctx = resolve_context(caller_identity)
    fields = validate_commission_payload(data, partial=False)
    _require_references(ctx, fields)

    fields.update(derive_stored_amounts(
        fields["sale_amount_cents"],
        fields["commission_rate_bps"],
        fields["split_percentage_bps"],
    ))
    fields["status"] = "pending"
    fields["payment_status"] = "unpaid"

    record = commission_store.insert_commission(ctx, fields, event=EventDraft("CREATED"))
    _log_transition(ctx, record, "created")
    return OperationResult.ok(record, invalidates=_views(record.id))


@public_operation("update commission")
def update_commission(
    caller_identity,
    commission_id: int,
    data: dict,
    *,
    expected_version: int | None = None,
) -> OperationResult:
    """
    Patch descriptive fields and/or monetary inputs.

    Monetary inputs present in `data` are merged with the stored values and
    the derived amounts are recalculated from the merged set, so the record
    is always internally consistent. Pass expected_version (the version_id
    the caller read) to fail fast on concurrent edits.
    """
    ctx = resolve_context(caller_identity)
    expected_version = parse_revision("expected_version", expected_version)
    fields = validate_commission_payload(data, partial=True)
    if not fields:
        raise ValidationError("No updatable fields supplied")

    record = commission_store.get_commission(ctx, commission_id)
    _require_editable(record)
    _require_references(ctx, fields)

    if MONETARY_INPUTS.intersection(data.keys()):
        sale_cents = fields.get("sale_amount_cents", record.sale_amount_cents)
        rate_bps = fields.get("commission_rate_bps", record.commission_rate_bps)
        split_bps = fields.get("split_percentage_bps", record.split_percentage_bps)
        fields["sale_amount_cents"] = sale_cents
        fields["commission_rate_bps"] = rate_bps
        fields["split_percentage_bps"] = split_bps
        fields.update(derive_stored_amounts(sale_cents, rate_bps, split_bps))

    record = commission_store.update_commission(
        ctx,
        commission_id,
        fields,
        expected_version=expected_version,
        event=EventDraft("UPDATED", from_status=record.status, payload={"fields": sorted(fields)}),
    )
    _log_transition(ctx, record, "updated")
    return OperationResult.ok(record, invalidates=_views(record.id))


@public_operation("approve commission")
def approve_commission(caller_identity, commission_id: int) -> OperationResult:
    ctx = resolve_context(caller_identity)
    record = commission_store.get_commission(ctx, commission_id)
    _require_transition(record, "approved")

    from_status = record.status
    record = commission_store.update_commission(
        ctx,
        commission_id,
        {
            "status": "approved",
            "approval_date": today(),
            "approved_by_profile_id": ctx.profile_id,
        },
        event=EventDraft("APPROVED", from_status=from_status),
    )
    _log_transition(ctx, record, "approved")
    return OperationResult.ok(record, invalidates=_views(record.id))


@public_operation("reject commission")
def reject_commission(caller_identity, commission_id: int, reason: str | None = None) -> OperationResult:
    """Reject with an optional dispute reason. Approval fields are kept as history."""
    ctx = resolve_context(caller_identity)
    dispute_reason = parse_text("reason", reason)
    record = commission_store.get_commission(ctx, commission_id)
    _require_transition(record, "rejected")

    from_status = record.status
    record = commission_store.update_commission(
        ctx,
        commission_id,
        {"status": "rejected", "dispute_reason": dispute_reason},
        event=EventDraft("REJECTED", from_status=from_status, note=dispute_reason),
    )
    _log_transition(ctx, record, "rejected")
    return OperationResult.ok(record, invalidates=_views(record.id))


@public_operation("mark commission as paid")
def mark_commission_paid(caller_identity, commission_id: int, payment_details: dict) -> OperationResult:
    """
    Record a payment. Nothing is transferred; this only records that money moved.

    payment_details: payment_amount (>= 0), payment_method (required),
    payment_reference (optional), payment_date (defaults to today).
    """
    ctx = resolve_context(caller_identity)
    fields = validate_payment_details(payment_details)
    if fields["payment_date"] is None:
        fields["payment_date"] = today()

    record = commission_store.get_commission(ctx, commission_id)
    _require_transition(record, "paid")

    from_status = record.status
    fields["status"] = "paid"
    fields["payment_status"] = "paid"
    record = commission_store.update_commission(
        ctx,
        commission_id,
        fields,
        event=EventDraft(
            "PAID",
            from_status=from_status,
            payload={"payment_method": fields["payment_method"], "payment_amount_cents": fields["payment_amount_cents"]},
        ),
    )
    _log_transition(ctx, record, "marked paid")
    return OperationResult.ok(record, invalidates=_views(record.id))


@public_operation("delete commission")
def delete_commission(caller_identity, commission_id: int) -> OperationResult:
    """Permanently remove a commission (any status). The audit trail keeps a DELETED event."""
    ctx = resolve_context(caller_identity)
    record = commission_store.get_commission(ctx, commission_id)
    from_status = record.status
    commission_store.delete_commission(
        ctx,
        commission_id,
        event=EventDraft("DELETED", from_status=from_status),
    )
    current_app.logger.info("Commission %s deleted (org=%s, profile=%s)", commission_id, ctx.org_id, ctx.profile_id)
    return OperationResult.ok(None, invalidates=_views(commission_id))


# ================================================================================
# READS
# ================================================================================

@public_operation("fetch commission")
def get_commission(caller_identity, commission_id: int) -> OperationResult:
    ctx = resolve_context(caller_identity)
    return OperationResult.ok(commission_store.get_commission(ctx, commission_id))


@public_operation("fetch commissions")
def list_commissions(caller_identity, filters=None, *, limit: int | None = None) -> OperationResult:
    """
    filters: CommissionFilters or a mapping with agent_id, status,
    start_date, end_date (dates inclusive on transaction_date).
    """
    ctx = resolve_context(caller_identity)
    if not isinstance(filters, CommissionFilters):
        filters = CommissionFilters.from_mapping(filters)
    return OperationResult.ok(commission_store.list_commissions(ctx, filters, limit=limit))


@public_operation("fetch pending commissions")
def list_pending_commissions(caller_identity, limit: int | None = None) -> OperationResult:
    """Manager approval queue: pending records in the caller's organization, newest first."""
    ctx = resolve_context(caller_identity)
    if limit is None:
        limit = current_app.config.get("PENDING_QUEUE_LIMIT", 10)
    if limit <= 0:
        raise ValidationError("limit must be positive")
    return OperationResult.ok(
        commission_store.list_commissions(ctx, CommissionFilters(status="pending"), limit=limit)
    )


@public_operation("fetch commission history")
def list_commission_events(caller_identity, commission_id) -> OperationResult:
    ctx = resolve_context(caller_identity)
    commission_id = parse_id("commission_id", commission_id, required=True)
    return OperationResult.ok(ledger_service.list_commission_events(ctx, commission_id))
