# Overview: Flask API routes for commission ledger operations; parses input and returns JSON responses.

"""
Commission Ledger API Routes

Every response carries the discriminated result shape:

    {"success": true, "data": ..., "invalidates": [...]}
    {"success": false, "error": "...", "error_kind": "..."}

`invalidates` lists the UI views the client should re-fetch after a
successful mutation. Role gating is done upstream; these routes only
require a caller identity.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_identity
from ..services import commission_service, commission_stats_service
from ..services.results import ErrorKind, OperationResult


commissions_bp = Blueprint("commissions", __name__, url_prefix="/api/commissions")


HTTP_STATUS_BY_KIND = {
    ErrorKind.NOT_AUTHENTICATED: 401,
    ErrorKind.PROFILE_NOT_FOUND: 403,
    ErrorKind.VALIDATION_ERROR: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_TRANSITION: 409,
    ErrorKind.CONCURRENCY_CONFLICT: 409,
    ErrorKind.STORE_UNAVAILABLE: 503,
    ErrorKind.STORE_ERROR: 500,
    ErrorKind.INTERNAL_ERROR: 500,
}


def _respond(result: OperationResult, serialize, success_status: int = 200):
    if result.is_err:
        status = HTTP_STATUS_BY_KIND.get(result.error_kind, 500)
        return jsonify({
            "success": False,
            "error": result.error,
            "error_kind": result.error_kind.value,
        }), status

    return jsonify({
        "success": True,
        "data": serialize(result.data),
        "invalidates": list(result.invalidates),
    }), success_status


def _commission(record):
    return record.to_dict(include_related=True)


def _commissions(records):
    return [r.to_dict(include_related=True) for r in records]


def _json_body() -> dict:
    body = request.get_json(silent=True)
    return body if body is not None else {}


# =============================================================================
# READS
# =============================================================================

@commissions_bp.get("")
@require_identity
def list_commissions_route():
    """
    List commissions, newest first.

    Query params: agent_id, status, start_date, end_date (YYYY-MM-DD,
    inclusive on transaction_date), limit (default and max
    COMMISSION_LIST_MAX_LIMIT).
    """
    max_limit = current_app.config.get("COMMISSION_LIST_MAX_LIMIT", 500)
    limit = request.args.get("limit", default=max_limit, type=int)
    limit = max(1, min(limit, max_limit))

    filters = {k: request.args.get(k) for k in ("agent_id", "status", "start_date", "end_date")}
    result = commission_service.list_commissions(g.caller_identity, filters, limit=limit)
    return _respond(result, _commissions)


@commissions_bp.get("/stats")
@require_identity
def commission_stats_route():
    """Counts and totals per status. Query params: agent_id, start_date, end_date."""
    filters = {k: request.args.get(k) for k in ("agent_id", "start_date", "end_date")}
    result = commission_stats_service.compute_stats(g.caller_identity, filters)
    return _respond(result, lambda stats: stats.to_dict())


@commissions_bp.get("/pending")
@require_identity
def pending_commissions_route():
    """Manager approval queue."""
    limit = request.args.get("limit", type=int)
    result = commission_service.list_pending_commissions(g.caller_identity, limit)
    return _respond(result, _commissions)


@commissions_bp.get("/agents/<int:agent_id>/dashboard")
@require_identity
def agent_dashboard_route(agent_id: int):
    result = commission_stats_service.agent_dashboard_stats(g.caller_identity, agent_id)
    return _respond(result, lambda stats: stats.to_dict())


@commissions_bp.get("/<int:commission_id>")
@require_identity
def get_commission_route(commission_id: int):
    result = commission_service.get_commission(g.caller_identity, commission_id)
    return _respond(result, _commission)


@commissions_bp.get("/<int:commission_id>/events")
@require_identity
def commission_events_route(commission_id: int):
    result = commission_service.list_commission_events(g.caller_identity, commission_id)
    return _respond(result, lambda events: [e.to_dict() for e in events])


# =============================================================================
# MUTATIONS
# =============================================================================

@commissions_bp.post("")
@require_identity
def create_commission_route():
    """
    Create a commission (status: pending, payment_status: unpaid).

    Request body:
    {
        "agent_id": 12,
        "transaction_type": "sale",       (optional, default: sale)
        "property_id": 3,                 (optional)
        "lead_id": 7,                     (optional)
        "deal_description": "...",        (optional)
        "sale_amount": 200000,
        "commission_rate": 3,
        "split_percentage": 50,           (optional, default: 100)
        "transaction_date": "2026-10-01",
        "expected_payment_date": "...",   (optional)
        "notes": "..."                    (optional)
    }

    Returns:
        201: Commission created
        400: Invalid input
    """
    result = commission_service.create_commission(g.caller_identity, _json_body())
    return _respond(result, _commission, success_status=201)


@commissions_bp.patch("/<int:commission_id>")
@require_identity
def update_commission_route(commission_id: int):
    """
    Patch a commission. Include "expected_version" (the version_id last
    read) to get a 409 instead of overwriting a concurrent edit.
    """
    body = dict(_json_body())
    expected_version = body.pop("expected_version", None)
    result = commission_service.update_commission(
        g.caller_identity, commission_id, body, expected_version=expected_version
    )
    return _respond(result, _commission)


@commissions_bp.delete("/<int:commission_id>")
@require_identity
def delete_commission_route(commission_id: int):
    result = commission_service.delete_commission(g.caller_identity, commission_id)
    return _respond(result, lambda _: None)


@commissions_bp.post("/<int:commission_id>/approve")
@require_identity
def approve_commission_route(commission_id: int):
    result = commission_service.approve_commission(g.caller_identity, commission_id)
    return _respond(result, _commission)


@commissions_bp.post("/<int:commission_id>/reject")
@require_identity
def reject_commission_route(commission_id: int):
    """
    Request body (optional):
    {
        "reason": "duplicate deal"
    }
    """
    reason = _json_body().get("reason")
    result = commission_service.reject_commission(g.caller_identity, commission_id, reason)
    return _respond(result, _commission)


@commissions_bp.post("/<int:commission_id>/pay")
@require_identity
def mark_commission_paid_route(commission_id: int):
    """
    Record a payment.

    Request body:
    {
        "payment_amount": 3000,
        "payment_method": "bank_transfer",
        "payment_reference": "TRX-1",     (optional)
        "payment_date": "2026-10-18"      (optional, default: today)
    }
    """
    result = commission_service.mark_commission_paid(g.caller_identity, commission_id, _json_body())
    return _respond(result, _commission)
