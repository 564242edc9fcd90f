from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from .models import COMMISSION_STATUSES, TRANSACTION_TYPES
from .money import (
    HUNDRED,
    MoneyFormatError,
    has_sub_cent_precision,
    percent_to_bps,
    to_cents,
    to_decimal,
)
from .services.results import CommissionError, ErrorKind
from .time_utils import parse_iso_date


# Maximum sale amount: $9,999,999,999.99
# Keeps cents inside BIGINT with headroom for the derived columns
MAX_SALE_AMOUNT = Decimal("9999999999.99")

MAX_TEXT_LENGTH = 5000
FULL_SPLIT_BPS = 10000


class ValidationError(CommissionError):
    """400-level input problem."""
    kind = ErrorKind.VALIDATION_ERROR
    default_message = "Invalid input"


@dataclass(frozen=True)
class CommissionFieldPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for create
    """
    writable_fields: frozenset[str]
    required_on_create: frozenset[str] = field(default_factory=frozenset)


COMMISSION_POLICY = CommissionFieldPolicy(
    writable_fields=frozenset({
        "agent_id",
        "transaction_type",
        "property_id",
        "lead_id",
        "deal_description",
        "sale_amount",
        "commission_rate",
        "split_percentage",
        "transaction_date",
        "expected_payment_date",
        "notes",
    }),
    required_on_create=frozenset({"agent_id", "sale_amount", "commission_rate", "transaction_date"}),
)

MONETARY_INPUTS = frozenset({"sale_amount", "commission_rate", "split_percentage"})


def parse_id(name: str, value: Any, *, required: bool) -> int | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{name} is required")
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer id")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
    else:
        raise ValidationError(f"{name} must be an integer id")
    if parsed <= 0:
        raise ValidationError(f"{name} must be a positive id")
    return parsed


def parse_revision(name: str, value: Any) -> int | None:
    """Optional optimistic revision: a positive integer, never truncated."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
    else:
        raise ValidationError(f"{name} must be an integer")
    if parsed <= 0:
        raise ValidationError(f"{name} must be a positive integer")
    return parsed


def parse_amount(name: str, value: Any, *, positive: bool) -> Decimal:
    """Money input: non-negative (or strictly positive), at most 2 decimal places."""
    if value is None:
        raise ValidationError(f"{name} is required")
    try:
        amount = to_decimal(value)
    except MoneyFormatError as e:
        raise ValidationError(f"{name} {e}")
    if positive and amount <= 0:
        raise ValidationError(f"{name} must be greater than 0")
    if amount < 0:
        raise ValidationError(f"{name} must be >= 0")
    if amount > MAX_SALE_AMOUNT:
        raise ValidationError(f"{name} cannot exceed {MAX_SALE_AMOUNT:,}")
    if has_sub_cent_precision(amount):
        raise ValidationError(f"{name} supports at most 2 decimal places")
    return amount


def parse_percent(name: str, value: Any) -> Decimal:
    """Percentage input in [0, 100], stored as basis points."""
    if value is None:
        raise ValidationError(f"{name} is required")
    try:
        pct = to_decimal(value)
    except MoneyFormatError as e:
        raise ValidationError(f"{name} {e}")
    if pct < 0 or pct > HUNDRED:
        raise ValidationError(f"{name} must be between 0 and 100")
    if has_sub_cent_precision(pct):
        raise ValidationError(f"{name} supports at most 2 decimal places")
    return pct


def parse_date(name: str, value: Any, *, required: bool) -> date | None:
    try:
        parsed = parse_iso_date(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an ISO-8601 date (YYYY-MM-DD)")
    if parsed is None and required:
        raise ValidationError(f"{name} is required")
    return parsed


def parse_text(name: str, value: Any, *, max_length: int = MAX_TEXT_LENGTH) -> str | None:
    """Optional free text; blank becomes None."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if len(text) > max_length:
        raise ValidationError(f"{name} exceeds max length {max_length}")
    return text


def parse_choice(name: str, value: Any, choices: tuple[str, ...]) -> str:
    text = str(value).strip().lower() if value is not None else ""
    if text not in choices:
        raise ValidationError(f"{name} must be one of: {', '.join(choices)}")
    return text


def validate_commission_payload(payload: Any, *, partial: bool) -> dict:
    """
    Validates + normalizes incoming commission input.

    Returns a patch dict keyed by model column (money in cents, percentages
    in basis points). Derived columns are never accepted from input.

    partial=False: create semantics (enforce required_on_create, defaults)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    for k in payload.keys():
        if k not in COMMISSION_POLICY.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")

    if not partial:
        missing = sorted(f for f in COMMISSION_POLICY.required_on_create if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    patch: dict = {}

    if "agent_id" in payload:
        patch["agent_id"] = parse_id("agent_id", payload["agent_id"], required=True)
    if "property_id" in payload:
        patch["property_id"] = parse_id("property_id", payload["property_id"], required=False)
    if "lead_id" in payload:
        patch["lead_id"] = parse_id("lead_id", payload["lead_id"], required=False)

    if "transaction_type" in payload and payload["transaction_type"] not in (None, ""):
        patch["transaction_type"] = parse_choice("transaction_type", payload["transaction_type"], TRANSACTION_TYPES)
    elif not partial:
        patch["transaction_type"] = "sale"

    if "sale_amount" in payload:
        patch["sale_amount_cents"] = to_cents(parse_amount("sale_amount", payload["sale_amount"], positive=True))
    if "commission_rate" in payload:
        patch["commission_rate_bps"] = percent_to_bps(parse_percent("commission_rate", payload["commission_rate"]))

    # Blank split means "not supplied", same as a blank id
    if payload.get("split_percentage") not in (None, ""):
        patch["split_percentage_bps"] = percent_to_bps(parse_percent("split_percentage", payload["split_percentage"]))
    elif not partial:
        patch["split_percentage_bps"] = FULL_SPLIT_BPS

    if "transaction_date" in payload:
        patch["transaction_date"] = parse_date("transaction_date", payload["transaction_date"], required=True)
    if "expected_payment_date" in payload:
        patch["expected_payment_date"] = parse_date(
            "expected_payment_date", payload["expected_payment_date"], required=False
        )

    if "deal_description" in payload:
        patch["deal_description"] = parse_text("deal_description", payload["deal_description"])
    if "notes" in payload:
        patch["notes"] = parse_text("notes", payload["notes"])

    return patch


def validate_payment_details(payload: Any) -> dict:
    """Payment recording input -> model columns. payment_date stays None when omitted."""
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    allowed = {"payment_amount", "payment_method", "payment_reference", "payment_date"}
    for k in payload.keys():
        if k not in allowed:
            raise ValidationError(f"Field not allowed: {k}")

    method = parse_text("payment_method", payload.get("payment_method"), max_length=64)
    if method is None:
        raise ValidationError("payment_method is required")

    return {
        "payment_amount_cents": to_cents(
            parse_amount("payment_amount", payload.get("payment_amount"), positive=False)
        ),
        "payment_method": method,
        "payment_reference": parse_text("payment_reference", payload.get("payment_reference"), max_length=128),
        "payment_date": parse_date("payment_date", payload.get("payment_date"), required=False),
    }


def validate_status(value: Any) -> str:
    return parse_choice("status", value, COMMISSION_STATUSES)
