# Overview: Append-only audit trail for commission lifecycle changes.

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional

from ..extensions import db
from ..models import CommissionEvent
from .concurrency import run_store_call
"""
Commission audit invariants:

- Append-only: no updates or deletes of existing events.
- Events are staged inside the same commit as the mutation they record;
  a failed mutation leaves no event behind.
- Reads are always tenant-scoped.
"""


@dataclass(frozen=True)
class EventDraft:
    """An event the store adapter should stage alongside a write."""
    event_type: str
    from_status: Optional[str] = None
    note: Optional[str] = None
    payload: Optional[dict[str, Any]] = None


def append_commission_event(ctx, commission, draft: EventDraft) -> CommissionEvent:
    """
    Stage an audit event for `commission` in the current session.

    Flushes (so ev.id is assigned) but never commits; the caller's commit
    makes the event and the mutation durable together.
    """
    to_status = None if draft.event_type == "DELETED" else commission.status
    ev = CommissionEvent(
        org_id=ctx.org_id,
        commission_id=commission.id,
        event_type=draft.event_type,
        actor_profile_id=ctx.profile_id,
        from_status=draft.from_status,
        to_status=to_status,
        note=draft.note,
        payload=json.dumps(draft.payload, sort_keys=True, default=str) if draft.payload else None,
    )
    db.session.add(ev)
    db.session.flush()
    return ev


def list_commission_events(ctx, commission_id: int) -> list[CommissionEvent]:
    return run_store_call(
        "list commission events",
        lambda: (
            db.session.query(CommissionEvent)
            .filter(
                CommissionEvent.org_id == ctx.org_id,
                CommissionEvent.commission_id == commission_id,
            )
            .order_by(CommissionEvent.id.asc())
            .all()
        ),
    )
