from __future__ import annotations

from ..extensions import db
from ..money import as_json_number, bps_to_percent, from_cents
from ..time_utils import to_iso_date, to_utc_z


# Valid lifecycle states (must match commission_service.TRANSITIONS)
COMMISSION_STATUSES = ("pending", "approved", "rejected", "paid")
PAYMENT_STATUSES = ("unpaid", "paid")
TRANSACTION_TYPES = ("sale", "lease", "renewal")


class Commission(db.Model):
    """
    Agent commission ledger entry.

    MONEY: Amounts are integer cents, rates are integer basis points.
    commission_amount_cents and final_commission_cents are derived from
    sale_amount_cents, commission_rate_bps and split_percentage_bps and
    are only ever written together with them.

    CONCURRENCY: version_id is the optimistic revision. SQLAlchemy adds it
    to every UPDATE/DELETE WHERE clause, so a write based on a stale read
    raises StaleDataError instead of silently overwriting.
    """
    __tablename__ = "commissions"
    __table_args__ = (
        db.Index("ix_commissions_org_created", "org_id", "created_at"),
        db.Index("ix_commissions_org_status", "org_id", "status"),
        db.Index("ix_commissions_org_agent_txdate", "org_id", "agent_id", "transaction_date"),
        db.CheckConstraint("sale_amount_cents >= 0", name="ck_commissions_sale_amount_nonneg"),
        db.CheckConstraint(
            "commission_rate_bps >= 0 AND commission_rate_bps <= 10000",
            name="ck_commissions_rate_range",
        ),
        db.CheckConstraint(
            "split_percentage_bps >= 0 AND split_percentage_bps <= 10000",
            name="ck_commissions_split_range",
        ),
        db.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'paid')",
            name="ck_commissions_status",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)

    agent_id = db.Column(db.Integer, db.ForeignKey("agents.id"), nullable=False, index=True)
    transaction_type = db.Column(db.String(16), nullable=False, default="sale")  # sale, lease, renewal
    property_id = db.Column(db.Integer, db.ForeignKey("properties.id"), nullable=True)
    lead_id = db.Column(db.Integer, db.ForeignKey("leads.id"), nullable=True)
    deal_description = db.Column(db.Text, nullable=True)

    sale_amount_cents = db.Column(db.BigInteger, nullable=False)
    commission_rate_bps = db.Column(db.Integer, nullable=False)
    commission_amount_cents = db.Column(db.BigInteger, nullable=False)
    split_percentage_bps = db.Column(db.Integer, nullable=False, default=10000)
    final_commission_cents = db.Column(db.BigInteger, nullable=False)

    transaction_date = db.Column(db.Date, nullable=False)
    expected_payment_date = db.Column(db.Date, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(16), nullable=False, default="pending")
    payment_status = db.Column(db.String(16), nullable=False, default="unpaid")

    # Set only on approval
    approval_date = db.Column(db.Date, nullable=True)
    approved_by_profile_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True)

    # Set only on rejection
    dispute_reason = db.Column(db.Text, nullable=True)

    # Set only when marked paid
    payment_amount_cents = db.Column(db.BigInteger, nullable=True)
    payment_method = db.Column(db.String(64), nullable=True)
    payment_reference = db.Column(db.String(128), nullable=True)
    payment_date = db.Column(db.Date, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    organization = db.relationship("Organization")
    agent = db.relationship("Agent", backref=db.backref("commissions", lazy=True))
    deal_property = db.relationship("Property")
    lead = db.relationship("Lead")
    approver = db.relationship("Profile", foreign_keys=[approved_by_profile_id])

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Commission id={self.id} org_id={self.org_id} status={self.status}>"

    @property
    def sale_amount(self):
        return from_cents(self.sale_amount_cents)

    @property
    def commission_rate(self):
        return bps_to_percent(self.commission_rate_bps)

    @property
    def commission_amount(self):
        return from_cents(self.commission_amount_cents)

    @property
    def split_percentage(self):
        return bps_to_percent(self.split_percentage_bps)

    @property
    def final_commission(self):
        return from_cents(self.final_commission_cents)

    @property
    def payment_amount(self):
        return from_cents(self.payment_amount_cents)

    def to_dict(self, *, include_related: bool = False) -> dict:
        data = {
            "id": self.id,
            "org_id": self.org_id,
            "agent_id": self.agent_id,
            "transaction_type": self.transaction_type,
            "property_id": self.property_id,
            "lead_id": self.lead_id,
            "deal_description": self.deal_description,
            "sale_amount": as_json_number(self.sale_amount),
            "commission_rate": as_json_number(self.commission_rate),
            "commission_amount": as_json_number(self.commission_amount),
            "split_percentage": as_json_number(self.split_percentage),
            "final_commission": as_json_number(self.final_commission),
            "transaction_date": to_iso_date(self.transaction_date),
            "expected_payment_date": to_iso_date(self.expected_payment_date),
            "notes": self.notes,
            "status": self.status,
            "payment_status": self.payment_status,
            "approval_date": to_iso_date(self.approval_date),
            "approved_by": self.approved_by_profile_id,
            "dispute_reason": self.dispute_reason,
            "payment_amount": as_json_number(self.payment_amount),
            "payment_method": self.payment_method,
            "payment_reference": self.payment_reference,
            "payment_date": to_iso_date(self.payment_date),
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_related:
            # Display enrichment only; never consulted for invariants
            data["agent"] = self.agent.to_summary() if self.agent else None
            data["property"] = self.deal_property.to_summary() if self.deal_property else None
            data["lead"] = self.lead.to_summary() if self.lead else None
            data["approver"] = (
                {"id": self.approver.id, "full_name": self.approver.full_name}
                if self.approver else None
            )
        return data

class CommissionEvent(db.Model):
    """
    Append-only audit trail for commission lifecycle changes.

    - Written inside the same commit as the mutation it records.
    - No updates or deletes; events outlive the commission they describe,
      so commission_id is intentionally not a foreign key.
    """
    __tablename__ = "commission_events"
    __table_args__ = (
        db.Index("ix_commission_events_org_commission", "org_id", "commission_id"),
        db.Index("ix_commission_events_org_occurred", "org_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False)
    commission_id = db.Column(db.Integer, nullable=False)
    event_type = db.Column(db.String(32), nullable=False, index=True)  # CREATED, UPDATED, APPROVED, REJECTED, PAID, DELETED
    actor_profile_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True)
    from_status = db.Column(db.String(16), nullable=True)
    to_status = db.Column(db.String(16), nullable=True)
    note = db.Column(db.Text, nullable=True)
    payload = db.Column(db.Text, nullable=True)  # JSON text

    occurred_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "commission_id": self.commission_id,
            "event_type": self.event_type,
            "actor_profile_id": self.actor_profile_id,
            "from_status": self.from_status,
            "to_status": self.to_status,
            "note": self.note,
            "payload": self.payload,
            "occurred_at": to_utc_z(self.occurred_at),
        }
