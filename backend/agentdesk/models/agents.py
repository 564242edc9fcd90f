from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

class Agent(db.Model):
    """
    Sales agent who earns commissions.

    MULTI-TENANT: Agent codes are unique within an organization, not globally.
    """
    __tablename__ = "agents"
    __table_args__ = (
        db.UniqueConstraint("org_id", "agent_code", name="uq_agents_org_code"),
        db.Index("ix_agents_org_id", "org_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False)
    agent_code = db.Column(db.String(32), nullable=True)
    first_name = db.Column(db.String(120), nullable=False)
    last_name = db.Column(db.String(120), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    employment_status = db.Column(db.String(16), nullable=False, default="active")  # active, inactive

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    organization = db.relationship("Organization", backref=db.backref("agents", lazy=True))

    def __repr__(self) -> str:
        return f"<Agent id={self.id} code={self.agent_code!r} org_id={self.org_id}>"

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "agent_code": self.agent_code,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
        }

    def to_dict(self) -> dict:
        return {
            **self.to_summary(),
            "org_id": self.org_id,
            "phone": self.phone,
            "employment_status": self.employment_status,
            "created_at": to_utc_z(self.created_at),
        }

class Property(db.Model):
    __tablename__ = "properties"
    __table_args__ = (
        db.Index("ix_properties_org_id", "org_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False)
    property_code = db.Column(db.String(32), nullable=True)
    name = db.Column(db.String(255), nullable=False)
    address = db.Column(db.Text, nullable=True)

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "property_code": self.property_code,
            "address": self.address,
        }

class Lead(db.Model):
    __tablename__ = "leads"
    __table_args__ = (
        db.Index("ix_leads_org_id", "org_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False)
    first_name = db.Column(db.String(120), nullable=False)
    last_name = db.Column(db.String(120), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
        }
