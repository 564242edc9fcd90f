"""
Pytest fixtures for the commission ledger tests.

Provides an in-memory application, per-test table wipe, and two tenants
(each with a caller profile, an agent, a property and a lead) so every
test can prove tenant isolation against a real neighbour.
"""

import pytest

from agentdesk import create_app
from agentdesk.extensions import db
from agentdesk.models import Agent, Lead, Organization, Profile, Property
from agentdesk.services import commission_service


IDENTITY_A = "auth|user-a"
IDENTITY_B = "auth|user-b"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        app.config['COMMISSION_ENFORCE_TRANSITIONS'] = True

        yield db.session

        # Cleanup after test
        db.session.rollback()
        db.session.expunge_all()
        app.config['COMMISSION_ENFORCE_TRANSITIONS'] = True


@pytest.fixture(scope='function')
def org_a(db_session):
    """Create Organization A (first tenant)."""
    org = Organization(name="Org A - Acme Realty", code="ACME", is_active=True)
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture(scope='function')
def org_b(db_session):
    """Create Organization B (second tenant)."""
    org = Organization(name="Org B - Beta Homes", code="BETA", is_active=True)
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture(scope='function')
def profile_a(db_session, org_a):
    """Caller profile in Organization A."""
    profile = Profile(org_id=org_a.id, auth_user_id=IDENTITY_A, full_name="Alice Manager")
    db_session.add(profile)
    db_session.commit()
    return profile


@pytest.fixture(scope='function')
def profile_b(db_session, org_b):
    """Caller profile in Organization B."""
    profile = Profile(org_id=org_b.id, auth_user_id=IDENTITY_B, full_name="Bob Manager")
    db_session.add(profile)
    db_session.commit()
    return profile


@pytest.fixture(scope='function')
def agent_a(db_session, org_a):
    agent = Agent(org_id=org_a.id, agent_code="A-001", first_name="Ana", last_name="Agent")
    db_session.add(agent)
    db_session.commit()
    return agent


@pytest.fixture(scope='function')
def agent_a2(db_session, org_a):
    agent = Agent(org_id=org_a.id, agent_code="A-002", first_name="Abe", last_name="Agent")
    db_session.add(agent)
    db_session.commit()
    return agent


@pytest.fixture(scope='function')
def agent_b(db_session, org_b):
    agent = Agent(org_id=org_b.id, agent_code="B-001", first_name="Ben", last_name="Broker")
    db_session.add(agent)
    db_session.commit()
    return agent


@pytest.fixture(scope='function')
def property_a(db_session, org_a):
    prop = Property(org_id=org_a.id, property_code="P-A1", name="12 Harbour View")
    db_session.add(prop)
    db_session.commit()
    return prop


@pytest.fixture(scope='function')
def lead_a(db_session, org_a):
    lead = Lead(org_id=org_a.id, first_name="Lena", last_name="Lead")
    db_session.add(lead)
    db_session.commit()
    return lead


@pytest.fixture(scope='function')
def tenant_a(profile_a, agent_a):
    """Caller A ready to act: (identity, agent)."""
    return IDENTITY_A, agent_a


@pytest.fixture(scope='function')
def tenant_b(profile_b, agent_b):
    """Caller B ready to act: (identity, agent)."""
    return IDENTITY_B, agent_b


@pytest.fixture(scope='function')
def make_commission():
    """Factory: create a commission through the service and return the record."""
    def _make(identity, agent, **overrides):
        payload = {
            "agent_id": agent.id,
            "sale_amount": 200000,
            "commission_rate": 3,
            "transaction_date": "2026-10-01",
        }
        payload.update(overrides)
        result = commission_service.create_commission(identity, payload)
        assert result.success, result.error
        return result.data
    return _make


def identity_headers(identity: str) -> dict:
    """Helper to create the identity header the upstream session provider sets."""
    return {'X-Auth-User': identity}
