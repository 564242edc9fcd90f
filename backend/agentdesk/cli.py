# Overview: Flask CLI command groups for bootstrap, tenant setup, and commission reporting.

# backend/agentdesk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Tenant setup (MULTI-TENANT):
# - python -m flask orgs list
# - python -m flask orgs create --name "Acme Realty" --code "ACME"
# - python -m flask profiles create --org-id 1 --auth-user-id "auth0|123" --full-name "Dana Manager"
# - python -m flask agents create --org-id 1 --first-name "Sam" --last-name "Lee" --code "AG-001"
#
# Commission ledger:
# - python -m flask commissions list --identity "auth0|123" [--status pending]
# - python -m flask commissions stats --identity "auth0|123" [--agent-id 1 --start 2026-01-01 --end 2026-12-31]
# - python -m flask commissions seed-demo --identity "auth0|123" --agent-id 1

import click
from datetime import timedelta
from flask.cli import with_appcontext

from .extensions import db
from .models import Agent, Organization, Profile
from .services import commission_service, commission_stats_service
from .time_utils import today


def _fail(result) -> None:
    raise click.ClickException(f"{result.error_kind.value}: {result.error}")


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database schema ready.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('orgs')
def orgs_group():
    """Organization (tenant) management."""


@orgs_group.command('list')
@with_appcontext
def list_orgs():
    orgs = db.session.query(Organization).order_by(Organization.id).all()
    if not orgs:
        click.echo("No organizations found.")
        return
    for org in orgs:
        state = "active" if org.is_active else "inactive"
        click.echo(f"{org.id:>4}  {org.code or '-':<10}  {org.name}  ({state})")


@orgs_group.command('create')
@click.option('--name', required=True, help='Organization name')
@click.option('--code', required=True, help='Short code (unique)')
@with_appcontext
def create_org_cli(name, code):
    if db.session.query(Organization).filter_by(code=code).first():
        raise click.ClickException(f"Organization code {code!r} already exists")
    org = Organization(name=name, code=code, is_active=True)
    db.session.add(org)
    db.session.commit()
    click.echo(f"PASS Created organization {org.name} (ID: {org.id}, Code: {org.code})")


@click.group('profiles')
def profiles_group():
    """Caller profile management (identity -> tenant mapping)."""


@profiles_group.command('create')
@click.option('--org-id', type=int, required=True, help='Organization ID')
@click.option('--auth-user-id', required=True, help='Identity issued by the session provider')
@click.option('--full-name', default=None, help='Display name')
@click.option('--email', default=None, help='Email address')
@with_appcontext
def create_profile_cli(org_id, auth_user_id, full_name, email):
    if not db.session.get(Organization, org_id):
        raise click.ClickException(f"Organization {org_id} not found")
    if db.session.query(Profile).filter_by(auth_user_id=auth_user_id).first():
        raise click.ClickException(f"Profile for {auth_user_id!r} already exists")
    profile = Profile(org_id=org_id, auth_user_id=auth_user_id, full_name=full_name, email=email)
    db.session.add(profile)
    db.session.commit()
    click.echo(f"PASS Created profile {profile.id} for {auth_user_id} in org {org_id}")


@click.group('agents')
def agents_group():
    """Agent management."""


@agents_group.command('create')
@click.option('--org-id', type=int, required=True, help='Organization ID')
@click.option('--first-name', required=True)
@click.option('--last-name', default=None)
@click.option('--code', 'agent_code', default=None, help='Agent code (unique within org)')
@click.option('--email', default=None)
@with_appcontext
def create_agent_cli(org_id, first_name, last_name, agent_code, email):
    if not db.session.get(Organization, org_id):
        raise click.ClickException(f"Organization {org_id} not found")
    if agent_code and db.session.query(Agent).filter_by(org_id=org_id, agent_code=agent_code).first():
        raise click.ClickException(f"Agent code {agent_code!r} already exists in org {org_id}")
    agent = Agent(org_id=org_id, first_name=first_name, last_name=last_name, agent_code=agent_code, email=email)
    db.session.add(agent)
    db.session.commit()
    click.echo(f"PASS Created agent {agent.id} ({agent.agent_code or 'no code'}) in org {org_id}")


@click.group('commissions')
def commissions_group():
    """Commission ledger inspection and reporting."""


@commissions_group.command('list')
@click.option('--identity', required=True, help='Caller identity (auth user id)')
@click.option('--status', default=None, type=click.Choice(['pending', 'approved', 'rejected', 'paid']))
@click.option('--agent-id', type=int, default=None)
@click.option('--limit', type=int, default=50, show_default=True)
@with_appcontext
def list_commissions_cli(identity, status, agent_id, limit):
    result = commission_service.list_commissions(
        identity, {"status": status, "agent_id": agent_id}, limit=limit
    )
    if result.is_err:
        _fail(result)

    if not result.data:
        click.echo("No commissions found.")
        return
    click.echo(f"{'ID':>6}  {'DATE':<10}  {'STATUS':<9}  {'AGENT':>5}  {'SALE':>14}  {'FINAL':>12}")
    for c in result.data:
        click.echo(
            f"{c.id:>6}  {c.transaction_date.isoformat():<10}  {c.status:<9}  {c.agent_id:>5}  "
            f"{c.sale_amount:>14,.2f}  {c.final_commission:>12,.2f}"
        )


@commissions_group.command('stats')
@click.option('--identity', required=True, help='Caller identity (auth user id)')
@click.option('--agent-id', type=int, default=None)
@click.option('--start', 'start_date', default=None, help='Inclusive start date (YYYY-MM-DD)')
@click.option('--end', 'end_date', default=None, help='Inclusive end date (YYYY-MM-DD)')
@with_appcontext
def commission_stats_cli(identity, agent_id, start_date, end_date):
    """Print counts and totals per status (full scan of the filtered set)."""
    result = commission_stats_service.compute_stats(
        identity, {"agent_id": agent_id, "start_date": start_date, "end_date": end_date}
    )
    if result.is_err:
        _fail(result)

    stats = result.data
    click.echo(f"Total commissions:    {stats.total_commissions}")
    click.echo(f"  pending:            {stats.pending_commissions}")
    click.echo(f"  approved:           {stats.approved_commissions}")
    click.echo(f"  paid:               {stats.paid_commissions}")
    click.echo(f"Total amount:         {stats.total_amount:,.2f}")
    click.echo(f"Pending amount:       {stats.pending_amount:,.2f}")
    click.echo(f"Paid amount:          {stats.paid_amount:,.2f}")


@commissions_group.command('seed-demo')
@click.option('--identity', required=True, help='Caller identity (auth user id)')
@click.option('--agent-id', type=int, required=True, help='Agent receiving the demo commissions')
@with_appcontext
def seed_demo_cli(identity, agent_id):
    """Create a pending, an approved and a paid commission through the service layer."""
    base = today()
    deals = [
        {"sale_amount": 200000, "commission_rate": 3, "deal_description": "Demo sale"},
        {"sale_amount": 150000, "commission_rate": 2.5, "split_percentage": 50, "deal_description": "Demo co-listing"},
        {"sale_amount": 24000, "commission_rate": 8, "transaction_type": "lease", "deal_description": "Demo lease"},
    ]

    created = []
    for offset, deal in enumerate(deals):
        payload = {"agent_id": agent_id, "transaction_date": (base - timedelta(days=offset)).isoformat(), **deal}
        result = commission_service.create_commission(identity, payload)
        if result.is_err:
            _fail(result)
        created.append(result.data)

    approved = commission_service.approve_commission(identity, created[1].id)
    if approved.is_err:
        _fail(approved)

    paid = commission_service.mark_commission_paid(
        identity,
        created[2].id,
        {"payment_amount": float(created[2].final_commission), "payment_method": "bank_transfer"},
    )
    if paid.is_err:
        _fail(paid)

    click.echo(f"PASS Seeded commissions {', '.join(str(c.id) for c in created)}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(orgs_group)
    app.cli.add_command(profiles_group)
    app.cli.add_command(agents_group)
    app.cli.add_command(commissions_group)
