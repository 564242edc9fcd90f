"""
Tenant Context Resolver

Every public commission operation resolves the caller exactly once, then
passes the resulting TenantContext explicitly into every store call.
There is no ambient tenant state: a store function that is not handed a
context cannot run.

SECURITY INVARIANTS:
1. No identity -> NotAuthenticated, nothing else happens
2. No active profile / organization -> ProfileNotFound, nothing else happens
3. Every store query filters by TenantContext.org_id
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..extensions import db
from ..models import Organization, Profile
from .concurrency import run_store_call
from .results import CommissionError, ErrorKind


class NotAuthenticated(CommissionError):
    kind = ErrorKind.NOT_AUTHENTICATED
    default_message = "Not authenticated"


class ProfileNotFound(CommissionError):
    kind = ErrorKind.PROFILE_NOT_FOUND
    default_message = "Profile not found"


@dataclass(frozen=True)
class TenantContext:
    """Resolved caller scope. Immutable for the lifetime of one operation."""
    org_id: int
    profile_id: int
    auth_user_id: str


def resolve_context(caller_identity) -> TenantContext:
    """
    Resolve a caller identity to its organization and internal profile id.

    Args:
        caller_identity: opaque auth user id from the session provider

    Raises:
        NotAuthenticated: identity missing or blank
        ProfileNotFound: no active profile, or its organization is missing/inactive
    """
    if caller_identity is None:
        raise NotAuthenticated()
    auth_user_id = str(caller_identity).strip()
    if not auth_user_id:
        raise NotAuthenticated()

    profile = run_store_call(
        "resolve caller profile",
        lambda: db.session.query(Profile).filter_by(auth_user_id=auth_user_id).first(),
    )
    if profile is None or not profile.is_active or profile.org_id is None:
        current_app.logger.warning("No active tenant profile for caller %s", auth_user_id)
        raise ProfileNotFound()

    org = run_store_call(
        "resolve caller organization",
        lambda: db.session.query(Organization).filter_by(id=profile.org_id).first(),
    )
    if org is None or not org.is_active:
        current_app.logger.warning(
            "Caller %s belongs to missing or inactive org %s", auth_user_id, profile.org_id
        )
        raise ProfileNotFound("Organization is not active")

    return TenantContext(org_id=org.id, profile_id=profile.id, auth_user_id=auth_user_id)
