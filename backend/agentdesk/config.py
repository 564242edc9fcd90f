# backend/agentdesk/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def build_engine_options(database_uri: str, timeout_seconds: float) -> dict:
    """
    Engine options that bound every store round trip.

    - SQLite: busy timeout on the driver connection (lock waits)
    - PostgreSQL: server-side statement_timeout
    - Everything else: pool checkout timeout only
    """
    options: dict = {"pool_pre_ping": True}
    if database_uri.startswith("sqlite"):
        options["connect_args"] = {"timeout": timeout_seconds}
        return options

    options["pool_timeout"] = timeout_seconds
    if database_uri.startswith("postgresql"):
        options["connect_args"] = {
            "options": f"-c statement_timeout={int(timeout_seconds * 1000)}"
        }
    return options


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/agentdesk.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///agentdesk.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Upper bound for a single store call; exceeded -> StoreUnavailable.
    # Turned into SQLALCHEMY_ENGINE_OPTIONS by create_app.
    STORE_TIMEOUT_SECONDS = float(os.environ.get("STORE_TIMEOUT_SECONDS", "5"))

    # Gate approve/reject/pay through the transition table.
    # False reproduces the unrestricted legacy behaviour.
    COMMISSION_ENFORCE_TRANSITIONS = _env_flag("COMMISSION_ENFORCE_TRANSITIONS", True)

    # Header carrying the caller identity from the upstream session provider
    IDENTITY_HEADER = os.environ.get("IDENTITY_HEADER", "X-Auth-User")

    COMMISSION_LIST_MAX_LIMIT = int(os.environ.get("COMMISSION_LIST_MAX_LIMIT", "500"))
    PENDING_QUEUE_LIMIT = int(os.environ.get("PENDING_QUEUE_LIMIT", "10"))
