"""
Configuration for the classalert client.

All settings come from environment variables (optionally from a .env file)
with sensible defaults, so the client runs against the hosted backend
without any setup.

    CLASSALERT_API_URL     backend base URL
    CLASSALERT_API_KEY     optional key sent on user sync
    CLASSALERT_TIMEOUT     request timeout in seconds
    CLASSALERT_STATE       path of the local state file
    CLASSALERT_LOG_LEVEL   logging level name
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


# ---------------------------------------------------------------------------
# Backend
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "https://api.aggieclassalert.com"
LOCAL_API_URL = "http://localhost:5001"

API_URL = os.environ.get("CLASSALERT_API_URL", DEFAULT_API_URL).rstrip("/")
API_KEY = os.environ.get("CLASSALERT_API_KEY") or None


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        return default


REQUEST_TIMEOUT = _float_env("CLASSALERT_TIMEOUT", 30.0)

# Fall 2025
DEFAULT_TERM = "202531"


# ---------------------------------------------------------------------------
# Local state & logging
# ---------------------------------------------------------------------------


def default_state_path() -> Path:
    """
    Return the state file path (the equivalent of browser localStorage).
    """
    env = os.environ.get("CLASSALERT_STATE")
    if env:
        return Path(env).expanduser()
    return Path.home() / ".classalert" / "state.json"


LOG_LEVEL = os.environ.get("CLASSALERT_LOG_LEVEL", "WARNING").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


# ---------------------------------------------------------------------------
# SMS carriers (email-to-SMS gateways)
# ---------------------------------------------------------------------------

CARRIERS: list[dict[str, str]] = [
    {"id": "verizon", "name": "Verizon", "domain": "@vtext.com"},
    {"id": "att", "name": "AT&T", "domain": "@txt.att.net"},
    {"id": "tmobile", "name": "T-Mobile", "domain": "@tmomail.net"},
    {"id": "sprint", "name": "Sprint", "domain": "@messaging.sprintpcs.com"},
    {"id": "cricket", "name": "Cricket Wireless", "domain": "@mms.cricketwireless.net"},
    {"id": "boost", "name": "Boost Mobile", "domain": "@sms.myboostmobile.com"},
    {"id": "uscellular", "name": "U.S. Cellular", "domain": "@email.uscc.net"},
    {"id": "metro", "name": "Metro by T-Mobile", "domain": "@mymetropcs.com"},
]

CARRIER_BY_ID: dict[str, dict[str, str]] = {c["id"]: c for c in CARRIERS}

NOTIFICATION_SUBJECT = "Aggie Class Alert"
