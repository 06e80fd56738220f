"""
Persistent local state for the client.

This module manages a small JSON file (by default ~/.classalert/state.json)
that plays the role the browser's localStorage played for the web frontend:

    token           raw identity token from a Google sign-in
    userEmail       the email the client is acting for
    pendingPhone    phone number waiting for its verification code
    pendingCarrier  carrier of that phone number
    pendingCode     code the backend issued for it, if it returned one

Storage contract:
- Missing or corrupted file -> empty state, never a crash
- Values are strings; removing a key that is absent is a no-op
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from classalert.config import default_state_path

TOKEN_KEY = "token"
EMAIL_KEY = "userEmail"
# phone/carrier awaiting a verification code
PENDING_PHONE_KEY = "pendingPhone"
PENDING_CARRIER_KEY = "pendingCarrier"
# code issued by the backend for that phone, when it returns one
PENDING_CODE_KEY = "pendingCode"


def load_state(path: str | Path | None = None) -> dict[str, str]:
    """
    Load the state mapping. Returns {} if the file does not exist or is invalid.
    """
    state_path = Path(path) if path is not None else default_state_path()

    if not state_path.exists():
        return {}

    try:
        data = json.loads(state_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError):
        return {}

    if not isinstance(data, dict):
        return {}

    # keep only string values
    return {str(k): v for k, v in data.items() if isinstance(v, str)}


def save_state(state: dict[str, Any], path: str | Path | None = None) -> None:
    """
    Save the state mapping, creating parent directories if needed.
    """
    state_path = Path(path) if path is not None else default_state_path()
    state_path.parent.mkdir(parents=True, exist_ok=True)

    payload = {str(k): str(v) for k, v in state.items() if v is not None}
    state_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


class LocalStore:
    """
    Key/value view over the state file, mirroring the localStorage API.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else default_state_path()

    def get_item(self, key: str) -> str | None:
        return load_state(self.path).get(key)

    def set_item(self, key: str, value: str) -> None:
        state = load_state(self.path)
        state[key] = value
        save_state(state, self.path)

    def remove_item(self, key: str) -> None:
        state = load_state(self.path)
        if key in state:
            del state[key]
            save_state(state, self.path)
