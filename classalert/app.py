"""
Wiring shared by the CLI and the interactive menu: one state file, one
HTTP client and one auth context per process.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from classalert.api import ApiClient
from classalert.auth import AuthContext
from classalert.storage import LocalStore


@dataclass
class App:
    store: LocalStore
    client: ApiClient
    auth: AuthContext


def build_app(state_path: str | Path | None = None, api_url: Optional[str] = None) -> App:
    store = LocalStore(state_path)
    client = ApiClient(base_url=api_url)
    auth = AuthContext(client, store)
    client.headers_provider = auth.auth_headers
    auth.load()
    return App(store=store, client=client, auth=auth)
