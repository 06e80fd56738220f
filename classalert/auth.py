"""
Auth context: who is the client acting for?

Three identity sources exist and are checked in this order, first match wins:

1. a stored identity token (Google sign-in), decoded in memory
2. a stored plain email (email-only sign-in)
3. nobody (anonymous)

Tokens are decoded without signature verification; the backend is the one
that trusts or rejects them. The client only needs the email claim.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from jose import JWTError, jwt

from classalert.api import ApiClient, ApiError
from classalert.storage import EMAIL_KEY, TOKEN_KEY, LocalStore

log = logging.getLogger(__name__)

SOURCE_TOKEN = "token"
SOURCE_STORED_EMAIL = "storedEmail"
SOURCE_ANONYMOUS = "anonymous"


@dataclass
class Identity:
    source: str
    email: str = ""

    @property
    def is_anonymous(self) -> bool:
        return self.source == SOURCE_ANONYMOUS


def clean_email(email: str) -> str:
    return (email or "").strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(email) and "@" in email


def decode_token(token: str) -> dict[str, Any]:
    """
    Return the claims of a JWT without verifying it. Raises JWTError.
    """
    return jwt.get_unverified_claims(token)


class AuthContext:
    def __init__(self, client: ApiClient, store: LocalStore) -> None:
        self.client = client
        self.store = store
        self.user: Optional[dict[str, Any]] = None
        self.loading = True

    def load(self) -> None:
        """
        Restore the decoded token from storage and make sure the backend
        knows the user. A token that cannot be decoded is discarded.
        """
        token = self.store.get_item(TOKEN_KEY)
        if token:
            try:
                claims = decode_token(token)
            except JWTError as e:
                log.warning("Discarding stored token that could not be decoded: %s", e)
                self.store.remove_item(TOKEN_KEY)
            else:
                self.user = claims
                if claims.get("email"):
                    self.sync_user(str(claims["email"]), claims)
        self.loading = False

    def sync_user(self, email: str, user_data: Optional[dict[str, Any]] = None) -> bool:
        """
        Ensure the user exists in the backend. Returns the backend's success flag.
        """
        cleaned = clean_email(email)
        try:
            data = self.client.login_user(
                cleaned,
                original_email=email,
                google_auth=True,
                user_data=user_data or {},
            )
        except ApiError as e:
            log.error("Error syncing user %s: %s", cleaned, e.message)
            return False

        # keep the plain email too, for the email-only code paths
        self.store.set_item(EMAIL_KEY, cleaned)
        return bool(data.get("success"))

    def login(self, token: str) -> bool:
        """
        Sign in with an identity token. Raises JWTError if it cannot be decoded.
        """
        claims = decode_token(token)
        self.store.set_item(TOKEN_KEY, token)
        self.user = claims

        email = claims.get("email")
        if not email:
            log.warning("No email found in identity token")
            return False
        return self.sync_user(str(email), claims)

    def login_with_email(self, email: str) -> str:
        """
        Email-only sign in. Returns the cleaned email.

        Raises ValueError for an invalid address and ApiError if the backend
        refuses the login.
        """
        if not is_valid_email(email):
            raise ValueError("Please enter a valid email address")

        cleaned = clean_email(email)
        self.client.login_user(cleaned)
        self.store.set_item(EMAIL_KEY, cleaned)
        return cleaned

    def logout(self) -> None:
        self.store.remove_item(TOKEN_KEY)
        self.store.remove_item(EMAIL_KEY)
        self.user = None

    def token(self) -> Optional[str]:
        return self.store.get_item(TOKEN_KEY)

    def auth_headers(self) -> dict[str, str]:
        token = self.token()
        return {"Authorization": f"Bearer {token}"} if token else {}

    def stored_email(self) -> str:
        return self.store.get_item(EMAIL_KEY) or ""

    def resolve_identity(self) -> Identity:
        if self.user and self.user.get("email"):
            return Identity(SOURCE_TOKEN, str(self.user["email"]))
        stored = self.stored_email()
        if stored:
            return Identity(SOURCE_STORED_EMAIL, stored)
        return Identity(SOURCE_ANONYMOUS)

    @property
    def is_logged_in(self) -> bool:
        return not self.resolve_identity().is_anonymous
