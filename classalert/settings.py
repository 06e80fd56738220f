"""
Phone settings view: capture a phone number and carrier, then verify it.

Verification is a two-step challenge:

1. send_verification_code() asks the backend to text a 5-character code
2. verify_code() sends the code the user typed back for confirmation

The backend decides whether the code is right. Some backend versions also
return the issued code in step 1; it is then passed back as "expectedCode",
but the client never needs it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from classalert.api import ApiClient, ApiConnectionError, ApiError
from classalert.config import CARRIER_BY_ID
from classalert.storage import EMAIL_KEY, PENDING_CARRIER_KEY, PENDING_CODE_KEY, PENDING_PHONE_KEY, LocalStore

log = logging.getLogger(__name__)

CODE_LENGTH = 5
PHONE_LENGTH = 10


@dataclass
class PhoneInfo:
    phone_number: str
    carrier: str
    verified_at: Optional[datetime] = None


def carrier_name(carrier_id: str) -> str:
    c = CARRIER_BY_ID.get(carrier_id)
    if c:
        return c["name"]
    return carrier_id or "Unknown"


def _verified_at(ts: Optional[float]) -> Optional[datetime]:
    if not ts:
        return None
    try:
        return datetime.fromtimestamp(ts)
    except (OverflowError, OSError, ValueError):
        log.warning("Ignoring invalid phone_verified_at value: %r", ts)
        return None


class SettingsView:
    def __init__(self, client: ApiClient, store: LocalStore, email: str = "") -> None:
        self.client = client
        self.store = store
        self._email = email

        self.phone_number = ""
        self.carrier = ""
        self.expected_code = ""
        self.verification_sent = False
        self.verification_success = False
        self.verification_error = ""
        self.success_message = ""
        self.phone_info: Optional[PhoneInfo] = None
        self.is_submitting = False
        self.is_loading = False

    @property
    def email(self) -> str:
        return self._email or self.store.get_item(EMAIL_KEY) or ""

    def gateway_address(self) -> str:
        """
        The email-to-SMS address texts are delivered to, e.g. 9795551234@vtext.com.
        """
        c = CARRIER_BY_ID.get(self.carrier)
        if not c or not self.phone_number:
            return ""
        return f"{self.phone_number}{c['domain']}"

    def load(self) -> None:
        self.is_loading = True
        try:
            profile = self.client.get_profile(email=self.email)
        except ApiError as e:
            log.info("No existing user profile found: %s", e.message)
            return
        finally:
            self.is_loading = False

        if profile.has_verified_phone:
            self.phone_info = PhoneInfo(profile.phone_number, profile.phone_carrier, _verified_at(profile.phone_verified_at))
            self.phone_number = profile.phone_number
            self.carrier = profile.phone_carrier
            self.verification_success = True
        elif profile.phone_number:
            self.phone_number = profile.phone_number
            self.carrier = profile.phone_carrier

    def set_phone(self, phone_number: str, carrier: str) -> None:
        # keep digits only, "(979) 555-1234" -> "9795551234"
        self.phone_number = "".join(ch for ch in (phone_number or "") if ch.isdigit())
        self.carrier = (carrier or "").strip().lower()

    def send_verification_code(self) -> bool:
        if len(self.phone_number) != PHONE_LENGTH or not self.phone_number.isdigit():
            self.verification_error = "Please enter a valid 10-digit phone number"
            return False

        if not self.carrier:
            self.verification_error = "Please select your carrier"
            return False

        self.is_submitting = True
        self.verification_error = ""

        try:
            data = self.client.request_phone_code(self.phone_number, self.carrier, self.email)
        except ApiError as e:
            log.error("Error sending verification code: %s", e.message)
            if isinstance(e, ApiConnectionError) or not e.message:
                self.verification_error = "Failed to send verification code. Please try again."
            else:
                self.verification_error = e.message
            return False
        finally:
            self.is_submitting = False

        self.expected_code = str(data.get("code") or "")
        self.verification_sent = True
        self.store.set_item(PENDING_PHONE_KEY, self.phone_number)
        self.store.set_item(PENDING_CARRIER_KEY, self.carrier)
        if self.expected_code:
            self.store.set_item(PENDING_CODE_KEY, self.expected_code)
        else:
            self.store.remove_item(PENDING_CODE_KEY)
        return True

    def restore_pending(self) -> bool:
        """
        Pick up a phone number that was sent a code in an earlier session.
        """
        phone = self.store.get_item(PENDING_PHONE_KEY)
        carrier = self.store.get_item(PENDING_CARRIER_KEY)
        if not phone or not carrier:
            return False
        self.phone_number = phone
        self.carrier = carrier
        self.expected_code = self.store.get_item(PENDING_CODE_KEY) or ""
        self.verification_sent = True
        return True

    def _clear_pending(self) -> None:
        self.store.remove_item(PENDING_PHONE_KEY)
        self.store.remove_item(PENDING_CARRIER_KEY)
        self.store.remove_item(PENDING_CODE_KEY)

    def verify_code(self, code: str) -> bool:
        code = (code or "").strip()
        if len(code) != CODE_LENGTH:
            self.verification_error = "Please enter the 5-character verification code"
            return False

        self.is_submitting = True
        self.verification_error = ""

        payload = {
            "code": code,
            "phoneNumber": self.phone_number,
            "carrier": self.carrier,
            "email": self.email,
        }
        if self.expected_code:
            payload["expectedCode"] = self.expected_code

        try:
            data = self.client.confirm_phone_code(payload)
        except ApiError as e:
            log.error("Error verifying code: %s", e.message)
            if isinstance(e, ApiConnectionError) or not e.message:
                self.verification_error = "Failed to verify code. Please try again."
            else:
                self.verification_error = e.message
            self.verification_success = False
            return False
        finally:
            self.is_submitting = False

        self.verification_success = True
        self.verification_error = ""
        self._clear_pending()

        if data.get("associated_with_email"):
            self.success_message = "Your phone number has been verified and associated with your account"
            self.phone_info = PhoneInfo(
                str(data.get("phone_number") or self.phone_number), self.carrier, datetime.now()
            )
            self._refresh_phone_info()
        else:
            self.success_message = "Your phone number has been verified successfully"
        return True

    def _refresh_phone_info(self) -> None:
        try:
            if self.email:
                profile = self.client.get_profile(email=self.email)
            else:
                profile = self.client.get_profile(phone=self.phone_number)
        except ApiError as e:
            log.error("Error refreshing user profile: %s", e.message)
            return

        if profile.has_verified_phone:
            verified_at = _verified_at(profile.phone_verified_at) or datetime.now()
            self.phone_info = PhoneInfo(profile.phone_number, profile.phone_carrier or self.carrier, verified_at)

    def save(self) -> bool:
        if not self.verification_success:
            self.verification_error = "Please verify your phone number first"
            return False
        self.success_message = "Phone number saved successfully!"
        return True

    def reset(self) -> None:
        self.phone_number = ""
        self.carrier = ""
        self.verification_success = False
        self.verification_sent = False
        self.expected_code = ""
        self.success_message = ""
        self.phone_info = None
        self._clear_pending()
