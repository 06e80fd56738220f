"""
Alert list view ("My Alerts").

Holds the alert list and the banner messages for one user session and
drives the network calls behind each action. The list is a cache: every
mutation is followed by a full refetch, except the SMS toggle which patches
the single matching entry in place.

UI layers (cli.py, interactive.py) only read the public attributes and call
the methods; nothing here prints.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Optional

from classalert.api import ApiClient, ApiConnectionError, ApiError
from classalert.auth import SOURCE_STORED_EMAIL, SOURCE_TOKEN, AuthContext, is_valid_email
from classalert.model import Alert
from classalert.notifications import NotificationError, send_class_availability_notification
from classalert.storage import EMAIL_KEY

log = logging.getLogger(__name__)

# blocking yes/no dialog; receives the question, returns the answer
ConfirmFn = Callable[[str], bool]


def _message(e: ApiError, default: str) -> str:
    if isinstance(e, ApiConnectionError):
        return default
    return e.message or default


def status_report(alerts: list[Alert]) -> list[str]:
    return [f"CRN {a.crn} ({a.term}): {'AVAILABLE' if a.status else 'NOT AVAILABLE'}" for a in alerts]


class AlertsView:
    def __init__(self, client: ApiClient, auth: AuthContext) -> None:
        self.client = client
        self.auth = auth
        self.store = auth.store

        self.alerts: list[Alert] = []
        self.email = ""
        self.email_filter = ""
        self.is_logged_in = False
        self.is_filtering_by_email = False

        self.error = ""
        self.success_message = ""
        self.delete_message = ""

        self.sample_crns: Optional[dict[str, list[str]]] = None
        self.loading = False
        self.loading_samples = False
        self.is_deleting = False

        self.phone_verified = False
        self.phone_number = ""
        self.phone_carrier = ""
        self.phone_toggle_loading = False
        # SMS for new alerts, only honoured with a verified phone
        self.enable_sms = True

    # -----------------------------------------------------------------------
    # Loading & identity
    # -----------------------------------------------------------------------

    def load(self) -> None:
        identity = self.auth.resolve_identity()

        if identity.source == SOURCE_TOKEN:
            self._set_user(identity.email)
            self.fetch_alerts_by_email(identity.email)
            self.check_user_phone_status(identity.email)
        elif identity.source == SOURCE_STORED_EMAIL:
            self.check_user(identity.email)
            self.check_user_phone_status(identity.email)
        else:
            self.fetch_alerts()

    def _set_user(self, email: str) -> None:
        self.email = email
        self.email_filter = email
        self.is_logged_in = True

    def check_user_phone_status(self, email: str) -> None:
        if not email:
            return

        try:
            profile = self.client.get_profile(email=email)
        except ApiError as e:
            log.error("Error checking user phone status: %s", e.message)
            return

        if profile.has_verified_phone:
            self.phone_verified = True
            self.phone_number = profile.phone_number
            self.phone_carrier = profile.phone_carrier
        else:
            self.phone_verified = False

    def check_user(self, email: str) -> None:
        """
        Verify a stored email against the backend, creating the user if needed.
        """
        try:
            exists = self.client.check_user(email)
        except ApiConnectionError as e:
            log.error("Error checking user %s: %s", email, e.message)
            self.error = "Error connecting to the database. Please try again."
            self.store.remove_item(EMAIL_KEY)
            self.fetch_alerts()
            return
        except ApiError as e:
            log.error("Error checking user %s: %s", email, e.message)
            self.error = "Error verifying user. Please try again."
            self.store.remove_item(EMAIL_KEY)
            self.fetch_alerts()
            return

        if exists:
            self._set_user(email)
            self.fetch_alerts_by_email(email)
        else:
            self.create_user_via_login(email)

    def create_user_via_login(self, email: str) -> bool:
        try:
            self.client.login_user(email)
        except ApiError as e:
            log.error("Failed to create user via login: %s", e.message)
            if isinstance(e, ApiConnectionError):
                self.error = "Error creating user account. Please check your connection and try again."
            else:
                self.error = e.message or "Failed to create user account. Please try again."
            return False

        self.store.set_item(EMAIL_KEY, email)
        self._set_user(email)
        self.fetch_alerts_by_email(email)
        self.success_message = "Login successful!"
        return True

    def login_success(self, email: str) -> bool:
        """
        Called after the email-only sign-in form succeeds.
        """
        try:
            data = self.client.login_user(email)
        except ApiError as e:
            log.error("Error in login API call: %s", e.message)
            self.error = _message(e, "Error connecting to the server. Please try again.")
            return False

        if not data.get("success"):
            log.error("Error in login API response: %s", data)
            self.error = str(data.get("error") or "Failed to login. Please try again.")
            return False

        self._set_user(email)
        self.fetch_alerts_by_email(email)
        self.success_message = "Login successful!"
        return True

    def logout(self) -> None:
        self.store.remove_item(EMAIL_KEY)
        self.auth.logout()

        self.is_logged_in = False
        self.email = ""
        self.phone_verified = False
        self.clear_email_filter()
        self.success_message = "Logged out successfully"

    # -----------------------------------------------------------------------
    # Fetching
    # -----------------------------------------------------------------------

    def fetch_alerts(self) -> None:
        try:
            self.alerts = self.client.list_alerts()
        except ApiError as e:
            log.error("Error fetching alerts: %s", e.message)
            self.alerts = []
            return
        self._log_status()

    def fetch_alerts_by_email(self, email: str) -> None:
        if not email:
            self.error = "Email address is required for filtering"
            return

        self.loading = True
        try:
            self.alerts = self.client.list_alerts_by_email(email)
            self.is_filtering_by_email = True
            self._log_status(email)
        except ApiError as e:
            log.error("Error fetching alerts by email: %s", e.message)
            if isinstance(e, ApiConnectionError):
                self.error = "An error occurred while retrieving alerts"
            else:
                self.error = "Failed to retrieve alerts for this email"
        finally:
            self.loading = False

    def refresh(self) -> None:
        if self.is_filtering_by_email and self.email_filter:
            self.fetch_alerts_by_email(self.email_filter)
        else:
            self.fetch_alerts()

    def clear_email_filter(self) -> None:
        self.is_filtering_by_email = False
        self.fetch_alerts()
        self.email_filter = ""

    def fetch_sample_crns(self) -> None:
        self.loading_samples = True
        try:
            self.sample_crns = self.client.sample_crns()
        except ApiError as e:
            log.error("Error fetching sample CRNs: %s", e.message)
        finally:
            self.loading_samples = False

    def _log_status(self, email: str = "") -> None:
        header = f"--- Class Availability Status for {email} ---" if email else "--- Class Availability Status ---"
        log.info(header)
        for line in status_report(self.alerts):
            log.info(line)

    # -----------------------------------------------------------------------
    # Mutations
    # -----------------------------------------------------------------------

    def add_alert(self, crn: str) -> bool:
        crn = (crn or "").strip()
        if not crn:
            self.error = "CRN is required"
            return False

        if not self.is_logged_in and not is_valid_email(self.email):
            self.error = "Please login or enter a valid email address"
            return False

        self.loading = True
        self.error = ""
        self.success_message = ""

        try:
            if not self.is_logged_in and self.email:
                try:
                    self.client.login_user(self.email)
                except ApiError as e:
                    log.error("Error logging in user before adding alert: %s", e.message)
                else:
                    self.store.set_item(EMAIL_KEY, self.email)
                    self.is_logged_in = True

            try:
                data = self.client.add_alert(
                    {
                        "crn": crn,
                        "email": self.email,
                        "use_phone": self.phone_verified and self.enable_sms,
                    }
                )
            except ApiError as e:
                log.error("Error adding alert for CRN %s: %s", crn, e.message)
                self.error = _message(e, "An error occurred while adding the alert")
                return False

            self.success_message = str(data.get("message") or "Alert added successfully")
            self.fetch_alerts_by_email(self.email)

            if self.phone_verified:
                if data.get("phone_available"):
                    self.success_message = "Alert added with SMS notifications enabled!"
                else:
                    self.success_message = (
                        "Alert added successfully, but SMS notifications require a verified phone number"
                    )
            return True
        finally:
            self.loading = False

    def delete_alert(self, crn: str, term: str, email: str, confirm: ConfirmFn) -> bool:
        """
        Delete one alert after the user confirms. Declining sends nothing.
        """
        if not confirm(f"Are you sure you want to delete the alert for CRN {crn}?"):
            return False

        self.is_deleting = True
        try:
            data = self.client.delete_alert(crn, term, email)
        except ApiError as e:
            log.error("Error deleting alert for CRN %s: %s", crn, e.message)
            self.error = _message(e, "An error occurred while deleting the alert")
            return False
        finally:
            self.is_deleting = False

        self.delete_message = str(data.get("message") or f"Alert for CRN {crn} deleted")
        self.refresh()
        return True

    def toggle_phone_notification(self, crn: str, term: str, current_use_phone: bool) -> bool:
        """
        Flip SMS notifications for one alert.

        Enabling first sends a test notification; if that fails the toggle
        is abandoned.
        """
        if not self.phone_verified:
            self.error = "You need to verify a phone number in Settings before enabling SMS notifications"
            return False

        self.phone_toggle_loading = True
        self.error = ""
        self.success_message = ""

        try:
            if not current_use_phone:
                try:
                    send_class_availability_notification(
                        self.client,
                        email=self.email,
                        crn=crn,
                        department="TEST",
                        course_code="101",
                        section="500",
                    )
                except NotificationError as e:
                    log.error("Failed to send test SMS notification: %s", e)
                    self.error = "Failed to send test SMS. Please check your phone number and carrier settings."
                    return False

            try:
                self.client.add_alert(
                    {"crn": crn, "term": term, "email": self.email, "use_phone": not current_use_phone}
                )
            except ApiError as e:
                log.error("Error updating alert %s: %s", crn, e.message)
                self.error = _message(e, "An error occurred while updating notification settings")
                return False

            self.alerts = [
                replace(a, use_phone=not current_use_phone) if a.crn == crn and a.term == term else a
                for a in self.alerts
            ]

            if not current_use_phone:
                self.success_message = (
                    f"SMS notifications enabled for CRN {crn}. A test message was sent to your phone."
                )
            else:
                self.success_message = f"SMS notifications disabled for CRN {crn}."
            return True
        finally:
            self.phone_toggle_loading = False

    # -----------------------------------------------------------------------
    # Banner handling
    # -----------------------------------------------------------------------

    def pop_messages(self) -> list[tuple[str, str]]:
        """
        Return pending (kind, text) banners and clear them.
        """
        out: list[tuple[str, str]] = []
        if self.error:
            out.append(("error", self.error))
        if self.success_message:
            out.append(("success", self.success_message))
        if self.delete_message:
            out.append(("success", self.delete_message))
        self.error = ""
        self.success_message = ""
        self.delete_message = ""
        return out
