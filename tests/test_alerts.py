"""
Behaviour tests for the alert list view against a mocked backend.
"""

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from classalert.alerts import AlertsView, status_report
from classalert.api import ApiClient, ApiConnectionError, ApiError
from classalert.auth import AuthContext
from classalert.model import Alert, UserProfile
from classalert.storage import EMAIL_KEY, LocalStore


class AlertsTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.store = LocalStore(Path(self._tmp.name) / "state.json")
        self.client = mock.create_autospec(ApiClient, instance=True)
        self.client.list_alerts.return_value = []
        self.client.list_alerts_by_email.return_value = []
        self.client.get_profile.return_value = UserProfile(email="")
        self.auth = AuthContext(self.client, self.store)
        self.view = AlertsView(self.client, self.auth)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def signed_in(self, email: str = "a@tamu.edu") -> None:
        self.view.email = email
        self.view.email_filter = email
        self.view.is_logged_in = True


class TestAddAlert(AlertsTestCase):
    def test_empty_crn_sends_nothing(self) -> None:
        self.signed_in()
        self.assertFalse(self.view.add_alert("   "))
        self.assertEqual(self.view.error, "CRN is required")
        self.client.add_alert.assert_not_called()
        self.client.login_user.assert_not_called()

    def test_anonymous_without_email_sends_nothing(self) -> None:
        self.assertFalse(self.view.add_alert("12345"))
        self.assertEqual(self.view.error, "Please login or enter a valid email address")
        self.client.add_alert.assert_not_called()

    def test_success_refetches_once_by_email(self) -> None:
        self.signed_in()
        self.client.add_alert.return_value = {"message": "Alert added"}

        self.assertTrue(self.view.add_alert("12345"))

        self.client.add_alert.assert_called_once_with({"crn": "12345", "email": "a@tamu.edu", "use_phone": False})
        self.client.list_alerts_by_email.assert_called_once_with("a@tamu.edu")
        self.client.list_alerts.assert_not_called()
        self.assertEqual(self.view.success_message, "Alert added")

    def test_anonymous_with_email_logs_in_first(self) -> None:
        self.view.email = "new@tamu.edu"
        self.client.add_alert.return_value = {}

        self.assertTrue(self.view.add_alert("12345"))

        self.client.login_user.assert_called_once_with("new@tamu.edu")
        self.assertTrue(self.view.is_logged_in)
        self.assertEqual(self.store.get_item(EMAIL_KEY), "new@tamu.edu")

    def test_sms_flag_requires_verified_phone(self) -> None:
        self.signed_in()
        self.view.phone_verified = True
        self.view.enable_sms = True
        self.client.add_alert.return_value = {"phone_available": True}

        self.view.add_alert("12345")

        self.assertTrue(self.client.add_alert.call_args[0][0]["use_phone"])
        self.assertEqual(self.view.success_message, "Alert added with SMS notifications enabled!")

    def test_backend_error_is_shown(self) -> None:
        self.signed_in()
        self.client.add_alert.side_effect = ApiError("Invalid CRN", status_code=400)
        self.assertFalse(self.view.add_alert("99999"))
        self.assertEqual(self.view.error, "Invalid CRN")
        self.client.list_alerts_by_email.assert_not_called()


class TestDeleteAlert(AlertsTestCase):
    def test_cancel_sends_nothing(self) -> None:
        self.signed_in()
        questions = []

        def decline(q: str) -> bool:
            questions.append(q)
            return False

        self.assertFalse(self.view.delete_alert("12345", "202531", "a@tamu.edu", decline))
        self.assertEqual(questions, ["Are you sure you want to delete the alert for CRN 12345?"])
        self.client.delete_alert.assert_not_called()

    def test_confirm_deletes_and_refetches(self) -> None:
        self.signed_in()
        self.view.is_filtering_by_email = True
        self.client.delete_alert.return_value = {"message": "Alert deleted"}

        self.assertTrue(self.view.delete_alert("12345", "202531", "a@tamu.edu", lambda q: True))

        self.client.delete_alert.assert_called_once_with("12345", "202531", "a@tamu.edu")
        self.client.list_alerts_by_email.assert_called_once_with("a@tamu.edu")
        self.assertEqual(self.view.delete_message, "Alert deleted")
        self.assertFalse(self.view.is_deleting)


class TestTogglePhone(AlertsTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.signed_in()
        self.view.alerts = [
            Alert(crn="111", term="202531", email="a@tamu.edu", use_phone=False),
            Alert(crn="222", term="202531", email="a@tamu.edu", use_phone=False),
        ]

    def test_unverified_phone_is_noop(self) -> None:
        self.view.phone_verified = False
        self.assertFalse(self.view.toggle_phone_notification("111", "202531", False))
        self.client.send_sms.assert_not_called()
        self.client.add_alert.assert_not_called()
        self.assertFalse(self.view.alerts[0].use_phone)

    def test_enable_sends_test_sms_then_patches_one_entry(self) -> None:
        self.view.phone_verified = True
        self.client.send_sms.return_value = {"success": True}
        self.client.add_alert.return_value = {}

        self.assertTrue(self.view.toggle_phone_notification("111", "202531", False))

        payload = self.client.send_sms.call_args[0][0]
        self.assertEqual(payload["message"], "CRN 111 is available (TEST 101 Section 500)")
        self.client.add_alert.assert_called_once_with(
            {"crn": "111", "term": "202531", "email": "a@tamu.edu", "use_phone": True}
        )
        self.assertTrue(self.view.alerts[0].use_phone)
        self.assertFalse(self.view.alerts[1].use_phone)
        self.client.list_alerts_by_email.assert_not_called()

    def test_failed_test_sms_aborts(self) -> None:
        self.view.phone_verified = True
        self.client.send_sms.return_value = {"success": False, "error": "bad carrier"}

        self.assertFalse(self.view.toggle_phone_notification("111", "202531", False))

        self.client.add_alert.assert_not_called()
        self.assertIn("Failed to send test SMS", self.view.error)
        self.assertFalse(self.view.phone_toggle_loading)

    def test_disable_skips_test_sms(self) -> None:
        self.view.phone_verified = True
        self.view.alerts[0].use_phone = True
        self.client.add_alert.return_value = {}

        self.assertTrue(self.view.toggle_phone_notification("111", "202531", True))

        self.client.send_sms.assert_not_called()
        self.assertFalse(self.view.alerts[0].use_phone)
        self.assertEqual(self.view.success_message, "SMS notifications disabled for CRN 111.")


class TestLoad(AlertsTestCase):
    def test_anonymous_lists_all(self) -> None:
        self.view.load()
        self.client.list_alerts.assert_called_once_with()
        self.assertFalse(self.view.is_logged_in)

    def test_stored_email_existing_user(self) -> None:
        self.store.set_item(EMAIL_KEY, "a@tamu.edu")
        self.client.check_user.return_value = True
        self.client.get_profile.return_value = UserProfile(
            email="a@tamu.edu", phone_number="9795551234", phone_carrier="att", phone_verified=True
        )

        self.view.load()

        self.client.list_alerts_by_email.assert_called_once_with("a@tamu.edu")
        self.assertTrue(self.view.is_logged_in)
        self.assertTrue(self.view.phone_verified)
        self.assertEqual(self.view.phone_carrier, "att")

    def test_stored_email_unknown_user_is_created(self) -> None:
        self.store.set_item(EMAIL_KEY, "new@tamu.edu")
        self.client.check_user.return_value = False
        self.client.login_user.return_value = {"success": True}

        self.view.load()

        self.client.login_user.assert_called_once_with("new@tamu.edu")
        self.assertEqual(self.view.success_message, "Login successful!")

    def test_check_failure_forgets_email_and_lists_all(self) -> None:
        self.store.set_item(EMAIL_KEY, "a@tamu.edu")
        self.client.check_user.side_effect = ApiConnectionError("down")

        self.view.load()

        self.assertIsNone(self.store.get_item(EMAIL_KEY))
        self.client.list_alerts.assert_called_once_with()
        self.assertEqual(self.view.error, "Error connecting to the database. Please try again.")

    def test_fetch_failure_falls_back_to_empty(self) -> None:
        self.view.alerts = [Alert(crn="1", term="2", email="")]
        self.client.list_alerts.side_effect = ApiConnectionError("down")
        self.view.fetch_alerts()
        self.assertEqual(self.view.alerts, [])

    def test_fetch_by_email_requires_email(self) -> None:
        self.view.fetch_alerts_by_email("")
        self.assertEqual(self.view.error, "Email address is required for filtering")
        self.client.list_alerts_by_email.assert_not_called()


class TestMisc(AlertsTestCase):
    def test_logout_resets_state(self) -> None:
        self.signed_in()
        self.store.set_item(EMAIL_KEY, "a@tamu.edu")
        self.view.logout()
        self.assertFalse(self.view.is_logged_in)
        self.assertEqual(self.view.email, "")
        self.assertIsNone(self.store.get_item(EMAIL_KEY))
        self.assertEqual(self.view.pop_messages(), [("success", "Logged out successfully")])
        self.assertEqual(self.view.pop_messages(), [])

    def test_status_report(self) -> None:
        lines = status_report([Alert("1", "202531", "", status=True), Alert("2", "202531", "")])
        self.assertEqual(lines, ["CRN 1 (202531): AVAILABLE", "CRN 2 (202531): NOT AVAILABLE"])


if __name__ == "__main__":
    unittest.main()
