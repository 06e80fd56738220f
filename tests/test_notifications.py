import unittest
from unittest import mock

from classalert.api import ApiClient, ApiError
from classalert.notifications import (
    NotificationError,
    availability_message,
    send_class_availability_notification,
    send_sms,
)


class TestNotifications(unittest.TestCase):
    def setUp(self) -> None:
        self.client = mock.create_autospec(ApiClient, instance=True)

    def test_message_format(self) -> None:
        self.assertEqual(availability_message("12345", "CSCE", "121", "501"), "CRN 12345 is available (CSCE 121 Section 501)")
        self.assertEqual(availability_message("12345", "CSCE", "121"), "CRN 12345 is available (CSCE 121)")
        self.assertEqual(availability_message("12345"), "CRN 12345 is available")

    def test_send_sms_posts_given_fields_only(self) -> None:
        self.client.send_sms.return_value = {"success": True}
        send_sms(self.client, phone_number="9795551234", carrier="att", message="hi")
        self.client.send_sms.assert_called_once_with({"phone_number": "9795551234", "carrier": "att", "message": "hi"})

    def test_availability_notification(self) -> None:
        self.client.send_sms.return_value = {"success": True, "message_id": "m1"}
        seen = []

        data = send_class_availability_notification(
            self.client, "a@tamu.edu", "12345", "CSCE", "121", "501", on_success=seen.append
        )

        self.assertEqual(data["message_id"], "m1")
        self.assertEqual(seen, [data])
        self.client.send_sms.assert_called_once_with(
            {
                "email": "a@tamu.edu",
                "message": "CRN 12345 is available (CSCE 121 Section 501)",
                "subject": "Aggie Class Alert",
            }
        )

    def test_unsuccessful_response_raises(self) -> None:
        self.client.send_sms.return_value = {"success": False, "error": "No verified phone"}
        errors = []
        with self.assertRaises(NotificationError) as cm:
            send_sms(self.client, email="a@tamu.edu", message="hi", on_error=errors.append)
        self.assertEqual(str(cm.exception), "No verified phone")
        self.assertEqual(errors, ["No verified phone"])

    def test_api_error_raises(self) -> None:
        self.client.send_sms.side_effect = ApiError("Request failed with status 500", status_code=500)
        with self.assertRaises(NotificationError):
            send_class_availability_notification(self.client, "a@tamu.edu", "12345")


if __name__ == "__main__":
    unittest.main()
