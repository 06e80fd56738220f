"""
Interactive menu tests: rich output goes to a string buffer, prompts are scripted.
"""

import io
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from rich.console import Console

from classalert import interactive
from classalert.api import ApiClient
from classalert.app import App
from classalert.auth import AuthContext
from classalert.model import Professor, UserProfile
from classalert.storage import EMAIL_KEY, LocalStore


class InteractiveTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.store = LocalStore(Path(self._tmp.name) / "state.json")
        self.client = mock.create_autospec(ApiClient, instance=True)
        self.client.get_profile.return_value = UserProfile(email="")
        self.app = App(store=self.store, client=self.client, auth=AuthContext(self.client, self.store))

        self.out = io.StringIO()
        patcher = mock.patch.object(interactive, "console", Console(file=self.out, width=200, color_system=None))
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def answer(self, *replies: str):
        return mock.patch.object(interactive, "_prompt", side_effect=list(replies))


class TestHeader(InteractiveTestCase):
    def test_email_is_printed_literally(self) -> None:
        self.store.set_item(EMAIL_KEY, "[red]a@tamu.edu")
        interactive._print_header(self.app)
        self.assertIn("Signed in as [red]a@tamu.edu", self.out.getvalue())

    def test_anonymous(self) -> None:
        interactive._print_header(self.app)
        self.assertIn("Not signed in", self.out.getvalue())


class TestSettingsPage(InteractiveTestCase):
    def test_save_requires_verified_phone(self) -> None:
        with self.answer("3", ""):
            interactive._page_settings(self.app)
        self.assertIn("Please verify your phone number first", self.out.getvalue())

    def test_save_verified_phone(self) -> None:
        self.client.get_profile.return_value = UserProfile(
            email="a@tamu.edu", phone_number="9795551234", phone_carrier="att", phone_verified=True
        )
        with self.answer("3", ""):
            interactive._page_settings(self.app)
        self.assertIn("Phone number saved successfully!", self.out.getvalue())


class TestProfessorDetails(InteractiveTestCase):
    def test_missing_selection_returns_to_prompt(self) -> None:
        view = mock.Mock()
        view.professor_sections.return_value = []
        view.selected_professor = None

        with self.answer("1", "") as prompt:
            interactive._flow_professor_details(view, [Professor(name="SMITH J")])

        self.assertEqual(prompt.call_count, 2)
        view.add_alert.assert_not_called()


if __name__ == "__main__":
    unittest.main()
