"""
Unit tests for the local state file.

Storage contract:
- Missing/invalid file -> empty state
- Only string values are kept
- Removing an absent key is a no-op
"""

import json
import tempfile
import unittest
from pathlib import Path

from classalert.storage import EMAIL_KEY, TOKEN_KEY, LocalStore, load_state, save_state


class TestStorage(unittest.TestCase):
    def test_load_missing_file_returns_empty(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "missing.json"
            self.assertEqual(load_state(p), {})

    def test_load_corrupt_file_returns_empty(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "state.json"
            p.write_text("{not json", encoding="utf-8")
            self.assertEqual(load_state(p), {})

            p.write_text(json.dumps(["a", "b"]), encoding="utf-8")
            self.assertEqual(load_state(p), {})

    def test_save_creates_parent_dirs(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "nested" / "dir" / "state.json"
            save_state({EMAIL_KEY: "a@tamu.edu"}, p)
            self.assertTrue(p.exists())
            self.assertEqual(load_state(p), {EMAIL_KEY: "a@tamu.edu"})

    def test_local_store_set_get_remove(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            store = LocalStore(Path(d) / "state.json")
            self.assertIsNone(store.get_item(TOKEN_KEY))

            store.set_item(TOKEN_KEY, "abc")
            store.set_item(EMAIL_KEY, "a@tamu.edu")
            self.assertEqual(store.get_item(TOKEN_KEY), "abc")

            store.remove_item(TOKEN_KEY)
            store.remove_item(TOKEN_KEY)
            self.assertIsNone(store.get_item(TOKEN_KEY))
            self.assertEqual(store.get_item(EMAIL_KEY), "a@tamu.edu")


if __name__ == "__main__":
    unittest.main()
