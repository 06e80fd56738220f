import unittest

from classalert import routes


class TestRoutes(unittest.TestCase):
    def test_dashboard_redirects(self) -> None:
        self.assertEqual(routes.resolve("/dashboard").path, routes.MY_ALERTS)

    def test_unknown_goes_home(self) -> None:
        self.assertEqual(routes.resolve("/nope").path, routes.HOME)
        self.assertEqual(routes.resolve("").path, routes.HOME)

    def test_trailing_slash(self) -> None:
        self.assertEqual(routes.resolve("search/").path, routes.SEARCH)

    def test_gated_pages(self) -> None:
        for path in ["/my-alerts", "/search", "/settings", "/dashboard"]:
            self.assertTrue(routes.requires_login(path), path)
        for path in ["/", "/help"]:
            self.assertFalse(routes.requires_login(path), path)

    def test_login_prompt(self) -> None:
        self.assertTrue(routes.needs_login_prompt("/settings", logged_in=False))
        self.assertFalse(routes.needs_login_prompt("/settings", logged_in=True))
        self.assertFalse(routes.needs_login_prompt("/help", logged_in=False))


if __name__ == "__main__":
    unittest.main()
