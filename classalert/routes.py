"""
Page table for the interactive client.

Maps the site paths to pages and says which ones need a signed-in user.
A gated page opened anonymously still shows, with the login prompt on top.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Route:
    path: str
    title: str
    requires_login: bool = False
    redirect_to: Optional[str] = None


HOME = "/"
MY_ALERTS = "/my-alerts"
SEARCH = "/search"
SETTINGS = "/settings"
HELP = "/help"

ROUTES: dict[str, Route] = {
    HOME: Route(HOME, "Home"),
    "/dashboard": Route("/dashboard", "Dashboard", redirect_to=MY_ALERTS),
    MY_ALERTS: Route(MY_ALERTS, "My Alerts", requires_login=True),
    SEARCH: Route(SEARCH, "Search Professors", requires_login=True),
    SETTINGS: Route(SETTINGS, "Settings", requires_login=True),
    HELP: Route(HELP, "Help"),
}

# order of the navigation menu
NAV = [MY_ALERTS, SEARCH, SETTINGS, HELP]


def resolve(path: str) -> Route:
    """
    Return the route for a path, following redirects. Unknown paths go home.
    """
    norm = "/" + (path or "").strip().strip("/")
    seen: set[str] = set()
    route = ROUTES.get(norm, ROUTES[HOME])
    while route.redirect_to and route.path not in seen:
        seen.add(route.path)
        route = ROUTES.get(route.redirect_to, ROUTES[HOME])
    return route


def requires_login(path: str) -> bool:
    return resolve(path).requires_login


def needs_login_prompt(path: str, logged_in: bool) -> bool:
    return requires_login(path) and not logged_in
