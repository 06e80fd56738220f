"""
HTTP client for the class-alert backend.

Every backend endpoint the frontend consumes has one method here. Paths,
methods and JSON field names match the backend contract exactly.

Errors are classified only two ways:
- ApiConnectionError: the request never got a response (network, timeout)
- ApiError: the server answered with a non-2xx status, or with a body that
  is not JSON

Nothing is retried.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional
from urllib.parse import quote

import requests
from bs4 import BeautifulSoup

from classalert import config
from classalert.model import Alert, Section, UserProfile

log = logging.getLogger(__name__)


class ApiError(Exception):
    """
    The backend answered, but not successfully.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, data: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.data = data


class ApiConnectionError(ApiError):
    """
    The backend could not be reached at all.
    """


def _error_message(resp: requests.Response) -> str:
    """
    Pick a human-readable message out of a failed response.

    Prefers the JSON "error"/"message" field. HTML error pages (proxies,
    gateways) are reduced to their visible text.
    """
    try:
        data = resp.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        msg = data.get("error") or data.get("message")
        if msg:
            return str(msg)

    text = resp.text or ""
    content_type = resp.headers.get("Content-Type", "")
    if "html" in content_type or text.lstrip().startswith("<"):
        text = BeautifulSoup(text, "html.parser").get_text(" ", strip=True)

    text = text.strip()[:200]
    if text:
        return f"Request failed with status {resp.status_code}: {text}"
    return f"Request failed with status {resp.status_code}"


def _segment(value: str) -> str:
    # path segments are fully escaped, "CSCE 121" -> "CSCE%20121"
    return quote(str(value), safe="")


class ApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        headers_provider: Optional[Callable[[], dict[str, str]]] = None,
    ) -> None:
        self.base_url = (base_url or config.API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.REQUEST_TIMEOUT
        self.api_key = api_key if api_key is not None else config.API_KEY
        self.session = session or requests.Session()
        # supplies the Authorization header, see AuthContext.auth_headers
        self.headers_provider = headers_provider

    # -----------------------------------------------------------------------
    # Transport
    # -----------------------------------------------------------------------

    def _headers(self, extra: Optional[dict[str, str]] = None) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.headers_provider:
            headers.update(self.headers_provider())
        if extra:
            headers.update(extra)
        return headers

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        log.debug("%s %s params=%s", method, url, params)

        try:
            resp = self.session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self._headers(headers),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            log.error("%s %s failed: %s", method, path, e)
            raise ApiConnectionError(f"Error connecting to the server: {e}") from e

        if not resp.ok:
            message = _error_message(resp)
            log.error("%s %s -> %s: %s", method, path, resp.status_code, message)
            try:
                data = resp.json()
            except ValueError:
                data = None
            raise ApiError(message, status_code=resp.status_code, data=data)

        try:
            return resp.json()
        except ValueError as e:
            log.error("%s %s returned a non-JSON body", method, path)
            raise ApiError("Invalid response from server", status_code=resp.status_code) from e

    # -----------------------------------------------------------------------
    # Users
    # -----------------------------------------------------------------------

    def login_user(self, email: str, **extra: Any) -> dict[str, Any]:
        """
        Create-or-sync a user by email (POST /api/users/login).
        """
        body: dict[str, Any] = {"email": email}
        body.update(extra)
        headers = {"x-api-key": self.api_key} if self.api_key else None
        data = self._request("POST", "/api/users/login", json_body=body, headers=headers)
        return data if isinstance(data, dict) else {}

    def check_user(self, email: str) -> bool:
        data = self._request("GET", f"/api/users/check/{_segment(email)}")
        return bool(isinstance(data, dict) and data.get("exists"))

    def get_profile(self, email: Optional[str] = None, phone: Optional[str] = None) -> UserProfile:
        if phone and not email:
            params = {"phone": phone}
        else:
            params = {"email": email or ""}
        data = self._request("GET", "/api/users/profile", params=params)
        return UserProfile.from_dict(data if isinstance(data, dict) else {}, email=email or "")

    # -----------------------------------------------------------------------
    # Alerts
    # -----------------------------------------------------------------------

    def list_alerts(self) -> list[Alert]:
        data = self._request("GET", "/api/alerts")
        return [Alert.from_dict(a) for a in data if isinstance(a, dict)] if isinstance(data, list) else []

    def list_alerts_by_email(self, email: str) -> list[Alert]:
        data = self._request("GET", f"/api/alerts/by-email/{_segment(email)}")
        return [Alert.from_dict(a) for a in data if isinstance(a, dict)] if isinstance(data, list) else []

    def add_alert(self, payload: dict[str, Any]) -> dict[str, Any]:
        """
        Create or update an alert (POST /api/add-alert). Same key = upsert.
        """
        data = self._request("POST", "/api/add-alert", json_body=payload)
        return data if isinstance(data, dict) else {}

    def delete_alert(self, crn: str, term: str, email: str) -> dict[str, Any]:
        body = {"crn": str(crn), "term": str(term), "email": email}
        data = self._request("DELETE", "/api/alerts/delete", json_body=body)
        return data if isinstance(data, dict) else {}

    def sample_crns(self) -> dict[str, list[str]]:
        """
        Example valid CRNs grouped by term.
        """
        data = self._request("GET", "/api/sample-crns")
        samples = data.get("samples") if isinstance(data, dict) else None
        if not isinstance(samples, dict):
            return {}
        return {str(term): [str(c) for c in crns] for term, crns in samples.items() if isinstance(crns, list)}

    # -----------------------------------------------------------------------
    # Search
    # -----------------------------------------------------------------------

    def search_professors(self, department: str, course_code: str, include_galveston: bool = False) -> dict[str, Any]:
        params = {
            "department": department,
            "course_code": course_code,
            "include_galveston": "true" if include_galveston else "false",
        }
        data = self._request("GET", "/api/professors/search", params=params)
        return data if isinstance(data, dict) else {}

    def course_sections(self, department: str, course_code: str) -> list[Section]:
        course = f"{department} {course_code}"
        data = self._request("GET", f"/api/course/sections/{_segment(course)}")
        rows = data.get("sections") if isinstance(data, dict) else None
        return [Section.from_dict(s) for s in rows if isinstance(s, dict)] if isinstance(rows, list) else []

    def status(self) -> dict[str, Any]:
        data = self._request("GET", "/api/status")
        return data if isinstance(data, dict) else {}

    # -----------------------------------------------------------------------
    # Phone verification & notifications
    # -----------------------------------------------------------------------

    def request_phone_code(self, phone_number: str, carrier: str, email: str) -> dict[str, Any]:
        body = {"phoneNumber": phone_number, "carrier": carrier, "email": email}
        data = self._request("POST", "/api/verify-phone", json_body=body)
        return data if isinstance(data, dict) else {}

    def confirm_phone_code(self, payload: dict[str, Any]) -> dict[str, Any]:
        data = self._request("POST", "/api/verify-phone/confirm", json_body=payload)
        return data if isinstance(data, dict) else {}

    def send_sms(self, payload: dict[str, Any]) -> dict[str, Any]:
        data = self._request("POST", "/api/send-sms", json_body=payload)
        return data if isinstance(data, dict) else {}
