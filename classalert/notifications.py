"""
Thin wrapper around the backend's "send SMS" endpoint.

The backend owns the actual email/SMS gateway; the client only asks it to
send a message and reports whether that worked.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from classalert.api import ApiClient, ApiError
from classalert.config import NOTIFICATION_SUBJECT

log = logging.getLogger(__name__)


class NotificationError(Exception):
    pass


def _post(
    client: ApiClient,
    payload: dict[str, Any],
    on_success: Optional[Callable[[dict[str, Any]], None]],
    on_error: Optional[Callable[[str], None]],
) -> dict[str, Any]:
    try:
        data = client.send_sms(payload)
    except ApiError as e:
        log.error("send-sms failed: %s", e.message)
        if on_error:
            on_error(e.message or "Unknown error")
        raise NotificationError(e.message or "Unknown error") from e

    if not data.get("success"):
        error = str(data.get("error") or "Unknown error")
        log.error("send-sms rejected: %s", error)
        if on_error:
            on_error(error)
        raise NotificationError(error)

    if on_success:
        on_success(data)
    return data


def send_sms(
    client: ApiClient,
    phone_number: Optional[str] = None,
    carrier: Optional[str] = None,
    message: Optional[str] = None,
    email: Optional[str] = None,
    on_success: Optional[Callable[[dict[str, Any]], None]] = None,
    on_error: Optional[Callable[[str], None]] = None,
) -> dict[str, Any]:
    """
    Send an SMS through the backend. Only the given fields are posted.

    Raises NotificationError if the backend does not report success.
    """
    payload: dict[str, Any] = {}
    if phone_number:
        payload["phone_number"] = phone_number
    if carrier:
        payload["carrier"] = carrier
    if message:
        payload["message"] = message
    if email:
        payload["email"] = email
    return _post(client, payload, on_success, on_error)


def availability_message(
    crn: str,
    department: Optional[str] = None,
    course_code: Optional[str] = None,
    section: Optional[str] = None,
) -> str:
    msg = f"CRN {crn} is available"
    if department and course_code:
        msg += f" ({department} {course_code}"
        if section:
            msg += f" Section {section}"
        msg += ")"
    return msg


def send_class_availability_notification(
    client: ApiClient,
    email: str,
    crn: str,
    department: Optional[str] = None,
    course_code: Optional[str] = None,
    section: Optional[str] = None,
    on_success: Optional[Callable[[dict[str, Any]], None]] = None,
    on_error: Optional[Callable[[str], None]] = None,
) -> dict[str, Any]:
    """
    Format and send a "class is available" SMS for one CRN.
    """
    payload = {
        "email": email,
        "message": availability_message(crn, department, course_code, section),
        "subject": NOTIFICATION_SUBJECT,
    }
    return _post(client, payload, on_success, on_error)
