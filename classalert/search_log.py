"""
Debug logging for professor search responses.

The search endpoint returns extraction logs and RateMyProfessor coverage
alongside the results; this module writes them to the debug log and builds
the rows of the RMP debug table.
"""

from __future__ import annotations

import logging
from typing import Any

from classalert.model import Professor

log = logging.getLogger(__name__)


def _na(x: Any) -> str:
    return "N/A" if x in (None, "") else str(x)


def rmp_rows(professors: list[Professor]) -> list[dict[str, str]]:
    """
    One row per professor: name, last name, RMP found, rating, would take
    again, difficulty and comment tags.
    """
    rows: list[dict[str, str]] = []
    for p in professors:
        rows.append(
            {
                "Name": p.name,
                "Last Name": p.last_name or "N/A",
                "RMP Found": "Yes" if p.rmp_found else "No",
                "Rating": _na(p.rmp_rating),
                "Would Take Again": _na(p.rmp_would_take_again),
                "Difficulty": _na(p.rmp_difficulty),
                "Comment Tags": ", ".join(p.rmp_tags) or "None",
            }
        )
    return rows


def log_professor_search_data(data: dict[str, Any]) -> None:
    if not log.isEnabledFor(logging.DEBUG):
        return

    raw = data.get("professors")
    professors = [Professor.from_dict(p) for p in raw if isinstance(p, dict)] if isinstance(raw, list) else []

    log.debug("Department: %s, Course Code: %s", data.get("department"), data.get("course_code"))
    log.debug("Found %d total professors", len(professors))
    log.debug("Upcoming Term: %s", data.get("upcoming_term") or "Unknown")

    for line in data.get("console_log") or []:
        log.debug("[server] %s", line)

    if data.get("debug"):
        log.debug("Debug data: %s", data["debug"])

    if not professors:
        return

    with_rmp = [p for p in professors if p.rmp_found]
    log.debug("Found RMP data for %d out of %d professors", len(with_rmp), len(professors))
    for row in rmp_rows(professors):
        log.debug(" | ".join(f"{k}: {v}" for k, v in row.items()))

    teaching = [p for p in professors if p.teaching_next_term]
    log.debug("Found %d professors teaching next semester", len(teaching))
    for p in teaching:
        log.debug(
            "%s - GPA: %s - Section: %s - CRN: %s",
            p.name,
            _na(p.average_gpa),
            p.section_number or "N/A",
            p.crn or "N/A",
        )
