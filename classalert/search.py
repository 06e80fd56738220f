"""
Professor search view.

Given a department and course number, ask the backend for every professor
who has taught the course, then filter and sort the result client side:

- placeholder "names" (departments, online sections, course titles) are dropped
- only professors teaching next term with at least one known section are shown
- sort by overall GPA, or put honors / regular teachers first

From a professor the user can open the section details (availability and
meeting times) and create an alert for any section CRN.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Optional

from classalert.api import ApiClient, ApiConnectionError, ApiError
from classalert.config import DEFAULT_TERM
from classalert.model import Professor, ProfessorCourse, Section, UserProfile
from classalert.search_log import log_professor_search_data
from classalert.storage import EMAIL_KEY, LocalStore

log = logging.getLogger(__name__)

SORT_OVERALL = "overall"
SORT_HONORS = "honors"
SORT_REGULAR = "regular"
SORT_CHOICES = (SORT_OVERALL, SORT_HONORS, SORT_REGULAR)

_NON_PROFESSOR_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in [
        # institutions
        r"university",
        r"college",
        r"dept",
        r"department",
        r"staff",
        r"tamu",
        r"faculty",
        r"texas a&m",
        # delivery modes
        r"web based",
        r"web-based",
        r"distance education",
        r"distance learning",
        r"online",
        r"remote",
        r"virtual",
        # course titles
        r"introduction to",
        r"honors",
        r"principles of",
        r"engineering",
        r"calculus",
        r"statistics",
        r"fundamentals of",
        r"laboratory",
        r"course",
        r"class",
        r"section",
        r"lecture",
        r"seminar",
        r"research",
    ]
]


def is_actual_professor(name: str) -> bool:
    return not any(p.search(name or "") for p in _NON_PROFESSOR_PATTERNS)


def sort_professors(profs: list[Professor], sort_by: str = SORT_OVERALL) -> list[Professor]:
    """
    Filter to real professors teaching next term and sort them.

    honors:  has_honors first (by honors GPA desc), then the rest by overall GPA desc
    regular: has_regular first (by regular GPA desc), then the rest by overall GPA desc
    overall: overall GPA desc, missing GPA counts as 0
    """
    teaching = [p for p in profs if is_actual_professor(p.name) and p.teaching_next_term and p.courses]

    if sort_by == SORT_HONORS:

        def key(p: Professor) -> tuple[int, float]:
            if p.has_honors:
                return (0, -(p.honors_gpa or 0))
            return (1, -(p.average_gpa or 0))

    elif sort_by == SORT_REGULAR:

        def key(p: Professor) -> tuple[int, float]:
            if p.has_regular:
                return (0, -(p.regular_gpa or 0))
            return (1, -(p.average_gpa or 0))

    else:

        def key(p: Professor) -> tuple[int, float]:
            return (0, -(p.average_gpa or 0))

    return sorted(teaching, key=key)


def separator_index(sorted_profs: list[Professor], sort_by: str) -> int:
    """
    Index of the first professor without the sorted-on category, or -1.
    """
    if sort_by == SORT_OVERALL or not sorted_profs:
        return -1
    for i, p in enumerate(sorted_profs):
        has = p.has_honors if sort_by == SORT_HONORS else p.has_regular
        if not has:
            return i
    return -1


def star_fills(rating: Optional[float], stars: int = 4) -> list[float]:
    """
    Fill level (0, 0.25, 0.5, 0.75 or 1) of each star for a 4.0 scale rating.
    """
    if rating is None:
        return [0.0] * stars
    out: list[float] = []
    for position in range(1, stars + 1):
        distance = position - rating
        if distance <= 0:
            out.append(1.0)
        elif distance < 1:
            out.append(round((1 - distance) * 4) / 4)
        else:
            out.append(0.0)
    return out


def render_stars(rating: Optional[float]) -> str:
    chars = []
    for fill in star_fills(rating):
        if fill >= 1:
            chars.append("★")
        elif fill > 0:
            chars.append("◐")
        else:
            chars.append("☆")
    return "".join(chars)


@dataclass
class SearchStats:
    total_professors: int = 0
    next_term_professors: int = 0
    has_next_term_teachers: bool = False


@dataclass
class AlertStatus:
    loading: bool = False
    success: bool = False
    message: str = ""


class SearchView:
    def __init__(self, client: ApiClient, store: LocalStore, term: str = DEFAULT_TERM) -> None:
        self.client = client
        self.store = store
        self.term = term

        self.display_department = ""
        self.display_course_code = ""
        self.include_galveston = False
        self.sort_by = SORT_OVERALL

        self.loading = False
        self.searched = False
        self.error = ""
        self.professors: list[Professor] = []
        self.course_sections: list[Section] = []
        self.stats = SearchStats()

        self.selected_professor: Optional[Professor] = None
        self.section_data: list[Section] = []
        self.rmp_module_available: Optional[bool] = None
        self.alert_status: dict[str, AlertStatus] = {}
        self.email = ""

    def load(self) -> None:
        self.check_rmp_available()
        self.email = self.store.get_item(EMAIL_KEY) or ""

    def check_rmp_available(self) -> bool:
        try:
            data = self.client.status()
        except ApiError as e:
            log.error("Error checking RMP module availability: %s", e.message)
            self.rmp_module_available = False
            return False
        self.rmp_module_available = bool(data.get("rmp_available"))
        return self.rmp_module_available

    # -----------------------------------------------------------------------
    # Searching
    # -----------------------------------------------------------------------

    def search(self, department: str, course_code: str, include_galveston: bool = False) -> bool:
        department = (department or "").strip().upper()
        course_code = (course_code or "").strip()

        self.loading = True
        self.error = ""
        self.searched = True
        self.include_galveston = include_galveston
        self.display_department = department
        self.display_course_code = course_code

        try:
            data = self.client.search_professors(department, course_code, include_galveston)
        except ApiError as e:
            log.error("Error searching professors: %s", e.message)
            self.error = e.message or "An error occurred while searching. Please try again."
            self.professors = []
            self.stats = SearchStats()
            return False
        finally:
            self.loading = False

        log_professor_search_data(data)

        try:
            self.course_sections = self.client.course_sections(department, course_code)
            log.debug("Total sections for %s %s: %d", department, course_code, len(self.course_sections))
        except ApiError as e:
            log.error("Error fetching course sections: %s", e.message)
            self.course_sections = []

        raw = data.get("professors")
        self.professors = [Professor.from_dict(p) for p in raw if isinstance(p, dict)] if isinstance(raw, list) else []

        next_term = sum(1 for p in self.professors if p.teaching_next_term)
        total = data.get("total_professors")
        self.stats = SearchStats(
            total_professors=int(total) if isinstance(total, (int, float)) else len(self.professors),
            next_term_professors=next_term,
            has_next_term_teachers=next_term > 0,
        )
        return True

    @property
    def sorted_professors(self) -> list[Professor]:
        return sort_professors(self.professors, self.sort_by)

    @property
    def is_filtering(self) -> bool:
        return self.stats.next_term_professors < self.stats.total_professors

    def summary(self) -> list[str]:
        n = len(self.sorted_professors)
        lines = [f"{n} professor{'' if n == 1 else 's'} teaching next semester"]
        if self.is_filtering:
            total = self.stats.total_professors
            lines.append(f"{total} professor{' has' if total == 1 else 's have'} taught this course historically")
        honors = sum(1 for p in self.sorted_professors if p.has_honors)
        if self.sort_by == SORT_HONORS and honors:
            lines.append(f"{honors} teaching honors sections")
        return lines

    # -----------------------------------------------------------------------
    # Section details
    # -----------------------------------------------------------------------

    def professor_sections(self, professor: Professor) -> Optional[list[Section]]:
        """
        Load the sections taught by one professor and refresh their availability.

        Returns None (and sets an error) when the professor has no known sections.
        """
        if not professor.courses:
            self.error = (
                f"{professor.name} has no known sections for {self.display_department} {self.display_course_code}."
            )
            return None

        self.selected_professor = professor

        try:
            sections = self.client.course_sections(self.display_department.upper(), self.display_course_code)
        except ApiError as e:
            log.error("Error fetching section details: %s", e.message)
            self.section_data = []
            return []

        if not sections:
            self.section_data = []
            return []

        by_number = {s.section: s for s in sections}
        numbers = {c.section for c in professor.courses}

        courses: list[ProfessorCourse] = []
        for c in professor.courses:
            match = by_number.get(c.section)
            courses.append(replace(c, is_available=match.is_open if match else False))
        self.selected_professor = replace(professor, courses=courses)

        self.section_data = [s for s in sections if s.section in numbers]
        log.debug("%s: %d matched sections", professor.name, len(self.section_data))
        return self.section_data

    def close_details(self) -> None:
        self.selected_professor = None
        self.section_data = []
        self.alert_status = {}

    def course_meeting_info(self, section_number: str, course: Optional[ProfessorCourse] = None) -> list[str]:
        """
        Meeting lines for one section: registration data first, then the
        meetings attached to the professor's course record.
        """
        for s in self.section_data:
            if s.section == section_number and s.meetings:
                return meeting_lines(s)

        if course is not None and course.meetings:
            return [m.line() for m in course.meetings]

        return ["Meeting time information will be available soon"]

    # -----------------------------------------------------------------------
    # Alerts from search results
    # -----------------------------------------------------------------------

    def add_alert(self, crn: str, section: str = "") -> AlertStatus:
        crn = (crn or "").strip()
        if not crn:
            status = AlertStatus(success=False, message="Invalid CRN")
            self.alert_status[crn] = status
            return status

        email = self.email or self.store.get_item(EMAIL_KEY) or ""
        if not email:
            status = AlertStatus(success=False, message="Please login or enter an email address to add alerts")
            self.alert_status[crn] = status
            return status

        self.alert_status[crn] = AlertStatus(loading=True)

        try:
            profile = self.client.get_profile(email=email)
        except ApiError as e:
            log.warning("Could not load profile for %s: %s", email, e.message)
            profile = UserProfile(email=email)

        payload = {
            "crn": crn,
            "term": self.term,
            "email": email,
            "original_email": email,
            "use_phone": profile.has_verified_phone,
            "phone_number": profile.phone_number,
            "phone_carrier": profile.phone_carrier,
        }

        try:
            data = self.client.add_alert(payload)
        except ApiError as e:
            log.error("Error adding alert for CRN %s: %s", crn, e.message)
            if isinstance(e, ApiConnectionError):
                message = "An error occurred. Please try again."
            else:
                message = e.message or "Failed to add alert"
            status = AlertStatus(success=False, message=message)
            self.alert_status[crn] = status
            return status

        self.store.set_item(EMAIL_KEY, email)
        log.info("Added alert for CRN %s (Section %s)", crn, section or "N/A")
        status = AlertStatus(success=True, message=str(data.get("message") or "Alert added successfully!"))
        self.alert_status[crn] = status
        return status


def meeting_lines(section: Section) -> list[str]:
    if not section.meetings:
        return ["No meeting time information available"]
    return [m.line() for m in section.meetings]
