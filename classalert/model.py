"""
Central data model definitions used across the project.

The backend returns loosely-typed JSON. Each dataclass here has a
``from_dict`` constructor that reads the fields the frontend actually uses
and tolerates missing or oddly-typed values, so the rest of the code can
work with plain attributes.

All of these are transient copies; the backend owns the real records.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, List, Optional


def _str(x: Any) -> str:
    return "" if x is None else str(x).strip()


def _bool(x: Any) -> bool:
    if isinstance(x, str):
        return x.strip().lower() in ("true", "1", "y", "yes")
    return bool(x)


def _float(x: Any) -> Optional[float]:
    if x is None or x == "":
        return None
    try:
        return float(x)
    except (TypeError, ValueError):
        return None


def _int(x: Any) -> int:
    try:
        return int(x)
    except (TypeError, ValueError):
        return 0


def json_list(value: Any) -> list[Any]:
    """
    Normalize a field that may hold a JSON string, a list or a single object.

    Registration-system rows embed instructor and meeting data in all three
    shapes. Unparseable strings yield [].
    """
    if value is None or value == "":
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            return []
    if isinstance(value, list):
        return value
    return [value]


@dataclass
class UserProfile:
    """
    Phone/verification state of one user (GET /api/users/profile).
    """

    email: str
    phone_number: str = ""
    phone_carrier: str = ""
    phone_verified: bool = False
    phone_verified_at: Optional[float] = None

    @property
    def has_verified_phone(self) -> bool:
        return bool(self.phone_number) and self.phone_verified

    @classmethod
    def from_dict(cls, data: dict[str, Any], email: str = "") -> "UserProfile":
        return cls(
            email=_str(data.get("email")) or email,
            phone_number=_str(data.get("phone_number")),
            phone_carrier=_str(data.get("phone_carrier")),
            phone_verified=_bool(data.get("phone_verified")),
            phone_verified_at=_float(data.get("phone_verified_at")),
        )


@dataclass
class Alert:
    """
    One monitored section. Identified by (crn, term, email).
    """

    crn: str
    term: str
    email: str
    status: bool = False
    use_phone: bool = False
    last_checked: Optional[float] = None

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.crn, self.term, self.email)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Alert":
        crn = data.get("CRN", data.get("crn"))
        term = data.get("Term", data.get("term"))
        return cls(
            crn=_str(crn),
            term=_str(term),
            email=_str(data.get("email")),
            status=_bool(data.get("status")),
            use_phone=_bool(data.get("use_phone")),
            last_checked=_float(data.get("last_checked")),
        )


@dataclass
class Meeting:
    """
    One meeting slot, e.g. MWF 10:20-11:10 in ZACH 310.
    """

    days: str
    start: str
    end: str
    building: str
    room: str

    @classmethod
    def from_registration(cls, data: dict[str, Any]) -> "Meeting":
        """
        Build from a registration-system meeting row (SSRMEET_* keys).
        """
        day_flags = [
            ("SSRMEET_MON_DAY", "M"),
            ("SSRMEET_TUE_DAY", "T"),
            ("SSRMEET_WED_DAY", "W"),
            ("SSRMEET_THU_DAY", "R"),
            ("SSRMEET_FRI_DAY", "F"),
            ("SSRMEET_SAT_DAY", "S"),
            ("SSRMEET_SUN_DAY", "U"),
        ]
        days = "".join(letter for key, letter in day_flags if data.get(key))
        return cls(
            days=days or "N/A",
            start=_str(data.get("SSRMEET_BEGIN_TIME")) or "N/A",
            end=_str(data.get("SSRMEET_END_TIME")) or "N/A",
            building=_str(data.get("SSRMEET_BLDG_CODE")) or "N/A",
            room=_str(data.get("SSRMEET_ROOM_CODE")) or "N/A",
        )

    @classmethod
    def from_course(cls, data: dict[str, Any]) -> "Meeting":
        """
        Build from the simplified meeting objects attached to professor courses.
        """
        return cls(
            days=_str(data.get("days")),
            start=_str(data.get("start_time")),
            end=_str(data.get("end_time")),
            building=_str(data.get("building")),
            room=_str(data.get("room")),
        )

    def line(self) -> str:
        return f"{self.days} {self.start}-{self.end} @ {self.building} {self.room}".strip()


@dataclass
class ProfessorCourse:
    section: str
    crn: str
    is_available: bool = False
    meetings: List[Meeting] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProfessorCourse":
        meetings = [Meeting.from_course(m) for m in json_list(data.get("meetings")) if isinstance(m, dict)]
        return cls(
            section=_str(data.get("section")),
            crn=_str(data.get("crn")),
            is_available=_bool(data.get("is_available")),
            meetings=meetings,
        )


@dataclass
class Professor:
    """
    One search result row: historical grade data, next-term teaching info
    and optional RateMyProfessor data.
    """

    name: str
    last_name: str = ""
    department: str = ""
    teaching_next_term: bool = False
    average_gpa: Optional[float] = None
    regular_gpa: Optional[float] = None
    honors_gpa: Optional[float] = None
    has_regular: bool = False
    has_honors: bool = False
    regular_count: int = 0
    honors_count: int = 0
    section_number: str = ""
    crn: str = ""
    fall_name: str = ""
    no_historical_data: bool = False
    courses: List[ProfessorCourse] = field(default_factory=list)
    rmp_found: bool = False
    rmp_rating: Optional[float] = None
    rmp_would_take_again: str = ""
    rmp_difficulty: Optional[float] = None
    rmp_comments: dict[str, Any] = field(default_factory=dict)

    @property
    def rmp_tags(self) -> list[str]:
        return list(self.rmp_comments.keys())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Professor":
        courses_raw = data.get("courses")
        courses = (
            [ProfessorCourse.from_dict(c) for c in courses_raw if isinstance(c, dict)]
            if isinstance(courses_raw, list)
            else []
        )
        comments = data.get("rmp_comments")
        return cls(
            name=_str(data.get("name")),
            last_name=_str(data.get("last_name")),
            department=_str(data.get("department")),
            teaching_next_term=_bool(data.get("teaching_next_term")),
            average_gpa=_float(data.get("average_gpa")),
            regular_gpa=_float(data.get("regular_gpa")),
            honors_gpa=_float(data.get("honors_gpa")),
            has_regular=_bool(data.get("has_regular")),
            has_honors=_bool(data.get("has_honors")),
            regular_count=_int(data.get("regular_count")),
            honors_count=_int(data.get("honors_count")),
            section_number=_str(data.get("section_number")),
            crn=_str(data.get("crn")),
            fall_name=_str(data.get("fall_name")),
            no_historical_data=_bool(data.get("no_historical_data")),
            courses=courses,
            rmp_found=_bool(data.get("rmp_found")),
            rmp_rating=_float(data.get("rmp_rating")),
            rmp_would_take_again=_str(data.get("rmp_would_take_again")),
            rmp_difficulty=_float(data.get("rmp_difficulty")),
            rmp_comments=comments if isinstance(comments, dict) else {},
        )


def _instructor_name(raw: Any) -> str:
    if not isinstance(raw, dict):
        return ""
    return _str(raw.get("NAME")).replace(" (P)", "").strip()


@dataclass
class Section:
    """
    One registration-system section row (GET /api/course/sections/...).
    """

    crn: str
    section: str
    title: str = ""
    is_open: bool = False
    building: str = ""
    room: str = ""
    max_enrollment: str = ""
    actual_enrollment: str = ""
    instructors: List[str] = field(default_factory=list)
    meetings: List[Meeting] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Section":
        instructors = [n for n in (_instructor_name(i) for i in json_list(data.get("SWV_CLASS_SEARCH_INSTRCTR_JSON"))) if n]
        meetings = [
            Meeting.from_registration(m)
            for m in json_list(data.get("SWV_CLASS_SEARCH_JSON_CLOB"))
            if isinstance(m, dict)
        ]
        return cls(
            crn=_str(data.get("SWV_CLASS_SEARCH_CRN")),
            section=_str(data.get("SWV_CLASS_SEARCH_SECTION")),
            title=_str(data.get("SWV_CLASS_SEARCH_TITLE")),
            is_open=_str(data.get("STUSEAT_OPEN")) == "Y",
            building=_str(data.get("SWV_CLASS_SEARCH_BLDG_CODE")),
            room=_str(data.get("SWV_CLASS_SEARCH_ROOM_CODE")),
            max_enrollment=_str(data.get("SEATS_MAX_ENROLLMENT")),
            actual_enrollment=_str(data.get("SEATS_ACTUAL_ENROLLMENT")),
            instructors=instructors,
            meetings=meetings,
        )
