import json
import unittest

from classalert.model import Alert, Professor, Section, UserProfile, json_list


class TestJsonList(unittest.TestCase):
    def test_shapes(self) -> None:
        self.assertEqual(json_list(None), [])
        self.assertEqual(json_list(""), [])
        self.assertEqual(json_list("[1, 2]"), [1, 2])
        self.assertEqual(json_list('{"NAME": "X"}'), [{"NAME": "X"}])
        self.assertEqual(json_list({"NAME": "X"}), [{"NAME": "X"}])
        self.assertEqual(json_list("not json"), [])


class TestModels(unittest.TestCase):
    def test_alert_from_backend_keys(self) -> None:
        a = Alert.from_dict(
            {"CRN": 12345, "Term": 202531, "email": "a@tamu.edu", "status": True, "use_phone": False, "last_checked": 1700000000}
        )
        self.assertEqual(a.crn, "12345")
        self.assertEqual(a.term, "202531")
        self.assertTrue(a.status)
        self.assertFalse(a.use_phone)
        self.assertEqual(a.last_checked, 1700000000.0)
        self.assertEqual(a.key, ("12345", "202531", "a@tamu.edu"))

    def test_alert_lowercase_keys_and_missing_fields(self) -> None:
        a = Alert.from_dict({"crn": "1", "term": "2"})
        self.assertEqual((a.crn, a.term, a.email), ("1", "2", ""))
        self.assertFalse(a.status)
        self.assertIsNone(a.last_checked)

    def test_profile_verified_phone(self) -> None:
        p = UserProfile.from_dict({"phone_number": "9795551234", "phone_verified": True}, email="a@tamu.edu")
        self.assertTrue(p.has_verified_phone)
        self.assertEqual(p.email, "a@tamu.edu")

        q = UserProfile.from_dict({"phone_number": "9795551234", "phone_verified": False})
        self.assertFalse(q.has_verified_phone)

    def test_professor_tolerates_nulls(self) -> None:
        p = Professor.from_dict(
            {
                "name": "SMITH J",
                "average_gpa": None,
                "honors_gpa": "3.5",
                "courses": [{"section": "500", "crn": "111", "meetings": [{"days": "MWF", "start_time": "9:10"}]}],
                "rmp_comments": {"Tough grader": 3},
            }
        )
        self.assertIsNone(p.average_gpa)
        self.assertEqual(p.honors_gpa, 3.5)
        self.assertEqual(p.courses[0].crn, "111")
        self.assertEqual(p.courses[0].meetings[0].days, "MWF")
        self.assertEqual(p.rmp_tags, ["Tough grader"])

    def test_section_from_registration_row(self) -> None:
        row = {
            "SWV_CLASS_SEARCH_CRN": "11111",
            "SWV_CLASS_SEARCH_SECTION": "500",
            "SWV_CLASS_SEARCH_TITLE": "PROGRAM DESIGN CONCEPTS",
            "STUSEAT_OPEN": "Y",
            "SWV_CLASS_SEARCH_INSTRCTR_JSON": json.dumps([{"NAME": "John Smith (P)"}]),
            "SWV_CLASS_SEARCH_JSON_CLOB": json.dumps(
                [
                    {
                        "SSRMEET_TUE_DAY": "T",
                        "SSRMEET_THU_DAY": "R",
                        "SSRMEET_BEGIN_TIME": "09:35 AM",
                        "SSRMEET_END_TIME": "10:50 AM",
                        "SSRMEET_BLDG_CODE": "ZACH",
                        "SSRMEET_ROOM_CODE": "310",
                    }
                ]
            ),
        }
        s = Section.from_dict(row)
        self.assertTrue(s.is_open)
        self.assertEqual(s.instructors, ["John Smith"])
        self.assertEqual(s.meetings[0].days, "TR")
        self.assertEqual(s.meetings[0].line(), "TR 09:35 AM-10:50 AM @ ZACH 310")

    def test_section_closed_without_meetings(self) -> None:
        s = Section.from_dict({"SWV_CLASS_SEARCH_CRN": "2", "STUSEAT_OPEN": "N", "SWV_CLASS_SEARCH_JSON_CLOB": "oops"})
        self.assertFalse(s.is_open)
        self.assertEqual(s.meetings, [])


if __name__ == "__main__":
    unittest.main()
