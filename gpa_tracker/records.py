"""
Persisted record shapes and their normalizers.

Everything stored by a record store is plain JSON: dicts, lists, numbers and
strings. Readers go through the ``parse_*`` / ``normalize_*`` helpers so older
or partially written records still load.
"""

import uuid
from typing import Any, Dict, List, Optional

from .config import DEFAULT_CREDITED_UNITS, DEFAULT_TARGET_CGPA, DEFAULT_TOTAL_UNITS


GRADE_OPTIONS = [4.0, 3.5, 3.0, 2.5, 2.0, 1.5, 1.0, 0.0]
PASS_FAIL_OPTIONS = [1.0, 0.0]
UNIT_OPTIONS = [0, 1, 2, 3, 4, 5]

STANDARD_TERMS = list(range(1, 13))
FIRST_CUSTOM_TERM = 13
MAX_TERM = 21

CGPA_SETTINGS_KEY = "cgpa_settings"
PROJECTION_SETTINGS_KEY = "projection_settings"
GRADE_CALCULATOR_KEY = "grade_calculator"
SETTINGS_KEYS = [CGPA_SETTINGS_KEY, PROJECTION_SETTINGS_KEY, GRADE_CALCULATOR_KEY]

PASSING_GRADE_PRESETS = [50, 55, 60, 65, 70]
DEFAULT_PASSING_GRADE = 60
MAX_SUBJECTS = 8
MAX_CATEGORIES = 8
MAX_SUBJECT_NAME = 30


def generate_id() -> str:
    return uuid.uuid4().hex


def _coerce_float(x: Any, default: float = 0.0) -> float:
    if isinstance(x, bool):
        return float(default)
    try:
        return float(x)
    except (TypeError, ValueError):
        return float(default)


# -------------------------------
# Unit keys
# -------------------------------

def term_key(number: int) -> str:
    return f"term_{int(number)}"


def term_number(key: str) -> Optional[int]:
    if not isinstance(key, str) or not key.startswith("term_"):
        return None
    try:
        n = int(key[len("term_"):])
    except ValueError:
        return None
    if 1 <= n <= MAX_TERM:
        return n
    return None


def is_custom_term(number: int) -> bool:
    return FIRST_CUSTOM_TERM <= number <= MAX_TERM


# -------------------------------
# Courses and terms
# -------------------------------

def new_course() -> Dict[str, Any]:
    return {"id": generate_id(), "code": "", "name": "", "units": 3, "grade": 0.0, "nas": False}


def normalize_course(raw: Any) -> Dict[str, Any]:
    raw = raw if isinstance(raw, dict) else {}

    units = raw.get("units")
    if isinstance(units, bool) or not isinstance(units, (int, float)):
        units = 3
    grade = raw.get("grade")
    if isinstance(grade, bool) or not isinstance(grade, (int, float)):
        grade = 0.0

    nas = raw.get("nas", raw.get("isNonAcademic", False))

    return {
        "id": str(raw.get("id") or generate_id()),
        "code": str(raw.get("code") or ""),
        "name": str(raw.get("name") or ""),
        "units": units,
        "grade": float(grade),
        "nas": nas if isinstance(nas, bool) else False,
    }


def is_pass_fail(course: Dict[str, Any]) -> bool:
    return bool(course.get("nas")) and _coerce_float(course.get("units")) == 0


def validate_course(course: Dict[str, Any]) -> List[str]:
    problems: List[str] = []
    label = course.get("code") or "Course"

    units = _coerce_float(course.get("units"), -1.0)
    if units < 0:
        problems.append(f"{label}: units must be zero or more.")

    grade = _coerce_float(course.get("grade"), -1.0)
    allowed = PASS_FAIL_OPTIONS if is_pass_fail(course) else GRADE_OPTIONS
    if grade not in allowed:
        if is_pass_fail(course):
            problems.append(f"{label}: pass/fail courses take 1 (P) or 0 (F).")
        else:
            problems.append(f"{label}: grade {course.get('grade')} is not on the 0.0-4.0 scale.")

    return problems


def term_record(courses: Optional[List[Any]] = None, is_flowchart_exempt: bool = False) -> Dict[str, Any]:
    return {
        "courses": [normalize_course(c) for c in (courses or [])],
        "isFlowchartExempt": bool(is_flowchart_exempt),
    }


def parse_term_record(raw: Any) -> Dict[str, Any]:
    # legacy records are a bare list of courses
    if isinstance(raw, list):
        return term_record(raw, False)
    if isinstance(raw, dict):
        courses = raw.get("courses")
        return term_record(courses if isinstance(courses, list) else [], bool(raw.get("isFlowchartExempt", False)))
    return term_record([], False)


# -------------------------------
# Settings bundles
# -------------------------------

def default_cgpa_settings() -> Dict[str, Any]:
    return {"creditedUnits": DEFAULT_CREDITED_UNITS}


def normalize_cgpa_settings(raw: Any) -> Dict[str, Any]:
    raw = raw if isinstance(raw, dict) else {}
    credited = int(_coerce_float(raw.get("creditedUnits"), DEFAULT_CREDITED_UNITS))
    return {"creditedUnits": max(0, credited)}


def default_projection_settings() -> Dict[str, Any]:
    return {"targetCGPA": DEFAULT_TARGET_CGPA, "totalUnits": DEFAULT_TOTAL_UNITS}


def normalize_projection_settings(raw: Any) -> Dict[str, Any]:
    raw = raw if isinstance(raw, dict) else {}
    target = _coerce_float(raw.get("targetCGPA"), DEFAULT_TARGET_CGPA)
    total = int(_coerce_float(raw.get("totalUnits"), DEFAULT_TOTAL_UNITS))
    return {"targetCGPA": min(4.0, max(0.0, target)), "totalUnits": max(0, total)}


def nearest_preset(passing_grade: Any) -> int:
    value = _coerce_float(passing_grade, DEFAULT_PASSING_GRADE)
    best = PASSING_GRADE_PRESETS[0]
    for preset in PASSING_GRADE_PRESETS[1:]:
        # strict comparison keeps the lower preset on a tie
        if abs(preset - value) < abs(best - value):
            best = preset
    return best


def new_subject(name: str = "Subject 1") -> Dict[str, Any]:
    return {"id": generate_id(), "name": name, "passingGrade": DEFAULT_PASSING_GRADE, "categories": []}


def normalize_category(raw: Any) -> Dict[str, Any]:
    raw = raw if isinstance(raw, dict) else {}
    score = min(100.0, max(0.0, _coerce_float(raw.get("score"))))
    return {
        "id": str(raw.get("id") or generate_id()),
        "name": str(raw.get("name") or ""),
        "weight": max(0.0, _coerce_float(raw.get("weight"))),
        "score": round(score, 2),
    }


def normalize_subject(raw: Any) -> Dict[str, Any]:
    raw = raw if isinstance(raw, dict) else {}
    categories = raw.get("categories") if isinstance(raw.get("categories"), list) else []
    return {
        "id": str(raw.get("id") or generate_id()),
        "name": str(raw.get("name") or "Subject")[:MAX_SUBJECT_NAME],
        "passingGrade": nearest_preset(raw.get("passingGrade", DEFAULT_PASSING_GRADE)),
        "categories": [normalize_category(c) for c in categories[:MAX_CATEGORIES]],
    }


def default_grade_calculator() -> Dict[str, Any]:
    subject = new_subject()
    return {"subjects": [subject], "activeSubjectId": subject["id"]}


def normalize_grade_calculator(raw: Any) -> Dict[str, Any]:
    raw = raw if isinstance(raw, dict) else {}
    subjects = raw.get("subjects") if isinstance(raw.get("subjects"), list) else []
    subjects = [normalize_subject(s) for s in subjects[:MAX_SUBJECTS]]
    if not subjects:
        return default_grade_calculator()

    active = raw.get("activeSubjectId")
    if active not in {s["id"] for s in subjects}:
        active = subjects[0]["id"]
    return {"subjects": subjects, "activeSubjectId": active}


def weight_limit_error(categories: List[Dict[str, Any]]) -> Optional[str]:
    total = sum(_coerce_float(c.get("weight")) for c in categories)
    if total > 100:
        return f"Total weight cannot exceed 100% (currently {total:g}%)."
    return None


# -------------------------------
# Default / empty detection
# -------------------------------

def is_default_unit(key: str, data: Any) -> bool:
    if data is None:
        return True

    if term_number(key) is not None:
        return len(parse_term_record(data)["courses"]) == 0
    if key == CGPA_SETTINGS_KEY:
        return normalize_cgpa_settings(data) == default_cgpa_settings()
    if key == PROJECTION_SETTINGS_KEY:
        return normalize_projection_settings(data) == default_projection_settings()
    if key == GRADE_CALCULATOR_KEY:
        subjects = normalize_grade_calculator(data)["subjects"]
        if len(subjects) != 1:
            return False
        subject = subjects[0]
        return (
            subject["name"] == "Subject 1"
            and subject["passingGrade"] == DEFAULT_PASSING_GRADE
            and not subject["categories"]
        )

    return not data


def default_for_unit(key: str) -> Any:
    if term_number(key) is not None:
        return term_record()
    if key == CGPA_SETTINGS_KEY:
        return default_cgpa_settings()
    if key == PROJECTION_SETTINGS_KEY:
        return default_projection_settings()
    if key == GRADE_CALCULATOR_KEY:
        return default_grade_calculator()
    return None


def normalize_unit(key: str, data: Any) -> Any:
    if term_number(key) is not None:
        return parse_term_record(data)
    if key == CGPA_SETTINGS_KEY:
        return normalize_cgpa_settings(data)
    if key == PROJECTION_SETTINGS_KEY:
        return normalize_projection_settings(data)
    if key == GRADE_CALCULATOR_KEY:
        return normalize_grade_calculator(data)
    return data
