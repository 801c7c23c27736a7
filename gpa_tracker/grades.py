"""
Grade calculations.

Pure functions only: nothing here reads or writes a store, and nothing raises
on odd numbers. Validating units and grades is the caller's job
(see ``records.validate_course``).
"""

from typing import Any, Dict, Iterable, List, Optional

from .records import is_pass_fail, nearest_preset, parse_term_record


DEANS_LIST_MIN_GPA = 3.0
FIRST_HONORS_MIN_GPA = 3.4
DEANS_LIST_MIN_UNITS = 12
MAX_GPA = 4.0

# (lower bound %, grade), highest band first
TRANSMUTATION_TABLES: Dict[int, List[tuple]] = {
    50: [(95, 4.0), (90, 3.5), (82, 3.0), (75, 2.5), (66, 2.0), (58, 1.5), (50, 1.0), (0, 0.0)],
    55: [(95, 4.0), (90, 3.5), (83, 3.0), (76, 2.5), (69, 2.0), (62, 1.5), (55, 1.0), (0, 0.0)],
    60: [(95, 4.0), (90, 3.5), (84, 3.0), (78, 2.5), (72, 2.0), (66, 1.5), (60, 1.0), (0, 0.0)],
    65: [(95, 4.0), (90, 3.5), (85, 3.0), (80, 2.5), (75, 2.0), (70, 1.5), (65, 1.0), (0, 0.0)],
    70: [(96, 4.0), (92, 3.5), (88, 3.0), (83, 2.5), (78, 2.0), (74, 1.5), (70, 1.0), (0, 0.0)],
}


def _num(x: Any) -> float:
    try:
        return float(x or 0)
    except (TypeError, ValueError):
        return 0.0


# -------------------------------
# Term GPA
# -------------------------------

def term_gpa(courses: Iterable[Dict[str, Any]]) -> Dict[str, float]:
    total_points = 0.0
    academic_units = 0.0
    non_academic_units = 0.0

    for c in courses:
        units = _num(c.get("units"))
        if c.get("nas"):
            non_academic_units += units
            continue

        academic_units += units
        grade = _num(c.get("grade"))
        if grade > 0:
            total_points += grade * units

    gpa = round(total_points / academic_units, 3) if academic_units > 0 else 0.0
    return {"gpa": gpa, "academicUnits": academic_units, "nonAcademicUnits": non_academic_units}


def deans_list_eligibility(
    gpa: float,
    academic_units: float,
    is_flowchart_exempt: bool,
    has_sub_grade_below_2: bool,
    has_any_failing_grade: bool,
) -> Dict[str, bool]:
    eligible = (
        gpa >= DEANS_LIST_MIN_GPA
        and (academic_units >= DEANS_LIST_MIN_UNITS or bool(is_flowchart_exempt))
        and not has_sub_grade_below_2
        and not has_any_failing_grade
    )
    return {"isDeansLister": eligible, "isFirstHonors": eligible and gpa >= FIRST_HONORS_MIN_GPA}


def term_honors(courses: List[Dict[str, Any]], is_flowchart_exempt: bool = False) -> Dict[str, bool]:
    result = term_gpa(courses)

    has_sub_grade_below_2 = any(
        not c.get("nas") and 0 < _num(c.get("grade")) < 2.0 for c in courses
    )
    # a failing grade anywhere disqualifies, pass/fail "F" included
    has_any_failing_grade = any(_num(c.get("grade")) == 0 for c in courses)

    return deans_list_eligibility(
        result["gpa"],
        result["academicUnits"],
        is_flowchart_exempt,
        has_sub_grade_below_2,
        has_any_failing_grade,
    )


def honors_label(honors: Dict[str, bool]) -> Optional[str]:
    if honors.get("isFirstHonors"):
        return "First Honors Dean's Lister"
    if honors.get("isDeansLister"):
        return "Second Honors Dean's Lister"
    return None


def grade_label(course: Dict[str, Any]) -> str:
    if is_pass_fail(course):
        return "P" if _num(course.get("grade")) == 1 else "F"
    return f"{_num(course.get('grade')):.1f}"


def summarize_term(number: int, record: Any) -> Dict[str, Any]:
    record = parse_term_record(record)
    courses = record["courses"]
    result = term_gpa(courses)
    honors = term_honors(courses, record["isFlowchartExempt"])

    return {
        "term": int(number),
        "courses": courses,
        "isFlowchartExempt": record["isFlowchartExempt"],
        "gpa": result["gpa"],
        "academicUnits": result["academicUnits"],
        "nonAcademicUnits": result["nonAcademicUnits"],
        "isActive": result["academicUnits"] > 0,
        "isDeansLister": honors["isDeansLister"],
        "isFirstHonors": honors["isFirstHonors"],
    }


# -------------------------------
# Cumulative GPA and projections
# -------------------------------

def cumulative_gpa(summaries: Iterable[Dict[str, Any]], credited_units: float = 0) -> Dict[str, float]:
    total_points = 0.0
    total_units = 0.0
    active_terms = 0

    for term in summaries:
        # inactive terms contribute neither units nor points
        if not term.get("isActive"):
            continue
        units = _num(term.get("academicUnits"))
        total_points += _num(term.get("gpa")) * units
        total_units += units
        active_terms += 1

    cgpa = round(total_points / total_units, 3) if total_units > 0 else 0.0
    return {
        "cgpa": cgpa,
        "totalAcademicUnits": total_units,
        "totalUnitsIncludingCredited": total_units + max(0.0, _num(credited_units)),
        "activeTermCount": active_terms,
    }


def group_terms_by_year(summaries: Iterable[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for term in sorted(summaries, key=lambda t: t["term"]):
        year = (int(term["term"]) + 2) // 3
        grouped.setdefault(f"Year {year}", []).append(term)
    return grouped


def required_gpa_for_target(
    current_cgpa: float,
    earned_units: float,
    target_cgpa: float,
    total_units_planned: float,
) -> Dict[str, Any]:
    earned = _num(earned_units)
    remaining = max(0.0, _num(total_units_planned) - earned)

    if remaining == 0:
        return {"remainingUnits": 0.0, "requiredGPA": 0.0, "achievable": True}

    # not clamped: values outside 0-4 mean the target is out of reach
    required = (_num(target_cgpa) * (earned + remaining) - _num(current_cgpa) * earned) / remaining
    return {
        "remainingUnits": remaining,
        "requiredGPA": required,
        "achievable": 0.0 <= required <= MAX_GPA,
    }


# -------------------------------
# Grade calculator
# -------------------------------

def total_weight(categories: Iterable[Dict[str, Any]]) -> float:
    return sum(_num(c.get("weight")) for c in categories)


def weighted_category_grade(categories: Iterable[Dict[str, Any]]) -> float:
    return sum(_num(c.get("weight")) / 100.0 * _num(c.get("score")) for c in categories)


def transmute_grade(percent: float, passing_grade: float = 60) -> float:
    table = TRANSMUTATION_TABLES[nearest_preset(passing_grade)]
    pct = _num(percent)
    for lower, grade in table:
        if pct >= lower:
            return grade
    return 0.0


def transmutation_rows(passing_grade: float) -> List[Dict[str, Any]]:
    table = TRANSMUTATION_TABLES[nearest_preset(passing_grade)]
    rows = []
    upper = 100.0
    for lower, grade in table:
        rows.append({"Range": f"{lower:g} - {upper:g}", "Grade": f"{grade:.1f}"})
        upper = lower - 0.01
    return rows
