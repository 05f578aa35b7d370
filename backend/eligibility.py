from catalog import Course, CurriculumCatalog
from prereq_parser import build_prereq_check_string, prereqs_satisfied
from reconciler import StudentProgress


def get_eligible_courses(
    progress: StudentProgress,
    catalog: CurriculumCatalog,
) -> set[Course]:
    """
    Returns the eligible frontier: courses not yet satisfied whose
    prerequisites are all satisfied.

    Single pass over the catalog. satisfied_courses is final by the time it
    gets here, so nothing newly eligible can make another course eligible
    within the same call.
    """
    satisfied = progress.satisfied_courses
    return {
        course
        for course in catalog
        if course.code not in satisfied and prereqs_satisfied(course.prerequisites, satisfied)
    }


def check_can_take(
    requested_course: str,
    progress: StudentProgress,
    catalog: CurriculumCatalog,
) -> dict:
    """
    Single-course eligibility check.

    Returns:
    {
      "can_take": bool,
      "why_not": str | None,
      "missing_prereqs": [str, ...],
      "outstanding_chain": [str, ...],   # direct and transitive, unsatisfied
      "already_satisfied": bool,
      "prereq_check": str,
    }
    """
    course = catalog.get(requested_course)
    if course is None:
        return {
            "can_take": False,
            "why_not": f"{requested_course} is not in the course catalog.",
            "missing_prereqs": [],
            "outstanding_chain": [],
            "already_satisfied": False,
            "prereq_check": "",
        }

    satisfied = progress.satisfied_courses
    prereq_check = build_prereq_check_string(course.prerequisites, satisfied)
    if course.code in satisfied:
        return {
            "can_take": False,
            "why_not": f"{course.code} is already satisfied.",
            "missing_prereqs": [],
            "outstanding_chain": [],
            "already_satisfied": True,
            "prereq_check": prereq_check,
        }

    missing = sorted(p for p in course.prerequisites if p not in satisfied)
    if missing:
        return {
            "can_take": False,
            "why_not": f"Missing prerequisite(s): {', '.join(missing)}.",
            "missing_prereqs": missing,
            "outstanding_chain": sorted(catalog.required_prereqs(course.code) - satisfied),
            "already_satisfied": False,
            "prereq_check": prereq_check,
        }

    return {
        "can_take": True,
        "why_not": None,
        "missing_prereqs": [],
        "outstanding_chain": [],
        "already_satisfied": False,
        "prereq_check": prereq_check,
    }
