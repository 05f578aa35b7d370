import math

from catalog import CurriculumCatalog
from reconciler import StudentProgress


def estimate_timeline(
    progress: StudentProgress,
    catalog: CurriculumCatalog,
    credits_per_term: int,
) -> dict:
    """
    Rough progress summary against the new curriculum.

    Returns:
        {
          "satisfied_courses": 4,
          "remaining_courses": 10,
          "satisfied_credits": 11,
          "remaining_credits": 33,
          "estimated_min_terms": 3,
          "disclaimer": "..."
        }
    """
    satisfied_credits = catalog.total_credits(progress.satisfied_courses)
    remaining_credits = max(0, catalog.total_credits() - satisfied_credits)
    remaining_courses = len(catalog.codes - progress.satisfied_courses)

    if remaining_credits == 0:
        estimated_terms = 0
    elif credits_per_term > 0:
        estimated_terms = math.ceil(remaining_credits / credits_per_term)
    else:
        estimated_terms = None

    return {
        "satisfied_courses": len(progress.satisfied_courses),
        "remaining_courses": remaining_courses,
        "satisfied_credits": satisfied_credits,
        "remaining_credits": remaining_credits,
        "estimated_min_terms": estimated_terms,
        "disclaimer": (
            f"Rough estimate. Assumes {credits_per_term} credits per term and "
            "every course offered each term. Ignores prerequisite sequencing "
            "that can stretch the plan."
        ),
    }
