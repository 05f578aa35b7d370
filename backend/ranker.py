"""
Rank the eligible frontier into priority tiers.

Tier rule (thresholds come from RankingPolicy):
  HIGH   unlocks >= high threshold, or foundational and still outstanding
  MEDIUM unlocks >= medium threshold
  LOW    otherwise

Order: tier, then unlock count descending, then course code ascending.
Codes are unique, so the order is total and re-runs are identical.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from catalog import Course, CurriculumCatalog
from policy import RankingPolicy


class Priority(Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]

    @property
    def label(self) -> str:
        """Display label used on the enrollment suggestion letter."""
        return _TIER_LABEL[self]


_TIER_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}
_TIER_LABEL = {Priority.HIGH: "ALTA", Priority.MEDIUM: "MEDIA", Priority.LOW: "BAJA"}


@dataclass(frozen=True)
class Suggestion:
    course: Course
    priority: Priority
    justification: str
    unlock_count: int = 0
    unlocks: tuple = field(default_factory=tuple)
    chain_depth: int = 0

    @property
    def credits(self) -> int:
        return self.course.credits

    @property
    def foundational(self) -> bool:
        return self.course.foundational


def assign_tier(unlock_count: int, foundational: bool, policy: RankingPolicy) -> Priority:
    if unlock_count >= policy.high_unlock_threshold:
        return Priority.HIGH
    if foundational and policy.elevate_foundational:
        return Priority.HIGH
    if unlock_count >= policy.medium_unlock_threshold:
        return Priority.MEDIUM
    return Priority.LOW


def _plural(n: int, word: str) -> str:
    return f"{n} other {word}" if n == 1 else f"{n} other {word}s"


def build_justification(course: Course, catalog: CurriculumCatalog) -> str:
    """
    Examples:
      "Foundational course with no outstanding prerequisites; prerequisite
       for 2 other courses in the plan (INF102, INF103)"
      "Prerequisite for 1 other course in the plan (INF104); builds on INF101"
      "Eligible now; does not unlock further courses in the plan; builds on EDI203"
    """
    unlock_count = catalog.unlock_count(course.code)
    shown = catalog.dependents(course.code, limit=3)

    parts: list[str] = []
    if course.foundational:
        parts.append("foundational course with no outstanding prerequisites")
    if unlock_count:
        listed = ", ".join(shown)
        if unlock_count > len(shown):
            listed += ", ..."
        parts.append(f"prerequisite for {_plural(unlock_count, 'course')} in the plan ({listed})")
    elif not course.foundational:
        parts.append("eligible now; does not unlock further courses in the plan")
    else:
        parts.append("does not unlock further courses in the plan")
    if course.prerequisites:
        parts.append(f"builds on {', '.join(sorted(course.prerequisites))}")

    text = "; ".join(parts)
    return text[0].upper() + text[1:]


def suggestion_sort_key(s: Suggestion) -> tuple:
    return (s.priority.rank, -s.unlock_count, s.course.code)


def rank_courses(
    eligible: Iterable[Course],
    catalog: CurriculumCatalog,
    policy: RankingPolicy | None = None,
) -> list[Suggestion]:
    """Rank every eligible course; the credit ceiling plays no part here."""
    if policy is None:
        policy = RankingPolicy()

    suggestions = []
    for course in {c.code: c for c in eligible}.values():
        unlock_count = catalog.unlock_count(course.code)
        suggestions.append(Suggestion(
            course=course,
            priority=assign_tier(unlock_count, course.foundational, policy),
            justification=build_justification(course, catalog),
            unlock_count=unlock_count,
            unlocks=tuple(catalog.dependents(course.code)),
            chain_depth=catalog.chain_depth(course.code),
        ))

    suggestions.sort(key=suggestion_sort_key)
    return suggestions
