"""
Curriculum reference data.

Courses live once in a table keyed by code; prerequisite edges are code
references. A CurriculumCatalog is validated when it is built and never
mutated afterwards, so a single instance can be shared by concurrent
pipeline runs.
"""

from dataclasses import dataclass, field
from typing import Iterable

from normalizer import normalize_code, normalize_name
from unlocks import build_reverse_prereq_map, compute_chain_depths, get_direct_unlocks
from validators import (
    find_dangling_prereqs,
    find_duplicate_codes,
    find_invalid_credits,
    find_prereq_cycle,
    get_all_required_prereqs,
)


class CatalogIntegrityError(ValueError):
    """The catalog is structurally broken; the pipeline must not run against it."""

    def __init__(self, problems: list[str]):
        self.problems = list(problems)
        detail = "; ".join(self.problems)
        super().__init__(f"Catalog integrity check failed ({len(self.problems)} problem(s)): {detail}")


@dataclass(frozen=True)
class Course:
    """A course of the new curriculum."""
    code: str
    name: str
    credits: int
    prerequisites: frozenset = field(default_factory=frozenset)

    def __post_init__(self):
        if not isinstance(self.prerequisites, frozenset):
            object.__setattr__(self, "prerequisites", frozenset(self.prerequisites))

    @property
    def foundational(self) -> bool:
        return not self.prerequisites


@dataclass(frozen=True)
class EquivalencyRule:
    """
    Completing the old-curriculum course identified by source_code (or,
    failing that, source_name) satisfies the new course target_code.
    """
    target_code: str
    source_code: str | None = None
    source_name: str | None = None
    implicit: bool = False


class CurriculumCatalog:
    """
    New-curriculum courses plus the old → new equivalency table.

    Every new course implicitly maps to itself by code and name, so a
    transcript that already lists a new-plan course credits it directly.
    An explicit rule on the same code or name key takes its place.

    Raises CatalogIntegrityError on duplicate codes, non-positive credits,
    dangling prerequisites, prerequisite cycles and rules that point at
    unknown courses, identify no source or carry an unreadable source code.
    """

    def __init__(self, courses: Iterable[Course], rules: Iterable[EquivalencyRule] = ()):
        courses = list(courses)
        rules = list(rules)
        problems: list[str] = []

        for dup in find_duplicate_codes(c.code for c in courses):
            problems.append(f"duplicate course code {dup}")

        table: dict[str, Course] = {}
        for course in courses:
            table.setdefault(course.code, course)

        for code in find_invalid_credits({c.code: c.credits for c in table.values()}):
            problems.append(f"course {code} must have a positive integer credit weight")

        prereq_map = {code: c.prerequisites for code, c in table.items()}
        for issue in find_dangling_prereqs(prereq_map):
            problems.append(
                f"course {issue['course_code']} lists unknown prerequisite(s) "
                f"{', '.join(issue['missing_prereqs'])}"
            )

        cycle = find_prereq_cycle(prereq_map)
        if cycle:
            problems.append(f"prerequisite cycle {' -> '.join(cycle)}")

        for rule in rules:
            if rule.target_code not in table:
                problems.append(
                    f"equivalency rule {rule.source_code or rule.source_name!r} "
                    f"targets unknown course {rule.target_code}"
                )
            if not rule.source_code and not rule.source_name:
                problems.append(f"equivalency rule for {rule.target_code} has no source code or name")
            elif rule.source_code and normalize_code(rule.source_code) is None:
                problems.append(
                    f"equivalency rule for {rule.target_code} has unreadable source code {rule.source_code!r}"
                )

        if problems:
            raise CatalogIntegrityError(problems)

        self._courses = dict(sorted(table.items()))
        self._prereq_map = prereq_map
        self._reverse_map = build_reverse_prereq_map(prereq_map)
        self._chain_depths = compute_chain_depths(self._reverse_map)
        self._explicit_rules = tuple(rules)

        self._rules_by_code: dict[str, list[EquivalencyRule]] = {}
        self._rules_by_name: dict[str, list[EquivalencyRule]] = {}
        for rule in rules:
            self._index_rule(rule)
        # Identity rules only fill keys no explicit rule claims, so a reused
        # old-plan code credits its mapped target and nothing else.
        explicit_codes = set(self._rules_by_code)
        explicit_names = set(self._rules_by_name)
        for c in self._courses.values():
            self._index_rule(
                EquivalencyRule(target_code=c.code, source_code=c.code, source_name=c.name, implicit=True),
                skip_codes=explicit_codes,
                skip_names=explicit_names,
            )

    def _index_rule(self, rule: EquivalencyRule, skip_codes=(), skip_names=()) -> None:
        code_key = normalize_code(rule.source_code)
        if code_key and code_key not in skip_codes:
            self._rules_by_code.setdefault(code_key, []).append(rule)
        name_key = normalize_name(rule.source_name)
        if name_key and name_key not in skip_names:
            self._rules_by_name.setdefault(name_key, []).append(rule)

    # ── Courses ────────────────────────────────────────────────────────────
    def __contains__(self, code) -> bool:
        return code in self._courses

    def __len__(self) -> int:
        return len(self._courses)

    def __iter__(self):
        return iter(self._courses.values())

    @property
    def codes(self) -> frozenset:
        return frozenset(self._courses)

    @property
    def courses(self) -> tuple:
        """All courses in code order."""
        return tuple(self._courses.values())

    @property
    def rules(self) -> tuple:
        """Explicit equivalency rules, in load order."""
        return self._explicit_rules

    def get(self, code: str) -> Course | None:
        return self._courses.get(code)

    def course(self, code: str) -> Course:
        return self._courses[code]

    # ── Prerequisite graph ─────────────────────────────────────────────────
    def dependents(self, code: str, limit: int | None = None) -> list[str]:
        """Courses that list `code` as a direct prerequisite, in code order."""
        return get_direct_unlocks(code, self._reverse_map, limit=limit)

    def unlock_count(self, code: str) -> int:
        return len(self._reverse_map.get(code, []))

    def chain_depth(self, code: str) -> int:
        """Longest downstream prerequisite chain starting at `code`."""
        return self._chain_depths.get(code, 0)

    def required_prereqs(self, code: str) -> set:
        """Every prerequisite of `code`, direct or transitive."""
        return get_all_required_prereqs(code, self._prereq_map)

    # ── Equivalencies ──────────────────────────────────────────────────────
    def rules_for_code(self, raw_code) -> list[EquivalencyRule]:
        key = normalize_code(raw_code)
        if not key:
            return []
        return list(self._rules_by_code.get(key, []))

    def rules_for_name(self, raw_name) -> list[EquivalencyRule]:
        key = normalize_name(raw_name)
        if not key:
            return []
        return list(self._rules_by_name.get(key, []))

    def total_credits(self, codes: Iterable[str] | None = None) -> int:
        if codes is None:
            return sum(c.credits for c in self._courses.values())
        return sum(self._courses[c].credits for c in codes if c in self._courses)
