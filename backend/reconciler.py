"""
Reconcile transcript records against the equivalency table.

Pure: builds a StudentProgress and nothing else. A record that matches no
rule is a diagnostic, not an error.
"""

from dataclasses import dataclass, field
from typing import Iterable

import pandas as pd

from catalog import CurriculumCatalog


@dataclass(frozen=True)
class CompletedRecord:
    """One completed-course entry as read from a transcript."""
    code: str | None = None
    name: str | None = None
    credits: int | None = None

    @classmethod
    def from_raw(cls, raw) -> "CompletedRecord":
        """
        Coerce an extraction-collaborator entry into a record.

        Accepts a bare code string or a dict keyed code/codigo, name/nombre,
        credits/creditos. Anything unreadable becomes an empty record, which
        the reconciler reports as unmatched.
        """
        if isinstance(raw, CompletedRecord):
            return raw
        if isinstance(raw, str):
            return cls(code=raw.strip() or None)
        if not isinstance(raw, dict):
            return cls()

        def _pick(*keys):
            for key in keys:
                val = raw.get(key)
                if val is None or (isinstance(val, float) and pd.isna(val)):
                    continue
                s = str(val).strip()
                if s:
                    return s
            return None

        credits_raw = _pick("credits", "creditos", "créditos")
        try:
            credits = int(float(credits_raw)) if credits_raw else None
        except (TypeError, ValueError, OverflowError):
            credits = None

        return cls(
            code=_pick("code", "codigo", "código", "course_code"),
            name=_pick("name", "nombre", "course_name", "curso"),
            credits=credits,
        )


@dataclass(frozen=True)
class RecordMatch:
    record: CompletedRecord
    matched_by: str  # "code" | "name"
    target_codes: tuple


@dataclass(frozen=True)
class StudentProgress:
    """
    Courses of the new curriculum a student is credited with.

    Every code in satisfied_courses exists in the catalog the progress was
    reconciled against.
    """
    student_name: str
    student_id: str
    satisfied_courses: frozenset
    matches: tuple = field(default_factory=tuple)
    unmatched: tuple = field(default_factory=tuple)

    @property
    def unmatched_count(self) -> int:
        return len(self.unmatched)

    @property
    def ambiguous(self) -> tuple:
        """Matches that credit more than one new course."""
        return tuple(m for m in self.matches if len(m.target_codes) > 1)


def match_record(record: CompletedRecord, catalog: CurriculumCatalog) -> RecordMatch | None:
    """
    Exact code match first; normalized-name match only when the code finds
    nothing. All targets of the matching rules are credited.
    """
    rules = catalog.rules_for_code(record.code)
    matched_by = "code"
    if not rules:
        rules = catalog.rules_for_name(record.name)
        matched_by = "name"
    if not rules:
        return None
    targets = tuple(sorted({r.target_code for r in rules}))
    return RecordMatch(record=record, matched_by=matched_by, target_codes=targets)


def reconcile(
    records: Iterable,
    catalog: CurriculumCatalog,
    student_name: str = "",
    student_id: str = "",
) -> StudentProgress:
    satisfied: set[str] = set()
    matches: list[RecordMatch] = []
    unmatched: list[CompletedRecord] = []

    for raw in records or ():
        record = CompletedRecord.from_raw(raw)
        match = match_record(record, catalog)
        if match is None:
            unmatched.append(record)
            continue
        matches.append(match)
        satisfied.update(match.target_codes)

    return StudentProgress(
        student_name=str(student_name or "").strip(),
        student_id=str(student_id or "").strip(),
        satisfied_courses=frozenset(satisfied),
        matches=tuple(matches),
        unmatched=tuple(unmatched),
    )
