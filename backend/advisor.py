"""
Per-student pipeline:

    records → reconcile → get_eligible_courses → rank_courses → select_bundle

Synchronous and side-effect free. The catalog is only read, so any number
of runs may share one catalog concurrently.
"""

from dataclasses import dataclass
from typing import Iterable

from bundle import bundle_credits, select_bundle
from catalog import CurriculumCatalog
from eligibility import get_eligible_courses
from policy import RankingPolicy, default_credit_ceiling
from ranker import Suggestion, rank_courses
from reconciler import CompletedRecord, StudentProgress, reconcile
from timeline import estimate_timeline


@dataclass(frozen=True)
class AdvisorResult:
    progress: StudentProgress
    suggestions: tuple
    bundle: tuple
    credit_ceiling: int

    @property
    def bundle_credits(self) -> int:
        return bundle_credits(self.bundle)


def run_advisor(
    records: Iterable,
    catalog: CurriculumCatalog,
    student_name: str = "",
    student_id: str = "",
    credit_ceiling: int | None = None,
    policy: RankingPolicy | None = None,
) -> AdvisorResult:
    if credit_ceiling is None:
        credit_ceiling = default_credit_ceiling()

    progress = reconcile(records, catalog, student_name=student_name, student_id=student_id)
    eligible = get_eligible_courses(progress, catalog)
    suggestions = rank_courses(eligible, catalog, policy=policy)
    bundle = select_bundle(suggestions, credit_ceiling)

    return AdvisorResult(
        progress=progress,
        suggestions=tuple(suggestions),
        bundle=tuple(bundle),
        credit_ceiling=credit_ceiling,
    )


# ── Payload for the rendering collaborator ────────────────────────────────
def _record_to_dict(record: CompletedRecord) -> dict:
    return {"code": record.code, "name": record.name, "credits": record.credits}


def suggestion_to_dict(s: Suggestion) -> dict:
    return {
        "course": {
            "code": s.course.code,
            "name": s.course.name,
            "credits": s.course.credits,
            "prerequisites": sorted(s.course.prerequisites),
        },
        "priority": s.priority.value,
        "priority_label": s.priority.label,
        "justification": s.justification,
        "unlock_count": s.unlock_count,
        "unlocks": list(s.unlocks),
        "chain_depth": s.chain_depth,
    }


def progress_to_dict(progress: StudentProgress) -> dict:
    return {
        "student_name": progress.student_name,
        "student_id": progress.student_id,
        "satisfied_courses": sorted(progress.satisfied_courses),
        "matches": [
            {
                "record": _record_to_dict(m.record),
                "matched_by": m.matched_by,
                "target_codes": list(m.target_codes),
            }
            for m in progress.matches
        ],
        "unmatched": [_record_to_dict(r) for r in progress.unmatched],
        "unmatched_count": progress.unmatched_count,
        "ambiguous_count": len(progress.ambiguous),
    }


def result_to_payload(result: AdvisorResult, catalog: CurriculumCatalog) -> dict:
    return {
        "progress": progress_to_dict(result.progress),
        "suggestions": [suggestion_to_dict(s) for s in result.suggestions],
        "suggested_credits": bundle_credits(result.suggestions),
        "bundle": [suggestion_to_dict(s) for s in result.bundle],
        "bundle_credits": result.bundle_credits,
        "credit_ceiling": result.credit_ceiling,
        "timeline": estimate_timeline(result.progress, catalog, result.credit_ceiling),
    }
