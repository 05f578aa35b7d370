"""
Batch orchestration: one advisor run per uploaded transcript.

Each run is independent; results come back in input order with a per-slot
status so one bad transcript does not sink the batch.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from advisor import AdvisorResult, run_advisor
from catalog import CurriculumCatalog
from policy import MAX_BATCH_SIZE, RankingPolicy, batch_max_workers, default_credit_ceiling

STATUS_SUCCESS = "success"
STATUS_ERROR = "error"


@dataclass(frozen=True)
class BatchItem:
    slot: int
    student_name: str
    status: str
    result: AdvisorResult | None = None
    error: str | None = None


def _transcript_field(transcript: dict, *keys, default=None):
    for key in keys:
        if key in transcript and transcript[key] is not None:
            return transcript[key]
    return default


def _run_one(
    slot: int,
    transcript: dict,
    catalog: CurriculumCatalog,
    credit_ceiling: int,
    policy: RankingPolicy | None,
) -> BatchItem:
    student_name = ""
    try:
        if not isinstance(transcript, dict):
            raise TypeError(f"transcript must be an object, got {type(transcript).__name__}")
        student_name = str(_transcript_field(transcript, "student_name", "studentName", default="") or "")
        courses = _transcript_field(transcript, "courses", "completed_courses", default=[])
        if not isinstance(courses, list):
            raise TypeError("courses must be a list")
        result = run_advisor(
            courses,
            catalog,
            student_name=student_name,
            student_id=str(_transcript_field(transcript, "student_id", "studentId", default="") or ""),
            credit_ceiling=credit_ceiling,
            policy=policy,
        )
    except (TypeError, ValueError) as exc:
        return BatchItem(slot=slot, student_name=student_name, status=STATUS_ERROR, error=str(exc))
    return BatchItem(
        slot=slot,
        student_name=result.progress.student_name,
        status=STATUS_SUCCESS,
        result=result,
    )


def run_batch(
    transcripts: list,
    catalog: CurriculumCatalog,
    credit_ceiling: int | None = None,
    policy: RankingPolicy | None = None,
    max_workers: int | None = None,
) -> list[BatchItem]:
    """
    Run the advisor for up to MAX_BATCH_SIZE transcripts on a thread pool.

    transcripts: [{"student_name": ..., "student_id": ..., "courses": [...]}, ...]
    (camelCase studentName / studentId are accepted too).
    """
    if len(transcripts) > MAX_BATCH_SIZE:
        raise ValueError(f"at most {MAX_BATCH_SIZE} transcripts per batch, got {len(transcripts)}")
    if not transcripts:
        return []
    if credit_ceiling is None:
        credit_ceiling = default_credit_ceiling()
    if max_workers is None:
        max_workers = batch_max_workers()

    with ThreadPoolExecutor(max_workers=min(max_workers, len(transcripts))) as executor:
        futures = [
            executor.submit(_run_one, slot, transcript, catalog, credit_ceiling, policy)
            for slot, transcript in enumerate(transcripts)
        ]
        return [f.result() for f in futures]
