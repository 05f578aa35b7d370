from typing import Iterable


def build_reverse_prereq_map(
    prereq_map: dict[str, Iterable[str]],
) -> dict[str, list[str]]:
    """
    Invert the prerequisite map: prerequisite code -> courses listing it directly.

    Returns: {"EDI101": ["EDI201", "EDI204"], ...}

    Dependents are sorted by code. Courses nobody depends on are absent.
    """
    dependents: dict[str, set[str]] = {}
    for course_code, prereqs in prereq_map.items():
        for prereq_code in prereqs:
            dependents.setdefault(prereq_code, set()).add(course_code)
    return {code: sorted(codes) for code, codes in sorted(dependents.items())}


def compute_chain_depths(reverse_map: dict[str, list[str]]) -> dict[str, int]:
    """
    Longest downstream chain below each course, in edges.

    EDI101 -> EDI201 -> EDI301 -> EDI401 -> EDI403 gives EDI101 depth 4.
    Codes missing from the result have depth 0. Expects an acyclic
    graph (the catalog rejects cycles before calling this).
    """
    depths: dict[str, int] = {}

    def _depth(code: str) -> int:
        if code not in depths:
            children = reverse_map.get(code)
            depths[code] = 1 + max(_depth(c) for c in children) if children else 0
        return depths[code]

    for code in reverse_map:
        _depth(code)
    return depths


def get_direct_unlocks(
    course_code: str,
    reverse_map: dict[str, list[str]],
    limit: int | None = 3,
) -> list[str]:
    """First `limit` courses that list course_code as a direct prerequisite (all when limit is None)."""
    unlocked = reverse_map.get(course_code, [])
    return list(unlocked) if limit is None else unlocked[:limit]
