"""
Pure catalog-integrity helpers.
No Flask or data-loader imports.
"""

from typing import Dict, Iterable, List, Optional, Set


def find_duplicate_codes(codes: Iterable[str]) -> List[str]:
    """Return every course code that appears more than once, sorted."""
    seen: Set[str] = set()
    duplicates: Set[str] = set()
    for code in codes:
        if code in seen:
            duplicates.add(code)
        seen.add(code)
    return sorted(duplicates)


def find_invalid_credits(credits_by_code: Dict[str, object]) -> List[str]:
    """Return course codes whose credit weight is not a positive integer."""
    bad = []
    for code, credits in credits_by_code.items():
        if isinstance(credits, bool) or not isinstance(credits, int) or credits <= 0:
            bad.append(code)
    return sorted(bad)


def find_dangling_prereqs(prereq_map: Dict[str, Iterable[str]]) -> List[dict]:
    """
    Return prerequisite references to codes that are not in the catalog.

    Each item:
      {"course_code": str, "missing_prereqs": List[str]}
    """
    known = set(prereq_map)
    issues: List[dict] = []
    for course_code in sorted(prereq_map):
        missing = sorted(p for p in prereq_map[course_code] if p not in known)
        if missing:
            issues.append({
                "course_code": course_code,
                "missing_prereqs": missing,
            })
    return issues


def find_prereq_cycle(prereq_map: Dict[str, Iterable[str]]) -> Optional[List[str]]:
    """
    Return one prerequisite cycle as a closed path, e.g.
    ["EDI301", "EDI401", "EDI301"], or None when the graph is a DAG.

    Iterative three-colour DFS in code order so the reported cycle is
    deterministic. References to unknown codes are ignored here
    (see find_dangling_prereqs).
    """
    WHITE, GREY, BLACK = 0, 1, 2
    colour = {code: WHITE for code in prereq_map}

    for root in sorted(prereq_map):
        if colour[root] != WHITE:
            continue
        path: List[str] = [root]
        stack = [iter(sorted(prereq_map[root]))]
        colour[root] = GREY
        while stack:
            advanced = False
            for nxt in stack[-1]:
                if nxt not in colour:
                    continue
                if colour[nxt] == GREY:
                    return path[path.index(nxt):] + [nxt]
                if colour[nxt] == WHITE:
                    colour[nxt] = GREY
                    path.append(nxt)
                    stack.append(iter(sorted(prereq_map[nxt])))
                    advanced = True
                    break
            if not advanced:
                colour[path.pop()] = BLACK
                stack.pop()
    return None


def get_all_required_prereqs(
    course_code: str,
    prereq_map: Dict[str, Iterable[str]],
    visited: Optional[Set[str]] = None,
) -> Set[str]:
    """
    Return all transitively required prerequisites for course_code.
    Unknown courses contribute nothing.
    """
    if visited is None:
        visited = set()

    if course_code in visited:
        return set()
    visited.add(course_code)

    direct = list(prereq_map.get(course_code, ()))
    all_required = set(direct)
    for prereq in direct:
        all_required |= get_all_required_prereqs(prereq, prereq_map, visited)
    return all_required
