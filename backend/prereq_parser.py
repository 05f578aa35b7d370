import re
import pandas as pd
from normalizer import normalize_code

# Every listed prerequisite is required; the catalog grammar has no OR clauses.
AND_SPLIT = re.compile(r'\s*(?:[;,+&]|\band\b|\by\b)\s*', re.IGNORECASE)

# Regex to strip parenthetical annotation clauses, e.g. "(recommended)"
ANNOTATION_RE = re.compile(r'\s*\([^)]*\)')

NONE_VALUES = {"none", "none listed", "n/a", "na", "nan", "ninguno", "-", ""}


class PrereqParseError(ValueError):
    """Raised when a prerequisite cell contains a token that is not a course code."""

    def __init__(self, raw: str, bad_tokens: list[str]):
        self.raw = raw
        self.bad_tokens = bad_tokens
        super().__init__(f"unparseable prerequisite(s) {bad_tokens!r} in {raw!r}")


def _strip_annotations(s: str) -> str:
    """Remove parenthetical annotation clauses, e.g. '(recommended)'."""
    return ANNOTATION_RE.sub('', s).strip()


def parse_prereqs(prereq_str) -> frozenset[str]:
    """
    Parses a prerequisites cell into the set of required course codes.

    Supported grammar:
      none / ninguno / blank   → frozenset()
      CODE                     → {"CODE"}
      CODE; CODE, CODE and ... → {"CODE", "CODE", ...}

    Each token is normalized via normalize_code(), so 'inf-101' in the sheet
    still maps to canonical 'INF101'. Raises PrereqParseError when any token
    is not a course code.
    """
    if prereq_str is None or (isinstance(prereq_str, float) and pd.isna(prereq_str)):
        return frozenset()

    s = _strip_annotations(str(prereq_str).strip())
    if s.lower() in NONE_VALUES:
        return frozenset()

    codes: set[str] = set()
    bad: list[str] = []
    for token in AND_SPLIT.split(s):
        if not token:
            continue
        code = normalize_code(token)
        if code is None:
            bad.append(token)
        else:
            codes.add(code)
    if bad:
        raise PrereqParseError(s, bad)
    return frozenset(codes)


def prereqs_satisfied(prerequisites, satisfied_codes: set) -> bool:
    """Returns True if every prerequisite code is in satisfied_codes."""
    return all(code in satisfied_codes for code in prerequisites)


def build_prereq_check_string(prerequisites, satisfied_codes: set) -> str:
    """
    Returns a human-readable string showing which prereqs are satisfied.
    Examples:
      "No prerequisites"
      "INF101 ✓"
      "INF102 ✓; INF103 ✗"
    """
    if not prerequisites:
        return "No prerequisites"

    def label_code(code: str) -> str:
        if code in satisfied_codes:
            return f"{code} ✓"
        return f"{code} ✗"

    return "; ".join(label_code(c) for c in sorted(prerequisites))
