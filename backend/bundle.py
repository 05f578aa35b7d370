from typing import Iterable

from policy import DEFAULT_CREDIT_CEILING


def bundle_credits(suggestions: Iterable) -> int:
    return sum(s.course.credits for s in suggestions)


def select_bundle(ranked: list, credit_ceiling: int = DEFAULT_CREDIT_CEILING) -> list:
    """
    Greedy pass over ranked suggestions, in order, keeping each one that
    still fits under credit_ceiling.

    A course too large for the remaining budget is skipped without stopping
    the pass, so smaller lower-ranked courses can fill what is left. The
    result is a subsequence of `ranked` (never reordered) whose credits sum
    to at most credit_ceiling. It may be empty.

    Not an exact knapsack: priority order wins over credit utilization.
    """
    if isinstance(credit_ceiling, bool) or not isinstance(credit_ceiling, int):
        raise ValueError(f"credit_ceiling must be an integer, got {credit_ceiling!r}")
    if credit_ceiling < 0:
        raise ValueError(f"credit_ceiling must be >= 0, got {credit_ceiling}")

    remaining = credit_ceiling
    selected = []
    for suggestion in ranked:
        credits = suggestion.course.credits
        if credits <= remaining:
            selected.append(suggestion)
            remaining -= credits
    return selected
