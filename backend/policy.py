import os
from dataclasses import dataclass


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, int(raw))
    except (TypeError, ValueError):
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"true", "1", "yes", "y"}


# Credit cap for the subsidized-enrollment ("gratuidad") bundle.
DEFAULT_CREDIT_CEILING = 14

# Upper bound on transcripts accepted in one batch.
MAX_BATCH_SIZE = 20

DEFAULT_BATCH_WORKERS = 4


def default_credit_ceiling() -> int:
    """CREDIT_CEILING from the environment, else DEFAULT_CREDIT_CEILING."""
    return _env_int("CREDIT_CEILING", DEFAULT_CREDIT_CEILING, minimum=0)


def batch_max_workers() -> int:
    return _env_int("BATCH_MAX_WORKERS", DEFAULT_BATCH_WORKERS, minimum=1)


@dataclass(frozen=True)
class RankingPolicy:
    """
    Tier thresholds for PriorityRanker.

    HIGH   unlock_count >= high_unlock_threshold, or foundational when
           elevate_foundational is set
    MEDIUM unlock_count >= medium_unlock_threshold
    LOW    everything else
    """
    high_unlock_threshold: int = 2
    medium_unlock_threshold: int = 1
    elevate_foundational: bool = True

    @classmethod
    def from_env(cls) -> "RankingPolicy":
        defaults = cls()
        return cls(
            high_unlock_threshold=_env_int(
                "HIGH_UNLOCK_THRESHOLD", defaults.high_unlock_threshold, minimum=1
            ),
            medium_unlock_threshold=_env_int(
                "MEDIUM_UNLOCK_THRESHOLD", defaults.medium_unlock_threshold, minimum=1
            ),
            elevate_foundational=_env_bool(
                "FOUNDATIONAL_ELEVATION", defaults.elevate_foundational
            ),
        )
