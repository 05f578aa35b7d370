"""
Publish gate validator for curriculum catalog data.

Checks the rules a catalog must pass before the advisor is pointed at it.
Designed to be importable for tests and runnable as a standalone CLI.

Usage:
    python scripts/validate_catalog.py
    python scripts/validate_catalog.py --path path/to/catalog_dir
    python scripts/validate_catalog.py --path path/to/workbook.xlsx
"""

import argparse
import os
import sys

try:
    import pandas as pd
except ImportError as e:
    sys.exit(f"Missing dependency: {e}. Run: pip install pandas")

# Import backend modules (add backend/ to path)
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "backend"))

from catalog import CatalogIntegrityError
from data_loader import EQUIVALENCY_COLUMNS, build_catalog, normalize_columns, read_frames
from normalizer import normalize_code, normalize_name


# ── Validation result ─────────────────────────────────────────────────────────

class ValidationResult:
    """Collects errors and warnings for a single catalog validation run."""

    def __init__(self, label: str):
        self.label = label
        self.errors: list[str] = []
        self.warnings: list[str] = []

    def error(self, msg: str) -> None:
        self.errors.append(msg)

    def warn(self, msg: str) -> None:
        self.warnings.append(msg)

    @property
    def passed(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        lines = [f"[{status}] Catalog '{self.label}'"]
        for e in self.errors:
            lines.append(f"  [ERROR] {e}")
        for w in self.warnings:
            lines.append(f"  [WARN]  {w}")
        if self.passed and not self.warnings:
            lines.append("  All checks passed.")
        return "\n".join(lines)


# ── Individual checks ─────────────────────────────────────────────────────────

def check_duplicate_rules(equivalencies_df: pd.DataFrame, result: ValidationResult) -> None:
    """Flag source → target pairs listed more than once."""
    if equivalencies_df is None or len(equivalencies_df) == 0:
        return
    equivalencies_df = normalize_columns(equivalencies_df, EQUIVALENCY_COLUMNS)
    seen: set[tuple] = set()
    for _, row in equivalencies_df.iterrows():
        source = normalize_code(row.get("source_code")) or normalize_name(row.get("source_name"))
        target = normalize_code(row.get("target_code"))
        if not source or not target:
            continue
        key = (source, target)
        if key in seen:
            result.warn(f"Equivalency {source} -> {target} is listed more than once.")
        seen.add(key)


def check_rule_coverage(catalog, result: ValidationResult) -> None:
    """New courses no old course maps to can only be credited directly."""
    if not catalog.rules:
        result.warn("No equivalency rules: only new-curriculum course codes will be credited.")
        return
    targeted = {r.target_code for r in catalog.rules}
    uncovered = sorted(catalog.codes - targeted)
    if uncovered:
        result.warn(f"{len(uncovered)} course(s) have no equivalency rule: {uncovered}")


def validate_catalog(
    courses_df: pd.DataFrame,
    equivalencies_df: pd.DataFrame | None = None,
    label: str = "catalog",
) -> ValidationResult:
    """Run all publish gate checks. Returns a ValidationResult."""
    result = ValidationResult(label)

    if courses_df is None or len(courses_df) == 0:
        result.error("No courses found.")
        return result

    try:
        catalog = build_catalog(courses_df, equivalencies_df)
    except CatalogIntegrityError as exc:
        for problem in exc.problems:
            result.error(problem)
        return result

    check_duplicate_rules(equivalencies_df, result)
    check_rule_coverage(catalog, result)
    return result


# ── CLI ───────────────────────────────────────────────────────────────────────

def main(args=None):
    parser = argparse.ArgumentParser(
        description="Validate curriculum catalog data before publishing.",
    )
    parser.add_argument(
        "--path", type=str,
        default=os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "data"),
        help="Catalog directory (courses.csv, equivalencies.csv) or xlsx workbook.",
    )
    opts = parser.parse_args(args)

    try:
        courses_df, equivalencies_df = read_frames(opts.path)
    except FileNotFoundError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 1

    result = validate_catalog(courses_df, equivalencies_df, label=os.path.normpath(opts.path))
    print(result.summary())
    return 0 if result.passed else 1


if __name__ == "__main__":
    sys.exit(main())
