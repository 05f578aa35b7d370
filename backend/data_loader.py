import os
import pandas as pd

from catalog import CatalogIntegrityError, Course, CurriculumCatalog, EquivalencyRule
from normalizer import normalize_code
from prereq_parser import PrereqParseError, parse_prereqs


COURSE_COLUMNS = ["course_code", "course_name", "credits", "prerequisites"]
EQUIVALENCY_COLUMNS = ["source_code", "source_name", "target_code"]

# Spanish and short-form headers seen in program office exports.
_COLUMN_ALIASES = {
    "code": "course_code",
    "codigo": "course_code",
    "código": "course_code",
    "name": "course_name",
    "nombre": "course_name",
    "curso": "course_name",
    "creditos": "credits",
    "créditos": "credits",
    "prereqs": "prerequisites",
    "prereq_hard": "prerequisites",
    "prerrequisitos": "prerequisites",
    "old_code": "source_code",
    "codigo_anterior": "source_code",
    "old_name": "source_name",
    "nombre_anterior": "source_name",
    "new_code": "target_code",
    "codigo_nuevo": "target_code",
}


def normalize_columns(df: pd.DataFrame, required: list[str]) -> pd.DataFrame:
    """Lower-case headers, apply aliases and make sure every required column exists."""
    df = df.copy()
    renamed = {}
    for col in df.columns:
        key = str(col).strip().lower()
        renamed[col] = _COLUMN_ALIASES.get(key, key)
    df = df.rename(columns=renamed)
    for col in required:
        if col not in df.columns:
            df[col] = None
    return df


def _clean_str(val) -> str | None:
    if val is None or (isinstance(val, float) and pd.isna(val)):
        return None
    s = str(val).strip()
    return s or None


def _safe_credits(val):
    """Return credits as int, or the raw value when it is not a whole number."""
    num = pd.to_numeric(val, errors="coerce")
    try:
        if pd.isna(num) or float(num) != int(num):
            return val
    except (TypeError, ValueError, OverflowError):
        return val
    return int(num)


def build_catalog(
    courses_df: pd.DataFrame,
    equivalencies_df: pd.DataFrame | None = None,
) -> CurriculumCatalog:
    """
    Build a validated CurriculumCatalog from course and equivalency frames.

    Parsing problems (unreadable codes, malformed prerequisite cells) are
    collected together with the catalog's own structural checks and raised
    as a single CatalogIntegrityError.
    """
    courses_df = normalize_columns(courses_df, COURSE_COLUMNS)
    if equivalencies_df is None:
        equivalencies_df = pd.DataFrame(columns=EQUIVALENCY_COLUMNS)
    equivalencies_df = normalize_columns(equivalencies_df, EQUIVALENCY_COLUMNS)

    problems: list[str] = []
    courses: list[Course] = []
    for idx, row in courses_df.iterrows():
        raw_code = _clean_str(row.get("course_code"))
        if raw_code is None:
            # Blank spreadsheet rows.
            if all(_clean_str(row.get(c)) is None for c in COURSE_COLUMNS):
                continue
            problems.append(f"courses row {idx + 2}: missing course code")
            continue
        code = normalize_code(raw_code)
        if code is None:
            problems.append(f"courses row {idx + 2}: unreadable course code {raw_code!r}")
            continue
        try:
            prereqs = parse_prereqs(row.get("prerequisites"))
        except PrereqParseError as exc:
            problems.append(f"course {code}: {exc}")
            continue
        courses.append(Course(
            code=code,
            name=_clean_str(row.get("course_name")) or code,
            credits=_safe_credits(row.get("credits")),
            prerequisites=prereqs,
        ))

    rules: list[EquivalencyRule] = []
    for idx, row in equivalencies_df.iterrows():
        raw_target = _clean_str(row.get("target_code"))
        source_code_raw = _clean_str(row.get("source_code"))
        source_name = _clean_str(row.get("source_name"))
        if raw_target is None and source_code_raw is None and source_name is None:
            continue
        target = normalize_code(raw_target)
        if target is None:
            problems.append(f"equivalencies row {idx + 2}: unreadable target code {raw_target!r}")
            continue
        source_code = normalize_code(source_code_raw) if source_code_raw else None
        if source_code_raw and source_code is None:
            problems.append(f"equivalencies row {idx + 2}: unreadable source code {source_code_raw!r}")
            continue
        rules.append(EquivalencyRule(
            target_code=target,
            source_code=source_code,
            source_name=source_name,
        ))

    try:
        catalog = CurriculumCatalog(courses, rules)
    except CatalogIntegrityError as exc:
        raise CatalogIntegrityError(problems + exc.problems) from None
    if problems:
        raise CatalogIntegrityError(problems)
    return catalog


def read_frames(data_path: str) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Read (courses_df, equivalencies_df) from a CSV directory or an xlsx workbook."""
    if os.path.isdir(data_path):
        courses_path = os.path.join(data_path, "courses.csv")
        equivalencies_path = os.path.join(data_path, "equivalencies.csv")
        if not os.path.isfile(courses_path):
            raise FileNotFoundError(f"courses.csv not found in {data_path}")
        courses_df = pd.read_csv(courses_path, dtype=str, keep_default_na=False)
        if os.path.isfile(equivalencies_path):
            equivalencies_df = pd.read_csv(equivalencies_path, dtype=str, keep_default_na=False)
        else:
            equivalencies_df = pd.DataFrame(columns=EQUIVALENCY_COLUMNS)
        return courses_df, equivalencies_df

    if not os.path.isfile(data_path):
        raise FileNotFoundError(f"Catalog data not found: {data_path}")
    xl = pd.ExcelFile(data_path)
    sheet_names = xl.sheet_names
    courses_df = xl.parse("courses", dtype=str)
    if "equivalencies" in sheet_names:
        equivalencies_df = xl.parse("equivalencies", dtype=str)
    else:
        equivalencies_df = pd.DataFrame(columns=EQUIVALENCY_COLUMNS)
    return courses_df, equivalencies_df


def load_data(data_path: str) -> dict:
    """
    Load and validate the curriculum catalog. Raises FileNotFoundError when
    the data is missing and CatalogIntegrityError when it is broken.
    """
    courses_df, equivalencies_df = read_frames(data_path)
    catalog = build_catalog(courses_df, equivalencies_df)

    print(f"[INFO] Catalog: {len(catalog)} courses, {len(catalog.rules)} equivalency rules")

    targeted = {r.target_code for r in catalog.rules}
    uncovered = sorted(catalog.codes - targeted)
    if catalog.rules and uncovered:
        print(
            f"[WARN] {len(uncovered)} course(s) have no equivalency rule and can only be "
            f"credited directly: {uncovered}"
        )

    return {
        "courses_df": courses_df,
        "equivalencies_df": equivalencies_df,
        "catalog": catalog,
        "catalog_codes": catalog.codes,
    }
