import re
import unicodedata

# Matches: INF101, INF 101, inf-101, EDI.204, 514501, PIN 110A, etc.
CANONICAL = re.compile(r'^([A-Za-z]{0,6})[\s.\-]*(\d{2,8}[A-Za-z]?)$')

WHITESPACE_RE = re.compile(r'\s+')


def normalize_code(raw) -> str | None:
    """
    Normalizes a course code to canonical 'DEPTNNN' format.
    Handles: 'inf101', 'INF-101', 'INF 101', 'EDI.204', '514501'
    Returns None if the string cannot be parsed as a course code.
    """
    if raw is None:
        return None
    s = str(raw).strip()
    if not s:
        return None
    m = CANONICAL.match(s)
    if m:
        dept = m.group(1).upper()
        num = m.group(2).upper()
        return f"{dept}{num}"
    return None


def normalize_name(raw) -> str | None:
    """
    Case-insensitive, whitespace-collapsed, accent-folded course name key.
    'Didáctica   General' and 'didactica general' share the same key.
    """
    if raw is None:
        return None
    s = str(raw).strip()
    if not s:
        return None
    decomposed = unicodedata.normalize("NFKD", s)
    folded = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return WHITESPACE_RE.sub(" ", folded).casefold()

