import re

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9\s]")
_WHITESPACE = re.compile(r"\s+")
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")
_SHEET_FORBIDDEN = re.compile(r"[:\\/?*\[\]]")

MAX_SHEET_TITLE = 31


def safe_file_stem(name: str) -> str:
    """Drop punctuation and accents, join words with underscores.

    E.g. 'Full Body (v2)' -> 'Full_Body_v2'. Falls back to 'programme'.
    """
    stem = _WHITESPACE.sub("_", _UNSAFE_CHARS.sub("", name).strip())
    return stem or "programme"


def safe_token(name: str) -> str:
    """Replace every non-alphanumeric character with '_'. E.g. 'A/B' -> 'A_B'."""
    return _NON_ALNUM.sub("_", name) or "_"


def safe_sheet_title(name: str, taken: set[str] | None = None) -> str:
    """Make a valid, unique worksheet title.

    Excel forbids ``: \\ / ? * [ ]`` and titles longer than 31 characters;
    titles compare case-insensitively. Collisions get ' (2)', ' (3)', ...
    """
    base = _SHEET_FORBIDDEN.sub("_", name).strip() or "Feuille"
    base = base[:MAX_SHEET_TITLE]
    taken_lower = {t.lower() for t in (taken or set())}

    title = base
    counter = 2
    while title.lower() in taken_lower:
        suffix = f" ({counter})"
        title = base[:MAX_SHEET_TITLE - len(suffix)] + suffix
        counter += 1
    return title
