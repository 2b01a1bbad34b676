"""Text cleanup shared by CSV ingestion and validation matching."""
import re

_WS = re.compile(r"\s+")

def clean_text(s) -> str:
    if not isinstance(s, str):
        return ""
    return s.strip()

def normalize_text(s) -> str:
    """Collapse whitespace runs to one space and trim; the key used to match texts across files."""
    return _WS.sub(" ", clean_text(s)).strip()

def clean_cell(v) -> str:
    """pandas cell -> stripped str ("" for NaN/None)."""
    if v is None:
        return ""
    if isinstance(v, float) and v != v:
        return ""
    return str(v).strip()
