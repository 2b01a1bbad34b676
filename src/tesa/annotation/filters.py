"""Results-table filtering and sorting."""
from dataclasses import dataclass, field
from typing import List, Sequence

from .records import Record

SORT_FIELDS = ("id", "src", "label")

@dataclass
class ResultsFilters:
    sentiments: List[int] = field(default_factory=lambda: [0, 1, 2])  # model codes to keep
    sources: List[str] = field(default_factory=list)  # empty = all
    status: str = "all"  # all | corrected | uncorrected
    search_mode: str = "text"  # text | src
    search_query: str = ""

    def __post_init__(self):
        if self.status not in ("all", "corrected", "uncorrected"):
            raise ValueError(f"Invalid status filter: {self.status}")
        if self.search_mode not in ("text", "src"):
            raise ValueError(f"Invalid search mode: {self.search_mode}")

def filter_records(records: Sequence[Record], filters: ResultsFilters) -> List[Record]:
    rows = [r for r in records if r.effective_label is None or r.effective_label in filters.sentiments]
    if filters.sources:
        rows = [r for r in rows if r.src and r.src in filters.sources]
    if filters.status == "corrected":
        rows = [r for r in rows if r.corrected_label is not None]
    elif filters.status == "uncorrected":
        rows = [r for r in rows if r.corrected_label is None]
    q = filters.search_query.strip().lower()
    if q:
        if filters.search_mode == "text":
            rows = [r for r in rows if q in r.text.lower()]
        else:
            rows = [r for r in rows if q in (r.src or "").lower()]
    return rows

def ids_are_sequential(records: Sequence[Record]) -> bool:
    """True when the ids are exactly 1..N (generated, or a file that happens to use them)."""
    if not records:
        return False
    try:
        nums = sorted(int(r.id) for r in records)
    except ValueError:
        return False
    return nums == list(range(1, len(records) + 1))

def sort_records(records: Sequence[Record], field: str = "id", descending: bool = False) -> List[Record]:
    if field not in SORT_FIELDS:
        raise ValueError(f"Invalid sort field: {field}. Must be one of {SORT_FIELDS}")
    rows = list(records)
    if field == "id":
        # ids taken from a file keep file order
        if not ids_are_sequential(rows):
            return rows
        key = lambda r: int(r.id)
    elif field == "src":
        key = lambda r: r.src or ""
    else:
        key = lambda r: -1 if r.effective_label is None else r.effective_label
    return sorted(rows, key=key, reverse=descending)
