"""Attach predictions, manual corrections and ground-truth labels to records.

Every function returns a new list; the records passed in are never modified.
"""
from __future__ import annotations
from collections import Counter
from dataclasses import replace
from typing import Dict, List, Optional, Sequence
from loguru import logger

from .label_mapping import LabelMapping, as_code, labels_equal_by_concept
from .records import InputRow, Record, ValidationRow
from ..etl.clean_normalize import normalize_text

def records_from_input(rows: Sequence[InputRow]) -> List[Record]:
    """Raw (un-analyzed) records, one per parsed input row."""
    return [Record(id=r.id, text=r.text, src=r.src) for r in rows]

def records_from_predictions(rows: Sequence[InputRow], predictions: Sequence) -> List[Record]:
    """Pair input rows with backend predictions by position. A `label` column in the
    input file becomes the initial true label."""
    if len(rows) != len(predictions):
        raise ValueError(f"Got {len(predictions)} predictions for {len(rows)} rows")
    out = []
    for row, pred in zip(rows, predictions):
        out.append(Record(
            id=row.id, text=row.text, src=row.src,
            predicted_label=as_code(pred.label),
            true_label=row.label,
            scores=pred.scores,
        ))
    return out

def set_corrected_label(records: Sequence[Record], record_id: str, label: Optional[int]) -> List[Record]:
    """Set (or clear with None) the manual label of one record; status follows from the fields."""
    if label is not None and as_code(label) is None:
        raise ValueError(f"Invalid corrected label: {label!r}. Must be 0, 1, 2 or None")
    code = as_code(label)
    return [replace(r, corrected_label=code) if r.id == record_id else r for r in records]

def apply_validation(records: Sequence[Record], rows: Sequence[ValidationRow]) -> List[Record]:
    """Attach true labels from a validation file.

    Per record, first match wins: identifier, then whitespace-normalized text, then
    position. Unmatched records keep whatever true label they had.
    """
    by_id: Dict[str, int] = {}
    by_text: Dict[str, int] = {}
    # last write wins on duplicate keys
    for v in rows:
        if v.id is not None:
            by_id[v.id] = v.true_label
        by_text[normalize_text(v.text)] = v.true_label

    out = []
    hits = Counter()
    for idx, r in enumerate(records):
        if r.id in by_id:
            label, how = by_id[r.id], "id"
        elif normalize_text(r.text) in by_text:
            label, how = by_text[normalize_text(r.text)], "text"
        elif idx < len(rows):
            label, how = rows[idx].true_label, "index"
        else:
            out.append(r)
            hits["none"] += 1
            continue
        hits[how] += 1
        out.append(replace(r, true_label=label))
    logger.debug(f"Validation matches: {dict(hits)}")
    return out

def reset_validation(records: Sequence[Record]) -> List[Record]:
    return [replace(r, true_label=None) for r in records]

def is_match(record: Record, mapping: LabelMapping) -> Optional[bool]:
    """Concept equality of true vs effective label; None when either is missing."""
    if record.true_label is None or record.effective_label is None:
        return None
    return labels_equal_by_concept(record.true_label, record.effective_label, mapping)

NO_SOURCE = "(no source)"

def by_source(records: Sequence[Record]) -> Dict[str, Dict[object, int]]:
    """Effective-label counts per `src`, largest source first. Unlabeled records are skipped."""
    counts: Dict[str, Dict[object, int]] = {}
    for r in records:
        label = r.effective_label
        if label is None:
            continue
        entry = counts.setdefault(r.src or NO_SOURCE, {0: 0, 1: 0, 2: 0, "total": 0})
        entry[label] += 1
        entry["total"] += 1
    return dict(sorted(counts.items(), key=lambda kv: -kv[1]["total"]))

def summarize(records: Sequence[Record]) -> Dict[str, object]:
    return {
        "total": len(records),
        "predicted": sum(r.predicted_label is not None for r in records),
        "corrected": sum(r.corrected_label is not None for r in records),
        "with_true_label": sum(r.true_label is not None for r in records),
        "matched": sum(r.predicted_label is not None and r.true_label is not None for r in records),
        "distribution": dict(Counter(r.effective_label for r in records if r.effective_label is not None)),
        "by_source": by_source(records),
    }
