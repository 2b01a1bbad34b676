"""Read input / validation / full-export CSVs into typed rows and write result CSVs back out.

Parsing is permissive per field: a row without text is dropped, and a label cell that is
not exactly 0, 1 or 2 is treated as absent. Only structural problems (empty file, missing
required column, untokenizable CSV) raise ParseError, and nothing is returned in that case.
"""
from __future__ import annotations
import csv, io, os, warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union
import pandas as pd
from loguru import logger

from ..annotation.label_mapping import (
    LabelMapping, as_code, from_model_code, normalize_mapping, to_semantic_class, to_dataset_code,
    labels_equal_by_concept,
)
from ..annotation.records import InputRow, ValidationRow, Record
from ..utils import ensure_dir
from .clean_normalize import clean_cell

Source = Union[str, bytes, os.PathLike, io.IOBase]

ID_COLS = ("id",)
LABEL_COLS = ("label",)
VALIDATION_LABEL_COLS = ("label", "true_label", "gold", "sentiment")

FULL_EXPORT_COLUMNS = [
    "id", "src", "text", "predicted_label", "corrected_label",
    "final_label_concept", "final_label_export", "true_label_raw", "true_label_concept", "match_by_concept",
]

class ParseError(ValueError):
    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

@dataclass
class ParsedCsv:
    rows: List[Any] = field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return len(self.rows)

    def __iter__(self):
        return iter(self.rows)

    def __len__(self):
        return len(self.rows)

# ---------------------------------------------------------------- reading

def _read_text(source: Source) -> str:
    if isinstance(source, os.PathLike):
        raw = Path(source).read_bytes()
    elif hasattr(source, "read"):
        raw = source.read()
    else:
        raw = source
    if isinstance(raw, bytes):
        return raw.decode("utf-8-sig")
    return raw.lstrip("\ufeff")

def _read_frame(source: Source) -> pd.DataFrame:
    text = _read_text(source)
    if not text.strip():
        raise ParseError("File is empty.")
    # quotes inside fields are doubled, so an odd count means one was never closed
    if text.count('"') % 2:
        raise ParseError("Malformed CSV: unterminated quote")
    try:
        with warnings.catch_warnings():
            # rows with extra cells keep their leading fields
            warnings.simplefilter("ignore", pd.errors.ParserWarning)
            df = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False,
                             skip_blank_lines=True, index_col=False,
                             engine="python", on_bad_lines=lambda bad: bad)
    except pd.errors.EmptyDataError:
        raise ParseError("File is empty.")
    except (pd.errors.ParserError, csv.Error) as e:
        raise ParseError(f"Malformed CSV: {e}")
    df.columns = [str(c).strip() for c in df.columns]
    return df

def _find_col(df: pd.DataFrame, names: Sequence[str]) -> Optional[str]:
    """First header (case-insensitive) matching any of `names`, in order of `names`."""
    lower = {}
    for c in df.columns:
        lower.setdefault(c.lower(), c)
    return next((lower[n] for n in names if n in lower), None)

def parse_code(cell) -> Optional[int]:
    """A label cell: '' -> None, exactly 0/1/2 -> int, anything else -> None."""
    s = clean_cell(cell)
    if s == "":
        return None
    try:
        return as_code(float(s))
    except ValueError:
        return None

def _rows(df: pd.DataFrame) -> Iterable[Dict[str, Any]]:
    return df.to_dict(orient="records")

def parse_input_csv(source: Source) -> ParsedCsv:
    """Input file: `text` required; `src`, `label`, `id` optional. Rows without an id get 1, 2, 3, ..."""
    df = _read_frame(source)
    text_col = _find_col(df, ("text",))
    if text_col is None:
        raise ParseError(f"No 'text' column found. Columns: {list(df.columns)}")
    src_col = _find_col(df, ("src",))
    label_col = _find_col(df, LABEL_COLS)
    id_col = _find_col(df, ID_COLS)

    rows: List[InputRow] = []
    generated_id = 1
    for r in _rows(df):
        text = clean_cell(r[text_col])
        if not text:
            continue
        rid = clean_cell(r[id_col]) if id_col else ""
        if not rid:
            rid = str(generated_id)
            generated_id += 1
        rows.append(InputRow(
            id=rid,
            text=text,
            src=(clean_cell(r[src_col]) or None) if src_col else None,
            label=parse_code(r[label_col]) if label_col else None,
        ))
    logger.debug(f"Parsed input CSV: {len(rows)} rows of {len(df)}")
    return ParsedCsv(rows)

def parse_validation_csv(source: Source) -> ParsedCsv:
    """Ground-truth file: `text` and a label column required, `id` optional.
    Rows with empty text or without a usable 0/1/2 label are skipped."""
    df = _read_frame(source)
    text_col = _find_col(df, ("text",))
    label_col = _find_col(df, VALIDATION_LABEL_COLS)
    if text_col is None or label_col is None:
        raise ParseError(f"Validation CSV needs 'text' and 'label' columns. Columns: {list(df.columns)}")
    id_col = _find_col(df, ID_COLS)

    rows: List[ValidationRow] = []
    for r in _rows(df):
        text = clean_cell(r[text_col])
        if not text:
            continue
        label = parse_code(r[label_col])
        if label is None:
            continue
        rows.append(ValidationRow(text=text, true_label=label, id=(clean_cell(r[id_col]) or None) if id_col else None))
    logger.debug(f"Parsed validation CSV: {len(rows)} labeled rows of {len(df)}")
    return ParsedCsv(rows)

def parse_full_csv(source: Source) -> ParsedCsv:
    """Read a full diagnostic export back into Records."""
    df = _read_frame(source)
    text_col = _find_col(df, ("text",))
    if text_col is None:
        raise ParseError(f"No 'text' column found. Columns: {list(df.columns)}")
    id_col = _find_col(df, ID_COLS)
    src_col = _find_col(df, ("src",))
    pred_col = _find_col(df, ("predicted_label",))
    corr_col = _find_col(df, ("corrected_label",))
    true_col = _find_col(df, ("true_label_raw",))

    def code(r, col):
        return parse_code(r[col]) if col else None

    rows: List[Record] = []
    generated_id = 1
    for r in _rows(df):
        text = clean_cell(r[text_col])
        if not text:
            continue
        rid = clean_cell(r[id_col]) if id_col else ""
        if not rid:
            rid = str(generated_id)
            generated_id += 1
        rows.append(Record(
            id=rid, text=text,
            src=(clean_cell(r[src_col]) or None) if src_col else None,
            predicted_label=code(r, pred_col),
            corrected_label=code(r, corr_col),
            true_label=code(r, true_col),
        ))
    return ParsedCsv(rows)

# ---------------------------------------------------------------- writing

def quote(s: str) -> str:
    return '"' + (s or "").replace('"', '""') + '"'

def _field(v) -> str:
    if v is None:
        return ""
    s = str(v)
    if any(ch in s for ch in ',"\r\n'):
        return quote(s)
    return s

def _join(lines: List[str]) -> str:
    return "\n".join(lines) + "\n"

def export_label(record: Record, mapping: LabelMapping) -> str:
    """Effective label re-encoded in the dataset's convention ('' when there is none)."""
    cls = from_model_code(record.effective_label)
    if cls is None:
        return ""
    return str(to_dataset_code(cls, mapping))

def export_results_csv(records: Sequence[Record], mapping: LabelMapping,
                       include_id: bool = False, include_text: bool = False) -> str:
    """Columns [ID?, text?, label]; label is always present and uses the active mapping."""
    mapping = normalize_mapping(mapping)
    headers = []
    if include_id: headers.append("ID")
    if include_text: headers.append("text")
    headers.append("label")

    lines = [",".join(headers)]
    for r in records:
        cols = []
        if include_id: cols.append(_field(r.id))
        if include_text: cols.append(quote(r.text))
        cols.append(export_label(r, mapping))
        lines.append(",".join(cols))
    return _join(lines)

def export_full_csv(records: Sequence[Record], mapping: LabelMapping) -> str:
    mapping = normalize_mapping(mapping)
    lines = [",".join(FULL_EXPORT_COLUMNS)]
    for r in records:
        final_cls = from_model_code(r.effective_label)
        true_cls = to_semantic_class(r.true_label, mapping)
        if final_cls is None or true_cls is None:
            match = ""
        else:
            match = "true" if labels_equal_by_concept(r.true_label, r.effective_label, mapping) else "false"
        lines.append(",".join([
            _field(r.id),
            _field(r.src),
            quote(r.text),
            _field(r.predicted_label),
            _field(r.corrected_label),
            final_cls.value if final_cls else "",
            export_label(r, mapping),
            _field(r.true_label),
            true_cls.value if true_cls else "",
            match,
        ]))
    return _join(lines)

def export_metrics_report(snapshot) -> str:
    """Metrics report file: macro-F1, per-class table, confusion matrix (true rows, predicted columns)."""
    lines = [f"macroF1,{snapshot.macro_f1:.4f}", "", "class,precision,recall,f1"]
    for c in snapshot.per_class:
        lines.append(f"{c.cls.index},{c.precision:.4f},{c.recall:.4f},{c.f1:.4f}")
    lines += ["", "confusion_matrix (true rows, predicted columns)", ",pred=0,pred=1,pred=2"]
    for i, row in enumerate(snapshot.confusion_matrix):
        lines.append(f"true={i}," + ",".join(str(int(v)) for v in row))
    return _join(lines)

def write_export(path, content: str) -> Path:
    p = Path(path)
    ensure_dir(p.parent)
    p.write_text(content, encoding="utf-8")
    logger.info(f"Wrote {p}")
    return p
