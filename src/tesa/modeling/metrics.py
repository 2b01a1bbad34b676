"""Confusion matrix, per-class precision/recall/F1 and macro-F1 over reconciled records.

Both sides are compared in the semantic space (0=negative, 1=neutral, 2=positive):
true labels are dataset codes resolved through the label mapping, predictions are model
codes. Manual corrections are deliberately ignored here, so the numbers describe the model.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence
import numpy as np
from loguru import logger
from sklearn.metrics import confusion_matrix, precision_recall_fscore_support

from ..annotation.label_mapping import (
    CLASSES, LabelMapping, SemanticClass, from_model_code, normalize_mapping, to_semantic_class,
)
from ..annotation.records import Record

LABELS = [c.index for c in CLASSES]

@dataclass(frozen=True)
class ClassMetrics:
    cls: SemanticClass
    precision: float
    recall: float
    f1: float
    support: int

@dataclass(frozen=True)
class MetricsSnapshot:
    macro_f1: float
    per_class: List[ClassMetrics]
    confusion_matrix: np.ndarray  # [true][pred]
    n_samples: int

    def to_dict(self) -> dict:
        return {
            "macro_f1": self.macro_f1,
            "per_class": {c.cls.value: {"precision": c.precision, "recall": c.recall,
                                        "f1": c.f1, "support": c.support} for c in self.per_class},
            "confusion_matrix": self.confusion_matrix.tolist(),
            "n_samples": self.n_samples,
        }

def concept_pairs(records: Sequence[Record], mapping: LabelMapping):
    """(true, pred) class indices for records where both resolve; the rest are left out."""
    y_true, y_pred = [], []
    for r in records:
        t = to_semantic_class(r.true_label, mapping)
        p = from_model_code(r.predicted_label)
        if t is None or p is None:
            continue
        y_true.append(t.index)
        y_pred.append(p.index)
    return y_true, y_pred

def compute_metrics(records: Sequence[Record], mapping: LabelMapping = None) -> Optional[MetricsSnapshot]:
    """Returns None when no record has both a resolvable true and predicted label."""
    mapping = normalize_mapping(mapping)
    y_true, y_pred = concept_pairs(records, mapping)
    logger.debug(f"Metrics over {len(y_true)} of {len(records)} records")
    if not y_true:
        return None

    cm = confusion_matrix(y_true, y_pred, labels=LABELS)
    prec, rec, f1, support = precision_recall_fscore_support(
        y_true, y_pred, labels=LABELS, average=None, zero_division=0
    )
    per_class = [
        ClassMetrics(cls=c, precision=float(prec[i]), recall=float(rec[i]), f1=float(f1[i]), support=int(support[i]))
        for i, c in enumerate(CLASSES)
    ]
    # every class counts, including ones with no support
    macro = float(np.mean([c.f1 for c in per_class]))
    return MetricsSnapshot(macro_f1=macro, per_class=per_class, confusion_matrix=cm, n_samples=len(y_true))

def row_normalized(cm) -> np.ndarray:
    """Each row as fractions of its total; empty rows stay 0."""
    m = np.asarray(cm, dtype=float)
    sums = m.sum(axis=1, keepdims=True)
    return np.divide(m, sums, out=np.zeros_like(m), where=sums > 0)
