"""
Unit tests for the metrics engine.
"""

import numpy as np
import pytest

from tesa.annotation.label_mapping import DEFAULT_LABEL_MAPPING, SemanticClass
from tesa.annotation.records import Record
from tesa.modeling.metrics import compute_metrics, row_normalized

REVERSED = {0: SemanticClass.POSITIVE, 1: SemanticClass.NEUTRAL, 2: SemanticClass.NEGATIVE}


def rec(true, pred, corrected=None):
    return Record(id="x", text="t", true_label=true, predicted_label=pred, corrected_label=corrected)


def test_single_wrong_prediction():
    m = compute_metrics([rec(0, 2)], DEFAULT_LABEL_MAPPING)

    expected = np.zeros((3, 3), dtype=int)
    expected[0][2] = 1
    assert (m.confusion_matrix == expected).all()

    neg, neu, pos = m.per_class
    assert neg.recall == 0.0
    assert pos.precision == 0.0
    assert [c.f1 for c in m.per_class] == [0.0, 0.0, 0.0]
    assert m.macro_f1 == 0.0
    assert m.n_samples == 1


def test_no_usable_rows_is_unavailable():
    """'No data' is None, not an all-zero snapshot."""
    assert compute_metrics([], DEFAULT_LABEL_MAPPING) is None
    records = [rec(None, 1), rec(2, None), rec(7, 1), rec(1, 9)]
    assert compute_metrics(records, DEFAULT_LABEL_MAPPING) is None


def test_corrections_are_ignored():
    m = compute_metrics([rec(0, 2, corrected=0)], DEFAULT_LABEL_MAPPING)
    assert m.confusion_matrix[0][2] == 1
    assert m.macro_f1 == 0.0


def test_macro_f1_divides_by_three():
    """A class with no support still counts with f1 = 0."""
    m = compute_metrics([rec(0, 0), rec(2, 2)], DEFAULT_LABEL_MAPPING)
    assert [c.f1 for c in m.per_class] == [1.0, 0.0, 1.0]
    assert m.macro_f1 == pytest.approx(2 / 3)


def test_mixed_counts():
    m = compute_metrics([rec(0, 0), rec(0, 1), rec(1, 1), rec(2, 0)], DEFAULT_LABEL_MAPPING)
    neg, neu, pos = m.per_class

    assert (neg.precision, neg.recall, neg.f1) == pytest.approx((0.5, 0.5, 0.5))
    assert (neu.precision, neu.recall, neu.f1) == pytest.approx((0.5, 1.0, 2 / 3))
    assert (pos.precision, pos.recall, pos.f1) == (0.0, 0.0, 0.0)
    assert [c.support for c in m.per_class] == [2, 1, 1]
    assert m.macro_f1 == pytest.approx((0.5 + 2 / 3) / 3)
    assert m.confusion_matrix.tolist() == [[1, 1, 0], [0, 1, 0], [1, 0, 0]]


def test_true_labels_go_through_mapping():
    # dataset 0 means positive here, model 2 means positive
    m = compute_metrics([rec(0, 2)], REVERSED)
    assert m.confusion_matrix[2][2] == 1
    assert m.per_class[2].f1 == 1.0


def test_default_mapping_when_none():
    assert compute_metrics([rec(1, 1)]).per_class[1].f1 == 1.0


def test_to_dict():
    d = compute_metrics([rec(0, 0)], DEFAULT_LABEL_MAPPING).to_dict()
    assert d["per_class"]["negative"]["f1"] == 1.0
    assert d["confusion_matrix"][0] == [1, 0, 0]


def test_row_normalized():
    out = row_normalized([[1, 3, 0], [0, 0, 0], [2, 0, 2]])
    assert out.tolist() == [[0.25, 0.75, 0.0], [0.0, 0.0, 0.0], [0.5, 0.0, 0.5]]
