"""
Unit tests for the prediction backend client and the offline keyword predictor.

The HTTP session is mocked; no backend is contacted.
"""

import pytest
import requests
from unittest.mock import MagicMock

from tesa.modeling.predict import BackendError, KeywordPredictor, PredictionClient, to_model_code


def _response(ok=True, status=200, payload=None, text=""):
    res = MagicMock()
    res.ok = ok
    res.status_code = status
    res.reason = "OK" if ok else "Internal Server Error"
    res.text = text
    res.json.return_value = payload
    return res


def test_predict_posts_text():
    session = MagicMock()
    session.post.return_value = _response(payload={
        "prediction": 2, "negative_score": 0.1, "neutral_score": 0.2, "positive_score": 0.7,
    })
    client = PredictionClient("http://backend:51000/", timeout=5, session=session)

    pred = client.predict("nice")

    session.post.assert_called_once_with("http://backend:51000/predict", json={"text": "nice"}, timeout=5)
    assert pred.label == 2
    assert pred.scores == (0.1, 0.2, 0.7)


def test_out_of_range_prediction_reads_as_neutral():
    session = MagicMock()
    session.post.return_value = _response(payload={
        "prediction": 5, "negative_score": 0.3, "neutral_score": 0.3, "positive_score": 0.4,
    })
    assert PredictionClient("http://b", session=session).predict("x").label == 1
    assert to_model_code(None) == 1
    assert to_model_code(0) == 0


def test_backend_error_status():
    session = MagicMock()
    session.post.return_value = _response(ok=False, status=500, text="boom")

    with pytest.raises(BackendError, match="500.*boom"):
        PredictionClient("http://b", session=session).predict("x")


def test_backend_unreachable():
    session = MagicMock()
    session.post.side_effect = requests.ConnectionError("refused")

    with pytest.raises(BackendError, match="Could not reach"):
        PredictionClient("http://b", session=session).predict("x")


def test_backend_bad_payload():
    session = MagicMock()
    session.post.return_value = _response(payload={"prediction": 1})

    with pytest.raises(BackendError):
        PredictionClient("http://b", session=session).predict("x")


def test_predict_many_keeps_order():
    session = MagicMock()
    session.post.side_effect = [
        _response(payload={"prediction": c, "negative_score": 0, "neutral_score": 0, "positive_score": 0})
        for c in (0, 1, 2)
    ]
    preds = PredictionClient("http://b", session=session).predict_many(["a", "b", "c"])
    assert [p.label for p in preds] == [0, 1, 2]


def test_keyword_predictor():
    p = KeywordPredictor()
    assert p.predict("I love this app").label == 2
    assert p.predict("Terrible support").label == 0
    assert p.predict("Это ужасно").label == 0
    assert p.predict("It is a phone").label == 1
    assert [x.label for x in p.predict_many(["great", "meh"])] == [2, 1]
