"""Sentiment predictions: HTTP client for the prediction backend, plus an offline keyword predictor.

Backend contract: POST {base_url}/predict with {"text": ...} ->
{"prediction": 0|1|2, "negative_score": f, "neutral_score": f, "positive_score": f}
"""
from dataclasses import dataclass
from typing import List, Sequence
import requests
from loguru import logger

from ..annotation.label_mapping import as_code
from ..annotation.records import Scores

NEUTRAL = 1

@dataclass(frozen=True)
class Prediction:
    label: int  # model code
    scores: Scores

class BackendError(RuntimeError):
    pass

def to_model_code(value) -> int:
    """Backend codes outside 0/1/2 are read as neutral."""
    code = as_code(value)
    return NEUTRAL if code is None else code

class PredictionClient:
    def __init__(self, base_url: str, timeout: float = 30, session: requests.Session = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def predict(self, text: str) -> Prediction:
        url = f"{self.base_url}/predict"
        try:
            res = self.session.post(url, json={"text": text}, timeout=self.timeout)
        except requests.RequestException as e:
            raise BackendError(f"Could not reach prediction backend at {url}: {e}") from e
        if not res.ok:
            body = res.text or ""
            raise BackendError(f"Backend error {res.status_code} {res.reason}" + (f": {body}" if body else ""))
        try:
            data = res.json()
            return Prediction(
                label=to_model_code(data.get("prediction")),
                scores=(float(data["negative_score"]), float(data["neutral_score"]), float(data["positive_score"])),
            )
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise BackendError(f"Unexpected backend response: {e}") from e

    def predict_many(self, texts: Sequence[str]) -> List[Prediction]:
        out = []
        for i, t in enumerate(texts, 1):
            out.append(self.predict(t))
            if i % 100 == 0:
                logger.info(f"Predicted {i}/{len(texts)}")
        return out

POSITIVE_WORDS = [
    "great", "good", "love", "excellent", "awesome", "convenient", "recommend", "perfect",
    "отлично", "хорошо", "нравится", "супер", "круто", "удобно", "класс", "шикарно", "прекрасно", "рекомендую",
]
NEGATIVE_WORDS = [
    "terrible", "bad", "hate", "awful", "inconvenient", "disappointed", "too expensive", "buggy", "crash",
    "ужасно", "плохо", "ненавижу", "отвратительно", "неудобно", "кошмар", "разочарование",
    "слишком дорого", "глючит", "баг",
]

class KeywordPredictor:
    """Deterministic stand-in for the backend (demos, tests, --offline)."""

    def predict(self, text: str) -> Prediction:
        t = (text or "").lower()
        if any(w in t for w in NEGATIVE_WORDS):
            label = 0
        elif any(w in t for w in POSITIVE_WORDS):
            label = 2
        else:
            label = NEUTRAL
        scores = (
            0.8 if label == 0 else 0.1,
            0.7 if label == 1 else 0.15,
            0.85 if label == 2 else 0.1,
        )
        return Prediction(label=label, scores=scores)

    def predict_many(self, texts: Sequence[str]) -> List[Prediction]:
        return [self.predict(t) for t in texts]
