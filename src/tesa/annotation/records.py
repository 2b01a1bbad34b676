"""Row types flowing between the CSV codec, reconciliation and metrics."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple

# negative, neutral, positive
Scores = Tuple[float, float, float]

@dataclass(frozen=True)
class InputRow:
    """One row of an input CSV after parsing. `label` is a raw dataset code."""
    id: str
    text: str
    src: Optional[str] = None
    label: Optional[int] = None

@dataclass(frozen=True)
class ValidationRow:
    text: str
    true_label: int  # dataset code
    id: Optional[str] = None

@dataclass(frozen=True)
class Record:
    """One analyzed text.

    predicted_label / corrected_label are model codes; true_label is a dataset code.
    Status is derived, never stored.
    """
    id: str
    text: str
    src: Optional[str] = None
    predicted_label: Optional[int] = None
    corrected_label: Optional[int] = None
    true_label: Optional[int] = None
    scores: Optional[Scores] = None

    @property
    def status(self) -> str:
        if self.corrected_label is not None:
            return "corrected"
        if self.predicted_label is not None:
            return "predicted"
        return "raw"

    @property
    def effective_label(self) -> Optional[int]:
        return self.corrected_label if self.corrected_label is not None else self.predicted_label
