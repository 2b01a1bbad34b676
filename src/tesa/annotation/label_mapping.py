"""Label spaces: fixed model codes, user-configurable dataset codes, and the semantic classes both resolve to.

A dataset file and the model both speak in 0/1/2, but only the model's numbers have a fixed
meaning. A LabelMapping says what a dataset's numbers mean. It is a plain dict
{0|1|2: SemanticClass} that must stay a bijection; set_mapping is the only mutation and
it swaps codes instead of creating duplicates.
"""
from __future__ import annotations
import numbers
from enum import Enum
from typing import Dict, Mapping, Optional, Any

class SemanticClass(Enum):
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    POSITIVE = "positive"

    @property
    def index(self) -> int:
        return CLASSES.index(self)

    def __str__(self):
        return self.value

CLASSES = (SemanticClass.NEGATIVE, SemanticClass.NEUTRAL, SemanticClass.POSITIVE)
CODES = (0, 1, 2)

LabelMapping = Dict[int, SemanticClass]

# How the model reads its own numbers. Never configurable.
MODEL_MEANING: Dict[int, SemanticClass] = dict(zip(CODES, CLASSES))
DEFAULT_LABEL_MAPPING: LabelMapping = dict(zip(CODES, CLASSES))

def as_code(value: Any) -> Optional[int]:
    """Return value as 0/1/2, or None for anything else (None, bools, NaN, 3, "x", 1.5)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Integral):
        code = int(value)
    elif isinstance(value, numbers.Real) and float(value).is_integer():
        code = int(value)
    else:
        return None
    return code if code in CODES else None

def parse_class(value: Any) -> SemanticClass:
    if isinstance(value, SemanticClass):
        return value
    if isinstance(value, str):
        try:
            return SemanticClass(value.strip().lower())
        except ValueError:
            pass
    raise ValueError(f"Unknown sentiment class: {value!r}. Must be one of {[c.value for c in CLASSES]}")

def to_semantic_class(code: Any, mapping: Mapping[int, SemanticClass]) -> Optional[SemanticClass]:
    """Dataset code -> class through the mapping; None when the code is not 0/1/2."""
    c = as_code(code)
    if c is None:
        return None
    return mapping.get(c)

def from_model_code(code: Any) -> Optional[SemanticClass]:
    c = as_code(code)
    return MODEL_MEANING[c] if c is not None else None

def to_dataset_code(cls: SemanticClass, mapping: Mapping[int, SemanticClass]) -> int:
    """Inverse lookup. A malformed mapping falls back to the class's own index."""
    for code in CODES:
        if mapping.get(code) == cls:
            return code
    return cls.index

def set_mapping(mapping: Mapping[int, SemanticClass], code: int, cls) -> LabelMapping:
    """Point `code` at `cls`, giving the displaced class to whichever code held `cls` before."""
    c = as_code(code)
    if c is None:
        raise ValueError(f"Invalid dataset code: {code!r}. Must be 0, 1 or 2")
    cls = parse_class(cls)
    nxt = normalize_mapping(mapping)
    displaced = nxt[c]
    if displaced == cls:
        return nxt
    for other in CODES:
        if other != c and nxt[other] == cls:
            nxt[other] = displaced
    nxt[c] = cls
    return nxt

def normalize_mapping(partial: Optional[Mapping[Any, Any]]) -> LabelMapping:
    """Fill missing codes from the identity mapping. Keys may be ints or digit strings
    (as they come back from YAML/JSON); values may be class names. Bijectivity is not checked."""
    raw = {}
    for k, v in (partial or {}).items():
        c = as_code(int(k)) if isinstance(k, str) and k.strip().isdigit() else as_code(k)
        if c is not None and v is not None:
            raw[c] = parse_class(v)
    return {c: raw.get(c, DEFAULT_LABEL_MAPPING[c]) for c in CODES}

def is_bijective(mapping: Mapping[int, SemanticClass]) -> bool:
    return sorted(mapping.keys()) == list(CODES) and set(mapping.values()) == set(CLASSES)

def labels_equal_by_concept(true_label: Any, model_label: Any, mapping: Mapping[int, SemanticClass]) -> bool:
    """True label is a dataset code, model label a model code; compare what they mean."""
    true_cls = to_semantic_class(true_label, normalize_mapping(mapping))
    pred_cls = from_model_code(model_label)
    return true_cls is not None and pred_cls is not None and true_cls == pred_cls

def remap_preview(mapping: Mapping[int, SemanticClass]) -> Dict[int, int]:
    """Model code -> dataset code it will be exported as."""
    return {code: to_dataset_code(MODEL_MEANING[code], mapping) for code in CODES}

def mapping_to_names(mapping: Mapping[int, SemanticClass]) -> Dict[int, str]:
    return {code: mapping[code].value for code in CODES}
