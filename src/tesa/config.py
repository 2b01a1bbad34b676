# src/tesa/config.py
from dataclasses import dataclass, field
from typing import Dict, Any, Optional
from loguru import logger
from .utils import load_config, save_config
from .annotation.label_mapping import (
    LabelMapping, DEFAULT_LABEL_MAPPING, normalize_mapping, is_bijective, mapping_to_names,
)

DEFAULT_BACKEND = {"host": "127.0.0.1", "port": 51000, "base_url": None, "timeout": 30}
DEFAULT_EXPORT = {
    "include_id": True,
    "include_text": True,
    "results_file": "tesa_results.csv",
    "full_file": "tesa_results_full.csv",
    "metrics_file": "tesa_metrics_report.csv",
}
DEFAULT_LOGGING = {"level": "INFO"}

@dataclass
class Settings:
    label_mapping: LabelMapping = field(default_factory=lambda: dict(DEFAULT_LABEL_MAPPING))
    backend: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_BACKEND))
    export: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_EXPORT))
    logging: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_LOGGING))

    def backend_base_url(self) -> str:
        if self.backend.get("base_url"):
            return str(self.backend["base_url"]).rstrip("/")
        return f"http://{self.backend['host']}:{self.backend['port']}"

def load_label_mapping(raw: Optional[Dict[Any, Any]]) -> LabelMapping:
    """Normalize a persisted mapping; a broken one is rejected in favour of the identity mapping."""
    try:
        mapping = normalize_mapping(raw)
    except ValueError as e:
        logger.warning(f"Ignoring label_mapping from config: {e}")
        return dict(DEFAULT_LABEL_MAPPING)
    if not is_bijective(mapping):
        logger.warning(f"Ignoring non-bijective label_mapping from config: {mapping_to_names(mapping)}")
        return dict(DEFAULT_LABEL_MAPPING)
    return mapping

def get_settings(path: str = None) -> Settings:
    cfg = load_config(path) or {}
    allowed = {"label_mapping", "backend", "export", "logging"}
    # keep only fields our dataclass knows
    filtered = {k: v for k, v in cfg.items() if k in allowed}
    return Settings(
        label_mapping=load_label_mapping(filtered.get("label_mapping")),
        backend={**DEFAULT_BACKEND, **(filtered.get("backend") or {})},
        export={**DEFAULT_EXPORT, **(filtered.get("export") or {})},
        logging={**DEFAULT_LOGGING, **(filtered.get("logging") or {})},
    )

def save_label_mapping(mapping: LabelMapping, path: str = None):
    cfg = load_config(path) or {}
    cfg["label_mapping"] = mapping_to_names(mapping)
    out = save_config(cfg, path)
    logger.info(f"Saved label mapping {cfg['label_mapping']} to {out}")
    return out
