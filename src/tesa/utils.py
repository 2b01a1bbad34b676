from loguru import logger
from pathlib import Path
import yaml, os, sys

DEFAULT_CONFIG = "config.yaml"

def config_path(path: str = None) -> Path:
    return Path(path or env("TESA_CONFIG", DEFAULT_CONFIG))

def load_config(path: str = None) -> dict:
    p = config_path(path)
    if not p.exists():
        logger.debug(f"No config at {p}; using defaults")
        return {}
    with open(p, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f)
    return cfg or {}

def save_config(cfg: dict, path: str = None) -> Path:
    p = config_path(path)
    if p.parent != Path("."):
        ensure_dir(p.parent)
    with open(p, "w", encoding="utf-8") as f:
        yaml.safe_dump(cfg, f, sort_keys=False, allow_unicode=True)
    return p

def ensure_dir(p: str):
    Path(p).mkdir(parents=True, exist_ok=True)
    return Path(p)

def env(key: str, default=None):
    return os.getenv(key, default)

def setup_logging(level: str = "INFO"):
    logger.remove()
    logger.add(sys.stderr, level=level.upper())
