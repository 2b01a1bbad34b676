"""
Unit tests for YAML settings and label-mapping persistence.
"""

import yaml

from tesa.annotation.label_mapping import DEFAULT_LABEL_MAPPING, SemanticClass
from tesa.config import get_settings, load_label_mapping, save_label_mapping


def write_cfg(tmp_path, cfg):
    p = tmp_path / "config.yaml"
    p.write_text(yaml.safe_dump(cfg), encoding="utf-8")
    return str(p)


def test_missing_file_gives_defaults(tmp_path):
    s = get_settings(str(tmp_path / "nope.yaml"))
    assert s.label_mapping == DEFAULT_LABEL_MAPPING
    assert s.backend_base_url() == "http://127.0.0.1:51000"
    assert s.export["full_file"] == "tesa_results_full.csv"


def test_loads_mapping_and_sections(tmp_path):
    path = write_cfg(tmp_path, {
        "label_mapping": {0: "positive", 1: "neutral", 2: "negative"},
        "backend": {"host": "10.0.0.5", "port": 8000},
        "export": {"include_id": False},
        "something_else": {"x": 1},
    })
    s = get_settings(path)
    assert s.label_mapping[0] == SemanticClass.POSITIVE
    assert s.backend_base_url() == "http://10.0.0.5:8000"
    assert s.export["include_id"] is False
    assert s.export["include_text"] is True


def test_base_url_override(tmp_path):
    s = get_settings(write_cfg(tmp_path, {"backend": {"base_url": "https://example.org/api/"}}))
    assert s.backend_base_url() == "https://example.org/api"


def test_broken_mapping_falls_back_to_identity():
    assert load_label_mapping({0: "positive", 1: "positive", 2: "negative"}) == DEFAULT_LABEL_MAPPING
    assert load_label_mapping({0: "great"}) == DEFAULT_LABEL_MAPPING
    # partial mapping that stays bijective once filled in
    assert load_label_mapping({1: "neutral"}) == DEFAULT_LABEL_MAPPING


def test_save_label_mapping_keeps_other_keys(tmp_path):
    path = write_cfg(tmp_path, {"backend": {"port": 9000}})
    reversed_ = {0: SemanticClass.POSITIVE, 1: SemanticClass.NEUTRAL, 2: SemanticClass.NEGATIVE}

    save_label_mapping(reversed_, path)

    s = get_settings(path)
    assert s.label_mapping == reversed_
    assert s.backend["port"] == 9000
