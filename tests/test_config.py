import json
import logging

import pytest

from garment_fit.config import (
    PLACEMENT_VARIANTS,
    EngineConfig,
    get_config,
    get_variant,
    load_config,
)


def test_defaults():
    cfg = EngineConfig()
    assert cfg.smoothing_alpha == 0.25
    assert cfg.tracking_visibility == 0.5
    assert cfg.view_stable_frames == 3
    assert cfg.variant.name == "tshirt"


def test_variants():
    assert set(PLACEMENT_VARIANTS) == {"tshirt", "shirt", "segmented", "photo"}
    assert get_config("shirt").variant.front_width_multiplier == 3.2
    assert get_config("segmented").variant.segmented
    assert get_config("photo").variant.torso_height_ratio == 1.6


def test_unknown_variant():
    with pytest.raises(ValueError):
        get_variant("poncho")


def test_overrides():
    cfg = get_config("shirt", smoothing_alpha=0.5)
    assert cfg.smoothing_alpha == 0.5
    assert cfg.variant.name == "shirt"


@pytest.mark.parametrize("kwargs", [
    {"smoothing_alpha": 0.0},
    {"smoothing_alpha": 1.0},
    {"view_stable_frames": 0},
    {"world_scale": 0.0},
])
def test_invalid_values(kwargs):
    with pytest.raises(ValueError):
        EngineConfig(**kwargs)


def test_load_missing_file(tmp_path):
    assert load_config(tmp_path / "nope.json") == EngineConfig()


def test_load_malformed_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    assert load_config(path) == EngineConfig()


def test_load_non_object(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("[1, 2]", encoding="utf-8")
    assert load_config(path) == EngineConfig()


def test_load_overrides(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "variant": "shirt",
        "smoothing_alpha": "0.4",
        "view_stable_frames": 5,
        "side_view_distance": "oops",
        "unknown_key": 1,
    }), encoding="utf-8")
    cfg = load_config(path)
    assert cfg.variant.name == "shirt"
    assert cfg.smoothing_alpha == 0.4
    assert cfg.view_stable_frames == 5
    assert cfg.side_view_distance == 0.08


def test_load_invalid_values_raise(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"variant": "poncho"}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)

    path.write_text(json.dumps({"smoothing_alpha": 1.5}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


def test_load_non_object_warns(tmp_path, caplog):
    path = tmp_path / "config.json"
    path.write_text('"shirt"', encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="garment_fit.config"):
        assert load_config(path) == EngineConfig()
    assert "not a JSON object" in caplog.text
