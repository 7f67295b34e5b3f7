from __future__ import annotations

import logging
from pathlib import Path

import pytest
import yaml

from steadyframe.config import (
    DEFAULT_CONFIG,
    GuidanceConfig,
    HeadingConfig,
    LightingConfig,
    StabilityConfig,
    _deep_merge,
    documented_default_config,
    load_config,
)


def _write(tmp_path: Path, data) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "absent.yaml")
    assert cfg.stability.history_size == 10
    assert cfg.heading.yaw_tolerance == 10.0
    assert cfg.guidance.event_throttle_ms == 2000
    assert cfg.guidance.include_severity_levels == ("info", "warning", "error")
    assert cfg.config_path == (tmp_path / "absent.yaml").resolve()


def test_yaml_overrides_are_deep_merged(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        {
            "stability": {"smoothing_factor": 0.5},
            "guidance": {"language": "fr", "include_severity_levels": ["error"]},
        },
    )
    cfg = load_config(path)
    assert cfg.stability.smoothing_factor == 0.5
    assert cfg.stability.history_size == 10
    assert cfg.guidance.language == "fr"
    assert cfg.guidance.include_severity_levels == ("error",)
    assert cfg.lighting.update_interval_ms == 3000


def test_empty_file_gives_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path).speed.max_speed == 30.0


def test_non_mapping_top_level_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="YAML object"):
        load_config(_write(tmp_path, ["not", "a", "mapping"]))


def test_non_mapping_section_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="heading must be a mapping"):
        load_config(_write(tmp_path, {"heading": 5}))


def test_unknown_keys_are_ignored_with_warning(tmp_path: Path, caplog) -> None:
    path = _write(tmp_path, {"speed": {"warp_factor": 9}})
    with caplog.at_level(logging.WARNING, logger="steadyframe.config"):
        cfg = load_config(path)
    assert cfg.speed.history_size == 10
    assert "warp_factor" in caplog.text


def test_deep_merge_keeps_base_untouched() -> None:
    base = {"a": {"x": 1, "y": 2}, "b": 3}
    merged = _deep_merge(base, {"a": {"y": 20}, "c": 4})
    assert merged == {"a": {"x": 1, "y": 20}, "b": 3, "c": 4}
    assert base == {"a": {"x": 1, "y": 2}, "b": 3}


def test_documented_defaults_are_a_copy() -> None:
    doc = documented_default_config()
    doc["stability"]["history_size"] = 99
    assert DEFAULT_CONFIG["stability"]["history_size"] == 10


def test_sub_minimum_intervals_are_clamped(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="steadyframe.config"):
        cfg = StabilityConfig(update_interval_ms=0, history_size=-3)
    assert cfg.update_interval_ms == 1
    assert cfg.history_size == 1
    assert "clamped" in caplog.text


def test_invalid_throttle_falls_back_to_default(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="steadyframe.config"):
        cfg = GuidanceConfig(event_throttle_ms=-1)
    assert cfg.event_throttle_ms == 2000


@pytest.mark.parametrize(
    "factory",
    [
        lambda: StabilityConfig(smoothing_factor=1.2),
        lambda: StabilityConfig(good_threshold=90.0),
        lambda: LightingConfig(poor_threshold=60.0),
        lambda: HeadingConfig(yaw_tolerance=200.0),
        lambda: GuidanceConfig(pose_tolerance_deg=-1.0),
        lambda: GuidanceConfig(include_severity_levels=("info", "fatal")),
    ],
)
def test_invalid_values_are_rejected(factory) -> None:
    with pytest.raises(ValueError):
        factory()


def test_heading_limit_below_tolerance_warns(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="steadyframe.config"):
        HeadingConfig(yaw_tolerance=20.0, minor_deviation_limit=10.0)
    assert "minor_deviation_limit" in caplog.text


def test_example_config_loads() -> None:
    example = Path(__file__).resolve().parents[1] / "config.example.yaml"
    cfg = load_config(example)
    assert cfg.guidance.pose_tolerance_deg == 5.0
