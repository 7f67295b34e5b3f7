from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml
from steadyframe_core import validate_ascending, validate_descending, validate_smoothing_factor

from .constants import (
    DEFAULT_DRIVING_THRESHOLD_MPS,
    DEFAULT_EVENT_THROTTLE_MS,
    DEFAULT_POSE_TOLERANCE_DEG,
    MAJOR_TILT_DEG,
    MINOR_TILT_DEG,
)

APP_DIR = Path(__file__).resolve().parents[1]
"""Root of the ``apps/guidance/`` tree."""

LOGGER = logging.getLogger(__name__)

VALID_EVENT_SEVERITIES: tuple[str, ...] = ("info", "warning", "error")

DEFAULT_CONFIG: dict[str, Any] = {
    "attitude": {
        "update_interval_ms": 100,
        "roll_tolerance": 15.0,
        "pitch_tolerance": 15.0,
        "pitch_vertical": 90.0,
        "minor_deviation": MINOR_TILT_DEG,
        "major_deviation": MAJOR_TILT_DEG,
    },
    "heading": {
        "update_interval_ms": 10,
        "yaw_tolerance": 10.0,
        "smoothing_factor": 0.8,
        "minor_deviation_limit": 15.0,
    },
    "stability": {
        "update_interval_ms": 100,
        "history_size": 10,
        "excellent_threshold": 85.0,
        "good_threshold": 70.0,
        "fair_threshold": 50.0,
        "poor_threshold": 30.0,
        "acceleration_weight": 0.6,
        "rotation_weight": 0.4,
        "smoothing_factor": 0.7,
        "enable_sensor_fusion": True,
        "mock_amplitude": 0.05,
        "random_seed": None,
    },
    "speed": {
        "update_interval_ms": 1000,
        "history_size": 10,
        "moving_threshold": 0.5,
        "walking_threshold": 1.5,
        "running_threshold": 4.0,
        "driving_threshold": DEFAULT_DRIVING_THRESHOLD_MPS,
        "intensity_window": 5,
        "noise_floor": 0.1,
        "intensity_to_speed": 10.0,
        "max_speed": 30.0,
    },
    "lighting": {
        "update_interval_ms": 3000,
        "history_size": 5,
        "smoothing_factor": 0.8,
        "excellent_threshold": 85.0,
        "good_threshold": 70.0,
        "fair_threshold": 55.0,
        "poor_threshold": 35.0,
        "enable_ambient_light_sensor": True,
        "enable_orientation_compensation": True,
        "device_motion_interval_ms": 1000,
        "random_seed": None,
    },
    "guidance": {
        "pose_tolerance_deg": DEFAULT_POSE_TOLERANCE_DEG,
        "event_throttle_ms": DEFAULT_EVENT_THROTTLE_MS,
        "include_severity_levels": list(VALID_EVENT_SEVERITIES),
        "language": "en",
    },
}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _clamp_min(obj: object, section: str, field_name: str, minimum: int) -> None:
    val = getattr(obj, field_name)
    if not isinstance(val, int) or isinstance(val, bool) or val < minimum:
        LOGGER.warning(
            "%s.%s=%r is below minimum %s — clamped to %s",
            section,
            field_name,
            val,
            minimum,
            minimum,
        )
        object.__setattr__(obj, field_name, minimum)


@dataclass(slots=True)
class AttitudeConfig:
    update_interval_ms: int = 100
    roll_tolerance: float = 15.0
    pitch_tolerance: float = 15.0
    pitch_vertical: float = 90.0
    minor_deviation: float = MINOR_TILT_DEG
    major_deviation: float = MAJOR_TILT_DEG

    def __post_init__(self) -> None:
        _clamp_min(self, "attitude", "update_interval_ms", 1)
        if self.roll_tolerance <= 0 or self.pitch_tolerance <= 0:
            raise ValueError(
                "attitude tolerances must be positive, got "
                f"roll={self.roll_tolerance!r} pitch={self.pitch_tolerance!r}"
            )
        validate_ascending(
            [self.minor_deviation, self.major_deviation], name="attitude severity thresholds"
        )


@dataclass(slots=True)
class HeadingConfig:
    update_interval_ms: int = 10
    yaw_tolerance: float = 10.0
    smoothing_factor: float = 0.8
    minor_deviation_limit: float = 15.0

    def __post_init__(self) -> None:
        _clamp_min(self, "heading", "update_interval_ms", 1)
        validate_smoothing_factor(self.smoothing_factor, name="heading.smoothing_factor")
        if not 0.0 <= self.yaw_tolerance <= 180.0:
            raise ValueError(f"heading.yaw_tolerance must be 0–180, got {self.yaw_tolerance!r}")
        if self.minor_deviation_limit < self.yaw_tolerance:
            LOGGER.warning(
                "heading.minor_deviation_limit=%s is below yaw_tolerance=%s — "
                "every off-target reading will be major",
                self.minor_deviation_limit,
                self.yaw_tolerance,
            )


@dataclass(slots=True)
class StabilityConfig:
    update_interval_ms: int = 100
    history_size: int = 10
    excellent_threshold: float = 85.0
    good_threshold: float = 70.0
    fair_threshold: float = 50.0
    poor_threshold: float = 30.0
    acceleration_weight: float = 0.6
    rotation_weight: float = 0.4
    smoothing_factor: float = 0.7
    enable_sensor_fusion: bool = True
    mock_amplitude: float = 0.05
    random_seed: int | None = None

    def __post_init__(self) -> None:
        _clamp_min(self, "stability", "update_interval_ms", 1)
        _clamp_min(self, "stability", "history_size", 1)
        validate_smoothing_factor(self.smoothing_factor, name="stability.smoothing_factor")
        validate_descending(self.thresholds, name="stability thresholds")
        if self.acceleration_weight < 0 or self.rotation_weight < 0:
            raise ValueError("stability weights must be non-negative")
        if self.mock_amplitude < 0:
            object.__setattr__(self, "mock_amplitude", 0.0)

    @property
    def thresholds(self) -> tuple[float, float, float, float]:
        return (
            self.excellent_threshold,
            self.good_threshold,
            self.fair_threshold,
            self.poor_threshold,
        )


@dataclass(slots=True)
class SpeedConfig:
    update_interval_ms: int = 1000
    history_size: int = 10
    moving_threshold: float = 0.5
    walking_threshold: float = 1.5
    running_threshold: float = 4.0
    driving_threshold: float = DEFAULT_DRIVING_THRESHOLD_MPS
    intensity_window: int = 5
    noise_floor: float = 0.1
    intensity_to_speed: float = 10.0
    max_speed: float = 30.0

    def __post_init__(self) -> None:
        _clamp_min(self, "speed", "update_interval_ms", 1)
        _clamp_min(self, "speed", "history_size", 2)
        _clamp_min(self, "speed", "intensity_window", 2)
        validate_ascending(self.thresholds, name="speed thresholds")
        if self.noise_floor < 0 or self.max_speed <= 0:
            raise ValueError(
                f"speed.noise_floor must be >= 0 and speed.max_speed > 0, got "
                f"{self.noise_floor!r} / {self.max_speed!r}"
            )

    @property
    def thresholds(self) -> tuple[float, float, float, float]:
        return (
            self.moving_threshold,
            self.walking_threshold,
            self.running_threshold,
            self.driving_threshold,
        )


@dataclass(slots=True)
class LightingConfig:
    update_interval_ms: int = 3000
    history_size: int = 5
    smoothing_factor: float = 0.8
    excellent_threshold: float = 85.0
    good_threshold: float = 70.0
    fair_threshold: float = 55.0
    poor_threshold: float = 35.0
    enable_ambient_light_sensor: bool = True
    enable_orientation_compensation: bool = True
    device_motion_interval_ms: int = 1000
    random_seed: int | None = None

    def __post_init__(self) -> None:
        _clamp_min(self, "lighting", "update_interval_ms", 1)
        _clamp_min(self, "lighting", "history_size", 1)
        _clamp_min(self, "lighting", "device_motion_interval_ms", 1)
        validate_smoothing_factor(self.smoothing_factor, name="lighting.smoothing_factor")
        validate_descending(self.thresholds, name="lighting thresholds")

    @property
    def thresholds(self) -> tuple[float, float, float, float]:
        return (
            self.excellent_threshold,
            self.good_threshold,
            self.fair_threshold,
            self.poor_threshold,
        )


@dataclass(slots=True)
class GuidanceConfig:
    pose_tolerance_deg: float = DEFAULT_POSE_TOLERANCE_DEG
    event_throttle_ms: int = DEFAULT_EVENT_THROTTLE_MS
    include_severity_levels: tuple[str, ...] = VALID_EVENT_SEVERITIES
    language: str = "en"

    def __post_init__(self) -> None:
        if self.pose_tolerance_deg < 0:
            raise ValueError(
                f"guidance.pose_tolerance_deg must be >= 0, got {self.pose_tolerance_deg!r}"
            )
        if not isinstance(self.event_throttle_ms, int) or self.event_throttle_ms < 0:
            LOGGER.warning(
                "guidance.event_throttle_ms=%r is invalid — using %s",
                self.event_throttle_ms,
                DEFAULT_EVENT_THROTTLE_MS,
            )
            object.__setattr__(self, "event_throttle_ms", DEFAULT_EVENT_THROTTLE_MS)
        levels = tuple(str(level) for level in self.include_severity_levels)
        unknown = [level for level in levels if level not in VALID_EVENT_SEVERITIES]
        if unknown:
            raise ValueError(
                f"guidance.include_severity_levels has unknown entries {unknown!r}; "
                f"expected a subset of {VALID_EVENT_SEVERITIES!r}"
            )
        object.__setattr__(self, "include_severity_levels", levels)


@dataclass(slots=True)
class SteadyFrameConfig:
    attitude: AttitudeConfig = field(default_factory=AttitudeConfig)
    heading: HeadingConfig = field(default_factory=HeadingConfig)
    stability: StabilityConfig = field(default_factory=StabilityConfig)
    speed: SpeedConfig = field(default_factory=SpeedConfig)
    lighting: LightingConfig = field(default_factory=LightingConfig)
    guidance: GuidanceConfig = field(default_factory=GuidanceConfig)
    config_path: Path | None = None


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path} must contain a YAML object at the top level.")
        return data


def _build_section(merged: dict[str, Any], section: str, cls: type[Any]) -> Any:
    raw = merged.get(section)
    if not isinstance(raw, dict):
        raise ValueError(f"{section} must be a mapping, got {type(raw).__name__}")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - known)
    if unknown:
        LOGGER.warning("Ignoring unknown %s config keys: %s", section, ", ".join(unknown))
    kwargs = {key: value for key, value in raw.items() if key in known}
    if "include_severity_levels" in kwargs:
        kwargs["include_severity_levels"] = tuple(kwargs["include_severity_levels"] or ())
    return cls(**kwargs)


def documented_default_config() -> dict[str, Any]:
    """Return runtime defaults in the shape documented by config.example.yaml."""
    return deepcopy(DEFAULT_CONFIG)


def load_config(config_path: Path | None = None) -> SteadyFrameConfig:
    path = config_path or (APP_DIR / "config.yaml")
    path = path.resolve()
    override = _read_config_file(path)
    merged = _deep_merge(DEFAULT_CONFIG, override)
    config = SteadyFrameConfig(
        attitude=_build_section(merged, "attitude", AttitudeConfig),
        heading=_build_section(merged, "heading", HeadingConfig),
        stability=_build_section(merged, "stability", StabilityConfig),
        speed=_build_section(merged, "speed", SpeedConfig),
        lighting=_build_section(merged, "lighting", LightingConfig),
        guidance=_build_section(merged, "guidance", GuidanceConfig),
        config_path=path,
    )
    LOGGER.info(
        "Loaded config=%s language=%s throttle_ms=%s",
        config.config_path,
        config.guidance.language,
        config.guidance.event_throttle_ms,
    )
    return config
