"""Immutable metric records emitted by the estimators.

Every estimator publishes one of these per processed sample (or timer
tick).  Records are frozen so the guidance composer can hand the same
object to several readers without copying.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class TiltDirection(StrEnum):
    LEVEL = "level"
    TILT_LEFT = "tilt_left"
    TILT_RIGHT = "tilt_right"
    TILT_FORWARD = "tilt_forward"
    TILT_BACKWARD = "tilt_backward"


class TurnDirection(StrEnum):
    ON_TARGET = "on_target"
    TURN_LEFT = "turn_left"
    TURN_RIGHT = "turn_right"


class Severity(StrEnum):
    """Per-channel deviation severity."""

    GOOD = "good"
    MINOR = "minor"
    MAJOR = "major"


class Quality(StrEnum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    VERY_POOR = "very_poor"


class StabilitySource(StrEnum):
    GYROSCOPE = "gyroscope"
    ACCELEROMETER = "accelerometer"
    HYBRID = "hybrid"
    MOCK = "mock"


class MovementType(StrEnum):
    STATIONARY = "stationary"
    WALKING = "walking"
    RUNNING = "running"
    DRIVING = "driving"
    FAST_MOVING = "fast_moving"


class SpeedSource(StrEnum):
    SENSORS = "sensors"


class LightingSource(StrEnum):
    AMBIENT_SENSOR = "ambient_sensor"
    TIME_BASED = "time_based"
    ESTIMATED = "estimated"


@dataclass(frozen=True, slots=True)
class AttitudeMetrics:
    roll: float
    pitch: float
    is_level: bool
    direction: TiltDirection
    severity: Severity


@dataclass(frozen=True, slots=True)
class HeadingMetrics:
    yaw: float
    is_on_target: bool
    deviation: float
    direction: TurnDirection
    severity: Severity


@dataclass(frozen=True, slots=True)
class StabilityMetrics:
    score: float
    is_stable: bool
    stability: Quality
    acceleration_magnitude: float
    rotation_magnitude: float
    source: StabilitySource


@dataclass(frozen=True, slots=True)
class SpeedMetrics:
    speed: float
    speed_kmh: float
    speed_mph: float
    accuracy: float
    is_moving: bool
    movement_type: MovementType
    source: SpeedSource


@dataclass(frozen=True, slots=True)
class LightingMetrics:
    mean_luminance: float
    contrast_ratio: float
    shadow_detail: float
    highlight_clipping: float
    color_temperature: float
    quality: Quality
    is_optimal: bool
    score: float
    source: LightingSource


# ---------------------------------------------------------------------------
# Defaults published before the first sample / when a sensor is absent
# ---------------------------------------------------------------------------

DEFAULT_ATTITUDE = AttitudeMetrics(
    roll=0.0,
    pitch=0.0,
    is_level=True,
    direction=TiltDirection.LEVEL,
    severity=Severity.GOOD,
)

DEFAULT_HEADING = HeadingMetrics(
    yaw=0.0,
    is_on_target=True,
    deviation=0.0,
    direction=TurnDirection.ON_TARGET,
    severity=Severity.GOOD,
)

DEFAULT_STABILITY = StabilityMetrics(
    score=100.0,
    is_stable=True,
    stability=Quality.EXCELLENT,
    acceleration_magnitude=0.0,
    rotation_magnitude=0.0,
    source=StabilitySource.GYROSCOPE,
)

STATIONARY_SPEED = SpeedMetrics(
    speed=0.0,
    speed_kmh=0.0,
    speed_mph=0.0,
    accuracy=0.0,
    is_moving=False,
    movement_type=MovementType.STATIONARY,
    source=SpeedSource.SENSORS,
)

DEFAULT_LIGHTING = LightingMetrics(
    mean_luminance=128.0,
    contrast_ratio=3.0,
    shadow_detail=20.0,
    highlight_clipping=0.0,
    color_temperature=5500.0,
    quality=Quality.FAIR,
    is_optimal=False,
    score=50.0,
    source=LightingSource.ESTIMATED,
)
