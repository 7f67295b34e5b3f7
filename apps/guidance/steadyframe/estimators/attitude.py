"""Roll/pitch classification from the gravity vector.

Each accelerometer sample is classified on its own; there is no history.
"""

from __future__ import annotations

from collections.abc import Callable
from math import atan2, degrees, sqrt

from ..config import AttitudeConfig
from ..models import DEFAULT_ATTITUDE, AttitudeMetrics, Severity, TiltDirection
from ..sensors import SensorSample, SensorSource
from .base import SensorEstimator, StartPlan


def _severity_for(deviation: float, config: AttitudeConfig) -> Severity:
    if deviation > config.major_deviation:
        return Severity.MAJOR
    if deviation > config.minor_deviation:
        return Severity.MINOR
    return Severity.GOOD


def compute_attitude(sample: SensorSample, config: AttitudeConfig) -> AttitudeMetrics:
    x, y, z = sample.x, sample.y, sample.z
    roll = degrees(atan2(x, sqrt(y * y + z * z)))
    pitch = degrees(atan2(y, sqrt(x * x + z * z)))
    pitch_delta = abs(abs(pitch) - config.pitch_vertical)

    is_level = abs(roll) < config.roll_tolerance and pitch_delta < config.pitch_tolerance
    if is_level:
        return AttitudeMetrics(
            roll=roll,
            pitch=pitch,
            is_level=True,
            direction=TiltDirection.LEVEL,
            severity=Severity.GOOD,
        )
    # Off vertical takes precedence over side tilt.
    if pitch_delta > config.pitch_tolerance:
        direction = TiltDirection.TILT_BACKWARD if pitch > 0 else TiltDirection.TILT_FORWARD
        severity = _severity_for(pitch_delta, config)
    else:
        direction = TiltDirection.TILT_RIGHT if roll > 0 else TiltDirection.TILT_LEFT
        severity = _severity_for(abs(roll), config)
    return AttitudeMetrics(
        roll=roll,
        pitch=pitch,
        is_level=False,
        direction=direction,
        severity=severity,
    )


class AttitudeEstimator(SensorEstimator[AttitudeMetrics]):
    channel = "attitude"

    def __init__(
        self,
        callback: Callable[[AttitudeMetrics], None] | None,
        accelerometer: SensorSource,
        config: AttitudeConfig | None = None,
    ) -> None:
        super().__init__(callback, DEFAULT_ATTITUDE)
        self.config = config or AttitudeConfig()
        self._accelerometer = accelerometer

    async def _open(self) -> StartPlan:
        plan = StartPlan()
        if await self._acquire(
            "accelerometer",
            self._accelerometer,
            interval_ms=self.config.update_interval_ms,
            require_permission=False,
        ):
            plan.subscriptions.append((self._accelerometer, self._on_accelerometer))
            plan.source = "accelerometer"
        return plan

    def _on_accelerometer(self, sample: SensorSample) -> None:
        self._emit(compute_attitude(sample, self.config))
