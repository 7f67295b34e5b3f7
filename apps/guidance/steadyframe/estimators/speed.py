"""Coarse movement-speed estimate from accelerometer jitter.

There is no position fix: the mean change between consecutive accelerometer
readings is scaled into an approximate speed, which is only good enough to
tell standing still from walking, running or riding in a vehicle.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

import numpy as np
from steadyframe_core import classify_ascending

from ..config import SpeedConfig
from ..constants import (
    ACCEL_ONLY_SPEED_ACCURACY_M,
    DEFAULT_DRIVING_THRESHOLD_MPS,
    MOVEMENT_TYPES,
    MPS_TO_KMH,
    MPS_TO_MPH,
)
from ..models import STATIONARY_SPEED, MovementType, SpeedMetrics, SpeedSource
from ..sensors import SensorSample, SensorSource
from .base import SensorEstimator, StartPlan


@dataclass(frozen=True, slots=True)
class SpeedState:
    samples: tuple[SensorSample, ...] = ()


def motion_intensity(samples: Sequence[SensorSample]) -> float:
    """Mean Euclidean distance between consecutive samples."""
    if len(samples) < 2:
        return 0.0
    xyz = np.array([(s.x, s.y, s.z) for s in samples], dtype=np.float64)
    return float(np.linalg.norm(np.diff(xyz, axis=0), axis=1).mean())


def speed_metrics(speed: float, config: SpeedConfig) -> SpeedMetrics:
    movement = MovementType.STATIONARY
    if speed > 0:
        movement = MovementType(classify_ascending(speed, config.thresholds, MOVEMENT_TYPES))
    return SpeedMetrics(
        speed=speed,
        speed_kmh=speed * MPS_TO_KMH,
        speed_mph=speed * MPS_TO_MPH,
        accuracy=ACCEL_ONLY_SPEED_ACCURACY_M,
        is_moving=speed > config.moving_threshold,
        movement_type=movement,
        source=SpeedSource.SENSORS,
    )


def step_speed(
    state: SpeedState,
    sample: SensorSample,
    config: SpeedConfig,
) -> tuple[SpeedState, SpeedMetrics]:
    samples = (*state.samples, sample)[-config.history_size :]
    new_state = SpeedState(samples=samples)
    if len(samples) < 2:
        return new_state, STATIONARY_SPEED

    intensity = motion_intensity(samples[-config.intensity_window :])
    speed = 0.0
    if intensity > config.noise_floor:
        speed = min(intensity * config.intensity_to_speed, config.max_speed)
    return new_state, speed_metrics(speed, config)


def should_allow_recording_speed(
    metrics: SpeedMetrics, driving_threshold: float = DEFAULT_DRIVING_THRESHOLD_MPS
) -> bool:
    return metrics.speed < driving_threshold


class SpeedEstimator(SensorEstimator[SpeedMetrics]):
    channel = "speed"

    def __init__(
        self,
        callback: Callable[[SpeedMetrics], None] | None,
        accelerometer: SensorSource,
        config: SpeedConfig | None = None,
    ) -> None:
        super().__init__(callback, STATIONARY_SPEED)
        self.config = config or SpeedConfig()
        self._accelerometer = accelerometer
        self._state = SpeedState()

    async def _open(self) -> StartPlan:
        plan = StartPlan()
        if await self._acquire(
            "accelerometer",
            self._accelerometer,
            interval_ms=self.config.update_interval_ms,
            require_permission=False,
        ):
            plan.subscriptions.append((self._accelerometer, self._on_accelerometer))
            plan.source = SpeedSource.SENSORS.value
        return plan

    def _reset_history(self) -> None:
        self._state = SpeedState()

    @property
    def history(self) -> tuple[SensorSample, ...]:
        return self._state.samples

    def _on_accelerometer(self, sample: SensorSample) -> None:
        self._state, metrics = step_speed(self._state, sample, self.config)
        self._emit(metrics)
