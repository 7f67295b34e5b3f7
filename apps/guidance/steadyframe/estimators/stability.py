"""Hand-shake stability score from gyroscope rotation and (optionally) acceleration.

Devices without a usable gyroscope fall back to a low-amplitude synthetic
generator so the channel keeps reporting; the metrics then carry
``source=mock``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
from steadyframe_core import (
    RingBuffer,
    band_for_value,
    band_rank,
    build_bands,
    exponential_blend,
    magnitude,
)

from ..config import StabilityConfig
from ..constants import QUALITY_TIERS
from ..models import DEFAULT_STABILITY, Quality, StabilityMetrics, StabilitySource
from ..sensors import SensorSample, SensorSource, now_ms
from .base import SensorEstimator, StartPlan

LOGGER = logging.getLogger(__name__)

_STABLE_TIERS = 3
"""Excellent, good and fair count as stable."""


@dataclass(frozen=True, slots=True)
class StabilityState:
    score: float = 100.0
    """Unrounded smoothed score; the published score is rounded."""


def stability_scores(rotation: float, acceleration: float, config: StabilityConfig) -> float:
    rotation_score = max(0.0, 100.0 - rotation * 100.0)
    acceleration_score = max(0.0, 100.0 - acceleration * 50.0)
    combined = (
        rotation_score * config.rotation_weight + acceleration_score * config.acceleration_weight
    )
    return max(0.0, min(100.0, combined))


def classify_stability(score: float, config: StabilityConfig) -> tuple[Quality, bool]:
    bands = build_bands(QUALITY_TIERS, config.thresholds)
    key = band_for_value(score, bands)
    # Rank counts up from very_poor (0); the top three tiers are stable.
    is_stable = band_rank(key, bands) >= len(QUALITY_TIERS) - _STABLE_TIERS
    return Quality(key), is_stable


def step_stability(
    state: StabilityState,
    gyro: SensorSample,
    latest_accel: SensorSample | None,
    config: StabilityConfig,
    source: StabilitySource = StabilitySource.GYROSCOPE,
) -> tuple[StabilityState, StabilityMetrics]:
    rotation = magnitude(gyro.x, gyro.y, gyro.z)
    acceleration = 0.0
    final_source = source
    if config.enable_sensor_fusion and latest_accel is not None:
        acceleration = magnitude(latest_accel.x, latest_accel.y, latest_accel.z)
        if source is not StabilitySource.MOCK:
            final_source = StabilitySource.HYBRID

    raw = stability_scores(rotation, acceleration, config)
    smoothed = exponential_blend(state.score, raw, config.smoothing_factor)
    quality, is_stable = classify_stability(smoothed, config)
    metrics = StabilityMetrics(
        score=float(round(smoothed)),
        is_stable=is_stable,
        stability=quality,
        acceleration_magnitude=round(acceleration, 3),
        rotation_magnitude=round(rotation, 3),
        source=final_source,
    )
    return StabilityState(score=smoothed), metrics


class StabilityMonitor(SensorEstimator[StabilityMetrics]):
    channel = "stability"

    def __init__(
        self,
        callback: Callable[[StabilityMetrics], None] | None,
        gyroscope: SensorSource,
        accelerometer: SensorSource | None = None,
        config: StabilityConfig | None = None,
        *,
        rng: np.random.Generator | None = None,
    ) -> None:
        super().__init__(callback, DEFAULT_STABILITY)
        self.config = config or StabilityConfig()
        self._gyroscope = gyroscope
        self._accelerometer = accelerometer
        self._rng = rng if rng is not None else np.random.default_rng(self.config.random_seed)
        self._state = StabilityState()
        self.gyroscope_history: RingBuffer[SensorSample] = RingBuffer(self.config.history_size)
        self.accelerometer_history: RingBuffer[SensorSample] = RingBuffer(
            self.config.history_size
        )

    async def _open(self) -> StartPlan:
        interval = self.config.update_interval_ms
        if await self._acquire("gyroscope", self._gyroscope, interval_ms=interval):
            plan = StartPlan(source=StabilitySource.GYROSCOPE.value)
            plan.subscriptions.append((self._gyroscope, self._on_gyroscope))
        else:
            LOGGER.warning("stability: no gyroscope, using mock motion data")
            plan = self._fallback_plan()
        # Real acceleration is fused into mock scores too.
        if self.config.enable_sensor_fusion and self._accelerometer is not None:
            if await self._acquire(
                "accelerometer",
                self._accelerometer,
                interval_ms=interval,
                require_permission=False,
            ):
                plan.subscriptions.append((self._accelerometer, self._on_accelerometer))
        return plan

    def _fallback_plan(self) -> StartPlan:
        return StartPlan(
            timers=[("mock", self.config.update_interval_ms, self._mock_tick)],
            source=StabilitySource.MOCK.value,
        )

    def _reset_history(self) -> None:
        self.gyroscope_history.clear()
        self.accelerometer_history.clear()
        self._state = StabilityState()

    def _on_accelerometer(self, sample: SensorSample) -> None:
        self.accelerometer_history.push(sample)

    def _on_gyroscope(self, sample: SensorSample) -> None:
        self._process(sample, StabilitySource.GYROSCOPE)

    def _mock_tick(self) -> None:
        amp = self.config.mock_amplitude
        x, y, z = self._rng.uniform(-amp, amp, size=3)
        self._process(SensorSample(float(x), float(y), float(z), now_ms()), StabilitySource.MOCK)

    def _process(self, gyro: SensorSample, source: StabilitySource) -> None:
        self.gyroscope_history.push(gyro)
        self._state, metrics = step_stability(
            self._state,
            gyro,
            self.accelerometer_history.latest(),
            self.config,
            source,
        )
        self._emit(metrics)
