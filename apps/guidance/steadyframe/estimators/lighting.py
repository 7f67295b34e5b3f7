"""Scene lighting estimate from the ambient-light sensor, or the clock.

No camera frames are analysed.  When the device reports a positive lux
reading it is mapped onto an 8-bit luminance scale (optionally dimmed for
a tilted device); otherwise a time-of-day heuristic stands in.  Both paths
add a little random jitter to contrast, drawn from an injected
``numpy.random.Generator`` so seeded runs are reproducible.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

import numpy as np
from steadyframe_core import band_for_value, band_rank, build_bands, exponential_blend

from ..config import LightingConfig
from ..constants import QUALITY_TIERS
from ..models import DEFAULT_LIGHTING, LightingMetrics, LightingSource, Quality
from ..sensors import SensorSample, SensorSource
from .base import SensorEstimator, StartPlan

LOGGER = logging.getLogger(__name__)

_OPTIMAL_TIERS = 2
"""Excellent and good lighting count as optimal."""


@dataclass(frozen=True, slots=True)
class LightingReading:
    luminance: float
    contrast: float
    illuminance: float | None = None
    """Lux the reading was derived from; ``None`` for the time-based estimate."""


@dataclass(frozen=True, slots=True)
class LightingState:
    history: tuple[LightingReading, ...] = ()
    last: LightingMetrics = DEFAULT_LIGHTING


# ---------------------------------------------------------------------------
# Ambient-light path
# ---------------------------------------------------------------------------


def lux_to_luminance(lux: float, tilt: float = 0.0) -> float:
    """Map illuminance onto a 0–255 luminance scale, piecewise linear.

    *tilt* is the absolute device-motion gamma; every unit dims the estimate
    by 10%, never below 70%.
    """
    if lux <= 1:
        luminance = 20 + lux * 20
    elif lux <= 10:
        luminance = 40 + (lux - 1) * 40 / 9
    elif lux <= 100:
        luminance = 80 + (lux - 10) * 40 / 90
    elif lux <= 500:
        luminance = 120 + (lux - 100) * 40 / 400
    elif lux <= 1000:
        luminance = 160 + (lux - 500) * 40 / 500
    elif lux <= 10000:
        luminance = 200 + (lux - 1000) * 40 / 9000
    else:
        luminance = min(250.0, 240 + (lux - 10000) * 10 / 10000)
    return luminance * max(0.7, 1 - tilt * 0.1)


def contrast_for_lux(lux: float, rng: np.random.Generator) -> float:
    if lux <= 1:
        base, spread = 1.0, 0.3
    elif lux <= 10:
        base, spread = 1.5, 0.5
    elif lux <= 100:
        base, spread = 2.0, 1.0
    elif lux <= 1000:
        base, spread = 2.5, 1.5
    elif lux <= 10000:
        base, spread = 2.0, 1.0
    else:
        base, spread = 1.5, 0.8
    return base + float(rng.uniform(0.0, spread))


def ambient_reading(
    lux: float, tilt: float, rng: np.random.Generator
) -> LightingReading:
    return LightingReading(
        luminance=lux_to_luminance(lux, tilt),
        contrast=contrast_for_lux(lux, rng),
        illuminance=lux,
    )


# ---------------------------------------------------------------------------
# Time-of-day path
# ---------------------------------------------------------------------------


def time_based_luminance(now: datetime, rng: np.random.Generator) -> float:
    hour, minute = now.hour, now.minute
    if 6 <= hour < 9:
        base = 30 + (hour - 6) * 15 + minute / 60 * 10
    elif 9 <= hour < 17:
        base = 60 + math.sin((hour - 9) * math.pi / 8) * 20
    elif 17 <= hour < 20:
        base = 70 - (hour - 17) * 15 - minute / 60 * 10
    elif 20 <= hour < 22:
        base = 40 - (hour - 20) * 10
    else:
        base = 15 + float(rng.uniform(0.0, 20.0))
    variation = float(rng.uniform(-7.5, 7.5))
    # Assumes indoor light: never brighter than 120.
    return max(10.0, min(120.0, base + variation))


def contrast_for_luminance(luminance: float, rng: np.random.Generator) -> float:
    if luminance > 180:
        base, spread = 1.8, 0.8
    elif luminance > 120:
        base, spread = 2.5, 1.0
    elif luminance > 80:
        base, spread = 2.0, 1.2
    else:
        base, spread = 1.2, 0.6
    return base + float(rng.uniform(0.0, spread))


def time_based_reading(now: datetime, rng: np.random.Generator) -> LightingReading:
    luminance = time_based_luminance(now, rng)
    return LightingReading(luminance=luminance, contrast=contrast_for_luminance(luminance, rng))


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def score_luminance(luminance: float) -> int:
    if 150 <= luminance <= 200:
        return 100
    if 100 <= luminance < 150 or 200 < luminance <= 230:
        return 80
    if 70 <= luminance < 100 or 230 < luminance <= 250:
        return 60
    if 40 <= luminance < 70:
        return 40
    return 20


def score_contrast(contrast: float) -> int:
    if 2.0 <= contrast <= 4.0:
        return 100
    if 1.5 <= contrast <= 5.0:
        return 80
    if 1.2 <= contrast <= 6.0:
        return 60
    return 40


def color_temperature(luminance: float) -> float:
    if luminance > 180:
        return 6500.0
    if luminance > 120:
        return 5500.0
    if luminance > 80:
        return 4500.0
    return 3500.0


def lighting_metrics(
    luminance: float,
    contrast: float,
    source: LightingSource,
    config: LightingConfig,
) -> LightingMetrics:
    score = (score_luminance(luminance) + score_contrast(contrast)) / 2
    bands = build_bands(QUALITY_TIERS, config.thresholds)
    key = band_for_value(score, bands)
    is_optimal = band_rank(key, bands) >= len(QUALITY_TIERS) - _OPTIMAL_TIERS
    shadow_detail = max(0.0, min(50.0, (luminance - 50) * 0.4))
    highlight_clipping = (luminance - 220) * 0.5 if luminance > 220 else 0.0
    return LightingMetrics(
        mean_luminance=float(round(luminance)),
        contrast_ratio=round(contrast, 1),
        shadow_detail=float(round(shadow_detail)),
        highlight_clipping=float(round(highlight_clipping)),
        color_temperature=color_temperature(luminance),
        quality=Quality(key),
        is_optimal=is_optimal,
        score=float(round(score)),
        source=source,
    )


def step_lighting(
    state: LightingState,
    reading: LightingReading,
    config: LightingConfig,
) -> tuple[LightingState, LightingMetrics]:
    history = (*state.history, reading)[-config.history_size :]
    luminance, contrast = reading.luminance, reading.contrast
    if len(history) > 1:
        luminance = exponential_blend(
            state.last.mean_luminance, luminance, config.smoothing_factor
        )
        contrast = exponential_blend(state.last.contrast_ratio, contrast, config.smoothing_factor)
    source = (
        LightingSource.AMBIENT_SENSOR
        if reading.illuminance is not None
        else LightingSource.TIME_BASED
    )
    metrics = lighting_metrics(luminance, contrast, source, config)
    return LightingState(history=history, last=metrics), metrics


class LightingEstimator(SensorEstimator[LightingMetrics]):
    channel = "lighting"

    def __init__(
        self,
        callback: Callable[[LightingMetrics], None] | None,
        light: SensorSource | None = None,
        device_motion: SensorSource | None = None,
        config: LightingConfig | None = None,
        *,
        rng: np.random.Generator | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        super().__init__(callback, DEFAULT_LIGHTING)
        self.config = config or LightingConfig()
        self._light = light
        self._device_motion = device_motion
        self._rng = rng if rng is not None else np.random.default_rng(self.config.random_seed)
        self._clock = clock
        self._state = LightingState()
        self._lux = 0.0
        self._tilt = 0.0

    async def _open(self) -> StartPlan:
        plan = self._fallback_plan()
        if self.config.enable_ambient_light_sensor and self._light is not None:
            if await self._acquire(
                "light",
                self._light,
                interval_ms=self.config.update_interval_ms,
                require_permission=False,
            ):
                plan.subscriptions.append((self._light, self._on_light))
                plan.source = LightingSource.AMBIENT_SENSOR.value
            else:
                LOGGER.warning("lighting: ambient light sensor unusable, using time-based estimate")
        if self.config.enable_orientation_compensation and self._device_motion is not None:
            if await self._acquire(
                "device_motion",
                self._device_motion,
                interval_ms=self.config.device_motion_interval_ms,
                require_permission=False,
            ):
                plan.subscriptions.append((self._device_motion, self._on_device_motion))
        return plan

    def _fallback_plan(self) -> StartPlan:
        return StartPlan(
            timers=[("analysis", self.config.update_interval_ms, self.evaluate)],
            source=LightingSource.TIME_BASED.value,
        )

    def _reset_history(self) -> None:
        self._state = LightingState(last=self._state.last)
        self._lux = 0.0
        self._tilt = 0.0

    def _on_light(self, sample: SensorSample) -> None:
        self._lux = max(0.0, sample.x)

    def _on_device_motion(self, sample: SensorSample) -> None:
        self._tilt = abs(sample.z)

    @property
    def history(self) -> tuple[LightingReading, ...]:
        return self._state.history

    def _read(self) -> LightingReading:
        if self._lux > 0:
            return ambient_reading(self._lux, self._tilt, self._rng)
        return time_based_reading(self._clock(), self._rng)

    def evaluate(self) -> LightingMetrics:
        """Run one analysis cycle now and publish the result.

        A stopped estimator publishes nothing and returns its last metrics.
        """
        with self._lock:
            if not self._active:
                return self._last_metrics
            try:
                reading = self._read()
            except Exception:
                LOGGER.warning(
                    "lighting: analysis failed, using time-based estimate", exc_info=True
                )
                reading = time_based_reading(self._clock(), self._rng)
            self._state, metrics = step_lighting(self._state, reading, self.config)
            LOGGER.debug(
                "lighting: luminance=%s contrast=%s lux=%s source=%s",
                metrics.mean_luminance,
                metrics.contrast_ratio,
                self._lux,
                metrics.source,
            )
            self._emit(metrics)
        return metrics
