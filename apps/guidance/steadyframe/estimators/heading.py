"""Compass heading relative to a settable target.

The magnetometer's planar field gives a raw heading which is smoothed along
the shortest arc, so a reading crossing north (359° → 1°) moves the
smoothed value by 2°, not 358°.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, replace

from steadyframe_core import angular_deviation, heading_degrees, smooth_angle, wrap_degrees_360

from ..config import HeadingConfig
from ..models import DEFAULT_HEADING, HeadingMetrics, Severity, TurnDirection
from ..sensors import SensorSample, SensorSource
from .base import SensorEstimator, StartPlan

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HeadingState:
    smoothed_yaw: float | None = None
    target_yaw: float | None = None


def heading_metrics(yaw: float, target: float, config: HeadingConfig) -> HeadingMetrics:
    diff, deviation = angular_deviation(yaw, target)
    if deviation <= config.yaw_tolerance:
        return HeadingMetrics(
            yaw=yaw,
            is_on_target=True,
            deviation=deviation,
            direction=TurnDirection.ON_TARGET,
            severity=Severity.GOOD,
        )
    return HeadingMetrics(
        yaw=yaw,
        is_on_target=False,
        deviation=deviation,
        direction=TurnDirection.TURN_LEFT if diff > 0 else TurnDirection.TURN_RIGHT,
        severity=(
            Severity.MINOR if deviation <= config.minor_deviation_limit else Severity.MAJOR
        ),
    )


def step_heading(
    state: HeadingState,
    sample: SensorSample,
    config: HeadingConfig,
) -> tuple[HeadingState, HeadingMetrics]:
    raw = heading_degrees(sample.x, sample.y)
    if state.smoothed_yaw is None:
        smoothed = raw
    else:
        smoothed = smooth_angle(state.smoothed_yaw, raw, config.smoothing_factor)
    target = state.target_yaw if state.target_yaw is not None else smoothed
    new_state = HeadingState(smoothed_yaw=smoothed, target_yaw=target)
    return new_state, heading_metrics(smoothed, target, config)


class HeadingTracker(SensorEstimator[HeadingMetrics]):
    channel = "heading"

    def __init__(
        self,
        callback: Callable[[HeadingMetrics], None] | None,
        magnetometer: SensorSource,
        config: HeadingConfig | None = None,
    ) -> None:
        super().__init__(callback, DEFAULT_HEADING)
        self.config = config or HeadingConfig()
        self._magnetometer = magnetometer
        # Guards target/smoothed reads from other threads; never held while
        # calling out.
        self._state_lock = threading.Lock()
        self._state = HeadingState()

    async def _open(self) -> StartPlan:
        plan = StartPlan()
        if await self._acquire(
            "magnetometer", self._magnetometer, interval_ms=self.config.update_interval_ms
        ):
            plan.subscriptions.append((self._magnetometer, self._on_magnetometer))
            plan.source = "magnetometer"
        return plan

    def _reset_history(self) -> None:
        with self._state_lock:
            self._state = replace(self._state, smoothed_yaw=None)

    def _on_magnetometer(self, sample: SensorSample) -> None:
        with self._state_lock:
            adopting = self._state.target_yaw is None
            self._state, metrics = step_heading(self._state, sample, self.config)
        if adopting:
            LOGGER.info("No heading target set; adopting current heading %.1f°", metrics.yaw)
        self._emit(metrics)

    # ------------------------------------------------------------------
    # Target management
    # ------------------------------------------------------------------

    def set_target(self, yaw: float) -> None:
        with self._state_lock:
            self._state = replace(self._state, target_yaw=wrap_degrees_360(float(yaw)))
        LOGGER.info("Heading target set to %.1f°", yaw)

    def clear_target(self) -> None:
        with self._state_lock:
            self._state = replace(self._state, target_yaw=None)
        LOGGER.info("Heading target cleared")

    def calibrate_to_current_position(self) -> None:
        with self._state_lock:
            current = self._state.smoothed_yaw
            if current is None:
                LOGGER.info("Heading calibration skipped: no magnetometer reading yet")
                return
            self._state = replace(self._state, target_yaw=current)
        LOGGER.info("Heading target calibrated to current position %.1f°", current)

    def get_current_yaw(self) -> float | None:
        """Smoothed heading, or ``None`` before the first magnetometer reading."""
        with self._state_lock:
            return self._state.smoothed_yaw

    def get_target(self) -> float | None:
        with self._state_lock:
            return self._state.target_yaw

    def has_target(self) -> bool:
        with self._state_lock:
            return self._state.target_yaw is not None
