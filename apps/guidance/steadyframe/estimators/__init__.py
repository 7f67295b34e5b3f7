"""Per-channel estimators: attitude, heading, stability, speed and lighting."""

from __future__ import annotations

from .attitude import AttitudeEstimator, compute_attitude
from .base import SensorEstimator, StartPlan
from .heading import HeadingState, HeadingTracker, step_heading
from .lighting import LightingEstimator, LightingState, step_lighting
from .speed import SpeedEstimator, SpeedState, step_speed
from .stability import StabilityMonitor, StabilityState, step_stability

__all__ = [
    "AttitudeEstimator",
    "HeadingState",
    "HeadingTracker",
    "LightingEstimator",
    "LightingState",
    "SensorEstimator",
    "SpeedEstimator",
    "SpeedState",
    "StabilityMonitor",
    "StabilityState",
    "StartPlan",
    "compute_attitude",
    "step_heading",
    "step_lighting",
    "step_speed",
    "step_stability",
]
