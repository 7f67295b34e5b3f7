"""Synthetic sensor sources for demos and end-to-end runs without hardware.

Each :class:`SimulatedSensorSource` produces one channel of a shared
:class:`MotionProfile` on an asyncio task while it has subscribers.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import math
import time
from dataclasses import dataclass

import numpy as np

from .sensors import SampleCallback, SensorSample, SensorSuite, SubscriptionHandle, now_ms

LOGGER = logging.getLogger(__name__)

SENSOR_KINDS: tuple[str, ...] = (
    "accelerometer",
    "gyroscope",
    "magnetometer",
    "light",
    "device_motion",
)

DEFAULT_INTERVAL_MS = 100
EARTH_FIELD_UT = 40.0


@dataclass(frozen=True, slots=True)
class MotionProfile:
    name: str
    gravity: tuple[float, float, float]
    """Mean accelerometer reading in g; ``(0, 1, 0)`` is upright portrait."""
    accel_noise_std: float
    gyro_noise_std: float
    step_hz: float
    step_amplitude: float
    heading_deg: float
    heading_drift_deg_s: float
    lux: float
    lux_noise_pct: float = 0.03


PROFILE_LIBRARY: dict[str, MotionProfile] = {
    "handheld": MotionProfile(
        name="handheld",
        gravity=(0.04, 0.99, 0.08),
        accel_noise_std=0.004,
        gyro_noise_std=0.01,
        step_hz=0.0,
        step_amplitude=0.0,
        heading_deg=90.0,
        heading_drift_deg_s=0.2,
        lux=350.0,
    ),
    "walking": MotionProfile(
        name="walking",
        gravity=(0.05, 0.97, 0.15),
        accel_noise_std=0.02,
        gyro_noise_std=0.05,
        step_hz=1.8,
        step_amplitude=0.06,
        heading_deg=90.0,
        heading_drift_deg_s=2.0,
        lux=800.0,
    ),
    "driving": MotionProfile(
        name="driving",
        gravity=(0.02, 0.98, 0.1),
        accel_noise_std=0.6,
        gyro_noise_std=0.03,
        step_hz=0.0,
        step_amplitude=0.0,
        heading_deg=180.0,
        heading_drift_deg_s=5.0,
        lux=5000.0,
    ),
    "shaky": MotionProfile(
        name="shaky",
        gravity=(0.3, 0.9, 0.2),
        accel_noise_std=0.05,
        gyro_noise_std=0.8,
        step_hz=0.0,
        step_amplitude=0.0,
        heading_deg=0.0,
        heading_drift_deg_s=15.0,
        lux=40.0,
    ),
}


def get_profile(name: str) -> MotionProfile:
    try:
        return PROFILE_LIBRARY[name]
    except KeyError:
        raise ValueError(
            f"Unknown profile {name!r}; expected one of {sorted(PROFILE_LIBRARY)}"
        ) from None


def make_sample(
    kind: str,
    profile: MotionProfile,
    t_s: float,
    rng: np.random.Generator,
    timestamp_ms: int = 0,
) -> SensorSample:
    """One reading of channel *kind* at *t_s* seconds into the run."""
    if kind == "accelerometer":
        xyz = np.asarray(profile.gravity, dtype=np.float64)
        if profile.step_hz > 0:
            xyz = xyz + np.array(
                [0.0, profile.step_amplitude * math.sin(2 * math.pi * profile.step_hz * t_s), 0.0]
            )
        xyz = xyz + rng.normal(0.0, profile.accel_noise_std, size=3)
    elif kind == "gyroscope":
        xyz = rng.normal(0.0, profile.gyro_noise_std, size=3)
    elif kind == "magnetometer":
        heading = math.radians(profile.heading_deg + profile.heading_drift_deg_s * t_s)
        xyz = np.array(
            [EARTH_FIELD_UT * math.cos(heading), EARTH_FIELD_UT * math.sin(heading), -20.0]
        ) + rng.normal(0.0, 0.3, size=3)
    elif kind == "light":
        lux = profile.lux * (1.0 + rng.normal(0.0, profile.lux_noise_pct))
        xyz = np.array([max(0.0, lux), 0.0, 0.0])
    elif kind == "device_motion":
        # gamma follows the side tilt of the gravity vector
        gamma = math.atan2(profile.gravity[0], profile.gravity[2] or 1.0)
        xyz = np.array([0.0, 0.0, gamma]) + rng.normal(0.0, profile.gyro_noise_std * 0.1, size=3)
    else:
        raise ValueError(f"Unknown sensor kind {kind!r}; expected one of {SENSOR_KINDS}")
    return SensorSample(float(xyz[0]), float(xyz[1]), float(xyz[2]), timestamp_ms)


class SimulatedSensorSource:
    """Emits profile samples at the fastest interval any consumer requested."""

    def __init__(
        self,
        kind: str,
        profile: MotionProfile,
        rng: np.random.Generator,
        *,
        available: bool = True,
    ) -> None:
        if kind not in SENSOR_KINDS:
            raise ValueError(f"Unknown sensor kind {kind!r}; expected one of {SENSOR_KINDS}")
        self.kind = kind
        self.profile = profile
        self.available = available
        self.update_interval_ms = DEFAULT_INTERVAL_MS
        self._interval_requested = False
        self._rng = rng
        self._subscribers: dict[SubscriptionHandle, SampleCallback] = {}
        self._tokens = itertools.count(1)
        self._task: asyncio.Task[None] | None = None
        self._t0 = time.monotonic()

    async def is_available(self) -> bool:
        return self.available

    async def request_permission(self) -> bool:
        return self.available

    def set_update_interval(self, interval_ms: int) -> None:
        # Sources are shared between estimators; the fastest request wins.
        interval_ms = max(1, int(interval_ms))
        if not self._interval_requested or interval_ms < self.update_interval_ms:
            self.update_interval_ms = interval_ms
        self._interval_requested = True

    def subscribe(self, on_sample: SampleCallback) -> SubscriptionHandle:
        handle = next(self._tokens)
        self._subscribers[handle] = on_sample
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(
                self._run(), name=f"sim-{self.kind}"
            )
        return handle

    def unsubscribe(self, handle: SubscriptionHandle) -> None:
        self._subscribers.pop(handle, None)
        if not self._subscribers and self._task is not None:
            self._task.cancel()
            self._task = None

    def next_sample(self) -> SensorSample:
        return make_sample(
            self.kind, self.profile, time.monotonic() - self._t0, self._rng, now_ms()
        )

    async def _run(self) -> None:
        while self._subscribers:
            await asyncio.sleep(self.update_interval_ms / 1000.0)
            sample = self.next_sample()
            for callback in list(self._subscribers.values()):
                try:
                    callback(sample)
                except Exception:
                    LOGGER.warning("sim-%s: subscriber failed", self.kind, exc_info=True)


def simulated_suite(
    profile_name: str,
    *,
    seed: int | None = None,
    missing: tuple[str, ...] = (),
) -> SensorSuite:
    """Build a full suite for *profile_name*; kinds in *missing* report unavailable."""
    profile = get_profile(profile_name)
    seeds = np.random.SeedSequence(seed).spawn(len(SENSOR_KINDS))
    sources = {
        kind: SimulatedSensorSource(
            kind,
            profile,
            np.random.default_rng(child),
            available=kind not in missing,
        )
        for kind, child in zip(SENSOR_KINDS, seeds)
    }
    return SensorSuite(**sources)
