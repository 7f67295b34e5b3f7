"""Sensor-source abstraction consumed by every estimator.

A platform layer implements :class:`SensorSource` once per physical sensor
(accelerometer, gyroscope, magnetometer, ambient light, device motion).
All sources deliver the same :class:`SensorSample` shape; the channel
decides how the three components are read:

- accelerometer: ``x, y, z`` in g
- gyroscope: ``x, y, z`` angular velocity in rad/s
- magnetometer: ``x, y, z`` in µT (only ``x, y`` are used for heading)
- ambient light: illuminance in lux in ``x``
- device motion: rotation ``alpha, beta, gamma`` in ``x, y, z``
"""

from __future__ import annotations

import itertools
import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

LOGGER = logging.getLogger(__name__)

SubscriptionHandle = int


def now_ms() -> int:
    """Wall-clock milliseconds, the timestamp unit of :class:`SensorSample`."""
    return int(time.time() * 1000)


@dataclass(frozen=True, slots=True)
class SensorSample:
    x: float
    y: float
    z: float
    timestamp_ms: int = 0

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y) and math.isfinite(self.z)


SampleCallback = Callable[[SensorSample], None]


@runtime_checkable
class SensorSource(Protocol):
    async def is_available(self) -> bool: ...

    async def request_permission(self) -> bool: ...

    def set_update_interval(self, interval_ms: int) -> None: ...

    def subscribe(self, on_sample: SampleCallback) -> SubscriptionHandle: ...

    def unsubscribe(self, handle: SubscriptionHandle) -> None: ...


class ManualSensorSource:
    """Push-driven source: the host calls :meth:`emit` for each reading.

    Used by hosts that receive samples from their own transport and by the
    test suite to drive exact sample sequences.  Thread-safe; callbacks run
    on the emitting thread, outside the internal lock.
    """

    def __init__(
        self,
        name: str = "manual",
        *,
        available: bool = True,
        permission_granted: bool = True,
    ) -> None:
        self.name = name
        self.available = available
        self.permission_granted = permission_granted
        self.update_interval_ms: int | None = None
        self._lock = threading.Lock()
        self._subscribers: dict[SubscriptionHandle, SampleCallback] = {}
        self._tokens = itertools.count(1)

    async def is_available(self) -> bool:
        return self.available

    async def request_permission(self) -> bool:
        return self.permission_granted

    def set_update_interval(self, interval_ms: int) -> None:
        self.update_interval_ms = int(interval_ms)

    def subscribe(self, on_sample: SampleCallback) -> SubscriptionHandle:
        with self._lock:
            handle = next(self._tokens)
            self._subscribers[handle] = on_sample
        return handle

    def unsubscribe(self, handle: SubscriptionHandle) -> None:
        with self._lock:
            self._subscribers.pop(handle, None)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def push(self, sample: SensorSample) -> None:
        with self._lock:
            callbacks = list(self._subscribers.values())
        for callback in callbacks:
            callback(sample)

    def emit(
        self,
        x: float,
        y: float = 0.0,
        z: float = 0.0,
        timestamp_ms: int | None = None,
    ) -> None:
        self.push(SensorSample(x, y, z, now_ms() if timestamp_ms is None else timestamp_ms))


class UnavailableSensorSource:
    """A sensor the device does not have; never delivers samples."""

    def __init__(self, name: str = "unavailable") -> None:
        self.name = name

    async def is_available(self) -> bool:
        return False

    async def request_permission(self) -> bool:
        return False

    def set_update_interval(self, interval_ms: int) -> None:
        return None

    def subscribe(self, on_sample: SampleCallback) -> SubscriptionHandle:
        LOGGER.debug("Subscribe on unavailable sensor %s ignored", self.name)
        return 0

    def unsubscribe(self, handle: SubscriptionHandle) -> None:
        return None


@dataclass(slots=True)
class SensorSuite:
    """The five sources a guidance runtime consumes."""

    accelerometer: SensorSource = field(
        default_factory=lambda: UnavailableSensorSource("accelerometer")
    )
    gyroscope: SensorSource = field(default_factory=lambda: UnavailableSensorSource("gyroscope"))
    magnetometer: SensorSource = field(
        default_factory=lambda: UnavailableSensorSource("magnetometer")
    )
    light: SensorSource = field(default_factory=lambda: UnavailableSensorSource("light"))
    device_motion: SensorSource = field(
        default_factory=lambda: UnavailableSensorSource("device_motion")
    )
