"""Shared test helpers for the steadyframe test suite."""

from __future__ import annotations

import asyncio
import time

import pytest

from steadyframe.sensors import ManualSensorSource


async def async_wait_until(predicate, timeout_s: float = 2.0, step_s: float = 0.01) -> bool:
    """Poll *predicate*, yielding to the event loop between polls."""
    deadline = time.monotonic() + timeout_s
    while time.monotonic() < deadline:
        if predicate():
            return True
        await asyncio.sleep(step_s)
    return False


class FakeClock:
    """Monotonic clock stand-in; seconds as float, advanced by hand."""

    def __init__(self, start_s: float = 1000.0) -> None:
        self.now_s = start_s

    def __call__(self) -> float:
        return self.now_s

    def advance_ms(self, ms: float) -> None:
        self.now_s += ms / 1000.0


class Recorder:
    """Callback that keeps every record it is handed."""

    def __init__(self) -> None:
        self.records: list = []

    def __call__(self, record) -> None:
        self.records.append(record)

    @property
    def last(self):
        return self.records[-1]


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def accelerometer() -> ManualSensorSource:
    return ManualSensorSource("accelerometer")


@pytest.fixture
def gyroscope() -> ManualSensorSource:
    return ManualSensorSource("gyroscope")


@pytest.fixture
def magnetometer() -> ManualSensorSource:
    return ManualSensorSource("magnetometer")
