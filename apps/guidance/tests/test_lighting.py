from __future__ import annotations

from datetime import datetime

import numpy as np
import pytest
from conftest import async_wait_until

from steadyframe.config import LightingConfig
from steadyframe.estimators.lighting import (
    LightingEstimator,
    LightingReading,
    LightingState,
    lighting_metrics,
    lux_to_luminance,
    score_contrast,
    score_luminance,
    step_lighting,
    time_based_luminance,
)
from steadyframe.models import LightingSource, Quality
from steadyframe.sensors import ManualSensorSource

NOON = datetime(2024, 5, 1, 12, 0)


@pytest.mark.parametrize(
    "lux, expected",
    [
        (0.0, 20.0),
        (1.0, 40.0),
        (10.0, 80.0),
        (100.0, 120.0),
        (300.0, 140.0),
        (500.0, 160.0),
        (1000.0, 200.0),
        (10000.0, 240.0),
        (1_000_000.0, 250.0),
    ],
)
def test_lux_to_luminance_breakpoints(lux: float, expected: float) -> None:
    assert lux_to_luminance(lux) == pytest.approx(expected)


def test_tilt_dims_luminance_down_to_seventy_percent() -> None:
    assert lux_to_luminance(300.0, 1.0) == pytest.approx(126.0)
    assert lux_to_luminance(300.0, 5.0) == pytest.approx(98.0)


@pytest.mark.parametrize(
    "luminance, score",
    [(175.0, 100), (120.0, 80), (215.0, 80), (240.0, 60), (85.0, 60), (50.0, 40), (10.0, 20)],
)
def test_score_luminance(luminance: float, score: int) -> None:
    assert score_luminance(luminance) == score


@pytest.mark.parametrize("contrast, score", [(3.0, 100), (1.6, 80), (5.5, 60), (0.5, 40)])
def test_score_contrast(contrast: float, score: int) -> None:
    assert score_contrast(contrast) == score


def test_well_lit_scene_is_optimal() -> None:
    m = lighting_metrics(175.0, 3.0, LightingSource.AMBIENT_SENSOR, LightingConfig())
    assert m.score == 100.0
    assert m.quality is Quality.EXCELLENT
    assert m.is_optimal is True
    assert m.color_temperature == 5500.0
    assert m.highlight_clipping == 0.0


def test_dim_scene_is_poor() -> None:
    m = lighting_metrics(50.0, 1.0, LightingSource.TIME_BASED, LightingConfig())
    assert m.score == 40.0
    assert m.quality is Quality.POOR
    assert m.is_optimal is False
    assert m.shadow_detail == 0.0
    assert m.color_temperature == 3500.0


def test_second_reading_is_smoothed_against_published_value() -> None:
    cfg = LightingConfig()
    state, first = step_lighting(LightingState(), LightingReading(140.0, 3.0, 300.0), cfg)
    assert first.mean_luminance == 140.0
    state, second = step_lighting(state, LightingReading(200.0, 3.0, 1000.0), cfg)
    assert second.mean_luminance == 152.0
    assert second.source is LightingSource.AMBIENT_SENSOR


def test_reading_without_lux_is_time_based() -> None:
    _, m = step_lighting(LightingState(), LightingReading(60.0, 1.5), LightingConfig())
    assert m.source is LightingSource.TIME_BASED


@pytest.mark.parametrize("hour", range(24))
def test_time_based_luminance_stays_indoor(hour: int) -> None:
    rng = np.random.default_rng(hour)
    for minute in (0, 30, 59):
        value = time_based_luminance(datetime(2024, 5, 1, hour, minute), rng)
        assert 10.0 <= value <= 120.0


@pytest.mark.asyncio
async def test_zero_lux_uses_time_of_day(recorder) -> None:
    est = LightingEstimator(
        recorder, ManualSensorSource("light"), rng=np.random.default_rng(1), clock=lambda: NOON
    )
    await est.start()
    m = est.evaluate()
    assert m.source is LightingSource.TIME_BASED
    assert 70.0 <= m.mean_luminance <= 87.0
    assert recorder.last is m
    est.stop()


@pytest.mark.asyncio
async def test_history_is_bounded(recorder) -> None:
    est = LightingEstimator(recorder, config=LightingConfig(history_size=3), clock=lambda: NOON)
    await est.start()
    for _ in range(7):
        est.evaluate()
    assert len(est.history) == 3
    assert len(recorder.records) == 7
    est.stop()


@pytest.mark.asyncio
async def test_read_failure_falls_back_to_time_based(recorder, monkeypatch) -> None:
    est = LightingEstimator(recorder, clock=lambda: NOON)
    await est.start()

    def boom():
        raise RuntimeError("sensor glitch")

    monkeypatch.setattr(est, "_read", boom)
    m = est.evaluate()
    assert m.source is LightingSource.TIME_BASED
    est.stop()


@pytest.mark.asyncio
async def test_stopped_estimator_does_not_publish(recorder) -> None:
    est = LightingEstimator(recorder, clock=lambda: NOON)
    assert est.evaluate() is est.get_last_metrics()
    assert recorder.records == []

    await est.start()
    published = est.evaluate()
    est.stop()
    assert est.evaluate() is published
    assert len(recorder.records) == 1


@pytest.mark.asyncio
async def test_ambient_sensor_drives_periodic_analysis(recorder) -> None:
    light = ManualSensorSource("light")
    motion = ManualSensorSource("device_motion")
    est = LightingEstimator(
        recorder,
        light,
        motion,
        LightingConfig(update_interval_ms=10),
        rng=np.random.default_rng(3),
        clock=lambda: NOON,
    )
    await est.start()
    assert est.status_dict()["source"] == "ambient_sensor"
    assert light.update_interval_ms == 10
    assert motion.subscriber_count == 1

    light.emit(300.0)
    assert await async_wait_until(
        lambda: bool(recorder.records)
        and recorder.last.source is LightingSource.AMBIENT_SENSOR
    )
    est.stop()
    assert est.history == ()


@pytest.mark.asyncio
async def test_missing_light_sensor_still_analyses(recorder) -> None:
    est = LightingEstimator(
        recorder,
        ManualSensorSource("light", available=False),
        config=LightingConfig(update_interval_ms=10),
        clock=lambda: NOON,
    )
    await est.start()
    assert est.status_dict()["source"] == "time_based"
    assert await async_wait_until(lambda: bool(recorder.records))
    assert recorder.last.source is LightingSource.TIME_BASED
    est.stop()
