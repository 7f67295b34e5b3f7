from __future__ import annotations

from math import cos, inf, radians, sin

import pytest
from builders import gravity_sample

from steadyframe.config import AttitudeConfig
from steadyframe.estimators.attitude import AttitudeEstimator, compute_attitude
from steadyframe.messages import MessageKey, attitude_message_keys
from steadyframe.models import DEFAULT_ATTITUDE, Severity, TiltDirection
from steadyframe.sensors import ManualSensorSource, SensorSample, UnavailableSensorSource


def test_upright_portrait_is_level() -> None:
    m = compute_attitude(SensorSample(0.0, 1.0, 0.0), AttitudeConfig())
    assert m.pitch == pytest.approx(90.0)
    assert m.roll == pytest.approx(0.0)
    assert m.is_level is True
    assert m.direction is TiltDirection.LEVEL
    assert m.severity is Severity.GOOD
    assert attitude_message_keys(m) == (MessageKey.GREAT_KEEP_STEADY,)


def test_pitch_40_is_tilt_backward_major() -> None:
    m = compute_attitude(gravity_sample(40.0), AttitudeConfig())
    assert m.pitch == pytest.approx(40.0)
    assert m.is_level is False
    assert m.direction is TiltDirection.TILT_BACKWARD
    assert m.severity is Severity.MAJOR
    assert attitude_message_keys(m) == (MessageKey.TILT_FORWARD, MessageKey.ADJUST_SEVERITY)


def test_flat_on_table_is_forward_tilt() -> None:
    m = compute_attitude(SensorSample(0.0, 0.0, 1.0), AttitudeConfig())
    assert m.pitch == pytest.approx(0.0)
    assert m.direction is TiltDirection.TILT_FORWARD
    assert m.severity is Severity.MAJOR


def test_negative_pitch_is_forward_tilt_minor() -> None:
    # pitch -60 -> 30 deg off vertical -> minor
    m = compute_attitude(gravity_sample(-60.0), AttitudeConfig())
    assert m.direction is TiltDirection.TILT_FORWARD
    assert m.severity is Severity.MINOR
    assert attitude_message_keys(m) == (MessageKey.TILT_BACK,)


@pytest.mark.parametrize(
    "roll_deg, direction, key",
    [
        (20.0, TiltDirection.TILT_RIGHT, MessageKey.TILT_LEFT),
        (-20.0, TiltDirection.TILT_LEFT, MessageKey.TILT_RIGHT),
    ],
)
def test_roll_issue_when_pitch_within_tolerance(
    roll_deg: float, direction: TiltDirection, key: MessageKey
) -> None:
    cfg = AttitudeConfig(pitch_tolerance=40.0)
    sample = SensorSample(sin(radians(roll_deg)), cos(radians(roll_deg)), 0.0)
    m = compute_attitude(sample, cfg)
    assert m.roll == pytest.approx(roll_deg)
    assert m.is_level is False
    assert m.direction is direction
    assert m.severity is Severity.GOOD
    assert attitude_message_keys(m) == (key,)


def test_invalid_severity_thresholds_rejected() -> None:
    with pytest.raises(ValueError):
        AttitudeConfig(minor_deviation=50.0, major_deviation=45.0)
    with pytest.raises(ValueError):
        AttitudeConfig(minor_deviation=25.0, major_deviation=inf)


@pytest.mark.asyncio
async def test_estimator_publishes_until_stopped(recorder) -> None:
    source = ManualSensorSource("accelerometer")
    est = AttitudeEstimator(recorder, source, AttitudeConfig(update_interval_ms=50))
    await est.start()
    assert est.is_running()
    assert source.update_interval_ms == 50
    assert source.subscriber_count == 1

    source.emit(0.0, 1.0, 0.0)
    assert len(recorder.records) == 1
    assert recorder.last.is_level
    assert est.get_last_metrics() is recorder.last

    est.stop()
    assert not est.is_running()
    assert source.subscriber_count == 0
    source.emit(0.0, 0.0, 1.0)
    assert len(recorder.records) == 1


@pytest.mark.asyncio
async def test_estimator_drops_non_finite_samples(recorder) -> None:
    source = ManualSensorSource("accelerometer")
    est = AttitudeEstimator(recorder, source)
    await est.start()
    source.emit(0.0, 1.0, 0.0)
    source.emit(float("nan"), 1.0, 0.0)
    assert len(recorder.records) == 1
    assert est.get_last_metrics().is_level
    est.stop()


@pytest.mark.asyncio
async def test_missing_accelerometer_keeps_default(recorder) -> None:
    est = AttitudeEstimator(recorder, UnavailableSensorSource("accelerometer"))
    await est.start()
    status = est.status_dict()
    assert status["running"] is True
    assert status["source"] is None
    assert status["diagnostics"] == {"accelerometer": "unavailable"}
    assert est.get_last_metrics() == DEFAULT_ATTITUDE
    assert recorder.records == []
    est.stop()


@pytest.mark.asyncio
async def test_start_is_idempotent(recorder) -> None:
    source = ManualSensorSource("accelerometer")
    est = AttitudeEstimator(recorder, source)
    await est.start()
    await est.start()
    assert source.subscriber_count == 1
    est.stop()
    est.stop()
