from __future__ import annotations

from dataclasses import dataclass

from ..constants import DEFAULT_POSE_TOLERANCE_DEG
from ..messages import MessageKey, heading_message_key
from ..models import AttitudeMetrics, HeadingMetrics


@dataclass(frozen=True, slots=True)
class TargetPose:
    """Framing to hold: captured roll/pitch and, when known, compass heading."""

    roll: float
    pitch: float
    heading: float | None = None


LEVEL_POSE = TargetPose(roll=0.0, pitch=0.0)


def _heading_off(heading: HeadingMetrics | None, target: TargetPose) -> bool:
    return target.heading is not None and heading is not None and not heading.is_on_target


def pose_on_target(
    attitude: AttitudeMetrics,
    heading: HeadingMetrics | None,
    target: TargetPose,
    tolerance: float = DEFAULT_POSE_TOLERANCE_DEG,
) -> bool:
    return (
        abs(attitude.roll - target.roll) <= tolerance
        and abs(attitude.pitch - target.pitch) <= tolerance
        and not _heading_off(heading, target)
    )


def compose_pose_guidance(
    attitude: AttitudeMetrics,
    heading: HeadingMetrics | None,
    target: TargetPose,
    tolerance: float = DEFAULT_POSE_TOLERANCE_DEG,
) -> tuple[MessageKey, ...]:
    """Corrections toward *target*, compass first, then roll, then pitch."""
    if pose_on_target(attitude, heading, target, tolerance):
        return (MessageKey.PERFECT_HOLD_STEADY,)

    keys: list[MessageKey] = []
    if _heading_off(heading, target):
        assert heading is not None
        keys.append(heading_message_key(heading))

    roll_diff = attitude.roll - target.roll
    if abs(roll_diff) > tolerance:
        keys.append(MessageKey.ROTATE_LEFT if roll_diff > 0 else MessageKey.ROTATE_RIGHT)

    pitch_diff = attitude.pitch - target.pitch
    if abs(pitch_diff) > tolerance:
        keys.append(MessageKey.TILT_DOWN if pitch_diff > 0 else MessageKey.TILT_UP)
    return tuple(keys)
