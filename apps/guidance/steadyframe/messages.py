"""Message keys and the metric → key mappings.

The guidance core never produces user-facing text; it produces
``MessageKey`` values that a ``TranslationResolver`` turns into strings.
"""

from __future__ import annotations

from enum import StrEnum

from .models import (
    AttitudeMetrics,
    HeadingMetrics,
    LightingMetrics,
    MovementType,
    Quality,
    Severity,
    SpeedMetrics,
    StabilityMetrics,
    TiltDirection,
    TurnDirection,
)


class MessageKey(StrEnum):
    # attitude (baseline level guidance)
    GREAT_KEEP_STEADY = "greatKeepSteady"
    TILT_RIGHT = "tiltRight"
    TILT_LEFT = "tiltLeft"
    TILT_BACK = "tiltBack"
    TILT_FORWARD = "tiltForward"
    ADJUST = "adjust"
    ADJUST_SEVERITY = "adjustSeverity"
    # heading
    COMPASS_ALIGNED = "compassAligned"
    TURN_BODY_LEFT = "turnBodyLeft"
    TURN_BODY_RIGHT = "turnBodyRight"
    ADJUST_ORIENTATION = "adjustOrientation"
    # target pose guidance
    PERFECT_HOLD_STEADY = "perfectHoldSteady"
    ROTATE_LEFT = "rotateLeft"
    ROTATE_RIGHT = "rotateRight"
    TILT_UP = "tiltUp"
    TILT_DOWN = "tiltDown"
    TARGET_SET = "targetSet"
    TARGET_ANGLE_SET = "targetAngleSet"
    TARGET_SET_TO_LEVEL = "targetSetToLevel"
    # stability
    PERFECT_STABILITY = "perfectStability"
    GOOD_STABILITY = "goodStability"
    FAIR_STABILITY = "fairStability"
    POOR_STABILITY_DEVICE = "poorStabilityDevice"
    VERY_POOR_STABILITY_HOLD = "veryPoorStabilityHold"
    # speed
    DEVICE_STATIONARY = "deviceStationary"
    WALKING_PACE_STABILIZATION = "walkingPaceStabilization"
    RUNNING_DETECTED_SHAKY = "runningDetectedShaky"
    VEHICLE_MOVEMENT_DETECTED = "vehicleMovementDetected"
    HIGH_SPEED_AVOID_RECORDING = "highSpeedAvoidRecording"
    # lighting
    EXCELLENT_LIGHTING_CONDITIONS = "excellentLightingConditions"
    GOOD_LIGHTING_RECORDING = "goodLightingRecording"
    ADEQUATE_LIGHTING_IMPROVED = "adequateLightingImproved"
    POOR_LIGHTING_ADD_LIGHT = "poorLightingAddLight"
    VERY_POOR_LIGHTING_INSUFFICIENT = "veryPoorLightingInsufficient"
    ANALYZING_LIGHTING_CONDITIONS = "analyzingLightingConditions"
    # recording admission
    MOTION_TOO_HIGH = "motionTooHigh"
    STABILIZE_PHONE = "stabilizePhone"
    MOVEMENT_TOO_FAST = "movementTooFast"


# The message names the correction, so it points the opposite way of the tilt.
_TILT_CORRECTION: dict[TiltDirection, MessageKey] = {
    TiltDirection.TILT_LEFT: MessageKey.TILT_RIGHT,
    TiltDirection.TILT_RIGHT: MessageKey.TILT_LEFT,
    TiltDirection.TILT_FORWARD: MessageKey.TILT_BACK,
    TiltDirection.TILT_BACKWARD: MessageKey.TILT_FORWARD,
}

_STABILITY_KEYS: dict[Quality, MessageKey] = {
    Quality.EXCELLENT: MessageKey.PERFECT_STABILITY,
    Quality.GOOD: MessageKey.GOOD_STABILITY,
    Quality.FAIR: MessageKey.FAIR_STABILITY,
    Quality.POOR: MessageKey.POOR_STABILITY_DEVICE,
    Quality.VERY_POOR: MessageKey.VERY_POOR_STABILITY_HOLD,
}

_SPEED_KEYS: dict[MovementType, MessageKey] = {
    MovementType.STATIONARY: MessageKey.DEVICE_STATIONARY,
    MovementType.WALKING: MessageKey.WALKING_PACE_STABILIZATION,
    MovementType.RUNNING: MessageKey.RUNNING_DETECTED_SHAKY,
    MovementType.DRIVING: MessageKey.VEHICLE_MOVEMENT_DETECTED,
    MovementType.FAST_MOVING: MessageKey.HIGH_SPEED_AVOID_RECORDING,
}

_LIGHTING_KEYS: dict[Quality, MessageKey] = {
    Quality.EXCELLENT: MessageKey.EXCELLENT_LIGHTING_CONDITIONS,
    Quality.GOOD: MessageKey.GOOD_LIGHTING_RECORDING,
    Quality.FAIR: MessageKey.ADEQUATE_LIGHTING_IMPROVED,
    Quality.POOR: MessageKey.POOR_LIGHTING_ADD_LIGHT,
    Quality.VERY_POOR: MessageKey.VERY_POOR_LIGHTING_INSUFFICIENT,
}


def attitude_message_keys(metrics: AttitudeMetrics) -> tuple[MessageKey, ...]:
    """Baseline level guidance; a major tilt appends the severity marker."""
    if metrics.is_level:
        return (MessageKey.GREAT_KEEP_STEADY,)
    primary = _TILT_CORRECTION.get(metrics.direction, MessageKey.ADJUST)
    if metrics.severity is Severity.MAJOR:
        return (primary, MessageKey.ADJUST_SEVERITY)
    return (primary,)


def heading_message_key(metrics: HeadingMetrics) -> MessageKey:
    if metrics.is_on_target:
        return MessageKey.COMPASS_ALIGNED
    if metrics.direction is TurnDirection.TURN_LEFT:
        return MessageKey.TURN_BODY_LEFT
    if metrics.direction is TurnDirection.TURN_RIGHT:
        return MessageKey.TURN_BODY_RIGHT
    return MessageKey.ADJUST_ORIENTATION


def stability_message_key(metrics: StabilityMetrics) -> MessageKey:
    return _STABILITY_KEYS.get(metrics.stability, MessageKey.GOOD_STABILITY)


def speed_message_key(metrics: SpeedMetrics) -> MessageKey:
    """Recommendation for the movement type the speed estimator classified."""
    return _SPEED_KEYS.get(metrics.movement_type, MessageKey.DEVICE_STATIONARY)


def lighting_message_key(metrics: LightingMetrics) -> MessageKey:
    return _LIGHTING_KEYS.get(metrics.quality, MessageKey.ADEQUATE_LIGHTING_IMPROVED)
