"""Directive selection: which single piece of guidance to show right now.

Everything here is a pure function of the latest per-channel records, the
current target pose (``None`` outside guidance mode) and the guidance
config, so the composer can evaluate it without holding any lock.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..config import GuidanceConfig
from ..messages import (
    MessageKey,
    attitude_message_keys,
    heading_message_key,
    lighting_message_key,
    speed_message_key,
    stability_message_key,
)
from ..models import DEFAULT_ATTITUDE, MovementType, Quality, Severity
from .events import EventCategory, EventSeverity, LatestMetrics
from .pose import TargetPose, compose_pose_guidance, pose_on_target


@dataclass(frozen=True, slots=True)
class GuidanceCondition:
    """One channel currently asking for the user's attention."""

    category: EventCategory
    severity: EventSeverity
    message_keys: tuple[MessageKey, ...]


@dataclass(frozen=True, slots=True)
class Directive:
    message_keys: tuple[MessageKey, ...]
    severity_by_category: dict[EventCategory, EventSeverity] = field(default_factory=dict)
    category: EventCategory | None = None
    """Category that produced ``message_keys``; ``None`` when all is well."""
    advisories: dict[str, MessageKey] = field(default_factory=dict)
    """Status key per reporting channel, independent of priority."""

    @property
    def message_key(self) -> MessageKey:
        return self.message_keys[0]


_PRIORITY: tuple[EventCategory, ...] = (
    EventCategory.SPEED,
    EventCategory.MOTION,
    EventCategory.GUIDANCE,
    EventCategory.ANGLE,
)


def active_conditions(
    latest: LatestMetrics,
    target: TargetPose | None,
    config: GuidanceConfig,
) -> list[GuidanceCondition]:
    """Conditions in event-table order: speed, motion, angle, guidance, yaw.

    Channels that have not reported yet never raise a condition.
    """
    conditions: list[GuidanceCondition] = []
    speed = latest.speed
    if speed is not None and speed.is_moving and speed.movement_type is not MovementType.STATIONARY:
        conditions.append(
            GuidanceCondition(
                EventCategory.SPEED, EventSeverity.WARNING, (speed_message_key(speed),)
            )
        )

    stability = latest.stability
    if stability is not None and not stability.is_stable:
        severity = (
            EventSeverity.ERROR
            if stability.stability is Quality.VERY_POOR
            else EventSeverity.WARNING
        )
        conditions.append(
            GuidanceCondition(EventCategory.MOTION, severity, (stability_message_key(stability),))
        )

    attitude = latest.attitude
    if attitude is not None and not attitude.is_level:
        severity = (
            EventSeverity.WARNING if attitude.severity is Severity.MAJOR else EventSeverity.INFO
        )
        conditions.append(
            GuidanceCondition(EventCategory.ANGLE, severity, attitude_message_keys(attitude))
        )

    if target is not None and attitude is not None:
        tolerance = config.pose_tolerance_deg
        if not pose_on_target(attitude, latest.heading, target, tolerance):
            conditions.append(
                GuidanceCondition(
                    EventCategory.GUIDANCE,
                    EventSeverity.INFO,
                    compose_pose_guidance(attitude, latest.heading, target, tolerance),
                )
            )

    heading = latest.heading
    if (
        target is not None
        and target.heading is not None
        and heading is not None
        and not heading.is_on_target
    ):
        conditions.append(
            GuidanceCondition(
                EventCategory.YAW, EventSeverity.WARNING, (heading_message_key(heading),)
            )
        )
    return conditions


def channel_advisories(latest: LatestMetrics) -> dict[str, MessageKey]:
    advisories: dict[str, MessageKey] = {}
    if latest.speed is not None:
        advisories["speed"] = speed_message_key(latest.speed)
    if latest.stability is not None:
        advisories["stability"] = stability_message_key(latest.stability)
    if latest.lighting is not None:
        advisories["lighting"] = lighting_message_key(latest.lighting)
    if latest.heading is not None:
        advisories["heading"] = heading_message_key(latest.heading)
    return advisories


def compute_directive(
    latest: LatestMetrics,
    target: TargetPose | None,
    config: GuidanceConfig,
) -> Directive:
    conditions = active_conditions(latest, target, config)
    by_category = {condition.category: condition for condition in conditions}
    severities = {condition.category: condition.severity for condition in conditions}
    advisories = channel_advisories(latest)

    for category in _PRIORITY:
        # Baseline tilt guidance is suppressed while a target pose is held.
        if category is EventCategory.ANGLE and target is not None:
            continue
        condition = by_category.get(category)
        if condition is not None:
            return Directive(condition.message_keys, severities, category, advisories)

    if target is not None:
        keys: tuple[MessageKey, ...] = (MessageKey.PERFECT_HOLD_STEADY,)
    else:
        keys = attitude_message_keys(latest.attitude or DEFAULT_ATTITUDE)
    return Directive(keys, severities, None, advisories)
