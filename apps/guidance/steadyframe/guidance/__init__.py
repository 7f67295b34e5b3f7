from __future__ import annotations

from .composer import (
    GuidanceComposer,
    GuidanceModeChange,
    RejectionReason,
    SessionRejected,
    SessionResult,
    SessionStarted,
)
from .directive import Directive, GuidanceCondition, active_conditions, compute_directive
from .events import (
    EventCategory,
    EventSeverity,
    EventThrottle,
    InstructionEvent,
    LatestMetrics,
    MetricsSnapshot,
    format_elapsed,
)
from .pose import LEVEL_POSE, TargetPose, compose_pose_guidance, pose_on_target

__all__ = [
    "LEVEL_POSE",
    "Directive",
    "EventCategory",
    "EventSeverity",
    "EventThrottle",
    "GuidanceComposer",
    "GuidanceCondition",
    "GuidanceModeChange",
    "InstructionEvent",
    "LatestMetrics",
    "MetricsSnapshot",
    "RejectionReason",
    "SessionRejected",
    "SessionResult",
    "SessionStarted",
    "TargetPose",
    "active_conditions",
    "compose_pose_guidance",
    "compute_directive",
    "format_elapsed",
    "pose_on_target",
]
