"""Merge the latest channel records into guidance and a session event log.

Each estimator callback hands its record to one ``publish_*`` method.
Records are stored per channel behind their own short lock, so a slow
channel never holds up another.  Session state (target pose, throttle,
recorded events) lives behind a separate re-entrant lock.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from ..config import GuidanceConfig, SpeedConfig
from ..estimators.heading import HeadingTracker, heading_metrics
from ..estimators.speed import should_allow_recording_speed
from ..messages import MessageKey, speed_message_key
from ..models import (
    DEFAULT_ATTITUDE,
    AttitudeMetrics,
    HeadingMetrics,
    LightingMetrics,
    SpeedMetrics,
    StabilityMetrics,
)
from .directive import Directive, active_conditions, compute_directive
from .events import (
    EventThrottle,
    InstructionEvent,
    LatestMetrics,
    MetricsSnapshot,
    format_elapsed,
)
from .pose import LEVEL_POSE, TargetPose

LOGGER = logging.getLogger(__name__)

_CHANNELS: tuple[str, ...] = ("attitude", "heading", "stability", "speed", "lighting")


class RejectionReason(StrEnum):
    MOTION = "motion"
    SPEED = "speed"
    SESSION_ACTIVE = "session_active"


@dataclass(frozen=True, slots=True)
class SessionStarted:
    target_pose: TargetPose

    @property
    def message_key(self) -> MessageKey:
        return MessageKey.TARGET_SET


@dataclass(frozen=True, slots=True)
class SessionRejected:
    reason: RejectionReason
    message_keys: tuple[MessageKey, ...] = ()


SessionResult = SessionStarted | SessionRejected


@dataclass(frozen=True, slots=True)
class GuidanceModeChange:
    target_pose: TargetPose
    message_key: MessageKey


class GuidanceComposer:
    def __init__(
        self,
        config: GuidanceConfig | None = None,
        heading_tracker: HeadingTracker | None = None,
        speed_config: SpeedConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or GuidanceConfig()
        self.speed_config = speed_config or SpeedConfig()
        self._heading_tracker = heading_tracker
        self._clock = clock
        self._channel_locks = {name: threading.Lock() for name in _CHANNELS}
        self._latest: dict[str, Any] = dict.fromkeys(_CHANNELS)

        self._session_lock = threading.RLock()
        self._session_open = False
        self._session_start_ms = 0
        self._events: list[InstructionEvent] = []
        self._throttle = EventThrottle(self.config.event_throttle_ms)
        self._target: TargetPose | None = None

    # ------------------------------------------------------------------
    # Channel intake
    # ------------------------------------------------------------------

    def publish_attitude(self, metrics: AttitudeMetrics) -> None:
        self._store("attitude", metrics)

    def publish_heading(self, metrics: HeadingMetrics) -> None:
        self._store("heading", metrics)

    def publish_stability(self, metrics: StabilityMetrics) -> None:
        self._store("stability", metrics)

    def publish_speed(self, metrics: SpeedMetrics) -> None:
        self._store("speed", metrics)

    def publish_lighting(self, metrics: LightingMetrics) -> None:
        self._store("lighting", metrics)

    def _store(self, channel: str, metrics: Any) -> None:
        with self._channel_locks[channel]:
            self._latest[channel] = metrics
        self._record_events()

    def latest(self) -> LatestMetrics:
        values: dict[str, Any] = {}
        for channel in _CHANNELS:
            with self._channel_locks[channel]:
                values[channel] = self._latest[channel]
        return LatestMetrics(**values)

    # ------------------------------------------------------------------
    # Directive / admission
    # ------------------------------------------------------------------

    def current_directive(self) -> Directive:
        with self._session_lock:
            target = self._target
        return compute_directive(self.latest(), target, self.config)

    def _admission_failure(self, latest: LatestMetrics) -> SessionRejected | None:
        # A channel that never reported does not block recording.
        if latest.stability is not None and not latest.stability.is_stable:
            return SessionRejected(
                RejectionReason.MOTION, (MessageKey.MOTION_TOO_HIGH, MessageKey.STABILIZE_PHONE)
            )
        speed = latest.speed
        if speed is not None and not should_allow_recording_speed(
            speed, self.speed_config.driving_threshold
        ):
            return SessionRejected(
                RejectionReason.SPEED, (MessageKey.MOVEMENT_TOO_FAST, speed_message_key(speed))
            )
        return None

    def is_recording_allowed(self) -> bool:
        """Evaluate the admission gate with **no side effects**."""
        return self._admission_failure(self.latest()) is None

    # ------------------------------------------------------------------
    # Target pose / guidance mode
    # ------------------------------------------------------------------

    @property
    def guidance_mode(self) -> bool:
        with self._session_lock:
            return self._target is not None

    @property
    def target_pose(self) -> TargetPose | None:
        with self._session_lock:
            return self._target

    def _capture_pose(self, latest: LatestMetrics) -> TargetPose:
        attitude = latest.attitude or DEFAULT_ATTITUDE
        heading: float | None = None
        if self._heading_tracker is not None:
            heading = self._heading_tracker.get_current_yaw()
            if heading is not None:
                self._heading_tracker.set_target(heading)
                # The cached record was scored against the previous target.
                refreshed = heading_metrics(heading, heading, self._heading_tracker.config)
                with self._channel_locks["heading"]:
                    self._latest["heading"] = refreshed
        return TargetPose(roll=attitude.roll, pitch=attitude.pitch, heading=heading)

    def enter_guidance_mode(self) -> GuidanceModeChange:
        """Hold the current pose as target without opening a session."""
        with self._session_lock:
            self._target = self._capture_pose(self.latest())
            LOGGER.info("Guidance target set to %s", self._target)
            return GuidanceModeChange(self._target, MessageKey.TARGET_ANGLE_SET)

    def set_level_target(self) -> GuidanceModeChange:
        with self._session_lock:
            if self._heading_tracker is not None:
                self._heading_tracker.clear_target()
            self._target = LEVEL_POSE
            LOGGER.info("Guidance target set to level")
            return GuidanceModeChange(self._target, MessageKey.TARGET_SET_TO_LEVEL)

    def exit_guidance_mode(self) -> None:
        with self._session_lock:
            self._clear_target()

    def _clear_target(self) -> None:
        if self._target is not None and self._heading_tracker is not None:
            self._heading_tracker.clear_target()
        self._target = None

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    @property
    def session_open(self) -> bool:
        with self._session_lock:
            return self._session_open

    def begin_session(self) -> SessionResult:
        with self._session_lock:
            if self._session_open:
                LOGGER.warning("begin_session ignored: a session is already open")
                return SessionRejected(RejectionReason.SESSION_ACTIVE)
            latest = self.latest()
            rejected = self._admission_failure(latest)
            if rejected is not None:
                LOGGER.info("Session rejected: %s", rejected.reason)
                return rejected
            self._target = self._capture_pose(latest)
            self._events = []
            self._throttle.reset()
            self._session_start_ms = self._now_ms()
            self._session_open = True
            LOGGER.info("Session started with target %s", self._target)
            return SessionStarted(self._target)

    def end_session(self) -> list[InstructionEvent]:
        """Close the session and hand over its events; the composer keeps none."""
        with self._session_lock:
            if not self._session_open:
                return []
            events = self._events
            self._reset_session()
        LOGGER.info("Session ended with %d instruction events", len(events))
        return events

    def cancel_session(self) -> None:
        with self._session_lock:
            if not self._session_open:
                return
            discarded = len(self._events)
            self._reset_session()
        LOGGER.info("Session cancelled; %d instruction events discarded", discarded)

    def _reset_session(self) -> None:
        self._session_open = False
        self._events = []
        self._throttle.reset()
        self._session_start_ms = 0
        self._clear_target()

    def _record_events(self) -> None:
        with self._session_lock:
            if not self._session_open:
                return
            latest = self.latest()
            now = self._now_ms()
            allowed = self.config.include_severity_levels
            for condition in active_conditions(latest, self._target, self.config):
                if condition.severity not in allowed:
                    continue
                if not self._throttle.allow(condition.category, now):
                    continue
                elapsed_ms = now - self._session_start_ms
                event = InstructionEvent(
                    elapsed=format_elapsed(elapsed_ms),
                    elapsed_ms=elapsed_ms,
                    category=condition.category,
                    severity=condition.severity,
                    message_keys=condition.message_keys,
                    metrics=MetricsSnapshot.from_latest(latest),
                )
                self._events.append(event)
                LOGGER.debug(
                    "Instruction event %s/%s at %s: %s",
                    event.category,
                    event.severity,
                    event.elapsed,
                    event.message_key,
                )

    def status_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable status snapshot — **no side effects**."""
        with self._session_lock:
            target = self._target
            return {
                "session_open": self._session_open,
                "guidance_mode": target is not None,
                "target_pose": (
                    None
                    if target is None
                    else {"roll": target.roll, "pitch": target.pitch, "heading": target.heading}
                ),
                "event_count": len(self._events),
            }
