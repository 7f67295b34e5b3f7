"""Instruction events recorded while a capture session is open."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from ..messages import MessageKey
from ..models import (
    AttitudeMetrics,
    HeadingMetrics,
    LightingMetrics,
    SpeedMetrics,
    StabilityMetrics,
)


class EventCategory(StrEnum):
    MOTION = "motion"
    ANGLE = "angle"
    SPEED = "speed"
    LIGHTING = "lighting"
    YAW = "yaw"
    GUIDANCE = "guidance"


class EventSeverity(StrEnum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class LatestMetrics:
    """Most recent record per channel; ``None`` until the channel reports."""

    attitude: AttitudeMetrics | None = None
    heading: HeadingMetrics | None = None
    stability: StabilityMetrics | None = None
    speed: SpeedMetrics | None = None
    lighting: LightingMetrics | None = None


@dataclass(frozen=True, slots=True)
class MetricsSnapshot:
    """Headline value of every channel at the moment an event was recorded."""

    pitch: float | None
    roll: float | None
    yaw: float | None
    motion_score: float | None
    speed_kmh: float | None
    brightness: float | None

    @classmethod
    def from_latest(cls, latest: LatestMetrics) -> MetricsSnapshot:
        return cls(
            pitch=latest.attitude.pitch if latest.attitude else None,
            roll=latest.attitude.roll if latest.attitude else None,
            yaw=latest.heading.yaw if latest.heading else None,
            motion_score=latest.stability.score if latest.stability else None,
            speed_kmh=latest.speed.speed_kmh if latest.speed else None,
            brightness=latest.lighting.mean_luminance if latest.lighting else None,
        )


@dataclass(frozen=True, slots=True)
class InstructionEvent:
    elapsed: str
    elapsed_ms: int
    category: EventCategory
    severity: EventSeverity
    message_keys: tuple[MessageKey, ...]
    metrics: MetricsSnapshot

    @property
    def message_key(self) -> MessageKey:
        return self.message_keys[0]


def format_elapsed(elapsed_ms: int) -> str:
    """``mm:ss``; minutes keep growing past 99."""
    elapsed_ms = max(0, int(elapsed_ms))
    minutes, rem = divmod(elapsed_ms, 60_000)
    return f"{minutes:02d}:{rem // 1000:02d}"


class EventThrottle:
    """At most one emission per category per window.

    Not thread-safe; the composer calls it under its session lock.
    """

    def __init__(self, window_ms: int) -> None:
        self.window_ms = int(window_ms)
        self._last_ms: dict[EventCategory, int] = {}

    def allow(self, category: EventCategory, now_ms: int) -> bool:
        """Return True and record *now_ms* if *category* may emit."""
        last = self._last_ms.get(category)
        if last is not None and now_ms - last < self.window_ms:
            return False
        self._last_ms[category] = now_ms
        return True

    def reset(self) -> None:
        self._last_ms.clear()
