"""Pydantic export models for a finished capture session.

A host hands :class:`SessionSummary` to whatever stores or uploads the
recording; the core itself never persists events.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field

from .guidance.events import InstructionEvent, MetricsSnapshot
from .i18n import JsonTranslationResolver, TranslationResolver, normalize_lang


class MetricsSnapshotPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    pitch: float | None = None
    roll: float | None = None
    yaw: float | None = None
    motion_score: float | None = Field(default=None, ge=0, le=100)
    speed_kmh: float | None = Field(default=None, ge=0)
    brightness: float | None = None

    @classmethod
    def from_snapshot(cls, snapshot: MetricsSnapshot) -> MetricsSnapshotPayload:
        return cls(
            pitch=snapshot.pitch,
            roll=snapshot.roll,
            yaw=snapshot.yaw,
            motion_score=snapshot.motion_score,
            speed_kmh=snapshot.speed_kmh,
            brightness=snapshot.brightness,
        )


class InstructionEventPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: str = Field(pattern=r"^\d{2,}:\d{2}$")
    timestamp_ms: int = Field(ge=0)
    category: str
    severity: str = Field(pattern="^(info|warning|error)$")
    message_keys: list[str] = Field(min_length=1)
    message: str | None = None
    metrics: MetricsSnapshotPayload

    @classmethod
    def from_event(
        cls,
        event: InstructionEvent,
        *,
        language: str | None = None,
        resolver: TranslationResolver | None = None,
    ) -> InstructionEventPayload:
        message = None
        if language is not None:
            resolver = resolver or JsonTranslationResolver()
            message = " • ".join(resolver.resolve(key, language) for key in event.message_keys)
        return cls(
            timestamp=event.elapsed,
            timestamp_ms=event.elapsed_ms,
            category=str(event.category),
            severity=str(event.severity),
            message_keys=[str(key) for key in event.message_keys],
            message=message,
            metrics=MetricsSnapshotPayload.from_snapshot(event.metrics),
        )


class SessionSummary(BaseModel):
    language: str = "en"
    event_count: int = 0
    last_event_ms: int | None = None
    by_category: dict[str, int] = Field(default_factory=dict)
    by_severity: dict[str, int] = Field(default_factory=dict)
    events: list[InstructionEventPayload] = Field(default_factory=list)

    @classmethod
    def from_events(
        cls,
        events: Sequence[InstructionEvent],
        *,
        language: str = "en",
        resolver: TranslationResolver | None = None,
    ) -> SessionSummary:
        lang = normalize_lang(language)
        payloads = [
            InstructionEventPayload.from_event(event, language=lang, resolver=resolver)
            for event in events
        ]
        return cls(
            language=lang,
            event_count=len(payloads),
            last_event_ms=payloads[-1].timestamp_ms if payloads else None,
            by_category=dict(Counter(p.category for p in payloads)),
            by_severity=dict(Counter(p.severity for p in payloads)),
            events=payloads,
        )
