from __future__ import annotations

import json

import pytest
from builders import make_speed, make_stability, make_tilted
from pydantic import ValidationError

from steadyframe.guidance import EventCategory, GuidanceComposer
from steadyframe.i18n import (
    SUPPORTED_LANGUAGES,
    JsonTranslationResolver,
    TranslationResolver,
    _load_translations,
    normalize_lang,
    tr,
)
from steadyframe.messages import MessageKey
from steadyframe.models import Quality
from steadyframe.payloads import InstructionEventPayload, SessionSummary


@pytest.mark.parametrize(
    "raw, expected",
    [("en", "en"), ("FR", "fr"), ("fr-CA", "fr"), (" French ", "fr"), ("de", "en"), (None, "en")],
)
def test_normalize_lang(raw, expected: str) -> None:
    assert normalize_lang(raw) == expected


def test_every_message_key_is_translated() -> None:
    catalog = _load_translations()
    for key in MessageKey:
        assert key.value in catalog, key
        for lang in SUPPORTED_LANGUAGES:
            assert catalog[key.value].get(lang), (key, lang)


def test_tr_falls_back_to_english_then_key() -> None:
    assert tr("fr", MessageKey.TILT_LEFT) == "Inclinez à gauche"
    assert tr("de", MessageKey.TILT_LEFT) == "Tilt left"
    assert tr("en", "noSuchKey") == "noSuchKey"


def test_json_resolver_joins_keys() -> None:
    resolver = JsonTranslationResolver()
    assert isinstance(resolver, TranslationResolver)
    text = resolver.join((MessageKey.MOTION_TOO_HIGH, MessageKey.TILT_LEFT), "en")
    assert text == "Motion too high • Tilt left"


class _Upper:
    def resolve(self, key: MessageKey, language: str) -> str:
        return f"{language}:{key.value.upper()}"


def _events(fake_clock):
    composer = GuidanceComposer(clock=fake_clock)
    composer.begin_session()
    composer.publish_attitude(make_tilted())
    fake_clock.advance_ms(3_000)
    composer.publish_speed(make_speed(2.0))
    composer.publish_stability(make_stability(10.0, Quality.VERY_POOR))
    return composer.end_session()


def test_session_summary_counts(fake_clock) -> None:
    events = _events(fake_clock)
    summary = SessionSummary.from_events(events, language="fr")

    assert summary.language == "fr"
    assert summary.event_count == len(events)
    assert summary.last_event_ms == 3_000
    assert summary.by_category[str(EventCategory.ANGLE)] == 2
    assert summary.by_category["speed"] == 1
    assert summary.by_category["motion"] == 1
    assert summary.by_severity["error"] == 1
    assert summary.events[0].message == "Inclinez à gauche"
    assert summary.events[-1].timestamp == "00:03"

    data = json.loads(summary.model_dump_json())
    assert data["event_count"] == len(events)
    assert data["events"][0]["metrics"]["pitch"] == 60.0


def test_custom_resolver_is_used(fake_clock) -> None:
    summary = SessionSummary.from_events(_events(fake_clock), language="en", resolver=_Upper())
    assert summary.events[0].message == "en:TILTLEFT"


def test_empty_session_summary() -> None:
    summary = SessionSummary.from_events([])
    assert summary.event_count == 0
    assert summary.last_event_ms is None
    assert summary.events == []


def test_event_payload_without_language_has_no_message(fake_clock) -> None:
    payload = InstructionEventPayload.from_event(_events(fake_clock)[0])
    assert payload.message is None
    assert payload.message_keys == ["tiltLeft"]


def test_event_payload_validation() -> None:
    with pytest.raises(ValidationError):
        InstructionEventPayload(
            timestamp="1:2",
            timestamp_ms=0,
            category="angle",
            severity="fatal",
            message_keys=[],
            metrics={},
        )
