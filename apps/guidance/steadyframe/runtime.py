"""Runtime orchestration: sensor suite -> estimators -> guidance composer.

Keep this module focused on wiring.  Channel math belongs in
``estimators/*``; directive and event rules belong in ``guidance/*``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import numpy as np

from .config import SteadyFrameConfig
from .estimators import (
    AttitudeEstimator,
    HeadingTracker,
    LightingEstimator,
    SensorEstimator,
    SpeedEstimator,
    StabilityMonitor,
)
from .guidance import Directive, GuidanceComposer
from .i18n import JsonTranslationResolver, TranslationResolver, normalize_lang
from .sensors import SensorSuite

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class GuidanceRuntime:
    config: SteadyFrameConfig
    suite: SensorSuite
    composer: GuidanceComposer
    attitude: AttitudeEstimator
    heading: HeadingTracker
    stability: StabilityMonitor
    speed: SpeedEstimator
    lighting: LightingEstimator
    translations: TranslationResolver = field(default_factory=JsonTranslationResolver)

    @property
    def estimators(self) -> tuple[SensorEstimator[Any], ...]:
        return (self.attitude, self.heading, self.stability, self.speed, self.lighting)

    async def start(self) -> None:
        await asyncio.gather(*(estimator.start() for estimator in self.estimators))
        LOGGER.info(
            "Guidance runtime started: %s",
            ", ".join(f"{e.channel}={e.status_dict()['source']}" for e in self.estimators),
        )

    def stop(self) -> None:
        self.composer.cancel_session()
        for estimator in reversed(self.estimators):
            estimator.stop()
        LOGGER.info("Guidance runtime stopped")

    def render(self, directive: Directive | None = None, language: str | None = None) -> str:
        """Resolve *directive* (default: the current one) into display text."""
        directive = directive or self.composer.current_directive()
        lang = normalize_lang(language or self.config.guidance.language)
        return " • ".join(self.translations.resolve(key, lang) for key in directive.message_keys)

    def status_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable status snapshot — **no side effects**."""
        return {
            "estimators": {e.channel: e.status_dict() for e in self.estimators},
            "composer": self.composer.status_dict(),
        }


def build_runtime(
    suite: SensorSuite,
    config: SteadyFrameConfig | None = None,
    *,
    translations: TranslationResolver | None = None,
    clock: Callable[[], float] | None = None,
    wall_clock: Callable[[], datetime] = datetime.now,
    seed: int | None = None,
) -> GuidanceRuntime:
    """Wire every estimator's callback into one composer.

    *seed* overrides the per-estimator ``random_seed`` settings so a whole
    simulated run is reproducible from one number.
    """
    config = config or SteadyFrameConfig()
    composer_kwargs: dict[str, Any] = {}
    if clock is not None:
        composer_kwargs["clock"] = clock

    stability_seed = config.stability.random_seed if seed is None else seed
    lighting_seed = config.lighting.random_seed if seed is None else seed + 1

    heading = HeadingTracker(None, suite.magnetometer, config.heading)
    composer = GuidanceComposer(config.guidance, heading, config.speed, **composer_kwargs)
    heading.set_callback(composer.publish_heading)
    return GuidanceRuntime(
        config=config,
        suite=suite,
        composer=composer,
        attitude=AttitudeEstimator(composer.publish_attitude, suite.accelerometer, config.attitude),
        heading=heading,
        stability=StabilityMonitor(
            composer.publish_stability,
            suite.gyroscope,
            suite.accelerometer,
            config.stability,
            rng=np.random.default_rng(stability_seed),
        ),
        speed=SpeedEstimator(composer.publish_speed, suite.accelerometer, config.speed),
        lighting=LightingEstimator(
            composer.publish_lighting,
            suite.light,
            suite.device_motion,
            config.lighting,
            rng=np.random.default_rng(lighting_seed),
            clock=wall_clock,
        ),
        translations=translations or JsonTranslationResolver(),
    )
