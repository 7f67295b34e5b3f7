"""Shared lifecycle for push-driven estimators.

Subclasses describe *what* to listen to in :meth:`SensorEstimator._open`;
this base class owns subscription bookkeeping, timer tasks, the
stop-guarantee and diagnostics.  Per-sample math lives in pure ``step_*``
functions next to each estimator.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from ..sensors import SensorSample, SensorSource, SubscriptionHandle

LOGGER = logging.getLogger(__name__)

M = TypeVar("M")

SampleHandler = Callable[[SensorSample], None]


@dataclass(slots=True)
class StartPlan:
    """Listeners and timers an estimator wants once its sensors are probed."""

    subscriptions: list[tuple[SensorSource, SampleHandler]] = field(default_factory=list)
    timers: list[tuple[str, int, Callable[[], None]]] = field(default_factory=list)
    source: str | None = None


class SensorEstimator(Generic[M]):
    channel: str = "estimator"

    def __init__(self, callback: Callable[[M], None] | None, default_metrics: M) -> None:
        self._callback = callback
        self._lock = threading.RLock()
        self._active = False
        self._starting = False
        self._generation = 0
        self._subscriptions: list[tuple[SensorSource, SubscriptionHandle]] = []
        self._tasks: list[asyncio.Task[None]] = []
        self._ticking: set[str] = set()
        self._last_metrics: M = default_metrics
        self._active_source: str | None = None
        self.diagnostics: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Hooks for subclasses
    # ------------------------------------------------------------------

    async def _open(self) -> StartPlan:
        raise NotImplementedError

    def _fallback_plan(self) -> StartPlan:
        """Plan used when :meth:`_open` raises; default is to stay silent."""
        return StartPlan()

    def _reset_history(self) -> None:
        """Clear buffers; called under the lifecycle lock from :meth:`stop`."""

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        with self._lock:
            if self._active or self._starting:
                return
            self._starting = True
            generation = self._generation
        try:
            try:
                plan = await self._open()
            except Exception:
                LOGGER.warning(
                    "%s: sensor setup failed, using fallback", self.channel, exc_info=True
                )
                self.diagnostics["setup"] = "error"
                plan = self._fallback_plan()
            with self._lock:
                if generation != self._generation:
                    LOGGER.debug("%s: stop() raced start(); not activating", self.channel)
                    return
                for source, handler in plan.subscriptions:
                    handle = source.subscribe(self._guard(handler))
                    self._subscriptions.append((source, handle))
                for name, interval_ms, tick in plan.timers:
                    task = asyncio.create_task(
                        self._run_periodic(name, interval_ms, tick),
                        name=f"{self.channel}-{name}",
                    )
                    self._tasks.append(task)
                self._active_source = plan.source
                self._active = True
        finally:
            with self._lock:
                self._starting = False
        LOGGER.info("%s started (source=%s)", self.channel, plan.source or "none")

    def stop(self) -> None:
        """Unsubscribe, cancel timers and clear history.

        Handlers run under the same lock and re-check the running flag, so no
        callback fires once this returns.
        """
        with self._lock:
            self._generation += 1
            was_active = self._active
            self._active = False
            for source, handle in self._subscriptions:
                try:
                    source.unsubscribe(handle)
                except Exception:
                    LOGGER.warning("%s: unsubscribe failed", self.channel, exc_info=True)
            self._subscriptions.clear()
            for task in self._tasks:
                task.cancel()
            self._tasks.clear()
            self._ticking.clear()
            self._active_source = None
            self._reset_history()
        if was_active:
            LOGGER.info("%s stopped", self.channel)

    def is_running(self) -> bool:
        with self._lock:
            return self._active

    def set_callback(self, callback: Callable[[M], None] | None) -> None:
        self._callback = callback

    def get_last_metrics(self) -> M:
        return self._last_metrics

    def status_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable status snapshot — **no side effects**."""
        with self._lock:
            return {
                "channel": self.channel,
                "running": self._active,
                "source": self._active_source,
                "diagnostics": dict(self.diagnostics),
            }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _acquire(
        self,
        label: str,
        source: SensorSource,
        *,
        interval_ms: int,
        require_permission: bool = True,
    ) -> bool:
        """Probe availability/permission; record why a sensor is unusable."""
        try:
            if not await source.is_available():
                LOGGER.warning("%s: %s not available", self.channel, label)
                self.diagnostics[label] = "unavailable"
                return False
            if require_permission and not await source.request_permission():
                LOGGER.warning("%s: %s permission not granted", self.channel, label)
                self.diagnostics[label] = "permission_denied"
                return False
            source.set_update_interval(interval_ms)
        except Exception as exc:
            LOGGER.warning("%s: failed to acquire %s", self.channel, label, exc_info=True)
            self.diagnostics[label] = f"error: {exc}"
            return False
        self.diagnostics[label] = "active"
        return True

    def _guard(self, handler: SampleHandler) -> SampleHandler:
        def _on_sample(sample: SensorSample) -> None:
            with self._lock:
                if not self._active:
                    return
                if not sample.is_finite():
                    LOGGER.debug("%s: dropping non-finite sample %r", self.channel, sample)
                    return
                handler(sample)

        return _on_sample

    def _emit(self, metrics: M) -> None:
        self._last_metrics = metrics
        if self._callback is not None:
            self._callback(metrics)

    async def _run_periodic(self, name: str, interval_ms: int, tick: Callable[[], None]) -> None:
        interval_s = interval_ms / 1000.0
        while True:
            await asyncio.sleep(interval_s)
            with self._lock:
                if not self._active:
                    return
                if name in self._ticking:
                    continue
                self._ticking.add(name)
                try:
                    tick()
                except Exception:
                    LOGGER.warning("%s: %s tick failed", self.channel, name, exc_info=True)
                finally:
                    self._ticking.discard(name)
