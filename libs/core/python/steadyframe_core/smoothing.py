"""Exponential smoothing and angle helpers shared by the estimators."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from math import atan2, degrees, sqrt
from typing import Generic, TypeVar

T = TypeVar("T")


def validate_smoothing_factor(factor: float, *, name: str = "smoothing_factor") -> float:
    value = float(factor)
    if not 0.0 <= value < 1.0:
        raise ValueError(f"{name} must be in [0, 1), got {factor!r}")
    return value


def exponential_blend(previous: float, current: float, factor: float) -> float:
    """Blend *current* into *previous*; *factor* is the weight kept from *previous*.

    ``factor == 0`` returns *current* unchanged.
    """
    return factor * previous + (1.0 - factor) * current


def wrap_degrees_360(angle: float) -> float:
    """Normalize *angle* into ``[0, 360)``."""
    wrapped = angle % 360.0
    # -1e-15 % 360 rounds to 360.0
    return 0.0 if wrapped >= 360.0 else wrapped


def wrap_degrees_180(angle: float) -> float:
    """Normalize *angle* into ``(-180, 180]``."""
    wrapped = wrap_degrees_360(angle)
    if wrapped > 180.0:
        wrapped -= 360.0
    return wrapped


def smooth_angle(previous: float, current: float, factor: float) -> float:
    """Exponential smoothing along the shortest arc between two headings."""
    diff = wrap_degrees_180(current - previous)
    return wrap_degrees_360(previous + diff * (1.0 - factor))


def angular_deviation(angle: float, target: float) -> tuple[float, float]:
    """Return ``(signed_diff, deviation)`` with ``signed_diff`` in ``(-180, 180]``."""
    diff = wrap_degrees_180(angle - target)
    return diff, abs(diff)


def heading_degrees(x: float, y: float) -> float:
    """Compass heading of a planar field vector, in ``[0, 360)``."""
    return wrap_degrees_360(degrees(atan2(y, x)))


def magnitude(x: float, y: float, z: float) -> float:
    return sqrt(x * x + y * y + z * z)


class RingBuffer(Generic[T]):
    """Bounded FIFO; the oldest item is dropped once ``capacity`` is reached."""

    __slots__ = ("_items", "capacity")

    def __init__(self, capacity: int) -> None:
        if int(capacity) < 1:
            raise ValueError(f"RingBuffer capacity must be >= 1, got {capacity!r}")
        self.capacity = int(capacity)
        self._items: deque[T] = deque(maxlen=self.capacity)

    def push(self, item: T) -> None:
        self._items.append(item)

    def clear(self) -> None:
        self._items.clear()

    def latest(self) -> T | None:
        return self._items[-1] if self._items else None

    def tail(self, count: int) -> list[T]:
        if count <= 0:
            return []
        return list(self._items)[-count:]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))
