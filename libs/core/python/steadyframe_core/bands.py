from __future__ import annotations

from collections.abc import Sequence
from math import inf, isfinite
from typing import TypedDict


class ScoreBand(TypedDict):
    key: str
    min_value: float


def validate_descending(thresholds: Sequence[float], *, name: str = "thresholds") -> None:
    """Raise ``ValueError`` unless *thresholds* are finite and strictly descending."""
    values = [float(t) for t in thresholds]
    if not values:
        raise ValueError(f"{name} must not be empty")
    for value in values:
        if not isfinite(value):
            raise ValueError(f"{name} must be finite, got {values!r}")
    for upper, lower in zip(values, values[1:]):
        if not upper > lower:
            raise ValueError(f"{name} must be strictly descending, got {values!r}")


def validate_ascending(thresholds: Sequence[float], *, name: str = "thresholds") -> None:
    """Raise ``ValueError`` unless *thresholds* are finite and strictly ascending."""
    values = [float(t) for t in thresholds]
    if not values:
        raise ValueError(f"{name} must not be empty")
    for value in values:
        if not isfinite(value):
            raise ValueError(f"{name} must be finite, got {values!r}")
    for lower, upper in zip(values, values[1:]):
        if not upper > lower:
            raise ValueError(f"{name} must be strictly ascending, got {values!r}")


def build_bands(keys: Sequence[str], thresholds: Sequence[float]) -> tuple[ScoreBand, ...]:
    """Pair ``len(thresholds) + 1`` keys with descending lower bounds.

    The last key is the floor band and catches everything below the
    smallest threshold, so the table is exhaustive.
    """
    validate_descending(thresholds)
    if len(keys) != len(thresholds) + 1:
        raise ValueError(
            f"Expected {len(thresholds) + 1} band keys for {len(thresholds)} thresholds, "
            f"got {len(keys)}"
        )
    bands: list[ScoreBand] = [
        {"key": key, "min_value": float(threshold)} for key, threshold in zip(keys, thresholds)
    ]
    bands.append({"key": keys[-1], "min_value": -inf})
    return tuple(bands)


def band_for_value(value: float, bands: Sequence[ScoreBand]) -> str:
    """Return the key of the first band (highest first) whose lower bound *value* meets."""
    for band in bands:
        if value >= band["min_value"]:
            return band["key"]
    return bands[-1]["key"]


def band_rank(key: str, bands: Sequence[ScoreBand]) -> int:
    """Return the 0-based rank of *key* counted from the floor band, or -1 if unknown."""
    keys = [band["key"] for band in reversed(bands)]
    try:
        return keys.index(key)
    except ValueError:
        return -1


def classify_ascending(value: float, thresholds: Sequence[float], keys: Sequence[str]) -> str:
    """Return ``keys[i]`` for the first threshold that *value* is below.

    Values at or above the last threshold map to the final key.
    """
    if len(keys) != len(thresholds) + 1:
        raise ValueError(
            f"Expected {len(thresholds) + 1} keys for {len(thresholds)} thresholds, got {len(keys)}"
        )
    for key, threshold in zip(keys, thresholds):
        if value < threshold:
            return key
    return keys[-1]
