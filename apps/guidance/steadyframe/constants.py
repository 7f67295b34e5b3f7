"""Shared physical and guidance constants — single source of truth.

Every numeric literal that appears in more than one module should live here
so that a change only needs to happen in one place.
"""

from __future__ import annotations

from typing import Final

# ---------------------------------------------------------------------------
# Unit conversion
# ---------------------------------------------------------------------------
MPS_TO_KMH: Final[float] = 3.6
"""Multiply metres-per-second by this to get kilometres-per-hour."""

MPS_TO_MPH: Final[float] = 2.237
"""Multiply metres-per-second by this to get miles-per-hour."""

# ---------------------------------------------------------------------------
# Shared classification vocabularies
# ---------------------------------------------------------------------------
QUALITY_TIERS: Final[tuple[str, ...]] = ("excellent", "good", "fair", "poor", "very_poor")
"""Five-tier quality labels, best first (stability and lighting)."""

MOVEMENT_TYPES: Final[tuple[str, ...]] = (
    "stationary",
    "walking",
    "running",
    "driving",
    "fast_moving",
)
"""Movement labels in ascending speed order."""

# ---------------------------------------------------------------------------
# Angle severity
# ---------------------------------------------------------------------------
MAJOR_TILT_DEG: Final[float] = 45.0
"""Tilt deviation (degrees) above which attitude severity is ``major``."""

MINOR_TILT_DEG: Final[float] = 25.0
"""Tilt deviation (degrees) above which attitude severity is ``minor``."""

# ---------------------------------------------------------------------------
# Speed
# ---------------------------------------------------------------------------
DEFAULT_DRIVING_THRESHOLD_MPS: Final[float] = 8.0
"""Speeds at or above this block recording and count as fast movement."""

ACCEL_ONLY_SPEED_ACCURACY_M: Final[float] = 10.0
"""Reported accuracy for accelerometer-only speed (no position fix)."""

# ---------------------------------------------------------------------------
# Guidance
# ---------------------------------------------------------------------------
DEFAULT_POSE_TOLERANCE_DEG: Final[float] = 5.0
DEFAULT_EVENT_THROTTLE_MS: Final[int] = 2000
