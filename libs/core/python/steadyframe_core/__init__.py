from .bands import (
    ScoreBand,
    band_for_value,
    band_rank,
    build_bands,
    classify_ascending,
    validate_ascending,
    validate_descending,
)
from .smoothing import (
    RingBuffer,
    angular_deviation,
    exponential_blend,
    heading_degrees,
    magnitude,
    smooth_angle,
    validate_smoothing_factor,
    wrap_degrees_180,
    wrap_degrees_360,
)

__all__ = [
    "RingBuffer",
    "ScoreBand",
    "angular_deviation",
    "band_for_value",
    "band_rank",
    "build_bands",
    "classify_ascending",
    "exponential_blend",
    "heading_degrees",
    "magnitude",
    "smooth_angle",
    "validate_ascending",
    "validate_descending",
    "validate_smoothing_factor",
    "wrap_degrees_180",
    "wrap_degrees_360",
]
