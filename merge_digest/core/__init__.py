"""
Core functionality for merge-digest.
"""

from merge_digest.core.base import QuantileEstimator, StreamSummary
from merge_digest.core.scale import (
    linear_interpolate,
    max_centroids,
    quantile_to_scale,
    scale_to_quantile,
)
from merge_digest.core.status import DecodeError, DecodeResult

__all__ = [
    # Base classes
    "StreamSummary",
    "QuantileEstimator",
    # Decoding results
    "DecodeError",
    "DecodeResult",
    # Scale functions
    "quantile_to_scale",
    "scale_to_quantile",
    "max_centroids",
    "linear_interpolate",
]
