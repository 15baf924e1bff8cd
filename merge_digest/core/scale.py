"""
Scale functions for merging t-digests.

The scale function maps a quantile onto a "centroid index" coordinate in
[0, compression]. One unit of that coordinate is the size budget of one
centroid. Because the mapping follows an arcsine, units are narrow near
q = 0 and q = 1 and wide in the middle, so tail centroids hold few samples
and tail quantiles stay accurate.

All functions here are pure and depend only on the standard library.
"""

import math

MAX_COMPRESSION: float = 1e6


def bounded_compression(compression: float) -> float:
    """Clamp a compression value to MAX_COMPRESSION."""
    return min(MAX_COMPRESSION, compression)


def max_centroids(compression: float) -> int:
    """
    Maximum number of centroids a merged digest can hold.

    Args:
        compression: The digest compression parameter.

    Returns:
        ``2 * ceil(compression)`` after clamping.
    """
    return 2 * int(math.ceil(bounded_compression(compression)))


def quantile_to_scale(quantile: float, compression: float) -> float:
    """
    Map a quantile in [0, 1] onto the scale coordinate in [0, compression].

    Args:
        quantile: Fractional rank.
        compression: The digest compression parameter.
    """
    return compression * (math.asin(2 * quantile - 1) + math.pi / 2) / math.pi


def scale_to_quantile(scale: float, compression: float) -> float:
    """
    Inverse of ``quantile_to_scale``.

    Scale values beyond ``compression`` are clamped so the result never
    exceeds 1.
    """
    scale = min(scale, compression)
    return (math.sin(scale * math.pi / compression - math.pi / 2) + 1) / 2


def linear_interpolate(
    val1: float, val2: float, weight1: float, weight2: float
) -> float:
    """
    Weighted average of two values.

    ``weight1`` is the distance to ``val2`` and ``weight2`` the distance to
    ``val1``, so a point close to ``val1`` carries a large ``weight1``.
    """
    assert weight1 >= 0, f"negative interpolation weight {weight1}"
    assert weight2 >= 0, f"negative interpolation weight {weight2}"
    assert weight1 + weight2 > 0, "interpolation weights sum to zero"
    # Exact at the end points: (v * w) / w can be off by one ulp.
    if weight2 == 0:
        return val1
    if weight1 == 0:
        return val2
    return (val1 * weight1 + val2 * weight2) / (weight1 + weight2)
