"""
Algorithm implementations for merge-digest.
"""

from merge_digest.algorithms.tdigest import Centroid, TDigest

__all__ = [
    "Centroid",
    "TDigest",
]
