"""
merge-digest - Mergeable Streaming Quantile Summaries

merge-digest estimates quantiles and CDFs of large or unbounded numeric
streams in bounded memory, merges summaries computed on separate shards, and
exchanges them through a compact text encoding.
"""

__version__ = "0.1.0"

# Import main classes to make them available at the top level
from merge_digest.algorithms.tdigest import Centroid, TDigest
from merge_digest.core.base import QuantileEstimator, StreamSummary
from merge_digest.core.status import DecodeError, DecodeResult

__all__ = [
    # Core base classes
    "StreamSummary",
    "QuantileEstimator",
    # Decoding results
    "DecodeError",
    "DecodeResult",
    # Algorithm implementations
    "Centroid",
    "TDigest",
]
