# merge_digest/algorithms/tdigest.py

"""
Merging t-digest implementation.

A bounded-memory summary of a weighted numeric stream that answers quantile
and CDF queries, merges with digests built elsewhere, and round-trips through
a compact text form.

References:
    - Dunning, T., & Ertl, O. (2019). Computing extremely accurate quantiles
      using t-digests. arXiv:1902.04023.
"""

import array
import logging
import math
import sys
from operator import itemgetter
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar, Union

from merge_digest.core.base import QuantileEstimator
from merge_digest.core.scale import (
    MAX_COMPRESSION,
    bounded_compression,
    linear_interpolate,
    max_centroids,
    quantile_to_scale,
    scale_to_quantile,
)
from merge_digest.core.status import DecodeResult
from merge_digest.core.text_format import (
    CENTROID_SEPARATOR,
    FIELD_SEPARATOR,
    INT64_MAX,
    format_compression,
    format_count,
    format_double,
    parse_double,
    parse_int,
)

logger = logging.getLogger(__name__)

# Type variable for the class itself (for from_dict)
TDigestType = TypeVar("TDigestType", bound="TDigest")

# One centroid occupies an 8-byte mean and an 8-byte weight.
CENTROID_SIZE_BYTES = 16

_by_mean = itemgetter(0)


class Centroid:
    """A single (mean, weight) point mass standing for one or more samples."""

    __slots__ = ["mean", "weight"]

    def __init__(self, mean: float, weight: int = 1):
        """Initialize a centroid with a mean value and an integer weight."""
        if weight < 0:
            raise ValueError("Centroid weight cannot be negative")
        if weight != int(weight):
            raise ValueError(f"Centroid weight must be an integer ({weight})")
        self.mean = float(mean)
        self.weight = int(weight)

    def __lt__(self, other: "Centroid") -> bool:
        """Allow centroids to be sorted by mean value."""
        return self.mean < other.mean

    def __repr__(self) -> str:
        return f"Centroid(mean={self.mean:.4g}, weight={self.weight})"

    def to_dict(self) -> Dict[str, Union[float, int]]:
        """Serialize the centroid to a dictionary."""
        return {"mean": self.mean, "weight": self.weight}

    @classmethod
    def from_dict(cls, data: Dict[str, Union[float, int]]) -> "Centroid":
        """Deserialize a centroid from a dictionary."""
        if "mean" not in data or "weight" not in data:
            raise ValueError("Centroid dictionary missing 'mean' or 'weight'")
        if data["weight"] < 0:
            raise ValueError(
                f"Invalid serialized data: Centroid weight cannot be negative ({data['weight']})"
            )
        return cls(mean=data["mean"], weight=data["weight"])


class TDigest(QuantileEstimator):
    """
    Merging t-digest for quantile and CDF estimation over weighted streams.

    Samples are buffered as unmerged centroids. Once ``batch_size`` of them
    have accumulated, a batched merge sorts everything by mean and greedily
    folds neighbours together, letting each centroid grow only as far as the
    arcsine scale function allows at its position in the distribution. The
    result is at most ``2 * ceil(compression)`` centroids, small at the tails
    and large in the middle, so extreme quantiles stay accurate.

    Key properties:

    1. Memory is bounded by the compression parameter, not the stream length.
    2. Digests built on separate shards can be merged into one.
    3. The compact text form produced by ``to_string`` is a stable wire
       format shared with other implementations.

    A digest is a single-writer structure with no internal locking.

    Example:
        >>> digest = TDigest(compression=100)
        >>> for latency_ms in (12, 15, 11, 240, 13):
        ...     digest.add(latency_ms)
        >>> digest.quantile(0.0)
        11.0
        >>> digest.to_string()
        '100/11/240/291/5/11:1/12:1/13:1/15:1/240:1'
    """

    DEFAULT_COMPRESSION: float = 100
    MAX_COMPRESSION: float = MAX_COMPRESSION
    # Unmerged centroids buffered per merge, as a multiple of max_centroids.
    BATCH_FACTOR: int = 4

    def __init__(
        self,
        compression: float = DEFAULT_COMPRESSION,
        memory_limit_bytes: Optional[int] = None,
    ):
        """
        Initialize a TDigest.

        Args:
            compression: Controls accuracy and memory usage. The digest keeps
                at most ``2 * ceil(compression)`` centroids. Values above
                MAX_COMPRESSION are clamped; 0 creates an unset digest that
                only becomes usable through ``reset`` or ``merge``.
            memory_limit_bytes: Optional memory budget checked by
                ``check_memory_limit``.

        Raises:
            ValueError: If compression is negative or not a finite number.
        """
        super().__init__(memory_limit_bytes=memory_limit_bytes)
        self._means = array.array("d")
        self._weights = array.array("q")
        self.reset(compression)

    def reset(self, compression: float) -> None:
        """
        Drop all samples and start over with a new compression.

        Raises:
            ValueError: If compression is negative or not a finite number.
        """
        if (
            not isinstance(compression, (int, float))
            or not math.isfinite(compression)
            or compression < 0
        ):
            raise ValueError(
                f"Compression must be a finite number >= 0, got {compression!r}"
            )

        self._compression = bounded_compression(float(compression))
        self._max_centroids = max_centroids(self._compression)
        self._batch_size = self.BATCH_FACTOR * self._max_centroids

        # Reserve room for a full merged set plus a full batch so steady-state
        # ingestion never grows the buffers.
        capacity = self._max_centroids + self._batch_size
        if len(self._means) != capacity:
            self._means = array.array("d", [0.0] * capacity)
            self._weights = array.array("q", [0] * capacity)

        self._merged = 0
        self._unmerged = 0
        self._min = math.inf
        self._max = -math.inf
        self._sum = 0.0
        self._count = 0

    #
    # Ingestion
    #
    def update(self, item: float) -> None:
        """
        Add one stream value with weight 1.

        Args:
            item: Numeric value to add. Non-finite values (NaN, +/-Inf) and
                non-numeric items are ignored.
        """
        if not isinstance(item, (int, float)) or not math.isfinite(item):
            return

        started_at = self._start_timer()
        self.add(item, 1)
        self._record_update(started_at)

    def add(self, value: float, weight: int = 1) -> None:
        """
        Add a sample with an integer weight.

        A zero weight is ignored. The call may run a batched merge before it
        returns.
        """
        if weight == 0:
            return
        assert weight > 0, f"negative weight {weight}"
        assert self._batch_size > 0, "digest compression is unset"

        value = float(value)
        # A single sample is a discrete point: it is its own min, max and mean.
        self._update_aggregates(value, value, value * weight, weight)
        self._add_unmerged_centroid(value, weight)

    def _update_aggregates(
        self, min_val: float, max_val: float, total: float, count: int
    ) -> None:
        if min_val < self._min:
            self._min = min_val
        if max_val > self._max:
            self._max = max_val
        self._sum += total
        self._count += count

    def _add_unmerged_centroid(self, mean: float, weight: int) -> None:
        assert self._unmerged < self._batch_size

        index = self._merged + self._unmerged
        self._means[index] = mean
        self._weights[index] = weight
        self._unmerged += 1
        if self._unmerged == self._batch_size:
            self._do_merge()

    def merge(self: TDigestType, other: TDigestType) -> TDigestType:
        """
        Fold another digest into this one.

        Every centroid of ``other`` is buffered here as an unmerged centroid,
        so merging many small digests gives a slightly different layout than
        adding all their samples to one digest; both stay within the error
        bounds. ``other`` is not modified.

        An unset digest (compression 0) adopts the compression of ``other``.
        Otherwise this digest keeps its own compression.

        Returns:
            This digest.

        Raises:
            TypeError: If 'other' is not a TDigest.
        """
        self._check_same_type(other)

        if self._compression == 0.0:
            self.reset(other._compression)

        # Snapshot first: merging a digest into itself must not read back
        # centroids it is appending.
        size = other._merged + other._unmerged
        centroids = list(zip(other._means[:size], other._weights[:size]))

        self._update_aggregates(other._min, other._max, other._sum, other._count)
        for mean, weight in centroids:
            self._add_unmerged_centroid(mean, weight)

        self._items_processed += other._items_processed
        return self

    #
    # Batched merge
    #
    def compact(self) -> None:
        """Merge all buffered centroids now instead of at the next batch."""
        self._do_merge()

    def _do_merge(self) -> None:
        """
        Fold the unmerged centroids into the sorted, size-bounded set.

        Everything is sorted by mean and walked once from the left. The
        current centroid absorbs its right neighbour while its cumulative
        weight stays under ``q_limit``, the weight at which the scale
        function crosses the next integer. Otherwise the current centroid is
        closed and the neighbour starts a new one.
        """
        if self._unmerged == 0:
            return

        size = self._merged + self._unmerged
        centroids = sorted(
            zip(self._means[:size], self._weights[:size]), key=_by_mean
        )
        means = self._means
        weights = self._weights
        compression = self._compression
        total_count = self._count

        # q_limit is total_count * q_limit from the paper; keeping it scaled
        # avoids a division per candidate.
        q0 = 0.0
        q_limit = total_count * scale_to_quantile(q0 + 1, compression)

        # Merging moves means around, so the sum is rebuilt from the
        # centroids every time to keep floating point drift bounded.
        self._sum = 0.0

        last = 0
        mean, weight = centroids[0]
        merged_count = weight
        for candidate_mean, candidate_weight in centroids[1:]:
            if candidate_weight + merged_count <= q_limit:
                # Running mean update: the weight must be updated first.
                weight += candidate_weight
                mean += (candidate_mean - mean) * candidate_weight / weight
                merged_count += candidate_weight
                continue

            q0 = quantile_to_scale(merged_count / total_count, compression)
            q_limit = total_count * scale_to_quantile(q0 + 1, compression)
            merged_count += candidate_weight

            self._sum += mean * weight
            means[last] = mean
            weights[last] = weight
            last += 1
            mean, weight = candidate_mean, candidate_weight

        self._sum += mean * weight
        means[last] = mean
        weights[last] = weight

        self._merged = last + 1
        self._unmerged = 0
        self._min = min(self._min, means[0])
        self._max = max(self._max, means[last])

        assert self._merged <= self._max_centroids, (
            f"{self._merged} centroids exceed the bound {self._max_centroids}"
        )
        logger.debug(
            "Merged %d centroids into %d (count=%d)", size, self._merged, total_count
        )

    #
    # Queries
    #
    # Both queries interpolate linearly through the points
    #
    #   (0, min), (w[0] / 2, mean[0]), ..., (W[i] + w[i] / 2, mean[i]), ...,
    #   (count, max)
    #
    # where W[i] is the total weight of the centroids before i. Quantile walks
    # them by weight, Cdf walks them by value.
    #
    def quantile(self, q: float) -> float:
        """
        Estimate the value at fractional rank ``q``.

        Args:
            q: Target quantile between 0.0 and 1.0.

        Returns:
            The estimated value; ``min`` at 0, ``max`` at 1 and NaN if the
            digest is empty.
        """
        assert 0.0 <= q <= 1.0, f"quantile {q} outside [0, 1]"

        self._do_merge()

        if self._merged == 0:
            return math.nan
        if self._merged == 1:
            return self._means[0]

        means = self._means
        weights = self._weights
        last = self._merged - 1

        quantile_count = q * self._count
        prev_count = 0.0
        prev_val = self._min
        this_count = weights[0] / 2.0
        this_val = means[0]

        for i in range(self._merged):
            if quantile_count < this_count:
                break

            prev_count = this_count
            prev_val = this_val

            if i == last:
                # Interpolate between the last centroid and max.
                this_count = self._count
                this_val = self._max
            else:
                this_count += (weights[i] + weights[i + 1]) / 2.0
                this_val = means[i + 1]

        return linear_interpolate(
            prev_val,
            this_val,
            this_count - quantile_count,
            quantile_count - prev_count,
        )

    def cdf(self, value: float) -> float:
        """
        Estimate the fraction of the total weight at or below ``value``.

        Returns:
            0 below ``min``, 1 at or above ``max`` (so a single-valued digest
            maps its only value to 1), NaN if the digest is empty.
        """
        self._do_merge()

        if self._merged == 0:
            return math.nan
        if value < self._min:
            return 0.0
        if value >= self._max:
            return 1.0
        assert self._min != self._max

        if self._merged == 1:
            return (value - self._min) / (self._max - self._min)

        means = self._means
        weights = self._weights
        count = self._count
        last = self._merged - 1

        if value < means[0]:
            return linear_interpolate(
                0.0, weights[0] / count / 2.0, means[0] - value, value - self._min
            )

        if value >= means[last]:
            return linear_interpolate(
                1.0 - weights[last] / count / 2.0,
                1.0,
                self._max - value,
                value - means[last],
            )

        accum_count = weights[0] / 2.0
        i = 0
        while i < last:
            if means[i] == value:
                # Centroids sharing this mean form one step; answer with the
                # midpoint of the combined step.
                before = accum_count - weights[i] / 2.0
                run_weight = weights[i]
                while i < last and means[i + 1] == value:
                    i += 1
                    run_weight += weights[i]
                return (before + run_weight / 2.0) / count

            if means[i] <= value < means[i + 1]:
                mean1 = means[i]
                mean2 = means[i + 1]
                if mean2 <= mean1:
                    mean_ratio = 1.0
                else:
                    mean_ratio = (value - mean1) / (mean2 - mean1)
                delta_count = (weights[i] + weights[i + 1]) / 2.0
                return (accum_count + delta_count * mean_ratio) / count

            accum_count += (weights[i] + weights[i + 1]) / 2.0
            i += 1

        logger.error("Cannot measure CDF for %r", value)
        return math.nan

    #
    # Text serialization
    #
    def to_string(self) -> str:
        """
        Render the digest in its canonical text form.

        Fields are separated by '/':

        - empty: ``<compression>/0/0/0/0``
        - a single unit-weight sample: ``<compression>/<value>``
        - otherwise: ``<compression>/<min>/<max>/<sum>/<count>`` followed by
          ``/<mean>:<weight>`` per centroid in ascending order.

        Doubles use 17 significant digits so they parse back exactly.
        """
        compression = format_compression(self._compression)
        if self._count <= 1:
            if self._count == 0:
                # min/max are rendered as 0 when empty.
                return FIELD_SEPARATOR.join([compression, "0", "0", "0", "0"])
            return FIELD_SEPARATOR.join([compression, format_double(self._means[0])])

        self._do_merge()

        fields = [
            compression,
            format_double(self._min),
            format_double(self._max),
            format_double(self._sum),
            format_count(self._count),
        ]
        for i in range(self._merged):
            fields.append(
                format_double(self._means[i])
                + CENTROID_SEPARATOR
                + format_count(self._weights[i])
            )
        return FIELD_SEPARATOR.join(fields)

    def from_string(self, text: str) -> DecodeResult:
        """
        Replace the state of this digest with a decoded text form.

        The empty string means "unset" and resets the digest to compression
        0. Failures are returned rather than raised; the digest may then hold
        a partial state, and it is up to the caller to discard or reset it.

        Returns:
            A DecodeResult, truthy on success.
        """
        result = self._decode(text)
        if not result:
            logger.debug("Rejected serialized digest %r: %s", text, result.message)
        return result

    def _decode(self, text: str) -> DecodeResult:
        if not text:
            self.reset(0)
            return DecodeResult.success()

        tokens = text.split(FIELD_SEPARATOR)

        if not tokens[0]:
            return DecodeResult.failure("No compression.")
        compression = parse_double(tokens[0])
        if compression is None or not math.isfinite(compression) or compression < 0:
            return DecodeResult.failure(f"Invalid compression: {tokens[0]}")

        self.reset(compression)

        if len(tokens) == 1:
            return DecodeResult.failure("Unexpected end of string.")

        if len(tokens) == 2:
            value = parse_double(tokens[1])
            if value is None or math.isnan(value):
                return DecodeResult.failure(f"Invalid single value: {tokens[1]}")
            if self._batch_size == 0:
                return DecodeResult.failure("Samples present with zero compression.")
            self.add(value, 1)
            return DecodeResult.success()

        if len(tokens) < 5:
            return DecodeResult.failure("Invalid min, max, sum, or count.")
        min_val = parse_double(tokens[1])
        max_val = parse_double(tokens[2])
        total = parse_double(tokens[3])
        count = parse_int(tokens[4])
        if min_val is None or max_val is None or total is None or count is None:
            return DecodeResult.failure("Invalid min, max, sum, or count.")

        if len(tokens) == 5:
            # Empty digests render min/max as 0.
            if min_val != 0 or max_val != 0 or total != 0 or count != 0:
                return DecodeResult.failure(
                    "Empty t-Digest with non-zero min, max, sum, or count."
                )
            return DecodeResult.success()

        if self._batch_size == 0:
            return DecodeResult.failure("Samples present with zero compression.")

        for token in tokens[5:]:
            mean_token, separator, weight_token = token.partition(CENTROID_SEPARATOR)
            mean = parse_double(mean_token) if separator else None
            weight = parse_int(weight_token) if separator else None
            if (
                mean is None
                or weight is None
                or math.isnan(mean)
                or weight < 0
                or self._count + weight > INT64_MAX
            ):
                return DecodeResult.failure(f"Invalid centroid: {token}")
            self.add(mean, weight)

        self._do_merge()

        if self._merged == 0:
            # Only zero-weight centroids: the header must describe an empty
            # digest, and min/max stay unset.
            if min_val != 0 or max_val != 0 or total != 0 or count != 0:
                return DecodeResult.failure(
                    "Empty t-Digest with non-zero min, max, sum, or count."
                )
            return DecodeResult.success()

        if not self._extrema_cover_centroids(min_val, max_val):
            return DecodeResult.failure("Invalid min or max value.")
        self._min = min_val
        self._max = max_val

        if not math.isclose(total, self._sum, rel_tol=1e-10, abs_tol=1e-10):
            return DecodeResult.failure("Invalid sum value.")
        if count != self._count:
            return DecodeResult.failure("Invalid count value.")

        return DecodeResult.success()

    def _extrema_cover_centroids(self, min_val: float, max_val: float) -> bool:
        """Check that min/max enclose every merged centroid mean."""
        if math.isnan(min_val) or math.isnan(max_val):
            return False
        return min_val <= self._means[0] and max_val >= self._means[self._merged - 1]

    @classmethod
    def parse(cls: Type[TDigestType], data: str) -> TDigestType:
        """
        Build a new digest from its text form.

        Raises:
            DecodeError: If the text is not a valid digest encoding.
        """
        instance = cls(compression=0)
        instance.from_string(data).raise_for_error()
        return instance

    #
    # Dictionary serialization
    #
    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize the digest to a JSON-compatible dictionary.

        Buffered centroids are merged first so the snapshot is compact.
        """
        self._do_merge()

        state = self._base_dict()
        state.update(
            {
                "compression": self._compression,
                "min": self._min if self._count else None,
                "max": self._max if self._count else None,
                "sum": self._sum,
                "count": self._count,
                "centroids": [
                    Centroid(mean, weight).to_dict()
                    for mean, weight in self.get_centroids()
                ],
            }
        )
        return state

    @classmethod
    def from_dict(cls: Type[TDigestType], data: Dict[str, Any]) -> TDigestType:
        """
        Deserialize a digest from a dictionary created by to_dict().

        Raises:
            ValueError: If the dictionary is missing required keys or has
                invalid data.
        """
        if "type" not in data:
            raise ValueError("Invalid dictionary format for TDigest. Missing 'type'")

        if data.get("type") != cls.__name__:
            raise ValueError(
                f"Dictionary represents class '{data.get('type')}' but expected '{cls.__name__}'"
            )

        required_keys = {"compression", "count", "centroids", "items_processed"}
        missing_keys = required_keys - data.keys()
        if missing_keys:
            raise ValueError(
                f"Invalid dictionary format for TDigest. Missing keys: {missing_keys}"
            )

        instance = cls(
            compression=data["compression"],
            memory_limit_bytes=data.get("memory_limit_bytes"),
        )

        try:
            centroids = [Centroid.from_dict(c_data) for c_data in data["centroids"]]
        except (ValueError, KeyError, TypeError) as e:
            raise ValueError(f"Error deserializing centroids: {e}") from e

        if centroids and instance._batch_size == 0:
            raise ValueError("Centroids present with zero compression")

        for centroid in centroids:
            instance.add(centroid.mean, centroid.weight)
        instance._do_merge()

        if instance._count != data["count"]:
            raise ValueError(
                f"Centroid weights sum to {instance._count}, expected {data['count']}"
            )

        if instance._merged:
            min_val = instance._min if data.get("min") is None else float(data["min"])
            max_val = instance._max if data.get("max") is None else float(data["max"])
            if not instance._extrema_cover_centroids(min_val, max_val):
                raise ValueError(
                    f"min/max ({min_val}, {max_val}) do not enclose the centroid means"
                )
            instance._min = min_val
            instance._max = max_val
        instance._items_processed = data["items_processed"]

        return instance

    #
    # Accessors
    #
    @property
    def compression(self) -> float:
        """The compression parameter; 0 for an unset digest."""
        return self._compression

    @property
    def max_centroids(self) -> int:
        """Upper bound on the number of centroids after a merge."""
        return self._max_centroids

    @property
    def batch_size(self) -> int:
        """Number of buffered centroids that triggers a merge."""
        return self._batch_size

    @property
    def count(self) -> int:
        """Total weight of all samples."""
        return self._count

    @property
    def sum(self) -> float:
        """Weighted sum of all samples."""
        return self._sum

    @property
    def min(self) -> float:
        """Smallest sample seen, NaN when empty."""
        return self._min if self._count else math.nan

    @property
    def max(self) -> float:
        """Largest sample seen, NaN when empty."""
        return self._max if self._count else math.nan

    @property
    def num_centroids(self) -> int:
        """Centroids currently stored, merged and buffered."""
        return self._merged + self._unmerged

    def __len__(self) -> int:
        """Return the total weight held by the digest."""
        return self._count

    @property
    def is_empty(self) -> bool:
        """Check if the digest contains any data."""
        return self._count == 0

    def get_centroids(self) -> List[Tuple[float, int]]:
        """
        Return the merged centroids as (mean, weight) tuples sorted by mean.

        This is primarily for debugging and inspection purposes.
        """
        self._do_merge()
        return list(zip(self._means[: self._merged], self._weights[: self._merged]))

    def mem_usage_bytes(self) -> int:
        """
        Approximate footprint for capacity accounting.

        Counts the object plus the reserved centroid buffers, which are
        allocated up front for a full merged set and a full batch.
        """
        return sys.getsizeof(self) + CENTROID_SIZE_BYTES * len(self._means)

    def estimate_size(self) -> int:
        """
        Estimate the memory footprint of the digest in bytes.

        Returns:
            Estimated size in bytes.
        """
        size = super().estimate_size()
        size += sys.getsizeof(self._means)
        size += sys.getsizeof(self._weights)
        return size

    def clear(self) -> None:
        """Reset the digest to its empty state, keeping the compression."""
        super().clear()
        self.reset(self._compression)

    #
    # Benchmarking hooks
    #
    def get_stats(self) -> Dict[str, Any]:
        """
        Get detailed statistics about the current state of the digest.

        Returns:
            Structure, aggregate and centroid weight statistics together with
            the base statistics and a percentile snapshot.
        """
        self._do_merge()

        stats = super().get_stats()
        stats.update(
            {
                "compression": self._compression,
                "batch_size": self._batch_size,
                "max_centroids": self._max_centroids,
                "num_centroids": self._merged,
                "total_weight": self._count,
                "sum": self._sum,
                "mem_usage_bytes": self.mem_usage_bytes(),
            }
        )

        if self._count:
            stats["min_value"] = self._min
            stats["max_value"] = self._max
            stats["mean_value"] = self._sum / self._count

        if self._merged:
            weights = self._weights[: self._merged]
            stats.update(
                {
                    "min_weight": min(weights),
                    "max_weight": max(weights),
                    "avg_weight": sum(weights) / len(weights),
                }
            )

            # Tail centroids should be lighter than middle ones.
            if self._merged > 2:
                middle = weights[self._merged // 2]
                stats["tail_to_middle_weight_ratio"] = (
                    (weights[0] + weights[-1]) / 2.0 / middle
                )

        if self._count:
            stats["bytes_per_item"] = self.estimate_size() / self._count

        return stats

    def error_bounds(self) -> Dict[str, Any]:
        """
        Calculate the theoretical error bounds for this digest.

        The error is non-uniform: it is roughly proportional to q(1-q)/c at
        quantile q, so it is smallest at the tails.
        """
        self._do_merge()

        bounds: Dict[str, Any] = {}

        if self.is_empty:
            bounds["state"] = "empty"
            return bounds

        c = self._compression

        bounds["accuracy_model"] = "non-uniform (higher at tails)"
        bounds["theoretical_max_centroids"] = self._max_centroids
        bounds["error_bounds"] = {
            f"q{q:.3f}": q * (1 - q) / c
            for q in (0.001, 0.01, 0.05, 0.25, 0.5, 0.75, 0.95, 0.99, 0.999)
        }
        bounds["actual_centroids"] = self._merged
        bounds["compression_efficiency"] = self._merged / max(1, self._max_centroids)

        return bounds

    def analyze_quantile_accuracy(
        self, reference_data: Optional[List[float]] = None
    ) -> Dict[str, Any]:
        """
        Analyze the accuracy of quantile estimates against reference data.

        Args:
            reference_data: Optional list of values to compare against. If
                provided, estimates are compared with exact quantiles of the
                data. If None, theoretical error bounds are reported.

        Returns:
            A dictionary containing accuracy analysis information.
        """
        self._do_merge()

        analysis: Dict[str, Any] = {
            "algorithm": "T-Digest",
            "compression": self._compression,
            "num_centroids": self._merged,
            "total_weight": self._count,
        }

        quantiles = [0.001, 0.01, 0.05, 0.1, 0.25, 0.5, 0.75, 0.9, 0.95, 0.99, 0.999]

        if reference_data is None:
            analysis["theoretical_relative_errors"] = {
                f"q{q:.3f}": q * (1 - q) / self._compression for q in quantiles
            }
            analysis["expected_median_error"] = 0.25 / self._compression
            return analysis

        if not reference_data:
            return {"error": "Reference data is empty"}

        sorted_data = sorted(reference_data)
        data_len = len(sorted_data)

        exact_quantiles = {}
        estimates = {}
        abs_errors = {}
        rel_errors = {}
        for q in quantiles:
            key = f"q{q:.3f}"
            exact = sorted_data[min(int(q * data_len), data_len - 1)]
            estimate = self.quantile(q)
            exact_quantiles[key] = exact
            estimates[key] = estimate

            if math.isfinite(exact) and math.isfinite(estimate):
                abs_errors[key] = abs(estimate - exact)
                if abs(exact) > 1e-10:
                    rel_errors[key] = abs_errors[key] / abs(exact)
                else:
                    rel_errors[key] = abs_errors[key]

        analysis.update(
            {
                "reference_data_size": data_len,
                "exact_quantiles": exact_quantiles,
                "tdigest_estimates": estimates,
                "absolute_errors": abs_errors,
                "relative_errors": rel_errors,
            }
        )

        if rel_errors:
            analysis["max_relative_error"] = max(rel_errors.values())
            analysis["avg_relative_error"] = sum(rel_errors.values()) / len(rel_errors)

        return analysis

    @classmethod
    def create_from_accuracy_target(
        cls, accuracy_target: float, tail_focus: bool = True
    ) -> "TDigest":
        """
        Create a digest whose compression targets a given relative error.

        Args:
            accuracy_target: Target error for quantile estimates (0.0-1.0).
            tail_focus: If True, size for the 1% and 99% quantiles; otherwise
                for the median.

        Raises:
            ValueError: If accuracy_target is not between 0 and 1.
        """
        if not (0.0 < accuracy_target < 1.0):
            raise ValueError("Accuracy target must be between 0 and 1")

        # Error at q is about q(1-q)/compression.
        if tail_focus:
            compression = math.ceil(0.0099 / accuracy_target)
        else:
            compression = math.ceil(0.25 / accuracy_target)

        return cls(compression=compression)
