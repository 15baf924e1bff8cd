"""
Base classes and interfaces for merge-digest summaries.

This module defines the abstract base classes that every summary implements
to provide a consistent interface: updating with stream items, querying,
merging partial summaries, serialization, and benchmarking hooks for
measuring update cost and memory footprint.
"""

import abc
import json
import sys
import time
from collections import deque
from typing import Any, Dict, Generic, Optional, Sequence, TypeVar, Union

T = TypeVar("T")  # Type for the items being processed
R = TypeVar("R")  # Type for the result of queries


class StreamSummary(Generic[T, R], abc.ABC):
    """
    Abstract base class for all streaming summaries.

    Defines the common interface: updating with new items, querying results,
    merging with other summaries, and serialization. It also provides
    benchmarking hooks for measuring update timings.

    Summaries are single-writer structures. Callers that feed one from several
    threads either guard it externally or keep one summary per writer and
    merge them periodically.
    """

    def __init__(self, memory_limit_bytes: Optional[int] = None):
        """
        Initialize a new stream summary.

        Args:
            memory_limit_bytes: Optional maximum memory usage in bytes.
                                None means no explicit limit.
        """
        self._memory_limit_bytes = memory_limit_bytes
        self._items_processed = 0

        # Performance tracking attributes
        self._last_update_time: float = 0.0
        self._total_update_time: float = 0.0
        self._update_count: int = 0

        self._track_recent_updates: bool = False
        self._recent_update_times: Optional[deque] = None
        self._max_update_history: int = 100

    @abc.abstractmethod
    def update(self, item: T) -> None:
        """
        Update the summary with a new item from the stream.

        Args:
            item: The new item to process.
        """
        pass

    def _record_update(self, started_at: Optional[float]) -> None:
        """
        Account for one processed item.

        Derived classes call this at the end of ``update``, passing the value
        returned by ``_start_timer`` at its beginning.
        """
        self._items_processed += 1

        if started_at is None:
            return

        self._last_update_time = time.perf_counter() - started_at
        self._total_update_time += self._last_update_time
        self._update_count += 1
        if self._recent_update_times is not None:
            self._recent_update_times.append(self._last_update_time)

    def _start_timer(self) -> Optional[float]:
        """Return a start timestamp when performance tracking is enabled."""
        if not self._track_recent_updates:
            return None
        return time.perf_counter()

    @abc.abstractmethod
    def query(self, *args: Any, **kwargs: Any) -> R:
        """
        Query the current state of the summary.

        The parameters and return value depend on the specific algorithm.
        """
        pass

    @abc.abstractmethod
    def merge(self, other: "StreamSummary[T, R]") -> "StreamSummary[T, R]":
        """
        Fold another summary of the same type into this one.

        Args:
            other: Another stream summary of the same type. It is not modified.

        Returns:
            This summary, to allow chaining.

        Raises:
            TypeError: If other is not of the same type.
        """
        pass

    def _check_same_type(self, other: "StreamSummary[T, R]") -> None:
        """
        Helper method to check if another summary is of the same type.

        Raises:
            TypeError: If other is not of the same type.
        """
        if not isinstance(other, self.__class__):
            raise TypeError(f"Cannot merge with {other.__class__.__name__}")

    @abc.abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the summary to a dictionary for serialization.

        Returns:
            A JSON-compatible dictionary representation of the summary.
        """
        pass

    def _base_dict(self) -> Dict[str, Any]:
        """Create a dictionary with base attributes common to all summaries."""
        return {
            "type": self.__class__.__name__,
            "items_processed": self._items_processed,
            "memory_limit_bytes": self._memory_limit_bytes,
        }

    @classmethod
    @abc.abstractmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StreamSummary[T, R]":
        """
        Create a summary from a dictionary representation.

        Raises:
            ValueError: If the dictionary does not describe a valid summary.
        """
        pass

    @abc.abstractmethod
    def to_string(self) -> str:
        """Render the summary in its compact text form."""
        pass

    @classmethod
    @abc.abstractmethod
    def parse(cls, data: str) -> "StreamSummary[T, R]":
        """
        Build a summary from its compact text form.

        Raises:
            ValueError: If the text does not describe a valid summary.
        """
        pass

    def serialize(self, format: str = "json") -> Union[str, bytes]:
        """
        Serialize the summary to a string or bytes.

        Args:
            format: 'json' (dictionary form), 'binary' (UTF-8 encoded JSON)
                or 'text' (the summary's compact text form).

        Raises:
            ValueError: If the format is not supported.
        """
        if format == "json":
            return json.dumps(self.to_dict())
        elif format == "binary":
            return json.dumps(self.to_dict()).encode("utf-8")
        elif format == "text":
            return self.to_string()
        else:
            raise ValueError(f"Unsupported serialization format: {format}")

    @classmethod
    def deserialize(
        cls, data: Union[str, bytes], format: str = "json"
    ) -> "StreamSummary[T, R]":
        """
        Deserialize a summary from a string or bytes.

        Args:
            data: The serialized summary.
            format: 'json', 'binary' or 'text'.

        Raises:
            ValueError: If the format is not supported or the payload is invalid.
        """
        if isinstance(data, bytes):
            data = data.decode("utf-8")

        if format in ("json", "binary"):
            return cls.from_dict(json.loads(data))
        elif format == "text":
            return cls.parse(data)
        else:
            raise ValueError(f"Unsupported serialization format: {format}")

    def estimate_size(self) -> int:
        """
        Estimate the current memory usage of this summary in bytes.

        The base estimate covers the object, its instance dictionary and the
        performance tracking buffer. Derived classes add their own structures.
        """
        size = sys.getsizeof(self)

        if hasattr(self, "__dict__"):
            size += sys.getsizeof(self.__dict__)

        if self._recent_update_times is not None:
            size += sys.getsizeof(self._recent_update_times)
            size += len(self._recent_update_times) * sys.getsizeof(0.0)

        return size

    def check_memory_limit(self) -> bool:
        """
        Check if the current memory usage is within the configured limit.

        Returns:
            True if no limit is set or usage is within it, False otherwise.
        """
        if self._memory_limit_bytes is None:
            return True

        return self.estimate_size() <= self._memory_limit_bytes

    def clear(self) -> None:
        """
        Reset the base counters and tracking metrics.

        Derived classes override this to clear their own structures and call
        super().clear().
        """
        self._items_processed = 0
        self._total_update_time = 0.0
        self._update_count = 0
        self._last_update_time = 0.0

        if self._recent_update_times is not None:
            self._recent_update_times.clear()

    def enable_performance_tracking(
        self, track_recent_updates: bool = True, max_history: int = 100
    ) -> None:
        """
        Enable timing of update calls for benchmarking.

        Args:
            track_recent_updates: Whether to time updates.
            max_history: Maximum number of recent update timings kept.
        """
        self._track_recent_updates = track_recent_updates
        self._max_update_history = max(1, max_history)

        if track_recent_updates:
            self._recent_update_times = deque(maxlen=self._max_update_history)

    def disable_performance_tracking(self) -> None:
        """Disable performance tracking to reduce overhead."""
        self._track_recent_updates = False
        self._recent_update_times = None

    def get_performance_stats(self) -> Dict[str, Any]:
        """
        Get performance statistics for this summary.

        Returns:
            A dictionary with items processed, memory usage and, when tracking
            was enabled, update timings in nanoseconds.
        """
        stats: Dict[str, Any] = {
            "items_processed": self._items_processed,
            "memory_bytes": self.estimate_size(),
        }

        if self._update_count > 0:
            stats["avg_update_time_ns"] = (
                self._total_update_time / self._update_count
            ) * 1e9
            stats["last_update_time_ns"] = self._last_update_time * 1e9

        if self._recent_update_times:
            recent_times_ns = [t * 1e9 for t in self._recent_update_times]
            stats["recent_update_times_ns"] = recent_times_ns
            stats["min_update_time_ns"] = min(recent_times_ns)
            stats["max_update_time_ns"] = max(recent_times_ns)

        return stats

    def get_stats(self) -> Dict[str, Any]:
        """
        Get detailed statistics about the current state of the summary.

        Derived classes extend the result with their own statistics.
        """
        stats: Dict[str, Any] = {
            "type": self.__class__.__name__,
            "items_processed": self._items_processed,
            "memory_bytes": self.estimate_size(),
        }

        if self._memory_limit_bytes is not None:
            stats["memory_limit_bytes"] = self._memory_limit_bytes
            stats["memory_usage_pct"] = (
                self.estimate_size() / self._memory_limit_bytes
            ) * 100

        if self._update_count > 0:
            stats["avg_update_time_ns"] = (
                self._total_update_time / self._update_count
            ) * 1e9

        error_bounds = self.error_bounds()
        if error_bounds:
            stats.update(error_bounds)

        return stats

    def error_bounds(self) -> Dict[str, Any]:
        """
        Get the theoretical error bounds for this summary.

        The base implementation returns an empty dictionary.
        """
        return {}

    @property
    def items_processed(self) -> int:
        """Get the total number of items processed by this summary."""
        return self._items_processed


class QuantileEstimator(StreamSummary[float, float], abc.ABC):
    """
    Abstract base class for summaries answering rank queries over numbers.

    Examples include the merging t-digest.
    """

    DEFAULT_PERCENTILES: Sequence[float] = (0.5, 0.9, 0.99, 0.999)

    @abc.abstractmethod
    def quantile(self, q: float) -> float:
        """
        Estimate the value at fractional rank ``q`` in [0, 1].

        Returns NaN for an empty summary.
        """
        pass

    @abc.abstractmethod
    def cdf(self, value: float) -> float:
        """
        Estimate the fractional rank of ``value``.

        Returns NaN for an empty summary.
        """
        pass

    def query(self, q: float) -> float:
        """Alias of ``quantile`` for the generic summary interface."""
        return self.quantile(q)

    def percentiles(
        self, quantiles: Optional[Sequence[float]] = None
    ) -> Dict[float, float]:
        """Estimate several quantiles at once, keyed by quantile."""
        if quantiles is None:
            quantiles = self.DEFAULT_PERCENTILES
        return {q: self.quantile(q) for q in quantiles}

    def get_stats(self) -> Dict[str, Any]:
        """Add a percentile snapshot to the base statistics."""
        stats = super().get_stats()

        for q, value in self.percentiles().items():
            stats[f"p{q * 100:g}"] = value

        return stats
