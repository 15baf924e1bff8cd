"""
Unit tests for TDigest benchmarking hooks.
"""

import math
import random
import sys
import unittest

from merge_digest.algorithms.tdigest import CENTROID_SIZE_BYTES, TDigest


class TestTDigestBenchmarking(unittest.TestCase):
    """Test cases for TDigest benchmarking hooks."""

    def test_get_stats_empty(self):
        """Test getting stats for an empty TDigest."""
        tdigest = TDigest(compression=100)

        stats = tdigest.get_stats()

        # Check basic stats
        self.assertEqual(stats["type"], "TDigest")
        self.assertEqual(stats["items_processed"], 0)
        self.assertEqual(stats["compression"], 100)
        self.assertEqual(stats["batch_size"], 800)
        self.assertEqual(stats["max_centroids"], 200)

        # Empty digest should not have centroid stats
        self.assertEqual(stats["num_centroids"], 0)
        self.assertNotIn("min_weight", stats)
        self.assertNotIn("max_weight", stats)
        self.assertNotIn("bytes_per_item", stats)
        self.assertEqual(stats["state"], "empty")
        self.assertTrue(math.isnan(stats["p50"]))

    def test_get_stats_with_data(self):
        """Test getting stats for a TDigest with data."""
        tdigest = TDigest(compression=100)

        for i in range(1000):
            tdigest.update(i)

        stats = tdigest.get_stats()

        self.assertEqual(stats["compression"], 100)
        self.assertEqual(stats["total_weight"], 1000)
        self.assertEqual(stats["items_processed"], 1000)
        self.assertGreater(stats["num_centroids"], 0)
        self.assertLessEqual(stats["num_centroids"], stats["max_centroids"])

        # Check min/max tracking
        self.assertEqual(stats["min_value"], 0)
        self.assertEqual(stats["max_value"], 999)
        self.assertAlmostEqual(stats["mean_value"], 499.5, places=6)

        # Check centroid statistics
        self.assertIn("min_weight", stats)
        self.assertIn("max_weight", stats)
        self.assertIn("avg_weight", stats)
        self.assertLessEqual(stats["min_weight"], stats["avg_weight"])
        self.assertLessEqual(stats["avg_weight"], stats["max_weight"])

        # Tails hold lighter centroids than the middle
        self.assertLess(stats["tail_to_middle_weight_ratio"], 1.0)

        self.assertGreater(stats["bytes_per_item"], 0)
        self.assertEqual(stats["mem_usage_bytes"], tdigest.mem_usage_bytes())

        # Percentile snapshot
        for key in ("p50", "p90", "p99", "p99.9"):
            self.assertIn(key, stats)
        self.assertAlmostEqual(stats["p50"], 499.5, delta=5.0)

        # Error bounds are folded in
        self.assertIn("accuracy_model", stats)

    def test_error_bounds(self):
        """Test error bound calculations."""
        tdigest = TDigest(compression=100)

        self.assertEqual(tdigest.error_bounds(), {"state": "empty"})

        for i in range(1000):
            tdigest.update(i)

        bounds = tdigest.error_bounds()
        self.assertEqual(bounds["theoretical_max_centroids"], 200)
        self.assertEqual(bounds["actual_centroids"], len(tdigest.get_centroids()))
        self.assertLessEqual(bounds["compression_efficiency"], 1.0)
        self.assertGreater(bounds["compression_efficiency"], 0.0)

        errors = bounds["error_bounds"]
        self.assertAlmostEqual(errors["q0.500"], 0.25 / 100)
        # Error is smallest at the tails
        self.assertLess(errors["q0.001"], errors["q0.500"])
        self.assertLess(errors["q0.999"], errors["q0.500"])
        self.assertAlmostEqual(errors["q0.010"], errors["q0.990"])

    def test_error_bounds_scale_with_compression(self):
        """Higher compression means tighter bounds."""
        coarse = TDigest(compression=20)
        fine = TDigest(compression=200)
        for i in range(100):
            coarse.update(i)
            fine.update(i)

        self.assertGreater(
            coarse.error_bounds()["error_bounds"]["q0.500"],
            fine.error_bounds()["error_bounds"]["q0.500"],
        )

    def test_analyze_quantile_accuracy_theoretical(self):
        """Without reference data the analysis reports theoretical errors."""
        tdigest = TDigest(compression=100)
        for i in range(100):
            tdigest.update(i)

        analysis = tdigest.analyze_quantile_accuracy()
        self.assertEqual(analysis["algorithm"], "T-Digest")
        self.assertEqual(analysis["total_weight"], 100)
        self.assertIn("theoretical_relative_errors", analysis)
        self.assertAlmostEqual(analysis["expected_median_error"], 0.0025)
        self.assertNotIn("exact_quantiles", analysis)

    def test_analyze_quantile_accuracy_empty_reference(self):
        tdigest = TDigest()
        tdigest.update(1.0)
        self.assertIn("error", tdigest.analyze_quantile_accuracy([]))

    def test_analyze_quantile_accuracy_with_reference(self):
        """Compare estimates against the exact quantiles of the data."""
        random.seed(8)
        data = [random.uniform(0, 1000) for _ in range(10000)]

        tdigest = TDigest(compression=100)
        for x in data:
            tdigest.update(x)

        analysis = tdigest.analyze_quantile_accuracy(data)

        self.assertEqual(analysis["reference_data_size"], 10000)
        for key in (
            "exact_quantiles",
            "tdigest_estimates",
            "absolute_errors",
            "relative_errors",
            "max_relative_error",
            "avg_relative_error",
        ):
            self.assertIn(key, analysis)

        self.assertLess(analysis["relative_errors"]["q0.500"], 0.01)
        self.assertLess(analysis["relative_errors"]["q0.900"], 0.01)
        self.assertLessEqual(
            analysis["avg_relative_error"], analysis["max_relative_error"]
        )

    def test_performance_tracking(self):
        """Test update timing collection."""
        tdigest = TDigest()

        # Without tracking only the counters move
        tdigest.update(1.0)
        stats = tdigest.get_performance_stats()
        self.assertEqual(stats["items_processed"], 1)
        self.assertNotIn("avg_update_time_ns", stats)

        tdigest.enable_performance_tracking(max_history=5)
        for i in range(10):
            tdigest.update(float(i))

        stats = tdigest.get_performance_stats()
        self.assertEqual(stats["items_processed"], 11)
        self.assertIn("avg_update_time_ns", stats)
        self.assertIn("last_update_time_ns", stats)
        self.assertEqual(len(stats["recent_update_times_ns"]), 5)
        self.assertLessEqual(stats["min_update_time_ns"], stats["max_update_time_ns"])
        self.assertIn("avg_update_time_ns", tdigest.get_stats())

        tdigest.disable_performance_tracking()
        tdigest.update(100.0)
        stats = tdigest.get_performance_stats()
        self.assertNotIn("recent_update_times_ns", stats)
        self.assertEqual(stats["items_processed"], 12)

    def test_ignored_updates_are_not_timed(self):
        tdigest = TDigest()
        tdigest.enable_performance_tracking()
        tdigest.update(float("nan"))
        self.assertNotIn("recent_update_times_ns", tdigest.get_performance_stats())

    def test_clear_resets_tracking(self):
        tdigest = TDigest()
        tdigest.enable_performance_tracking()
        for i in range(10):
            tdigest.update(i)
        tdigest.clear()

        stats = tdigest.get_performance_stats()
        self.assertEqual(stats["items_processed"], 0)
        self.assertNotIn("avg_update_time_ns", stats)
        self.assertNotIn("recent_update_times_ns", stats)

    def test_mem_usage_bytes(self):
        """Memory accounting counts the reserved buffers."""
        tdigest = TDigest(compression=100)
        expected = sys.getsizeof(tdigest) + CENTROID_SIZE_BYTES * (200 + 800)
        self.assertEqual(tdigest.mem_usage_bytes(), expected)

        # Reserved up front, so ingestion does not change it
        for i in range(500):
            tdigest.update(i)
        self.assertEqual(tdigest.mem_usage_bytes(), expected)

        unset = TDigest(compression=0)
        self.assertEqual(unset.mem_usage_bytes(), sys.getsizeof(unset))

    def test_estimate_size(self):
        """Test memory estimation."""
        small = TDigest(compression=10)
        large = TDigest(compression=1000)
        self.assertGreater(small.estimate_size(), 0)
        self.assertGreater(large.estimate_size(), small.estimate_size())
        self.assertGreater(
            large.estimate_size(), 8 * (large.max_centroids + large.batch_size)
        )

    def test_check_memory_limit(self):
        self.assertTrue(TDigest().check_memory_limit())

        tiny = TDigest(memory_limit_bytes=1)
        self.assertFalse(tiny.check_memory_limit())

        roomy = TDigest(memory_limit_bytes=10 * 1024 * 1024)
        self.assertTrue(roomy.check_memory_limit())
        stats = roomy.get_stats()
        self.assertEqual(stats["memory_limit_bytes"], 10 * 1024 * 1024)
        self.assertLess(stats["memory_usage_pct"], 100)

    def test_create_from_accuracy_target(self):
        """Test creating a digest sized for an accuracy target."""
        tail = TDigest.create_from_accuracy_target(0.001)
        self.assertEqual(tail.compression, 10)

        median = TDigest.create_from_accuracy_target(0.001, tail_focus=False)
        self.assertGreater(median.compression, tail.compression)

        tighter = TDigest.create_from_accuracy_target(0.0001)
        self.assertGreater(tighter.compression, tail.compression)

        for target in (0, 1, -0.1, 1.5):
            with self.assertRaises(ValueError, msg=f"target {target}"):
                TDigest.create_from_accuracy_target(target)


if __name__ == "__main__":
    unittest.main()
