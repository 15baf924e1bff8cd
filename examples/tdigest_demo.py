"""
Example of using merge-digest to track latency percentiles.

This example demonstrates how a merging t-digest summarizes a stream of
request latencies, how per-shard digests are combined, and how a digest is
shipped between processes in its compact text form.
"""

import logging
import random
import time

from merge_digest import TDigest


def simulated_latency_ms(rng):
    """Mostly fast requests with a slow tail."""
    if rng.random() < 0.02:
        return rng.uniform(200, 2000)
    return rng.lognormvariate(3, 0.4)


def demonstrate_basic_digest():
    """Summarize one stream and report its percentiles."""
    print("\n=== Basic T-Digest Demo ===")

    rng = random.Random(42)
    digest = TDigest(compression=100)
    latencies = []

    print("Processing 100000 latencies...")
    start_time = time.time()
    for i in range(100000):
        latency = simulated_latency_ms(rng)
        latencies.append(latency)
        digest.update(latency)

        if i % 25000 == 0:
            print(f"  Processed {i} items")
    elapsed = time.time() - start_time
    print(f"Done in {elapsed:.3f} seconds")

    latencies.sort()
    print("\nPercentile   estimate    exact")
    for q in (0.5, 0.9, 0.99, 0.999):
        exact = latencies[int(q * len(latencies))]
        print(f"  p{q * 100:<8g} {digest.quantile(q):9.2f} {exact:9.2f}")

    print(f"\nFraction of requests under 100 ms: {digest.cdf(100):.4f}")
    print(f"Centroids kept: {len(digest.get_centroids())} (bound {digest.max_centroids})")
    print(f"Approximate memory usage: {digest.mem_usage_bytes()} bytes")


def demonstrate_sharded_merge():
    """Build one digest per shard and combine them."""
    print("\n=== Sharded Merge Demo ===")

    rng = random.Random(7)
    shards = []
    for shard_id in range(4):
        shard = TDigest(compression=100)
        for _ in range(25000):
            shard.add(simulated_latency_ms(rng))
        shards.append(shard)
        print(f"  Shard {shard_id}: p99 = {shard.quantile(0.99):.2f} ms")

    # An unset digest adopts the compression of the first digest merged in
    combined = TDigest(compression=0)
    for shard in shards:
        combined.merge(shard)

    print(f"\nCombined count: {combined.count}")
    print(f"Combined p50: {combined.quantile(0.5):.2f} ms")
    print(f"Combined p99: {combined.quantile(0.99):.2f} ms")


def demonstrate_text_format():
    """Round-trip a digest through its text form."""
    print("\n=== Text Format Demo ===")

    digest = TDigest(compression=10)
    for latency in (12, 15, 11, 240, 13, 14, 12, 16):
        digest.add(latency)

    text = digest.to_string()
    print(f"Encoded: {text}")

    restored = TDigest.parse(text)
    print(f"Restored median: {restored.quantile(0.5):.2f}")

    broken = TDigest()
    result = broken.from_string(text.replace("/8/", "/9/"))
    print(f"Decoding a tampered payload: ok={result.ok} message={result.message!r}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    demonstrate_basic_digest()
    demonstrate_sharded_merge()
    demonstrate_text_format()
