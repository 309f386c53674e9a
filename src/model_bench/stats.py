# stats.py
# Summary statistics over N numeric benchmark runs. Pure functions.

import math
from typing import Sequence


def percentile(values: Sequence[float], p: float) -> float:
    """Nearest-rank percentile: floor(len * p) into the sorted values."""
    if not values:
        raise ValueError("percentile of an empty sequence")
    ordered = sorted(values)
    index = min(int(len(ordered) * p), len(ordered) - 1)
    return ordered[index]


def latency_percentile(values: Sequence[float], pct: float) -> float:
    """
    Latency percentile with ``pct`` on a 0-100 scale.

    Ceiling rank: the smallest value with at least pct% of the samples at or
    below it, so p99 over a handful of runs is the slowest run.
    """
    if not values:
        raise ValueError("percentile of an empty sequence")
    ordered = sorted(values)
    index = math.ceil(pct / 100 * len(ordered)) - 1
    return ordered[max(0, index)]


def compute_statistics(values: Sequence[float]) -> dict[str, float]:
    if not values:
        raise ValueError("statistics need at least one value")
    ordered = sorted(values)
    return {
        "count": len(ordered),
        "mean": round(sum(ordered) / len(ordered), 2),
        "p50": percentile(ordered, 0.5),
        "p95": percentile(ordered, 0.95),
        "min": ordered[0],
        "max": ordered[-1],
    }
