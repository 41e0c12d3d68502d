"""Duration statistics helpers (numpy-backed)."""

from typing import Iterable

import numpy as np

from .config import DEFAULT_TRIM_RATIO, DELTA_PCT_BOUND, MAX_TRIM_RATIO
from .models import DurationStats


def sanitize(values: Iterable[float]) -> np.ndarray:
    """Finite values only, negatives floored at zero, sorted ascending."""
    arr = np.asarray([v for v in values if v is not None], dtype=float)
    arr = arr[np.isfinite(arr)]
    return np.sort(np.maximum(arr, 0.0))


def mean(values: Iterable[float]) -> float:
    clean = sanitize(values)
    return float(clean.mean()) if clean.size else 0.0


def percentile(values: Iterable[float], p: float) -> float:
    """Linear-interpolated order statistic; 0 for an empty sample."""
    clean = sanitize(values)
    if not clean.size:
        return 0.0
    return float(np.percentile(clean, float(np.clip(p, 0, 100))))


def trimmed_mean(values: Iterable[float], trim_ratio: float = DEFAULT_TRIM_RATIO) -> float:
    """Mean after dropping ``floor(n * ratio)`` values from each end."""
    clean = sanitize(values)
    if not clean.size:
        return 0.0
    cut = int(np.floor(clean.size * float(np.clip(trim_ratio, 0, MAX_TRIM_RATIO))))
    kept = clean[cut: clean.size - cut]
    return float(kept.mean()) if kept.size else float(clean.mean())


def duration_stats(values_hours: Iterable[float]) -> DurationStats:
    clean = sanitize(values_hours)
    if not clean.size:
        return DurationStats()
    p50, p75, p90, p95 = (float(v) for v in np.percentile(clean, [50, 75, 90, 95]))
    return DurationStats(
        count=int(clean.size),
        avg_hours=float(clean.mean()),
        trimmed_avg_hours=trimmed_mean(clean),
        p50_hours=p50,
        p75_hours=p75,
        p90_hours=p90,
        p95_hours=p95,
        iqr_hours=max(0.0, p75 - p50),
    )


def delta_pct(current: float, previous: float) -> float:
    """Percent change with a floor of 1 on the denominator, clamped +/-200."""
    change = (current - previous) / max(1.0, previous) * 100
    return float(np.clip(change, -DELTA_PCT_BOUND, DELTA_PCT_BOUND))


def average(values: Iterable[float]) -> float:
    """Plain arithmetic mean without sanitising; 0 for no values."""
    data = list(values)
    return sum(data) / len(data) if data else 0.0
