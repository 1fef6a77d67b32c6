"""Statistical primitives for pattern detection.

Every function is pure, deterministic and takes a one-dimensional series.
Degenerate input (too short, constant) yields a neutral value rather than an
error, so callers can run every analysis unconditionally.

Background:
    The Hurst exponent H measures long-range dependence. Rescaled-range
    analysis computes, for a mean-adjusted series, the range R of the
    cumulative deviations divided by the standard deviation S, and takes
    H = log(R/S) / log(n). H > 0.5 indicates persistence (trends continue),
    H < 0.5 anti-persistence, H ≈ 0.5 a random walk.

    Box counting covers the normalized graph (t, y) of the series with a
    grid of boxes of side s and counts occupied boxes N(s). The dimension
    is the magnitude of the slope of log N(s) against log s.

    Sample entropy is −log(A/B), with B the number of template pairs of
    length m within tolerance r (Chebyshev distance) and A the same for
    length m + 1. Higher values mean less self-similar, more complex series.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from cogscore.stats import autocorrelation, correlation, downsample

NEUTRAL_HURST = 0.5


def hurst_exponent(values: Sequence[float]) -> float:
    """Single-window rescaled-range Hurst exponent."""
    arr = np.asarray(values, dtype=float)
    n = len(arr)
    if n < 3:
        return NEUTRAL_HURST
    deviations = np.cumsum(arr - arr.mean())
    r = float(deviations.max() - deviations.min())
    s = float(arr.std(ddof=1))
    if r == 0.0 or s == 0.0:
        return NEUTRAL_HURST
    return float(np.log(r / s) / np.log(n))


def periodicity(values: Sequence[float]) -> tuple[int, float]:
    """Strongest autocorrelation over lags 1 .. n/2 - 1.

    Returns:
        (lag, |autocorrelation|), or (0, 0.0) when no lag qualifies
    """
    best_lag, best = 0, 0.0
    for lag in range(1, len(values) // 2):
        ac = abs(autocorrelation(values, lag))
        if ac > best:
            best_lag, best = lag, ac
    return best_lag, best


def self_similarity(values: Sequence[float]) -> float:
    """Mean correlation of the series with its 2× and 4× box averages.

    Each downsample is compared against the leading stretch of the original
    of equal length.
    """
    arr = np.asarray(values, dtype=float)
    scores = []
    for factor in (2, 4):
        reduced = downsample(arr, factor)
        if len(reduced) >= 2:
            scores.append(correlation(arr[: len(reduced)], reduced))
    if not scores:
        return 0.0
    return float(np.mean(scores))


def box_counting_dimension(values: Sequence[float], box_sizes: Sequence[float]) -> float:
    """Box-counting dimension of the normalized graph of the series."""
    arr = np.asarray(values, dtype=float)
    n = len(arr)
    if n < 2:
        return 0.0
    span = float(arr.max() - arr.min())
    y = (arr - arr.min()) / span if span > 0 else np.zeros(n)
    t = np.linspace(0.0, 1.0, n)

    counts = []
    for size in box_sizes:
        boxes = {(int(a // size), int(b // size)) for a, b in zip(t, y)}
        counts.append(len(boxes))
    slope, _ = np.polyfit(np.log(box_sizes), np.log(counts), 1)
    return float(abs(slope))


def quadratic_recurrence_fit(
    values: Sequence[float],
    tolerance: float = 0.5,
) -> tuple[float, float, float]:
    """Grid-search c in [-1, 1] (step 0.1) for z_{i+1} ≈ z_i² + c.

    Returns:
        (best c, fraction of steps within tolerance, fit quality), where
        quality is the mean of max(0, 1 - error / tolerance). Ties on the
        fraction are broken by quality.
    """
    arr = np.asarray(values, dtype=float)
    if len(arr) < 2:
        return 0.0, 0.0, 0.0
    current, following = arr[:-1], arr[1:]
    best = (0.0, -1.0, -1.0)
    for c in np.round(np.linspace(-1.0, 1.0, 21), 1):
        errors = np.abs(following - (current * current + c))
        fraction = float(np.mean(errors < tolerance))
        quality = float(np.mean(np.maximum(0.0, 1.0 - errors / tolerance)))
        if (fraction, quality) > (best[1], best[2]):
            best = (float(c), fraction, quality)
    return best


def feedback_strength(values: Sequence[float], max_lag: int = 4, floor: float = 0.3) -> float:
    """Mean |autocorrelation| over lags 1..max_lag, counting only lags above floor."""
    strong = []
    for lag in range(1, min(max_lag, len(values) - 1) + 1):
        ac = abs(autocorrelation(values, lag))
        if ac > floor:
            strong.append(ac)
    if not strong:
        return 0.0
    return float(np.mean(strong))


def sample_entropy(values: Sequence[float], m: int = 2, tolerance: float = 0.2) -> float:
    """Sample entropy; 0.0 when either match count is zero."""
    arr = np.asarray(values, dtype=float)
    n = len(arr)
    if n <= m + 1:
        return 0.0

    def matches(length: int) -> int:
        templates = np.array([arr[i : i + length] for i in range(n - m)])
        count = 0
        for i in range(len(templates) - 1):
            distance = np.max(np.abs(templates[i + 1 :] - templates[i]), axis=1)
            count += int(np.sum(distance <= tolerance))
        return count

    b = matches(m)
    a = matches(m + 1)
    if a == 0 or b == 0:
        return 0.0
    return float(-np.log(a / b))


def scale_invariance(values: Sequence[float]) -> float:
    """Similarity of variance ratios between 1×→2× and 2×→4× box averages."""
    arr = np.asarray(values, dtype=float)
    half = downsample(arr, 2)
    quarter = downsample(arr, 4)
    if len(quarter) < 2:
        return 0.0
    v1, v2, v4 = float(np.var(arr)), float(np.var(half)), float(np.var(quarter))
    if v1 == 0.0 or v2 == 0.0:
        return 0.0
    r1, r2 = v2 / v1, v4 / v2
    largest = max(r1, r2)
    if largest == 0.0:
        return 0.0
    return 1.0 - abs(r1 - r2) / largest
