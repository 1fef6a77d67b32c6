"""Small numeric helpers shared by the scoring components.

All helpers accept any float sequence and return plain Python floats so
results can flow straight into pydantic models and diagnostic tags.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp value into [low, high]."""
    return float(min(high, max(low, value)))


def mean(values: Sequence[float], default: float = 0.0) -> float:
    """Arithmetic mean, or default for an empty sequence."""
    if len(values) == 0:
        return default
    return float(np.mean(values))


def variance(values: Sequence[float]) -> float:
    """Population variance (0.0 for fewer than two values)."""
    if len(values) < 2:
        return 0.0
    return float(np.var(values))


def stability(values: Sequence[float], default: float = 0.5) -> float:
    """Stability score ``max(0, 1 - 4 * variance)``.

    Fewer than two values carry no variance information, so ``default`` is
    returned instead.
    """
    if len(values) < 2:
        return default
    return max(0.0, 1.0 - 4.0 * variance(values))


def correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson correlation, 0.0 when either side is constant or too short."""
    n = min(len(x), len(y))
    if n < 2:
        return 0.0
    a = np.asarray(x[:n], dtype=float)
    b = np.asarray(y[:n], dtype=float)
    da = a - a.mean()
    db = b - b.mean()
    denom = float(np.sqrt(np.sum(da * da) * np.sum(db * db)))
    if denom == 0.0:
        return 0.0
    return float(np.sum(da * db) / denom)


def autocorrelation(values: Sequence[float], lag: int) -> float:
    """Lag-k autocorrelation normalized by the total variance."""
    arr = np.asarray(values, dtype=float)
    n = len(arr)
    if lag <= 0 or lag >= n:
        return 0.0
    centered = arr - arr.mean()
    denom = float(np.sum(centered * centered))
    if denom == 0.0:
        return 0.0
    return float(np.sum(centered[:-lag] * centered[lag:]) / denom)


def linear_slope(values: Sequence[float]) -> float:
    """Least-squares slope of values against their index."""
    n = len(values)
    if n < 2:
        return 0.0
    x = np.arange(n, dtype=float)
    slope, _ = np.polyfit(x, np.asarray(values, dtype=float), 1)
    return float(slope)


def downsample(values: Sequence[float], factor: int) -> np.ndarray:
    """Box-average consecutive blocks of ``factor`` values.

    A trailing partial block is dropped.
    """
    arr = np.asarray(values, dtype=float)
    usable = (len(arr) // factor) * factor
    if usable == 0:
        return np.empty(0)
    return arr[:usable].reshape(-1, factor).mean(axis=1)
