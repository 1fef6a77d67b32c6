"""Pattern detection over state-vector time series.

The detector is stateless: ``analyze`` is a pure function of the series and
the configured thresholds. Sub-analyses run in a fixed order and each one
only reports when its own minimum length and threshold are met:

    basic        every dimension: trend, periodicity, volatility
    fractal      dimension 0: Hurst persistence (n >= 10), self-similarity
                 and box-counting dimension (n >= 16)
    recursive    every dimension: quadratic recurrence, feedback loop (n >= 12)
    attention    only with >= 3 dimensions (attention, recognition, wandering):
                 coupling, mind wandering, attention switching
    cross-scale  dimension 0: sample entropy, scale invariance (n >= 16)

Patterns are returned sorted by confidence, highest first.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Union

import numpy as np

from cogscore.config import PatternDetectorConfig
from cogscore.patterns.fractal import (
    box_counting_dimension,
    feedback_strength,
    hurst_exponent,
    periodicity,
    quadratic_recurrence_fit,
    sample_entropy,
    scale_invariance,
    self_similarity,
)
from cogscore.schemas import CognitiveStateVector, Pattern, PatternType
from cogscore.stats import correlation, linear_slope

logger = logging.getLogger(__name__)

DIMENSION_NAMES = ("attention", "recognition", "wandering")

TimeSeries = Union[
    Sequence[CognitiveStateVector],
    Sequence[Sequence[float]],
    Sequence[float],
    np.ndarray,
]


def as_matrix(series: TimeSeries) -> np.ndarray:
    """Convert a series to an (n, d) float matrix."""
    if len(series) == 0:
        return np.empty((0, 0))
    first = series[0]
    if isinstance(first, CognitiveStateVector):
        return np.array([s.as_tuple() for s in series], dtype=float)
    arr = np.asarray(series, dtype=float)
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    return arr


def _dimension_name(index: int) -> str:
    return DIMENSION_NAMES[index] if index < len(DIMENSION_NAMES) else f"dim_{index}"


class PatternDetector:
    """Finds statistical patterns in a time series of state vectors."""

    def __init__(self, config: Optional[PatternDetectorConfig] = None):
        self.config = config or PatternDetectorConfig()

    def analyze(self, series: TimeSeries, scale: int = 0) -> list[Pattern]:
        """Run every applicable sub-analysis.

        Args:
            series: State vectors, rows of floats, or a flat float series
            scale: Scale index recorded on every pattern

        Returns:
            Patterns sorted by confidence, or [] for series under min_points
        """
        data = as_matrix(series)
        if data.shape[0] < self.config.min_points:
            return []

        patterns: list[Pattern] = []
        patterns.extend(self._basic(data, scale))
        patterns.extend(self._fractal(data, scale))
        patterns.extend(self._recursive(data, scale))
        patterns.extend(self._attention(data, scale))
        patterns.extend(self._cross_scale(data, scale))
        patterns.sort(key=lambda p: p.confidence, reverse=True)

        logger.debug(f"Detected {len(patterns)} patterns in {data.shape[0]} points (scale {scale})")
        return patterns

    def _basic(self, data: np.ndarray, scale: int) -> list[Pattern]:
        cfg = self.config
        found = []
        for d in range(data.shape[1]):
            column = data[:, d]
            name = _dimension_name(d)

            slope = linear_slope(column)
            if abs(slope) > cfg.trend_slope:
                found.append(Pattern(
                    pattern_type=PatternType.TREND,
                    confidence=min(1.0, abs(slope) * 2.0),
                    scale=scale,
                    description=f"{'Rising' if slope > 0 else 'Falling'} {name}",
                    characteristics={"slope": slope, "dimension": float(d)},
                ))

            lag, strength = periodicity(column)
            if strength > cfg.periodicity:
                found.append(Pattern(
                    pattern_type=PatternType.PERIODIC,
                    confidence=strength,
                    scale=scale,
                    description=f"Periodic {name} with lag {lag}",
                    characteristics={"lag": float(lag), "autocorrelation": strength, "dimension": float(d)},
                ))

            volatility = float(np.std(column))
            if volatility > cfg.volatility:
                found.append(Pattern(
                    pattern_type=PatternType.HIGH_VOLATILITY,
                    confidence=volatility,
                    scale=scale,
                    description=f"Volatile {name}",
                    characteristics={"std": volatility, "dimension": float(d)},
                ))
        return found

    def _fractal(self, data: np.ndarray, scale: int) -> list[Pattern]:
        cfg = self.config
        column = data[:, 0]
        n = len(column)
        found = []

        if n >= cfg.hurst_min_points:
            h = hurst_exponent(column)
            if h > cfg.hurst_persistence:
                found.append(Pattern(
                    pattern_type=PatternType.FRACTAL_PERSISTENCE,
                    confidence=abs(h - 0.5) * 2.0,
                    scale=scale,
                    description="Persistent long-range dependence",
                    characteristics={"hurst_exponent": h},
                ))

        if n >= cfg.self_similarity_min_points:
            similarity = self_similarity(column)
            if similarity > cfg.self_similarity:
                found.append(Pattern(
                    pattern_type=PatternType.RECURSIVE_SELF_SIMILARITY,
                    confidence=similarity,
                    scale=scale,
                    description="Series resembles its own coarse-grained versions",
                    characteristics={"self_similarity": similarity},
                ))

            dimension = box_counting_dimension(column, cfg.box_sizes)
            low, high = cfg.multifractal_band
            if low < dimension < high:
                found.append(Pattern(
                    pattern_type=PatternType.MULTI_FRACTAL,
                    confidence=(dimension - 1.0) / 1.5,
                    scale=scale,
                    description="Rough, space-filling trajectory",
                    characteristics={"fractal_dimension": dimension},
                ))
        return found

    def _recursive(self, data: np.ndarray, scale: int) -> list[Pattern]:
        cfg = self.config
        if data.shape[0] < cfg.recurrence_min_points:
            return []
        found = []
        for d in range(data.shape[1]):
            column = data[:, d]
            name = _dimension_name(d)

            c, fraction, quality = quadratic_recurrence_fit(column, cfg.recurrence_tolerance)
            if quality > cfg.recurrence_fit:
                found.append(Pattern(
                    pattern_type=PatternType.QUADRATIC_RECURRENCE,
                    confidence=quality,
                    scale=scale,
                    description=f"{name} follows z² + c with c={c:.1f}",
                    characteristics={"c": c, "fraction": fraction, "quality": quality, "dimension": float(d)},
                ))

            strength = feedback_strength(column, cfg.feedback_max_lag, cfg.feedback_lag_floor)
            if strength > cfg.feedback_strength:
                found.append(Pattern(
                    pattern_type=PatternType.FEEDBACK_LOOP,
                    confidence=strength,
                    scale=scale,
                    description=f"Self-reinforcing {name}",
                    characteristics={"strength": strength, "dimension": float(d)},
                ))
        return found

    def _attention(self, data: np.ndarray, scale: int) -> list[Pattern]:
        cfg = self.config
        if data.shape[1] < 3:
            return []
        attention, recognition, wandering = data[:, 0], data[:, 1], data[:, 2]
        n = len(attention)
        found = []

        r = correlation(attention, recognition)
        if abs(r) > cfg.coupling:
            coupled = r > 0
            found.append(Pattern(
                pattern_type=(
                    PatternType.ATTENTION_RECOGNITION_COUPLING
                    if coupled
                    else PatternType.ATTENTION_RECOGNITION_DECOUPLING
                ),
                confidence=abs(r),
                scale=scale,
                description="Attention and recognition move " + ("together" if coupled else "in opposition"),
                characteristics={"correlation": r},
            ))

        mean_wandering = float(np.mean(wandering))
        if mean_wandering > cfg.mind_wandering:
            found.append(Pattern(
                pattern_type=PatternType.MIND_WANDERING_EPISODE,
                confidence=mean_wandering,
                scale=scale,
                description="Sustained mind wandering",
                characteristics={"mean_wandering": mean_wandering},
            ))

        switches = int(np.sum(np.abs(np.diff(attention)) > cfg.switch_delta))
        if switches > cfg.switch_fraction * n:
            found.append(Pattern(
                pattern_type=PatternType.FREQUENT_ATTENTION_SWITCHING,
                confidence=switches / n,
                scale=scale,
                description="Attention switches frequently",
                characteristics={"switches": float(switches), "switch_rate": switches / n},
            ))
        return found

    def _cross_scale(self, data: np.ndarray, scale: int) -> list[Pattern]:
        cfg = self.config
        if data.shape[0] < cfg.entropy_min_points:
            return []
        column = data[:, 0]
        found = []

        entropy = sample_entropy(column, m=2, tolerance=cfg.entropy_tolerance)
        if entropy > cfg.sample_entropy:
            found.append(Pattern(
                pattern_type=PatternType.HIGH_COMPLEXITY,
                confidence=min(1.0, entropy / 2.0),
                scale=scale,
                description="Irregular, hard-to-predict dynamics",
                characteristics={"sample_entropy": entropy},
            ))

        invariance = scale_invariance(column)
        if invariance > cfg.scale_invariance:
            found.append(Pattern(
                pattern_type=PatternType.SCALE_INVARIANCE,
                confidence=invariance,
                scale=scale,
                description="Variance scales uniformly across resolutions",
                characteristics={"scale_invariance": invariance},
            ))
        return found
