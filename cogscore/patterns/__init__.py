"""Pattern Detector and its statistical primitives."""

from cogscore.patterns.detector import PatternDetector, as_matrix
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

__all__ = [
    "PatternDetector",
    "as_matrix",
    "box_counting_dimension",
    "feedback_strength",
    "hurst_exponent",
    "periodicity",
    "quadratic_recurrence_fit",
    "sample_entropy",
    "scale_invariance",
    "self_similarity",
]
