"""Bias Adjuster."""

from cogscore.bias.adjuster import (
    BIAS_FUNCTIONS,
    DEFAULT_STRENGTHS,
    PROFILES,
    BiasAdjuster,
    BiasProfile,
    BiasType,
)

__all__ = [
    "BIAS_FUNCTIONS",
    "DEFAULT_STRENGTHS",
    "PROFILES",
    "BiasAdjuster",
    "BiasProfile",
    "BiasType",
]
