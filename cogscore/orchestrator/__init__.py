"""Ψ pipeline sessions and the shared engine."""

from cogscore.orchestrator.engine import CognitiveScoringEngine
from cogscore.orchestrator.pipeline import (
    ExpressionContext,
    MixingUpdate,
    OptimizationOrchestrator,
    mixing_coefficient,
    summarize_state,
)

__all__ = [
    "CognitiveScoringEngine",
    "ExpressionContext",
    "MixingUpdate",
    "OptimizationOrchestrator",
    "mixing_coefficient",
    "summarize_state",
]
