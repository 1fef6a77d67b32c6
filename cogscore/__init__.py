"""Cognitive-weighted scoring of symbolic expressions.

The engine fuses structural confidence, lexical viability, simulated
attention dynamics and a cognitive-bias model into a single Ψ score, and
rewrites an expression's notation when the reader is likely to struggle.
"""

from cogscore.config import EngineConfig
from cogscore.errors import (
    CognitiveScoringError,
    DimensionMismatchError,
    EmbeddingError,
    PipelineError,
)
from cogscore.orchestrator import CognitiveScoringEngine, OptimizationOrchestrator
from cogscore.schemas import (
    CognitiveStateVector,
    MetaAnalysis,
    OptimizationResult,
    Recommendation,
    SystemHealth,
)

__version__ = "0.1.0"

__all__ = [
    "CognitiveScoringEngine",
    "CognitiveScoringError",
    "CognitiveStateVector",
    "DimensionMismatchError",
    "EmbeddingError",
    "EngineConfig",
    "MetaAnalysis",
    "OptimizationOrchestrator",
    "OptimizationResult",
    "PipelineError",
    "Recommendation",
    "SystemHealth",
]
