"""Cognitive State Simulator and per-tick meta-awareness summaries."""

from cogscore.simulation.meta_awareness import MetaAwarenessProcessor, MetaAwarenessSummary
from cogscore.simulation.simulator import (
    CognitiveStateSimulator,
    LoadLevel,
    SystemAnalysis,
    input_novelty,
)

__all__ = [
    "CognitiveStateSimulator",
    "LoadLevel",
    "MetaAwarenessProcessor",
    "MetaAwarenessSummary",
    "SystemAnalysis",
    "input_novelty",
]
