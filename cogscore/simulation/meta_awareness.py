"""Per-tick summary of how the simulated scales relate to each other.

Metrics over the results of one tick:
    awareness           mean of attention·(1 − wandering), scaled by 0.7
                        plus 0.3·min(1, pattern_count / 5), where
                        pattern_count is the number of patterns the
                        simulator's detector found across the tick's scales
    coherence           mean pairwise agreement (1 − |Δ|) across scales,
                        averaged over the three components
    stability           max(0, 1 − 4·variance(attention))
    wandering_intensity mean wandering × (1 + 0.5·mean load)
    wellness            0.3 awareness + 0.3 coherence + 0.25 stability
                        + 0.15 (1 − wandering_intensity)
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from itertools import combinations
from typing import Optional, Sequence

import numpy as np

from cogscore.schemas import ProcessingResult
from cogscore.stats import clamp, stability

LAPSE_ATTENTION = 0.3
LAPSE_FRACTION = 0.3
WANDERING_LEVEL = 0.7
WANDERING_FRACTION = 0.2
OVERLOAD_LEVEL = 0.8
OVERLOAD_FRACTION = 0.4
INSTABILITY_VARIANCE = 0.3
DISCONNECTION_COHERENCE = 0.4


@dataclass
class MetaAwarenessSummary:
    awareness: float
    coherence: float
    stability: float
    wandering_intensity: float
    wellness: float
    phenomena: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "awareness": self.awareness,
            "coherence": self.coherence,
            "stability": self.stability,
            "wandering_intensity": self.wandering_intensity,
            "wellness": self.wellness,
            "phenomena": list(self.phenomena),
        }


def _coherence(results: Sequence[ProcessingResult]) -> float:
    if len(results) < 2:
        return 1.0
    agreements = []
    for left, right in combinations(results, 2):
        diffs = [abs(x - y) for x, y in zip(left.state.as_tuple(), right.state.as_tuple())]
        agreements.append(1.0 - sum(diffs) / 3.0)
    return float(np.mean(agreements))


class MetaAwarenessProcessor:
    """Summarizes each tick and keeps a bounded history of summaries."""

    def __init__(self, history_size: int = 50):
        self._history: deque[MetaAwarenessSummary] = deque(maxlen=history_size)
        self._lock = threading.Lock()

    def process(
        self,
        results: Sequence[ProcessingResult],
        pattern_count: int = 0,
    ) -> Optional[MetaAwarenessSummary]:
        """Summarize one tick's results; None for an empty tick."""
        if not results:
            return None

        attention = [r.state.attention for r in results]
        wandering = [r.state.wandering for r in results]
        loads = [r.cognitive_load for r in results]
        n = len(results)

        pattern_term = min(1.0, pattern_count / 5.0) * 0.3
        awareness = float(np.mean([a * (1.0 - w) * 0.7 + pattern_term for a, w in zip(attention, wandering)]))
        coherence = _coherence(results)
        attention_stability = stability(attention, default=1.0)
        intensity = float(np.mean(wandering)) * (1.0 + 0.5 * float(np.mean(loads)))
        wellness = clamp(
            0.3 * awareness
            + 0.3 * coherence
            + 0.25 * attention_stability
            + 0.15 * (1.0 - clamp(intensity))
        )

        phenomena = []
        if sum(1 for a in attention if a < LAPSE_ATTENTION) > LAPSE_FRACTION * n:
            phenomena.append("FrequentAttentionLapses")
        if sum(1 for w in wandering if w > WANDERING_LEVEL) > WANDERING_FRACTION * n:
            phenomena.append("ExtendedMindWandering")
        if sum(1 for load in loads if load > OVERLOAD_LEVEL) > OVERLOAD_FRACTION * n:
            phenomena.append("CognitiveOverload")
        if n >= 2 and float(np.var(attention)) > INSTABILITY_VARIANCE:
            phenomena.append("AttentionalInstability")
        if coherence < DISCONNECTION_COHERENCE:
            phenomena.append("CrossScaleDisconnection")

        summary = MetaAwarenessSummary(
            awareness=awareness,
            coherence=coherence,
            stability=attention_stability,
            wandering_intensity=intensity,
            wellness=wellness,
            phenomena=phenomena,
        )
        with self._lock:
            self._history.append(summary)
        return summary

    def latest(self) -> Optional[MetaAwarenessSummary]:
        with self._lock:
            return self._history[-1] if self._history else None

    def history(self) -> list[MetaAwarenessSummary]:
        with self._lock:
            return list(self._history)

    def reset(self) -> None:
        with self._lock:
            self._history.clear()
