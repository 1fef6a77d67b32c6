"""Data model for the cognitive scoring engine.

Every value that crosses a component boundary is an immutable pydantic model.
Closed vocabularies (pattern types, health levels, recommendation tokens) are
``str`` enums so they serialize as their values in tags and JSON output.

Cognitive load is never stored independently of the state vector it belongs
to: ``CognitiveStateVector.cognitive_load`` recomputes it, and
``ProcessingResult.from_state`` snapshots that value when the result is made.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field, field_validator

from cogscore.stats import clamp


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(timezone.utc)


def compute_cognitive_load(attention: float, recognition: float, wandering: float) -> float:
    """Load rises as engagement drops and as the mind wanders.

    load = clamp(1 - (attention + recognition) / 2 + wandering)
    """
    return clamp(1.0 - (attention + recognition) / 2.0 + wandering)


class CognitiveStateVector(BaseModel):
    """Simulated cognitive state at one instant.

    Attributes:
        attention: Focus on the current input (0-1)
        recognition: Familiarity with the current input (0-1)
        wandering: Drift away from the input (0-1)
        timestamp: When the state was produced
    """

    attention: float = 0.5
    recognition: float = 0.5
    wandering: float = 0.1
    timestamp: datetime = Field(default_factory=utc_now)

    model_config = {"frozen": True}

    @field_validator("attention", "recognition", "wandering", mode="before")
    @classmethod
    def clamp_component(cls, v: float) -> float:
        """Clamp every component into [0, 1]."""
        return clamp(float(v))

    @property
    def cognitive_load(self) -> float:
        return compute_cognitive_load(self.attention, self.recognition, self.wandering)

    @property
    def in_flow(self) -> bool:
        """High attention and recognition with little wandering."""
        return self.attention > 0.7 and self.recognition > 0.6 and self.wandering < 0.3

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.attention, self.recognition, self.wandering)


class PatternType(str, Enum):
    """Closed set of patterns the detector can report."""

    TREND = "trend"
    PERIODIC = "periodic"
    HIGH_VOLATILITY = "high_volatility"
    FRACTAL_PERSISTENCE = "fractal_persistence"
    RECURSIVE_SELF_SIMILARITY = "recursive_self_similarity"
    MULTI_FRACTAL = "multi_fractal"
    QUADRATIC_RECURRENCE = "quadratic_recurrence"
    FEEDBACK_LOOP = "feedback_loop"
    ATTENTION_RECOGNITION_COUPLING = "attention_recognition_coupling"
    ATTENTION_RECOGNITION_DECOUPLING = "attention_recognition_decoupling"
    MIND_WANDERING_EPISODE = "mind_wandering_episode"
    FREQUENT_ATTENTION_SWITCHING = "frequent_attention_switching"
    HIGH_COMPLEXITY = "high_complexity"
    SCALE_INVARIANCE = "scale_invariance"


class Pattern(BaseModel):
    """A pattern found in a state-vector time series."""

    pattern_type: PatternType
    confidence: float
    scale: int = 0
    description: str = ""
    characteristics: dict[str, float] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v: float) -> float:
        """Validate confidence range."""
        return clamp(float(v))


class ProcessingResult(BaseModel):
    """One scale's output for one simulation tick.

    The cognitive load is always derived from the state and serialized
    alongside it.
    """

    scale: int
    tick: int
    state: CognitiveStateVector

    model_config = {"frozen": True, "extra": "forbid"}

    @computed_field
    @property
    def cognitive_load(self) -> float:
        return self.state.cognitive_load

    @classmethod
    def from_state(cls, scale: int, tick: int, state: CognitiveStateVector) -> "ProcessingResult":
        return cls(scale=scale, tick=tick, state=state)

    @property
    def attention(self) -> float:
        return self.state.attention

    @property
    def wandering(self) -> float:
        return self.state.wandering


class DriftDirection(str, Enum):
    INCREASE = "increase"
    DECREASE = "decrease"


class AttentionDrift(BaseModel):
    """Abrupt attention change between two consecutive results."""

    step: int  # index of the later result in the analyzed sequence
    magnitude: float
    direction: DriftDirection
    timestamp: datetime = Field(default_factory=utc_now)

    model_config = {"frozen": True}


class SystemHealth(str, Enum):
    """Health classification of the simulated processing state."""

    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def score(self) -> float:
        """Numeric health score (1.0 healthy, 0.5 warning, 0.0 critical)."""
        return _HEALTH_SCORES[self]


_HEALTH_SCORES = {
    SystemHealth.HEALTHY: 1.0,
    SystemHealth.WARNING: 0.5,
    SystemHealth.CRITICAL: 0.0,
}


class Recommendation(str, Enum):
    """Tokens the Meta Controller emits to steer the rewrite step."""

    RESTORE_ATTENTION = "restore_attention"
    SIMPLIFY_NOTATION = "simplify_notation"
    REDUCE_COMPLEXITY = "reduce_complexity"
    ENHANCE_CLARITY = "enhance_clarity"
    REDUCE_BIAS = "reduce_bias"
    MONITOR_ATTENTION = "monitor_attention"


class MetaAnalysis(BaseModel):
    """Audit of one pipeline run's processing results."""

    drifts: list[AttentionDrift] = Field(default_factory=list)
    bias_metrics: dict[str, float] = Field(default_factory=dict)
    system_health: SystemHealth = SystemHealth.HEALTHY
    recommendations: list[Recommendation] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utc_now)

    model_config = {"frozen": True}

    @property
    def mean_drift_magnitude(self) -> float:
        if not self.drifts:
            return 0.0
        return sum(d.magnitude for d in self.drifts) / len(self.drifts)

    @property
    def health_score(self) -> float:
        return self.system_health.score


class PsiComponents(BaseModel):
    """Breakdown of the fused Ψ score."""

    symbolic: float
    neural: float
    alpha: float
    cognitive_penalty: float
    efficiency_penalty: float
    penalty_factor: float
    biased_probability: float

    model_config = {"frozen": True}


class OptimizationResult(BaseModel):
    """Outcome of one Ψ pipeline run.

    Ψ is not hard-clamped: under normal inputs it lands in [0, 1].
    """

    expression: str
    psi: float
    optimized_expression: str
    components: PsiComponents
    meta_analysis: MetaAnalysis
    tags: dict[str, float] = Field(default_factory=dict)
    patterns: list[Pattern] = Field(default_factory=list)
    session_id: Optional[str] = None

    model_config = {"frozen": True}

    def to_dict(self) -> dict:
        """Convert to a JSON-friendly dictionary."""
        return self.model_dump(mode="json")


class SimilarityResult(BaseModel):
    """A ranked neighbour from a similarity query."""

    term: str
    score: float

    model_config = {"frozen": True}


class NotationSuggestion(BaseModel):
    """An alternative rendering of an expression with its viability."""

    notation: str
    score: float
    transform: str = "original"

    model_config = {"frozen": True}
