"""Configuration for the cognitive scoring engine.

Every numeric constant the scoring formulas use lives here as a named,
validated field. The defaults reproduce the reference weights; none of them
is empirically derived, so deployments are free to tune them.

Configs are plain dataclasses validated in ``__post_init__``. ``EngineConfig``
aggregates the per-component configs and can be built from the flat
configuration bundle collaborators pass in (see ``EngineConfig.from_mapping``).
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Mapping


def _check_unit(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be in [0, 1], got {value}")


def _check_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")


@dataclass
class EmbeddingConfig:
    """Embedding Store configuration.

    Attributes:
        dimension: Length of every stored vector
        learning_rate: Base rate for feedback updates
        attention_weight: Exponent ``w`` applied to attention in cognitive similarity
        cognitive_load_threshold: Load above which attention weighting is boosted
        seed: Seed for synthetic embedding dimensions
        success_weight_gain: Multiplier applied to adaptive weight on success
        failure_weight_decay: Multiplier applied to adaptive weight on failure
        min_adaptive_weight: Floor for adaptive weights
        max_adaptive_weight: Cap for adaptive weights
    """

    dimension: int = 128
    learning_rate: float = 0.01
    attention_weight: float = 0.7
    cognitive_load_threshold: float = 0.8
    seed: int = 0
    success_weight_gain: float = 1.1
    failure_weight_decay: float = 0.9
    min_adaptive_weight: float = 0.1
    max_adaptive_weight: float = 2.0

    def __post_init__(self):
        if self.dimension < 4:
            raise ValueError(f"dimension must be >= 4, got {self.dimension}")
        _check_positive("learning_rate", self.learning_rate)
        if self.attention_weight < 0:
            raise ValueError(f"attention_weight must be >= 0, got {self.attention_weight}")
        _check_unit("cognitive_load_threshold", self.cognitive_load_threshold)
        if not 0 < self.min_adaptive_weight <= self.max_adaptive_weight:
            raise ValueError("adaptive weight bounds must satisfy 0 < min <= max")


@dataclass
class SimulationConfig:
    """Cognitive State Simulator configuration."""

    num_scales: int = 3
    history_size: int = 100
    scale_influence: float = 0.3
    wandering_constant: float = 0.3
    attention_drive: float = 0.3
    novelty_gain: float = 0.4
    recognition_drive: float = 0.2
    noise: float = 0.02
    seed: int = 0
    initial_attention: float = 0.5
    initial_recognition: float = 0.5
    initial_wandering: float = 0.1
    meta_history_size: int = 50

    def __post_init__(self):
        if self.num_scales < 1:
            raise ValueError(f"num_scales must be >= 1, got {self.num_scales}")
        if self.history_size < 1:
            raise ValueError(f"history_size must be >= 1, got {self.history_size}")
        if self.noise < 0:
            raise ValueError(f"noise must be >= 0, got {self.noise}")
        _check_unit("scale_influence", self.scale_influence)
        for name in ("initial_attention", "initial_recognition", "initial_wandering"):
            _check_unit(name, getattr(self, name))


@dataclass
class PatternDetectorConfig:
    """Thresholds for the Pattern Detector sub-analyses."""

    min_points: int = 8
    trend_slope: float = 0.1
    periodicity: float = 0.6
    volatility: float = 0.7
    hurst_min_points: int = 10
    hurst_persistence: float = 0.5
    self_similarity_min_points: int = 16
    self_similarity: float = 0.7
    box_sizes: tuple[float, ...] = (0.1, 0.2, 0.3, 0.4, 0.5)
    multifractal_band: tuple[float, float] = (1.5, 2.5)
    recurrence_min_points: int = 12
    recurrence_tolerance: float = 0.5
    recurrence_fit: float = 0.6
    feedback_lag_floor: float = 0.3
    feedback_max_lag: int = 4
    feedback_strength: float = 0.5
    coupling: float = 0.7
    mind_wandering: float = 0.6
    switch_delta: float = 0.1
    switch_fraction: float = 0.3
    entropy_min_points: int = 16
    sample_entropy: float = 0.8
    entropy_tolerance: float = 0.2
    scale_invariance: float = 0.7

    def __post_init__(self):
        if self.min_points < 2:
            raise ValueError(f"min_points must be >= 2, got {self.min_points}")
        if len(self.box_sizes) < 2:
            raise ValueError("box_sizes needs at least two sizes")
        low, high = self.multifractal_band
        if low >= high:
            raise ValueError("multifractal_band must be (low, high) with low < high")


@dataclass
class ViabilityConfig:
    """Lexical Viability Scorer configuration.

    Base weights are ordered (attention, notation, learner, embedding) and
    must sum to 1.
    """

    base_weights: tuple[float, float, float, float] = (0.3, 0.25, 0.25, 0.2)
    quantization_step: float = 0.05
    low_attention: float = 0.5
    attention_shift: float = 0.4
    high_load: float = 0.6
    load_shift: float = 0.5
    simplify_below: float = 0.4
    keep_above: float = 0.8
    high_wandering: float = 0.6
    compact_attention: float = 0.8
    compact_wandering: float = 0.2
    notation_fit_floor: float = 0.5
    embedding_neighbours: int = 3

    def __post_init__(self):
        if len(self.base_weights) != 4:
            raise ValueError("base_weights needs exactly four entries")
        if abs(sum(self.base_weights) - 1.0) > 1e-6:
            raise ValueError(f"base_weights must sum to 1, got {sum(self.base_weights)}")
        _check_positive("quantization_step", self.quantization_step)
        _check_unit("notation_fit_floor", self.notation_fit_floor)
        if not 0.0 <= self.high_load < 1.0:
            raise ValueError(f"high_load must be in [0, 1), got {self.high_load}")
        if self.simplify_below > self.keep_above:
            raise ValueError("simplify_below must not exceed keep_above")


@dataclass
class MetaControllerConfig:
    """Meta Controller thresholds."""

    drift_threshold: float = 0.3
    warning_load: float = 0.6
    critical_load: float = 0.8
    warning_attention: float = 0.5
    critical_attention: float = 0.3
    warning_drift_fraction: float = 0.3
    critical_drift_fraction: float = 0.5
    symbolic_bias_alpha: float = 0.8
    complexity_bias: float = 0.7
    attention_bias: float = 0.3
    drift_history_size: int = 1000

    def __post_init__(self):
        if self.warning_load > self.critical_load:
            raise ValueError("warning_load must not exceed critical_load")
        if self.critical_attention > self.warning_attention:
            raise ValueError("critical_attention must not exceed warning_attention")
        if self.warning_drift_fraction > self.critical_drift_fraction:
            raise ValueError("warning_drift_fraction must not exceed critical_drift_fraction")
        if self.drift_history_size < 1:
            raise ValueError("drift_history_size must be >= 1")


@dataclass
class PipelineConfig:
    """Ψ pipeline configuration.

    Attributes:
        ticks: Simulation ticks per pipeline run
        workers: Size of each session's worker pool
        lambda1: Weight of the cognitive penalty in the penalty factor
        lambda2: Weight of the efficiency penalty in the penalty factor
        initial_alpha: Mixing coefficient before the first update
        alpha_min: Lower clamp for alpha
        alpha_max: Upper clamp for alpha
        rewrite_threshold: Ψ below which the expression is always rewritten
        elapsed_baseline_ms: Elapsed time mapped to a full efficiency penalty
        latency_baseline_ms: Lexical query latency mapped to a full penalty
        recency_window_ms: Elapsed time after which recency decays to zero
        detect_patterns: Run the Pattern Detector over the simulated series
    """

    ticks: int = 5
    workers: int = 3
    lambda1: float = 0.7
    lambda2: float = 0.3
    initial_alpha: float = 0.6
    alpha_min: float = 0.1
    alpha_max: float = 0.9
    rewrite_threshold: float = 0.5
    elapsed_baseline_ms: float = 1000.0
    latency_baseline_ms: float = 100.0
    recency_window_ms: float = 10000.0
    penalty_weights: tuple[float, float, float] = (0.4, 0.4, 0.2)
    efficiency_weights: tuple[float, float, float] = (0.4, 0.3, 0.3)
    detect_patterns: bool = True

    def __post_init__(self):
        if self.ticks < 1:
            raise ValueError(f"ticks must be >= 1, got {self.ticks}")
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if not 0.0 <= self.alpha_min <= self.alpha_max <= 1.0:
            raise ValueError("alpha bounds must satisfy 0 <= min <= max <= 1")
        if self.lambda1 < 0 or self.lambda2 < 0:
            raise ValueError("lambda1 and lambda2 must be non-negative")
        self.initial_alpha = min(self.alpha_max, max(self.alpha_min, self.initial_alpha))


# Flat keys accepted by EngineConfig.from_mapping, mapped to (section, field).
_FLAT_KEYS: dict[str, tuple[str, str]] = {
    "embedding_dimension": ("embedding", "dimension"),
    "learning_rate": ("embedding", "learning_rate"),
    "attention_weight": ("embedding", "attention_weight"),
    "cognitive_load_threshold": ("embedding", "cognitive_load_threshold"),
    "lambda1": ("pipeline", "lambda1"),
    "lambda2": ("pipeline", "lambda2"),
    "drift_threshold": ("meta", "drift_threshold"),
    "warning_load": ("meta", "warning_load"),
    "critical_load": ("meta", "critical_load"),
    "warning_attention": ("meta", "warning_attention"),
    "critical_attention": ("meta", "critical_attention"),
    "seed": ("simulation", "seed"),
}


@dataclass
class EngineConfig:
    """Aggregate configuration for an engine and its sessions."""

    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    patterns: PatternDetectorConfig = field(default_factory=PatternDetectorConfig)
    viability: ViabilityConfig = field(default_factory=ViabilityConfig)
    meta: MetaControllerConfig = field(default_factory=MetaControllerConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "EngineConfig":
        """Build a config from a flat bundle or nested per-section mappings.

        Flat keys such as ``lambda1`` or ``embedding_dimension`` are routed to
        their section. Nested mappings under a section name (``{"meta":
        {"drift_threshold": 0.25}}``) are applied field by field.

        Raises:
            ValueError: On unknown keys or values that fail validation
        """
        sections: dict[str, dict[str, Any]] = {f.name: {} for f in fields(cls)}
        for key, value in values.items():
            if key in sections and isinstance(value, Mapping):
                sections[key].update(value)
            elif key in _FLAT_KEYS:
                section, name = _FLAT_KEYS[key]
                sections[section][name] = value
            else:
                raise ValueError(f"Unknown configuration key: {key}")

        # The seed is shared by the simulator and the embedding store
        if "seed" in values:
            sections["embedding"].setdefault("seed", values["seed"])

        built = {}
        for f in fields(cls):
            section_cls = f.default_factory  # type: ignore[misc]
            try:
                built[f.name] = section_cls(**sections[f.name])
            except TypeError as exc:
                raise ValueError(f"Invalid keys for section '{f.name}': {exc}") from exc
        return cls(**built)
