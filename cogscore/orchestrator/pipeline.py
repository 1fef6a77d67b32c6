"""Ψ pipeline: fuse symbolic, lexical and simulated-cognition signals.

    Ψ(x) = (α·S(x) + (1 − α)·N(x)) × exp(−(λ1·P_cog + λ2·P_eff)) × P_bias

Steps, in order (later steps read earlier outputs):

    1. simulate ``ticks`` ticks of the session's cognitive state
    2. S(x): structural confidence of the recognized set operation, or a
       decreasing function of operator count and parenthesis depth
    3. N(x) = 0.6·suggestion confidence + 0.4·viability
    4. α = clamp(0.3 + 0.4·mean attention + 0.2·stability + 0.1·flow, 0.1, 0.9)
    5. P_cog = min(1, 0.4·mean wandering + 0.4·mean load + 0.2·notation complexity)
       P_eff = 0.4·elapsed + 0.3·complexity + 0.3·query latency (normalized)
    6. penalty factor exp(−(λ1·P_cog + λ2·P_eff))
    7. P_bias: notation preference passed through the Bias Adjuster
    8. Ψ
    9. Meta Controller analysis of the simulated results
   10. rewrite when Ψ < 0.5 or any recommendation was emitted

Any exception aborts the run: a ``processing_error`` tag is recorded and a
``PipelineError`` chained to the original exception is raised. No partial
result is ever returned.

Each orchestrator is one session with its own worker pool, simulator, bias
state and meta controller. The Embedding Store and the viability scorer
may be shared between sessions.
"""

from __future__ import annotations

import asyncio
import logging
import math
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence
from uuid import uuid4

from cogscore.bias import BiasAdjuster
from cogscore.config import EngineConfig
from cogscore.embedding import EmbeddingStore
from cogscore.errors import PipelineError
from cogscore.lexical import LexicalViabilityScorer
from cogscore.lexical.notation import (
    SetExpression,
    add_structure,
    enhance_clarity,
    expression_complexity,
    notation_complexity,
    parse_set_expression,
    spell_out,
    symbolic_confidence,
)
from cogscore.meta import MetaController
from cogscore.patterns import PatternDetector
from cogscore.schemas import (
    CognitiveStateVector,
    MetaAnalysis,
    OptimizationResult,
    Pattern,
    ProcessingResult,
    PsiComponents,
    Recommendation,
)
from cogscore.simulation import CognitiveStateSimulator
from cogscore.stats import clamp, mean, stability

logger = logging.getLogger(__name__)

FLOW_ATTENTION = 0.8
FLOW_WANDERING = 0.2
CONFIRMATION_ALPHA = 0.6
NEGATIVE_FRAME_COMPLEXITY = 0.7

TokenHandler = Callable[[str, Optional[SetExpression]], str]


@dataclass
class ExpressionContext:
    """Per-run state of the expression being scored."""

    expression: str
    started: float = field(default_factory=time.perf_counter)
    parsed: Optional[SetExpression] = None
    complexity_score: float = 0.0
    alpha: float = 0.6
    tags: dict[str, float] = field(default_factory=dict)

    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.started) * 1000.0


@dataclass(frozen=True)
class MixingUpdate:
    alpha: float
    attention_stability: float
    flow_frequency: float


def mixing_coefficient(
    results: Sequence[ProcessingResult],
    alpha_min: float = 0.1,
    alpha_max: float = 0.9,
) -> MixingUpdate:
    """Weight of the symbolic score against the neural score.

    Focused, steady attention favours the symbolic reading.
    """
    attention = [r.attention for r in results]
    mean_attention = mean(attention, 0.5)
    attention_stability = stability(attention)
    if results:
        in_flow = sum(
            1 for r in results if r.attention > FLOW_ATTENTION and r.wandering < FLOW_WANDERING
        )
        flow_frequency = in_flow / len(results)
    else:
        flow_frequency = 0.0
    raw = 0.3 + 0.4 * mean_attention + 0.2 * attention_stability + 0.1 * flow_frequency
    return MixingUpdate(
        alpha=clamp(raw, alpha_min, alpha_max),
        attention_stability=attention_stability,
        flow_frequency=flow_frequency,
    )


def summarize_state(results: Sequence[ProcessingResult]) -> CognitiveStateVector:
    """Mean state over the most recent tick of results."""
    if not results:
        return CognitiveStateVector()
    last_tick = max(r.tick for r in results)
    latest = [r.state for r in results if r.tick == last_tick]
    return CognitiveStateVector(
        attention=mean([s.attention for s in latest]),
        recognition=mean([s.recognition for s in latest]),
        wandering=mean([s.wandering for s in latest]),
    )


class OptimizationOrchestrator:
    """One Ψ scoring session.

    Args:
        config: Engine configuration
        embedding_store: Shared embedding table (created if omitted)
        scorer: Shared viability scorer (created over embedding_store if omitted)
        simulator: Session simulator (created from config if omitted)
        bias_adjuster: Session bias state
        meta_controller: Session meta controller
        pattern_detector: Detector run over the simulator history
        session_id: Identifier echoed on every result
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        embedding_store: Optional[EmbeddingStore] = None,
        scorer: Optional[LexicalViabilityScorer] = None,
        simulator: Optional[CognitiveStateSimulator] = None,
        bias_adjuster: Optional[BiasAdjuster] = None,
        meta_controller: Optional[MetaController] = None,
        pattern_detector: Optional[PatternDetector] = None,
        session_id: Optional[str] = None,
    ):
        self.config = config or EngineConfig()
        self.embedding_store = embedding_store or EmbeddingStore(self.config.embedding)
        self.scorer = scorer or LexicalViabilityScorer(self.embedding_store, self.config.viability)
        self.pattern_detector = pattern_detector or PatternDetector(self.config.patterns)
        self._owns_simulator = simulator is None
        self.simulator = simulator or CognitiveStateSimulator(
            self.config.simulation,
            pattern_detector=self.pattern_detector if self.config.pipeline.detect_patterns else None,
        )
        self.bias_adjuster = bias_adjuster or BiasAdjuster()
        self.meta_controller = meta_controller or MetaController(self.config.meta)
        self.session_id = session_id or uuid4().hex[:12]

        self._executor = ThreadPoolExecutor(
            max_workers=self.config.pipeline.workers,
            thread_name_prefix=f"psi-{self.session_id}",
        )
        self._lock = threading.Lock()
        self._alpha = self.config.pipeline.initial_alpha
        self._tags: dict[str, float] = {}
        self._token_handlers: dict[Recommendation, TokenHandler] = {
            Recommendation.SIMPLIFY_NOTATION: self._simplify_notation,
            Recommendation.RESTORE_ATTENTION: self._add_attention_cues,
            Recommendation.REDUCE_COMPLEXITY: self._reduce_complexity,
            Recommendation.ENHANCE_CLARITY: self._enhance_clarity,
            Recommendation.REDUCE_BIAS: self._reduce_bias,
            Recommendation.MONITOR_ATTENTION: self._monitor_attention,
        }

    @property
    def alpha(self) -> float:
        return self._alpha

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def submit(self, expression: str) -> "Future[OptimizationResult]":
        """Schedule a pipeline run on the session pool."""
        return self._executor.submit(self.run, expression)

    async def optimize(self, expression: str) -> OptimizationResult:
        """Run the pipeline on the session pool and await its result.

        Raises:
            PipelineError: If any step fails
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self.run, expression)

    def run(self, expression: str) -> OptimizationResult:
        """Run the pipeline synchronously on the calling thread."""
        ctx = ExpressionContext(expression=expression, alpha=self._alpha)
        try:
            result = self._run(ctx)
        except Exception as exc:
            ctx.tags["processing_error"] = 1.0
            self._record_tags(ctx.tags)
            logger.exception(f"Pipeline failed for '{expression}' in session {self.session_id}")
            raise PipelineError(expression, str(exc), ctx.tags) from exc
        self._record_tags(result.tags)
        return result

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _run(self, ctx: ExpressionContext) -> OptimizationResult:
        cfg = self.config.pipeline
        expression = ctx.expression
        if not isinstance(expression, str) or not expression.strip():
            raise ValueError("expression must be a non-empty string")

        # 1. Simulate
        results = self.simulator.simulate(expression, cfg.ticks)
        state = summarize_state(results)

        # 2. Symbolic score
        ctx.parsed = parse_set_expression(expression)
        if ctx.parsed is None:
            ctx.tags["set_parse_fallback"] = 1.0
            logger.debug(f"'{expression}' is not set notation, using algebraic estimate")
        ctx.complexity_score = expression_complexity(expression, ctx.parsed)
        symbolic = symbolic_confidence(expression, ctx.parsed)

        # 3. Neural score
        suggestion = self.scorer.suggestion(expression)
        viability = self.scorer.viability(expression, state, results)
        neural = 0.6 * suggestion.confidence + 0.4 * viability

        # 4. Mixing coefficient
        mixing = mixing_coefficient(results, cfg.alpha_min, cfg.alpha_max)
        with self._lock:
            self._alpha = mixing.alpha
        ctx.alpha = mixing.alpha

        # 5. Penalties
        mean_attention = mean([r.attention for r in results], 0.5)
        mean_wandering = mean([r.wandering for r in results], 0.0)
        mean_load = mean([r.cognitive_load for r in results], 0.5)
        pw = cfg.penalty_weights
        cognitive_penalty = min(
            1.0,
            pw[0] * mean_wandering + pw[1] * mean_load + pw[2] * notation_complexity(expression),
        )
        elapsed_ms = ctx.elapsed_ms()
        ew = cfg.efficiency_weights
        efficiency_penalty = (
            ew[0] * min(1.0, elapsed_ms / cfg.elapsed_baseline_ms)
            + ew[1] * ctx.complexity_score
            + ew[2] * min(1.0, self.scorer.last_query_ms / cfg.latency_baseline_ms)
        )

        # 6. Penalty factor
        penalty_factor = math.exp(-(cfg.lambda1 * cognitive_penalty + cfg.lambda2 * efficiency_penalty))

        # 7. Biased probability
        evidence = {
            "cognitive_load": mean_load,
            "attention_level": mean_attention,
            "complexity": ctx.complexity_score,
        }
        context = {
            "confirms_expectation": mixing.alpha > CONFIRMATION_ALPHA,
            "frame_type": "negative" if ctx.complexity_score > NEGATIVE_FRAME_COMPLEXITY else "positive",
            "recency_score": max(0.0, 1.0 - elapsed_ms / cfg.recency_window_ms),
        }
        biased_probability = self.bias_adjuster.adjust(
            self.scorer.notation_preference(expression), evidence, context
        )

        # 8. Ψ
        psi = (mixing.alpha * symbolic + (1.0 - mixing.alpha) * neural) * penalty_factor * biased_probability

        # 9. Meta analysis
        meta = self.meta_controller.analyze(results, ctx)

        # 10. Rewrite
        optimized = self._rewrite(ctx, psi, meta, state, results)

        patterns = self._detect_patterns() if cfg.detect_patterns else []

        ctx.tags.update({
            "psi": psi,
            "symbolic_score": symbolic,
            "neural_score": neural,
            "viability": viability,
            "alpha": mixing.alpha,
            "attention_stability": mixing.attention_stability,
            "flow_frequency": mixing.flow_frequency,
            "cognitive_penalty": cognitive_penalty,
            "efficiency_penalty": efficiency_penalty,
            "biased_probability": biased_probability,
            "complexity": ctx.complexity_score,
            "mean_attention": mean_attention,
            "mean_cognitive_load": mean_load,
            "system_health": meta.health_score,
            "drift_count": float(len(meta.drifts)),
            "pattern_count": float(len(patterns)),
            "elapsed_ms": ctx.elapsed_ms(),
        })
        logger.debug(f"Ψ('{expression}') = {psi:.4f} (S={symbolic:.3f}, N={neural:.3f}, α={mixing.alpha:.3f})")

        return OptimizationResult(
            expression=expression,
            psi=psi,
            optimized_expression=optimized,
            components=PsiComponents(
                symbolic=symbolic,
                neural=neural,
                alpha=mixing.alpha,
                cognitive_penalty=cognitive_penalty,
                efficiency_penalty=efficiency_penalty,
                penalty_factor=penalty_factor,
                biased_probability=biased_probability,
            ),
            meta_analysis=meta,
            tags=dict(ctx.tags),
            patterns=patterns,
            session_id=self.session_id,
        )

    def _rewrite(
        self,
        ctx: ExpressionContext,
        psi: float,
        meta: MetaAnalysis,
        state: CognitiveStateVector,
        results: Sequence[ProcessingResult],
    ) -> str:
        if psi >= self.config.pipeline.rewrite_threshold and not meta.recommendations:
            return ctx.expression
        text = self.scorer.optimize_notation(ctx.expression, state, results)
        for token in meta.recommendations:
            text = self._token_handlers[token](text, ctx.parsed)
        if text != ctx.expression:
            ctx.tags["rewritten"] = 1.0
        return text if text.strip() else ctx.expression

    def _detect_patterns(self) -> list[Pattern]:
        patterns: list[Pattern] = []
        for scale in range(self.simulator.num_scales):
            history = [r.state for r in self.simulator.history(scale)]
            patterns.extend(self.pattern_detector.analyze(history, scale=scale))
        patterns.sort(key=lambda p: p.confidence, reverse=True)
        return patterns

    # ------------------------------------------------------------------
    # Recommendation handlers
    # ------------------------------------------------------------------

    def _simplify_notation(self, text: str, parsed: Optional[SetExpression]) -> str:
        return spell_out(text)

    def _add_attention_cues(self, text: str, parsed: Optional[SetExpression]) -> str:
        return add_structure(text) if parsed is not None else text

    def _reduce_complexity(self, text: str, parsed: Optional[SetExpression]) -> str:
        """Apply the idempotence and cancellation rules to text.

        Text the rules leave unchanged is returned as written, so spelled-out
        words from an earlier handler stay in place.
        """
        reparsed = parse_set_expression(text)
        if reparsed is None:
            return text
        simplified = reparsed.simplified()
        return text if simplified == str(reparsed) else simplified

    def _enhance_clarity(self, text: str, parsed: Optional[SetExpression]) -> str:
        return enhance_clarity(text)

    def _reduce_bias(self, text: str, parsed: Optional[SetExpression]) -> str:
        strength = self.bias_adjuster.reduce_global_strength()
        logger.info(f"Reduced global bias strength to {strength:.2f}")
        return text

    def _monitor_attention(self, text: str, parsed: Optional[SetExpression]) -> str:
        logger.info(f"Attention drift observed in session {self.session_id}")
        return text

    # ------------------------------------------------------------------
    # Session state
    # ------------------------------------------------------------------

    def _record_tags(self, tags: dict[str, float]) -> None:
        with self._lock:
            self._tags = dict(tags)

    def cognitive_tags(self) -> dict[str, float]:
        """Tags from the most recent run, for external recommendation systems."""
        with self._lock:
            return dict(self._tags)

    def restore_attention(self) -> None:
        """Reset simulated cognition, mixing coefficient and bias strength."""
        self.simulator.reset()
        self.bias_adjuster.set_global_strength(1.0)
        with self._lock:
            self._alpha = self.config.pipeline.initial_alpha
        logger.info(f"Attention restored for session {self.session_id}")

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        if self._owns_simulator:
            self.simulator.close()

    def __enter__(self) -> "OptimizationOrchestrator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
