"""Meta Controller: drift detection, bias audit and health classification.

Health is evaluated on the analyzed results and the drifts found in them:

    CRITICAL  mean load > 0.8, or drifts > 50% of results, or mean attention < 0.3
    WARNING   mean load > 0.6, or drifts > 30% of results, or mean attention < 0.5
    HEALTHY   otherwise

Comparisons are strict, so a mean load of exactly 0.8 is WARNING, not
CRITICAL. An empty result list is treated as load 0.5 and attention 0.5.

Recommendations:

    CRITICAL  RESTORE_ATTENTION, SIMPLIFY_NOTATION, REDUCE_COMPLEXITY
    WARNING   ENHANCE_CLARITY (+ REDUCE_BIAS when symbolic bias is flagged)
    HEALTHY   MONITOR_ATTENTION if any drift was found, else nothing
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Optional, Protocol, Sequence

from cogscore.config import MetaControllerConfig
from cogscore.schemas import (
    AttentionDrift,
    DriftDirection,
    MetaAnalysis,
    ProcessingResult,
    Recommendation,
    SystemHealth,
)
from cogscore.stats import mean

logger = logging.getLogger(__name__)

MISSING_DATA_DEFAULT = 0.5

RECOMMENDATIONS: dict[SystemHealth, tuple[Recommendation, ...]] = {
    SystemHealth.CRITICAL: (
        Recommendation.RESTORE_ATTENTION,
        Recommendation.SIMPLIFY_NOTATION,
        Recommendation.REDUCE_COMPLEXITY,
    ),
    SystemHealth.WARNING: (Recommendation.ENHANCE_CLARITY,),
    SystemHealth.HEALTHY: (),
}


class ExpressionState(Protocol):
    """What the controller reads from the expression being processed."""

    @property
    def alpha(self) -> float: ...

    @property
    def complexity_score(self) -> float: ...


class MetaController:
    """Audits processing results and keeps a bounded drift history."""

    def __init__(self, config: Optional[MetaControllerConfig] = None):
        self.config = config or MetaControllerConfig()
        self._drift_history: deque[AttentionDrift] = deque(maxlen=self.config.drift_history_size)
        self._last_health = SystemHealth.HEALTHY
        self._lock = threading.Lock()

    @property
    def system_health(self) -> SystemHealth:
        """Health from the most recent analysis."""
        return self._last_health

    def drift_history(self) -> list[AttentionDrift]:
        with self._lock:
            return list(self._drift_history)

    def detect_drifts(self, results: Sequence[ProcessingResult]) -> list[AttentionDrift]:
        """Flag adjacent pairs whose attention changes by more than the threshold."""
        drifts = []
        for index in range(1, len(results)):
            delta = results[index].attention - results[index - 1].attention
            if abs(delta) > self.config.drift_threshold:
                drifts.append(AttentionDrift(
                    step=index,
                    magnitude=abs(delta),
                    direction=DriftDirection.INCREASE if delta > 0 else DriftDirection.DECREASE,
                ))
        return drifts

    def audit_biases(
        self,
        results: Sequence[ProcessingResult],
        expression_state: Optional[ExpressionState],
    ) -> dict[str, float]:
        cfg = self.config
        metrics: dict[str, float] = {}
        if expression_state is not None:
            if expression_state.alpha > cfg.symbolic_bias_alpha:
                metrics["symbolic_bias"] = expression_state.alpha
            if expression_state.complexity_score > cfg.complexity_bias:
                metrics["complexity_bias"] = expression_state.complexity_score
        if results:
            mean_attention = mean([r.attention for r in results])
            if mean_attention < cfg.attention_bias:
                metrics["attention_bias"] = 1.0 - mean_attention
        return metrics

    def classify_health(
        self,
        results: Sequence[ProcessingResult],
        drift_count: int,
    ) -> SystemHealth:
        cfg = self.config
        n = len(results)
        mean_load = mean([r.cognitive_load for r in results], MISSING_DATA_DEFAULT)
        mean_attention = mean([r.attention for r in results], MISSING_DATA_DEFAULT)

        if (
            mean_load > cfg.critical_load
            or drift_count > cfg.critical_drift_fraction * n
            or mean_attention < cfg.critical_attention
        ):
            return SystemHealth.CRITICAL
        if (
            mean_load > cfg.warning_load
            or drift_count > cfg.warning_drift_fraction * n
            or mean_attention < cfg.warning_attention
        ):
            return SystemHealth.WARNING
        return SystemHealth.HEALTHY

    def analyze(
        self,
        results: Sequence[ProcessingResult],
        expression_state: Optional[ExpressionState] = None,
    ) -> MetaAnalysis:
        drifts = self.detect_drifts(results)
        bias_metrics = self.audit_biases(results, expression_state)
        health = self.classify_health(results, len(drifts))

        recommendations = list(RECOMMENDATIONS[health])
        if health == SystemHealth.WARNING and "symbolic_bias" in bias_metrics:
            recommendations.append(Recommendation.REDUCE_BIAS)
        elif health == SystemHealth.HEALTHY and drifts:
            recommendations.append(Recommendation.MONITOR_ATTENTION)

        with self._lock:
            self._drift_history.extend(drifts)
            self._last_health = health

        if health != SystemHealth.HEALTHY:
            logger.info(
                f"System health {health.value}: {len(drifts)} drifts over {len(results)} results, "
                f"recommendations={[r.value for r in recommendations]}"
            )
        return MetaAnalysis(
            drifts=drifts,
            bias_metrics=bias_metrics,
            system_health=health,
            recommendations=recommendations,
        )
