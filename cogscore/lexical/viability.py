"""Lexical Viability Scorer.

Viability estimates how easily a learner in a given cognitive state can
process a particular rendering of an expression. It is a weighted sum of
four sub-scores, each in [0, 1]:

    attention   attention·(1 − wandering), damped by the variance of
                attention over the recent results
    notation    symbol density and notation style against the learner's
                preferences
    learner     length and structural complexity against the learner's
                capacity (experience and attention span)
    embedding   mean similarity to the nearest previously seen expressions

Weights start from ``ViabilityConfig.base_weights`` and are re-derived per
call: attention below 0.5 moves weight onto the attention sub-score, load
above 0.6 moves weight onto the learner sub-score.

The weighted sum is scaled by how well the rendering's share of symbolic
operators suits the learner right now:

    readiness  attention·(1 − wandering)·(1 − overload), where overload
               rises from 0 at load 0.6 to 1 at full load
    target     readiness·(0.5 + 0.5·visual preference)
    fit        1 − |symbolic share − target|
    viability  weighted sum × (floor + (1 − floor)·fit)

A distracted or overloaded learner has a target near 0, so compact symbols
fall below the spell-out threshold. A focused learner who prefers symbols
scores spelled-out words in the middle band, where they are re-compacted.

Scores are cached per (expression, quantized state). Any change to the
learner profile clears the whole cache.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass, fields, replace
from typing import TYPE_CHECKING, Optional, Sequence, Union

import numpy as np

from cogscore.config import ViabilityConfig
from cogscore.lexical.network import LexicalNetwork, LexicalSuggestion
from cogscore.lexical.notation import (
    NotationStyle,
    add_structure,
    classify_notation,
    compact,
    enhance_clarity,
    expression_complexity,
    notation_complexity,
    parse_set_expression,
    spell_out,
    symbolic_share,
)
from cogscore.schemas import CognitiveStateVector, NotationSuggestion, ProcessingResult
from cogscore.stats import clamp, stability
from cogscore.storage import InMemoryStore, KeyValueStore

if TYPE_CHECKING:
    from cogscore.embedding.store import EmbeddingStore

logger = logging.getLogger(__name__)

CacheKey = tuple[str, int, int, int]

NEUTRAL_SCORE = 0.5
MAX_COMFORTABLE_LENGTH = 80.0
NOTATION_SYMBOLS = set("∪∩×∅⊆⊇∈∉∖\\'|+-*/^=<>")

TERM_WEIGHTS: dict[str, float] = {
    "+": 1.0,
    "-": 1.0,
    "*": 1.0,
    "/": 1.0,
    "^": 0.9,
    "sin": 0.8,
    "cos": 0.8,
    "tan": 0.8,
    "log": 0.8,
    "exp": 0.8,
    "x": 0.9,
    "y": 0.9,
    "z": 0.9,
    "n": 0.8,
}
_WEIGHTED_TOKEN = re.compile(r"[A-Za-z]+|[+\-*/^]")


@dataclass(frozen=True)
class LearnerProfile:
    """What a learner is comfortable with.

    Attributes:
        experience_level: Familiarity with formal notation (0-1)
        attention_span: Capacity for long or dense expressions (0-1)
        visual_preference: Preference for symbols over words (0-1)
        preferred_symbol_density: Comfortable share of operator symbols
        preferred_style: Notation style the learner reads most easily
    """

    experience_level: float = 0.6
    attention_span: float = 0.7
    visual_preference: float = 0.6
    preferred_symbol_density: float = 0.25
    preferred_style: NotationStyle = NotationStyle.ROSTER

    def __post_init__(self):
        for name in ("experience_level", "attention_span", "visual_preference", "preferred_symbol_density"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")

    @property
    def capacity(self) -> float:
        return 0.5 * self.experience_level + 0.5 * self.attention_span


LEARNER_PROFILES: dict[str, LearnerProfile] = {
    "beginner": LearnerProfile(0.2, 0.4, 0.9, 0.1, NotationStyle.VERBAL),
    "intermediate": LearnerProfile(0.6, 0.7, 0.6, 0.25, NotationStyle.ROSTER),
    "advanced": LearnerProfile(0.9, 0.8, 0.4, 0.4, NotationStyle.SYMBOLIC),
}

_VISUAL_STYLES = {NotationStyle.ROSTER, NotationStyle.BUILDER, NotationStyle.SYMBOLIC}


def notation_preference(expression: str) -> float:
    """Prior probability that a reader prefers this rendering.

    Compact set symbols score highest, then braces, then parentheses; the
    result is blended 0.6/0.4 with the mean weight of recognized tokens.
    """
    if any(ch in expression for ch in "∪∩×"):
        base = 0.8
    elif "{" in expression and "}" in expression:
        base = 0.7
    elif "(" in expression:
        base = 0.6
    else:
        base = NEUTRAL_SCORE
    weights = [TERM_WEIGHTS[t] for t in _WEIGHTED_TOKEN.findall(expression) if t in TERM_WEIGHTS]
    term_weight = float(np.mean(weights)) if weights else NEUTRAL_SCORE
    return 0.6 * base + 0.4 * term_weight


class LexicalViabilityScorer:
    """Scores and rewrites notation for the current learner.

    Args:
        embedding_store: Source of context similarity
        config: Weights and thresholds
        learner_profile: Profile name or instance (default: intermediate)
        cache: Backing store for cached scores
        network: Lexical network (created over embedding_store if omitted)
    """

    def __init__(
        self,
        embedding_store: "EmbeddingStore",
        config: Optional[ViabilityConfig] = None,
        learner_profile: Union[str, LearnerProfile, None] = None,
        cache: Optional[KeyValueStore[CacheKey, float]] = None,
        network: Optional[LexicalNetwork] = None,
    ):
        self.embedding_store = embedding_store
        self.config = config or ViabilityConfig()
        self.network = network or LexicalNetwork(embedding_store)
        self._cache = cache if cache is not None else InMemoryStore()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._profile = self._resolve_profile(learner_profile or "intermediate")

    @staticmethod
    def _resolve_profile(profile: Union[str, LearnerProfile]) -> LearnerProfile:
        if isinstance(profile, LearnerProfile):
            return profile
        try:
            return LEARNER_PROFILES[profile]
        except KeyError:
            raise ValueError(
                f"Unknown learner profile '{profile}'. Known: {', '.join(LEARNER_PROFILES)}"
            ) from None

    @property
    def learner_profile(self) -> LearnerProfile:
        return self._profile

    # ------------------------------------------------------------------
    # Profile management
    # ------------------------------------------------------------------

    def set_learner_profile(self, profile: Union[str, LearnerProfile]) -> None:
        resolved = self._resolve_profile(profile)
        with self._lock:
            self._profile = resolved
        self.invalidate()
        logger.info(f"Learner profile set to {resolved}")

    def update_learner_profile(self, key: str, value: Union[float, NotationStyle]) -> None:
        """Change one profile attribute and clear the cache.

        Raises:
            ValueError: On unknown keys or out-of-range values
        """
        known = {f.name for f in fields(LearnerProfile)}
        if key not in known:
            raise ValueError(f"Unknown learner profile key '{key}'. Known: {', '.join(sorted(known))}")
        if key == "preferred_style":
            value = NotationStyle(value)
        with self._lock:
            self._profile = replace(self._profile, **{key: value})
        self.invalidate()

    def invalidate(self) -> None:
        """Drop every cached viability score."""
        self._cache.clear()
        logger.debug("Viability cache invalidated")

    def cache_info(self) -> dict[str, int]:
        with self._lock:
            return {"hits": self._hits, "misses": self._misses, "size": len(self._cache)}

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def _cache_key(self, expression: str, state: CognitiveStateVector) -> CacheKey:
        step = self.config.quantization_step
        return (
            expression,
            int(round(state.attention / step)),
            int(round(state.recognition / step)),
            int(round(state.wandering / step)),
        )

    def viability(
        self,
        expression: str,
        state: CognitiveStateVector,
        recent_results: Sequence[ProcessingResult] = (),
    ) -> float:
        """Cached viability of expression for a learner in state."""
        key = self._cache_key(expression, state)
        computed = False

        def factory(_key: CacheKey) -> float:
            nonlocal computed
            computed = True
            return self._compute(expression, state, recent_results)

        score = self._cache.compute_if_absent(key, factory)
        with self._lock:
            if computed:
                self._misses += 1
            else:
                self._hits += 1
        return score

    def weights(self, state: CognitiveStateVector) -> tuple[float, float, float, float]:
        """Sub-score weights (attention, notation, learner, embedding) for state."""
        cfg = self.config
        attention_w, notation_w, learner_w, embedding_w = cfg.base_weights

        if state.attention < cfg.low_attention:
            shift = (cfg.low_attention - state.attention) * cfg.attention_shift
            from_notation = min(shift / 2.0, notation_w)
            from_embedding = min(shift / 2.0, embedding_w)
            notation_w -= from_notation
            embedding_w -= from_embedding
            attention_w += from_notation + from_embedding

        load = state.cognitive_load
        if load > cfg.high_load:
            shift = (load - cfg.high_load) * cfg.load_shift
            from_notation = min(shift / 2.0, notation_w)
            from_embedding = min(shift / 2.0, embedding_w)
            notation_w -= from_notation
            embedding_w -= from_embedding
            learner_w += from_notation + from_embedding

        total = attention_w + notation_w + learner_w + embedding_w
        return (attention_w / total, notation_w / total, learner_w / total, embedding_w / total)

    def _compute(
        self,
        expression: str,
        state: CognitiveStateVector,
        recent_results: Sequence[ProcessingResult],
    ) -> float:
        scores = (
            self.attention_viability(state, recent_results),
            self.notation_viability(expression),
            self.learner_viability(expression),
            self.embedding_viability(expression),
        )
        weights = self.weights(state)
        fit = self.notation_fit(expression, state)
        floor = self.config.notation_fit_floor
        weighted = sum(w * s for w, s in zip(weights, scores))
        score = clamp(weighted * (floor + (1.0 - floor) * fit))
        logger.debug(
            f"Viability '{expression}': scores={[round(s, 3) for s in scores]} "
            f"weights={[round(w, 3) for w in weights]} fit={fit:.3f} -> {score:.3f}"
        )
        return score

    def readiness(self, state: CognitiveStateVector) -> float:
        """How much symbolic density the learner can take in right now."""
        high_load = self.config.high_load
        overload = clamp((state.cognitive_load - high_load) / (1.0 - high_load))
        return clamp(state.attention * (1.0 - state.wandering) * (1.0 - overload))

    def notation_fit(self, expression: str, state: CognitiveStateVector) -> float:
        target = self.readiness(state) * (0.5 + 0.5 * self._profile.visual_preference)
        return 1.0 - abs(symbolic_share(expression) - target)

    def attention_viability(
        self,
        state: CognitiveStateVector,
        recent_results: Sequence[ProcessingResult] = (),
    ) -> float:
        history = [r.attention for r in recent_results]
        damping = 0.5 + 0.5 * stability(history, default=1.0)
        return clamp(state.attention * (1.0 - state.wandering) * damping)

    def notation_viability(self, expression: str) -> float:
        profile = self._profile
        visible = [ch for ch in expression if not ch.isspace()]
        density = sum(1 for ch in visible if ch in NOTATION_SYMBOLS) / len(visible) if visible else 0.0
        density_match = clamp(1.0 - 2.0 * abs(density - profile.preferred_symbol_density))

        style = classify_notation(expression)
        style_match = 1.0 if style == profile.preferred_style else 0.6
        symbolic_share = 1.0 if style in _VISUAL_STYLES else 0.0
        visual_match = 1.0 - 0.5 * abs(profile.visual_preference - symbolic_share)

        return clamp(0.5 * density_match + 0.3 * style_match + 0.2 * visual_match)

    def learner_viability(self, expression: str) -> float:
        parsed = parse_set_expression(expression)
        demand = clamp(
            0.4 * min(1.0, len(expression) / MAX_COMFORTABLE_LENGTH)
            + 0.3 * notation_complexity(expression)
            + 0.3 * expression_complexity(expression, parsed)
        )
        overload = max(0.0, demand - self._profile.capacity)
        return clamp(1.0 - 2.0 * overload - 0.2 * demand)

    def embedding_viability(self, expression: str) -> float:
        """Mean similarity to the nearest stored expressions.

        Falls back to the expression's own tokens when no other expression
        has been seen yet, and to a neutral 0.5 when neither exists.
        """
        neighbours = self.embedding_store.find_similar_contexts(
            expression, k=self.config.embedding_neighbours
        )
        if neighbours:
            return float(np.mean([clamp(n.score) for n in neighbours]))

        context = self.embedding_store.context_vector(expression)
        similarities = []
        for token in self.network.tokens(expression):
            embedding = self.embedding_store.get(token)
            if embedding is not None:
                similarities.append(clamp(float(np.dot(context, embedding.vector))))
        if not similarities:
            return NEUTRAL_SCORE
        return float(np.mean(similarities))

    # ------------------------------------------------------------------
    # Suggestions and rewrites
    # ------------------------------------------------------------------

    def notation_preference(self, expression: str) -> float:
        return notation_preference(expression)

    def suggestion(self, expression: str) -> LexicalSuggestion:
        return self.network.suggest(expression)

    @property
    def last_query_ms(self) -> float:
        return self.network.last_query_ms

    def optimize_notation(
        self,
        expression: str,
        state: CognitiveStateVector,
        recent_results: Sequence[ProcessingResult] = (),
    ) -> str:
        """Rewrite expression for the learner in state.

        Low viability spells symbols out, high viability keeps the text, and
        the middle band adds structure for a wandering mind or re-compacts
        symbols for a focused one.
        """
        cfg = self.config
        score = self.viability(expression, state, recent_results)
        if score < cfg.simplify_below:
            return spell_out(expression)
        if score > cfg.keep_above:
            return expression
        if state.wandering > cfg.high_wandering:
            return add_structure(expression)
        if state.attention > cfg.compact_attention and state.wandering < cfg.compact_wandering:
            return compact(expression)
        return expression

    def rank_notations(
        self,
        expression: str,
        state: CognitiveStateVector,
        recent_results: Sequence[ProcessingResult] = (),
    ) -> list[NotationSuggestion]:
        """Alternative renderings of expression ranked by viability."""
        candidates = [
            ("original", expression),
            ("spelled_out", spell_out(expression)),
            ("compact", compact(expression)),
            ("clarity", enhance_clarity(expression)),
            ("structured", add_structure(expression)),
        ]
        parsed = parse_set_expression(expression)
        if parsed is not None:
            candidates.append(("simplified", parsed.simplified()))

        seen: set[str] = set()
        ranked = []
        for transform, text in candidates:
            if not text or text in seen:
                continue
            seen.add(text)
            ranked.append(NotationSuggestion(
                notation=text,
                score=self.viability(text, state, recent_results),
                transform=transform,
            ))
        ranked.sort(key=lambda s: s.score, reverse=True)
        return ranked
