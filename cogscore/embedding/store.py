"""Embedding Store: per-term vectors with similarity and online feedback.

Every stored vector is unit-norm. Vectors are replaced, never mutated, so a
reader always sees a complete vector even while feedback is being applied
to the same term from another thread.

Similarity:
    similarity(t1, t2)             cosine clipped into [0, 1]
    cognitive_similarity(t1, t2)   cosine × attention^w × (1 - load)
                                   × sqrt(weight(t1) · weight(t2))

Feedback moves a term toward (success) or away from (failure) the context
vector of the text it was used in:
    rate = learning_rate × attention × (1 - load)
    success: v += rate (c - v),        weight × 1.1 (cap 2.0)
    failure: v -= 0.5 rate (c - v),    weight × 0.9 (floor 0.1)
followed by renormalization. The read-modify-write runs through the backing
store's ``update`` so concurrent feedback on one term is serialized.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from cogscore.config import EmbeddingConfig
from cogscore.embedding.context import context_features, context_vector, expand_features, normalize
from cogscore.errors import DimensionMismatchError, EmbeddingError
from cogscore.schemas import SimilarityResult
from cogscore.stats import clamp
from cogscore.storage import InMemoryStore, KeyValueStore

logger = logging.getLogger(__name__)

HIGH_WEIGHT = 1.5

# Anchor features for the seeded vocabulary, grouped by family
SET_OPERATION_ANCHORS: dict[str, tuple[float, float, float, float]] = {
    "union": (0.9, 0.8, 0.7, 0.6),
    "∪": (0.9, 0.8, 0.7, 0.6),
    "intersection": (0.8, 0.9, 0.6, 0.7),
    "∩": (0.8, 0.9, 0.6, 0.7),
    "complement": (0.6, 0.5, 0.9, 0.8),
    "difference": (0.7, 0.6, 0.8, 0.9),
    "cartesian_product": (0.5, 0.4, 0.7, 0.8),
    "×": (0.5, 0.4, 0.7, 0.8),
    "power_set": (0.4, 0.3, 0.8, 0.9),
    "subset": (0.7, 0.8, 0.5, 0.6),
    "superset": (0.6, 0.7, 0.4, 0.5),
}

NOTATION_ANCHORS: dict[str, tuple[float, float, float, float]] = {
    "roster": (0.9, 0.8, 0.3, 0.4),
    "builder": (0.6, 0.7, 0.9, 0.8),
    "symbolic": (0.4, 0.5, 0.8, 0.9),
    "verbal": (0.8, 0.9, 0.4, 0.5),
}

ALGEBRA_ANCHORS: dict[str, tuple[float, float, float, float]] = {
    "polynomial": (0.7, 0.8, 0.6, 0.5),
    "variable": (0.8, 0.7, 0.5, 0.6),
    "constant": (0.9, 0.6, 0.4, 0.7),
    "coefficient": (0.6, 0.9, 0.7, 0.4),
}


@dataclass(frozen=True)
class TermEmbedding:
    """A term's unit-norm vector and its adaptive weight."""

    term: str
    vector: np.ndarray
    adaptive_weight: float = 1.0


@dataclass
class EmbeddingStats:
    total_terms: int
    average_weight: float
    high_weight_terms: int
    attention_weight: float
    context_count: int
    feedback_updates: int = 0

    def to_dict(self) -> dict:
        return {
            "total_terms": self.total_terms,
            "average_weight": self.average_weight,
            "high_weight_terms": self.high_weight_terms,
            "attention_weight": self.attention_weight,
            "context_count": self.context_count,
            "feedback_updates": self.feedback_updates,
        }


def _frozen(vector: np.ndarray) -> np.ndarray:
    vector = np.array(vector, dtype=float)
    vector.setflags(write=False)
    return vector


class EmbeddingStore:
    """Shared table of term embeddings.

    Args:
        config: Embedding configuration (dimension, learning rate, seed, ...)
        terms: Backing store for term embeddings
        contexts: Backing store for context vectors keyed by raw text
        seed_vocabulary: Populate set-operation, notation and algebra anchors
    """

    def __init__(
        self,
        config: Optional[EmbeddingConfig] = None,
        terms: Optional[KeyValueStore[str, TermEmbedding]] = None,
        contexts: Optional[KeyValueStore[str, np.ndarray]] = None,
        seed_vocabulary: bool = True,
    ):
        self.config = config or EmbeddingConfig()
        self._terms = terms if terms is not None else InMemoryStore()
        self._contexts = contexts if contexts is not None else InMemoryStore()
        self._attention_weight = self.config.attention_weight
        self._lock = threading.Lock()
        self._feedback_updates = 0

        if seed_vocabulary:
            for anchors in (SET_OPERATION_ANCHORS, NOTATION_ANCHORS, ALGEBRA_ANCHORS):
                for term, features in anchors.items():
                    self._terms.compute_if_absent(
                        term, lambda t, f=features: self._seeded(t, np.array(f))
                    )
            logger.debug(f"Seeded embedding vocabulary with {len(self._terms)} terms")

    @property
    def dimension(self) -> int:
        return self.config.dimension

    @property
    def attention_weight(self) -> float:
        return self._attention_weight

    def _seeded(self, term: str, features: np.ndarray) -> TermEmbedding:
        vector = expand_features(features, self.dimension, self.config.seed, term)
        return TermEmbedding(term=term, vector=_frozen(vector))

    # ------------------------------------------------------------------
    # Table access
    # ------------------------------------------------------------------

    def add_or_update(self, term: str, vector: Sequence[float]) -> TermEmbedding:
        """Store a normalized copy of vector for term.

        An existing term keeps its adaptive weight.

        Raises:
            DimensionMismatchError: If the vector length is not the configured dimension
            EmbeddingError: If the vector has zero norm
        """
        arr = np.asarray(vector, dtype=float)
        if arr.ndim != 1 or arr.shape[0] != self.dimension:
            actual = arr.shape[0] if arr.ndim == 1 else int(arr.size)
            raise DimensionMismatchError(self.dimension, actual, term)
        unit = _frozen(normalize(arr))

        def replace_vector(current: TermEmbedding) -> TermEmbedding:
            return TermEmbedding(term=term, vector=unit, adaptive_weight=current.adaptive_weight)

        embedding = self._terms.update(term, replace_vector)
        if embedding is not None:
            return embedding
        embedding = self._terms.compute_if_absent(
            term, lambda t: TermEmbedding(term=t, vector=unit)
        )
        if embedding.vector is not unit:
            # Another writer inserted the term first
            embedding = self._terms.update(term, replace_vector) or embedding
        return embedding

    def get(self, term: str) -> Optional[TermEmbedding]:
        return self._terms.get(term)

    def get_or_create(self, term: str) -> TermEmbedding:
        """Return the term's embedding, deriving one from its text if absent."""
        return self._terms.compute_if_absent(
            term, lambda t: self._seeded(t, context_features(t))
        )

    def terms(self) -> list[str]:
        return [term for term, _ in self._terms.items()]

    def __contains__(self, term: object) -> bool:
        return term in self._terms

    def __len__(self) -> int:
        return len(self._terms)

    # ------------------------------------------------------------------
    # Similarity
    # ------------------------------------------------------------------

    def _cosine(self, a: TermEmbedding, b: TermEmbedding) -> float:
        return float(np.dot(a.vector, b.vector))

    def similarity(self, term1: str, term2: str) -> float:
        """Cosine similarity clipped into [0, 1]; 0.0 if either term is unknown."""
        a = self._terms.get(term1)
        b = self._terms.get(term2)
        if a is None or b is None:
            return 0.0
        if term1 == term2:
            return 1.0
        return clamp(self._cosine(a, b))

    def cognitive_similarity(
        self,
        term1: str,
        term2: str,
        attention: float,
        cognitive_load: float,
    ) -> float:
        """Similarity modulated by attention, load and both adaptive weights."""
        a = self._terms.get(term1)
        b = self._terms.get(term2)
        if a is None or b is None:
            return 0.0
        attention_factor = clamp(attention) ** self._attention_weight
        load_factor = 1.0 - clamp(cognitive_load)
        weight_factor = float(np.sqrt(a.adaptive_weight * b.adaptive_weight))
        return self._cosine(a, b) * attention_factor * load_factor * weight_factor

    def nearest_k(
        self,
        term: str,
        k: int,
        attention: float = 1.0,
        cognitive_load: float = 0.0,
    ) -> list[SimilarityResult]:
        """Top-k terms by cognitive similarity, excluding term itself."""
        if term not in self._terms or k <= 0:
            return []
        scored = [
            SimilarityResult(
                term=other,
                score=self.cognitive_similarity(term, other, attention, cognitive_load),
            )
            for other in self.terms()
            if other != term
        ]
        scored.sort(key=lambda r: r.score, reverse=True)
        return scored[:k]

    # ------------------------------------------------------------------
    # Context vectors
    # ------------------------------------------------------------------

    def context_vector(self, text: str) -> np.ndarray:
        """Cached unit-norm context vector for text."""
        return self._contexts.compute_if_absent(
            text, lambda t: _frozen(context_vector(t, self.dimension, self.config.seed))
        )

    def find_similar_contexts(
        self,
        text: str,
        k: int = 5,
        include_self: bool = False,
    ) -> list[SimilarityResult]:
        """Previously seen texts ranked by cosine to text's context vector."""
        query = self.context_vector(text)
        scored = [
            SimilarityResult(term=other, score=float(np.dot(query, vector)))
            for other, vector in self._contexts.items()
            if include_self or other != text
        ]
        scored.sort(key=lambda r: r.score, reverse=True)
        return scored[:k]

    # ------------------------------------------------------------------
    # Learning
    # ------------------------------------------------------------------

    def feedback(
        self,
        term: str,
        context_text: str,
        attention: float,
        cognitive_load: float,
        success: bool,
    ) -> bool:
        """Move term toward or away from context_text's vector.

        Returns:
            True if the term existed and was updated
        """
        if term not in self._terms:
            logger.warning(f"Feedback for unknown term '{term}' ignored")
            return False

        target = self.context_vector(context_text)
        rate = self.config.learning_rate * clamp(attention) * (1.0 - clamp(cognitive_load))
        cfg = self.config

        def apply(current: TermEmbedding) -> TermEmbedding:
            delta = target - current.vector
            if success:
                moved = current.vector + rate * delta
                weight = min(cfg.max_adaptive_weight, current.adaptive_weight * cfg.success_weight_gain)
            else:
                moved = current.vector - 0.5 * rate * delta
                weight = max(cfg.min_adaptive_weight, current.adaptive_weight * cfg.failure_weight_decay)
            try:
                vector = _frozen(normalize(moved))
            except EmbeddingError:
                vector = current.vector
            return TermEmbedding(term=current.term, vector=vector, adaptive_weight=weight)

        updated = self._terms.update(term, apply)
        if updated is None:
            return False
        with self._lock:
            self._feedback_updates += 1
        logger.debug(
            f"Feedback on '{term}' (success={success}, rate={rate:.4f}) "
            f"-> weight {updated.adaptive_weight:.3f}"
        )
        return True

    def update_cognitive_alignment(self, attention: float, cognitive_load: float) -> float:
        """Adapt the attention exponent to the observed load.

        Above the load threshold attention matters more (×1.05, cap 1.0);
        otherwise it relaxes (×0.98, floor 0.3).

        Returns:
            The new attention weight
        """
        with self._lock:
            if cognitive_load > self.config.cognitive_load_threshold:
                self._attention_weight = min(1.0, self._attention_weight * 1.05)
            else:
                self._attention_weight = max(0.3, self._attention_weight * 0.98)
            return self._attention_weight

    def stats(self) -> EmbeddingStats:
        weights = [e.adaptive_weight for _, e in self._terms.items()]
        return EmbeddingStats(
            total_terms=len(weights),
            average_weight=float(np.mean(weights)) if weights else 0.0,
            high_weight_terms=sum(1 for w in weights if w > HIGH_WEIGHT),
            attention_weight=self._attention_weight,
            context_count=len(self._contexts),
            feedback_updates=self._feedback_updates,
        )
