"""Lexical network of the terms and operators seen in expressions.

Each node carries rule-based features in [0, 1]:

    semantic_type   1.0 single capital, 0.9 roster set, 0.8 number, 0.5 other
    length          min(1, len / 10)
    complexity      0.1 number, 0.2 single letter, 0.6 set, 0.4 other
    familiarity     0.9 for A, B, C, x, y, z, 1, 2, 3, else 0.5
    visual_clarity  max(0.1, 1 - len / 20)

Operator nodes (∪ ∩ × ∅) use fixed features and know their spelled-out
alternative. A node's suggestion confidence is

    0.4·familiarity + 0.4·visual_clarity + 0.2·(1 − complexity)
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from cogscore.lexical.notation import SPELLED_WORDS, extract_terms
from cogscore.storage import InMemoryStore, KeyValueStore

if TYPE_CHECKING:
    from cogscore.embedding.store import EmbeddingStore

logger = logging.getLogger(__name__)

FAMILIAR_TERMS = frozenset({"A", "B", "C", "x", "y", "z", "1", "2", "3"})
EDGE_THRESHOLD = 0.3
DEFAULT_CONFIDENCE = 0.5

# symbol -> (semantic_type, complexity, familiarity, visual_clarity)
OPERATOR_FEATURES: dict[str, tuple[float, float, float, float]] = {
    "∪": (0.9, 0.3, 0.8, 0.9),
    "∩": (0.9, 0.3, 0.75, 0.9),
    "×": (0.85, 0.5, 0.6, 0.8),
    "∅": (0.9, 0.2, 0.7, 0.95),
}


@dataclass(frozen=True)
class LexicalNode:
    term: str
    semantic_type: float
    length: float
    complexity: float
    familiarity: float
    visual_clarity: float
    alternative: Optional[str] = None

    @property
    def confidence(self) -> float:
        return 0.4 * self.familiarity + 0.4 * self.visual_clarity + 0.2 * (1.0 - self.complexity)


@dataclass(frozen=True)
class LexicalSuggestion:
    """Suggested rendering of an expression and how confident the network is."""

    expression: str
    suggestion: str
    confidence: float
    term: Optional[str] = None


def term_node(term: str) -> LexicalNode:
    """Build the rule-based node for a term or operator symbol."""
    if term in OPERATOR_FEATURES:
        semantic, complexity, familiarity, clarity = OPERATOR_FEATURES[term]
        return LexicalNode(
            term=term,
            semantic_type=semantic,
            length=0.1,
            complexity=complexity,
            familiarity=familiarity,
            visual_clarity=clarity,
            alternative=SPELLED_WORDS.get(term),
        )

    if len(term) == 1 and term.isupper():
        semantic, complexity = 1.0, 0.2
    elif term.isdigit():
        semantic, complexity = 0.8, 0.1
    elif term.startswith("{"):
        semantic, complexity = 0.9, 0.6
    elif len(term) == 1:
        semantic, complexity = 0.5, 0.2
    else:
        semantic, complexity = 0.5, 0.4
    return LexicalNode(
        term=term,
        semantic_type=semantic,
        length=min(1.0, len(term) / 10.0),
        complexity=complexity,
        familiarity=0.9 if term in FAMILIAR_TERMS else 0.5,
        visual_clarity=max(0.1, 1.0 - len(term) / 20.0),
    )


def rule_similarity(a: LexicalNode, b: LexicalNode) -> float:
    """Strongest semantic or syntactic edge between two nodes, 0 below threshold."""
    if abs(a.semantic_type - b.semantic_type) < 0.2:
        semantic = 0.8
    else:
        semantic = a.semantic_type * b.semantic_type
    if abs(a.length - b.length) < 0.2:
        syntactic = 0.7
    else:
        syntactic = a.length * b.length
    edge = max(semantic, syntactic)
    return edge if edge > EDGE_THRESHOLD else 0.0


class LexicalNetwork:
    """Shared vocabulary of lexical nodes.

    Args:
        embedding_store: Terms are registered here lazily as they are seen
        nodes: Backing store for nodes
    """

    def __init__(
        self,
        embedding_store: Optional["EmbeddingStore"] = None,
        nodes: Optional[KeyValueStore[str, LexicalNode]] = None,
    ):
        self.embedding_store = embedding_store
        self._nodes = nodes if nodes is not None else InMemoryStore()
        self._lock = threading.Lock()
        self._last_query_ms = 0.0

    @property
    def last_query_ms(self) -> float:
        """Duration of the most recent suggestion query, in milliseconds."""
        return self._last_query_ms

    def tokens(self, expression: str) -> list[str]:
        """Terms followed by the operator symbols present in expression."""
        tokens = extract_terms(expression)
        tokens.extend(symbol for symbol in OPERATOR_FEATURES if symbol in expression)
        return tokens

    def register(self, expression: str) -> list[LexicalNode]:
        """Ensure a node (and an embedding) exists for every token of expression."""
        nodes = []
        for token in self.tokens(expression):
            nodes.append(self._nodes.compute_if_absent(token, term_node))
            if self.embedding_store is not None:
                self.embedding_store.get_or_create(token)
        return nodes

    def node(self, term: str) -> Optional[LexicalNode]:
        return self._nodes.get(term)

    def suggest(self, expression: str) -> LexicalSuggestion:
        """Most confident node's view of expression.

        When the chosen node is an operator with a spelled-out alternative,
        the suggestion renders that operator in words.
        """
        started = time.perf_counter()
        nodes = self.register(expression)
        if nodes:
            best = max(nodes, key=lambda n: n.confidence)
            suggestion = expression
            if best.alternative:
                suggestion = expression.replace(best.term, f" {best.alternative} ")
                suggestion = " ".join(suggestion.split())
            result = LexicalSuggestion(expression, suggestion, best.confidence, best.term)
        else:
            result = LexicalSuggestion(expression, expression, DEFAULT_CONFIDENCE)

        elapsed_ms = (time.perf_counter() - started) * 1000.0
        with self._lock:
            self._last_query_ms = elapsed_ms
        logger.debug(f"Suggestion for '{expression}': confidence {result.confidence:.3f} ({elapsed_ms:.2f} ms)")
        return result

    def hybrid_similarity(self, term1: str, term2: str, attention: float) -> float:
        """Blend rule and embedding similarity; low attention leans on rules.

        rule weight = max(0.2, 1 - attention)
        """
        a = self._nodes.compute_if_absent(term1, term_node)
        b = self._nodes.compute_if_absent(term2, term_node)
        rule = 1.0 if term1 == term2 else rule_similarity(a, b)
        if self.embedding_store is None:
            return rule
        self.embedding_store.get_or_create(term1)
        self.embedding_store.get_or_create(term2)
        embedded = self.embedding_store.similarity(term1, term2)
        rule_weight = max(0.2, 1.0 - attention)
        return rule_weight * rule + (1.0 - rule_weight) * embedded
