"""Exception hierarchy for the cognitive scoring engine."""

from typing import Optional


class CognitiveScoringError(Exception):
    """Base class for errors raised by cogscore."""


class DimensionMismatchError(CognitiveScoringError, ValueError):
    """Vector length disagrees with the configured embedding dimension."""

    def __init__(self, expected: int, actual: int, term: str = ""):
        self.expected = expected
        self.actual = actual
        self.term = term
        label = f" for '{term}'" if term else ""
        super().__init__(
            f"Embedding dimension mismatch{label}: expected {expected}, got {actual}"
        )


class EmbeddingError(CognitiveScoringError, ValueError):
    """Vector cannot be stored (e.g. zero norm)."""


class PipelineError(CognitiveScoringError):
    """Raised when a step of the Ψ pipeline fails.

    The original exception is chained as ``__cause__``. Diagnostic tags
    recorded before propagation are attached so callers can inspect how far
    the run got.
    """

    def __init__(
        self,
        expression: str,
        message: str,
        tags: Optional[dict[str, float]] = None,
    ):
        self.expression = expression
        self.tags = dict(tags or {})
        super().__init__(f"Pipeline failed for '{expression}': {message}")
