"""Embedding Store and context-vector extraction."""

from cogscore.embedding.context import context_features, context_vector, normalize, seeded_rng
from cogscore.embedding.store import EmbeddingStats, EmbeddingStore, TermEmbedding

__all__ = [
    "EmbeddingStats",
    "EmbeddingStore",
    "TermEmbedding",
    "context_features",
    "context_vector",
    "normalize",
    "seeded_rng",
]
