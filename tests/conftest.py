"""Pytest configuration and fixtures."""

import pytest

from cogscore.config import EmbeddingConfig
from cogscore.embedding import EmbeddingStore
from cogscore.lexical import LexicalViabilityScorer
from cogscore.schemas import CognitiveStateVector, ProcessingResult


@pytest.fixture
def embedding_config() -> EmbeddingConfig:
    """Small, seeded embedding config for fast tests."""
    return EmbeddingConfig(dimension=16, seed=7)


@pytest.fixture
def embedding_store(embedding_config) -> EmbeddingStore:
    return EmbeddingStore(embedding_config)


@pytest.fixture
def scorer(embedding_store) -> LexicalViabilityScorer:
    return LexicalViabilityScorer(embedding_store)


@pytest.fixture
def make_result():
    """Factory for ProcessingResult; the load follows from the state."""

    def _make(
        attention: float,
        recognition: float = 0.5,
        wandering: float = 0.1,
        scale: int = 0,
        tick: int = 0,
    ) -> ProcessingResult:
        state = CognitiveStateVector(attention=attention, recognition=recognition, wandering=wandering)
        return ProcessingResult.from_state(scale, tick, state)

    return _make
