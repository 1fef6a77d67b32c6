"""Engine facade owning the state shared across scoring sessions."""

from __future__ import annotations

import logging
import threading
from typing import Optional, Union

from cogscore.bias import BiasAdjuster
from cogscore.config import EngineConfig
from cogscore.embedding import EmbeddingStore
from cogscore.lexical import LearnerProfile, LexicalViabilityScorer
from cogscore.orchestrator.pipeline import OptimizationOrchestrator
from cogscore.schemas import CognitiveStateVector, NotationSuggestion, OptimizationResult

logger = logging.getLogger(__name__)


class CognitiveScoringEngine:
    """Opens Ψ sessions over one shared Embedding Store and viability scorer.

    Example:
        >>> engine = CognitiveScoringEngine()
        >>> result = await engine.optimize("{1,2} ∪ {3,4}")
        >>> result.optimized_expression
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        embedding_store: Optional[EmbeddingStore] = None,
        scorer: Optional[LexicalViabilityScorer] = None,
        learner_profile: Union[str, LearnerProfile, None] = None,
    ):
        self.config = config or EngineConfig()
        self.embedding_store = embedding_store or EmbeddingStore(self.config.embedding)
        self.scorer = scorer or LexicalViabilityScorer(
            self.embedding_store, self.config.viability, learner_profile
        )
        self._sessions: dict[str, OptimizationOrchestrator] = {}
        self._lock = threading.Lock()

    def open_session(
        self,
        session_id: Optional[str] = None,
        bias_profile: Optional[str] = None,
    ) -> OptimizationOrchestrator:
        """Return the session for session_id, creating it if needed."""
        with self._lock:
            if session_id is not None and session_id in self._sessions:
                return self._sessions[session_id]
            session = self._new_session(session_id, bias_profile)
            self._sessions[session.session_id] = session
        logger.info(f"Opened scoring session {session.session_id}")
        return session

    def _new_session(
        self,
        session_id: Optional[str] = None,
        bias_profile: Optional[str] = None,
    ) -> OptimizationOrchestrator:
        return OptimizationOrchestrator(
            config=self.config,
            embedding_store=self.embedding_store,
            scorer=self.scorer,
            bias_adjuster=BiasAdjuster(bias_profile),
            session_id=session_id,
        )

    def sessions(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def close_session(self, session_id: str) -> None:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is not None:
            session.close()

    async def optimize(self, expression: str, session_id: Optional[str] = None) -> OptimizationResult:
        """Score expression in the given session.

        Without a session id the run uses a one-off session that is closed
        as soon as the result is ready.
        """
        if session_id is not None:
            return await self.open_session(session_id).optimize(expression)
        session = self._new_session()
        try:
            return await session.optimize(expression)
        finally:
            session.close()

    def rank_notations(
        self,
        expression: str,
        state: Optional[CognitiveStateVector] = None,
    ) -> list[NotationSuggestion]:
        return self.scorer.rank_notations(expression, state or CognitiveStateVector())

    def record_feedback(
        self,
        expression: str,
        state: CognitiveStateVector,
        success: bool,
    ) -> int:
        """Teach the Embedding Store whether a rendering worked for the learner.

        Every known token of expression moves toward (or away from) the
        expression's context vector.

        Returns:
            Number of terms updated
        """
        updated = 0
        for token in self.scorer.network.tokens(expression):
            if self.embedding_store.feedback(
                token, expression, state.attention, state.cognitive_load, success
            ):
                updated += 1
        self.embedding_store.update_cognitive_alignment(state.attention, state.cognitive_load)
        return updated

    def set_learner_profile(self, profile: Union[str, LearnerProfile]) -> None:
        self.scorer.set_learner_profile(profile)

    def close(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.close()

    def __enter__(self) -> "CognitiveScoringEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
