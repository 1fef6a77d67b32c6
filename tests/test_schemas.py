"""Tests for the shared data model."""
import pytest
from pydantic import ValidationError

from cogscore.schemas import CognitiveStateVector, ProcessingResult


class TestProcessingResult:
    """Test that a result's load always follows its state."""

    def test_load_derived_from_state(self):
        state = CognitiveStateVector(attention=0.4, recognition=0.6, wandering=0.2)
        result = ProcessingResult.from_state(1, 3, state)
        assert result.cognitive_load == pytest.approx(0.7)
        assert result.cognitive_load == state.cognitive_load

    def test_conflicting_load_rejected(self):
        """A stored load could disagree with the state, so none is accepted."""
        state = CognitiveStateVector(attention=0.9, recognition=0.9, wandering=0.0)
        with pytest.raises(ValidationError):
            ProcessingResult(scale=0, tick=0, state=state, cognitive_load=0.95)

    def test_load_serialized(self):
        state = CognitiveStateVector(attention=1.0, recognition=1.0, wandering=0.25)
        data = ProcessingResult.from_state(0, 2, state).model_dump()
        assert data["cognitive_load"] == 0.25
        assert data["tick"] == 2

    def test_frozen(self):
        result = ProcessingResult.from_state(0, 0, CognitiveStateVector())
        with pytest.raises(ValidationError):
            result.tick = 5
