"""Tests for the Pattern Detector."""
import numpy as np
import pytest

from cogscore.config import PatternDetectorConfig
from cogscore.patterns import (
    PatternDetector,
    as_matrix,
    feedback_strength,
    hurst_exponent,
    periodicity,
    quadratic_recurrence_fit,
    sample_entropy,
    scale_invariance,
    self_similarity,
)
from cogscore.schemas import CognitiveStateVector, PatternType


@pytest.fixture
def detector():
    return PatternDetector(PatternDetectorConfig())


def _types(patterns):
    return {p.pattern_type for p in patterns}


class TestAsMatrix:
    """Test series normalization."""

    def test_flat_series(self):
        """Flat floats become a single column."""
        assert as_matrix([0.1, 0.2, 0.3]).shape == (3, 1)

    def test_state_vectors(self):
        """State vectors become (n, 3)."""
        states = [CognitiveStateVector(attention=0.9)] * 4
        matrix = as_matrix(states)
        assert matrix.shape == (4, 3)
        assert matrix[0, 0] == pytest.approx(0.9)

    def test_empty(self):
        """Empty input gives an empty matrix."""
        assert as_matrix([]).shape[0] == 0


class TestPrimitives:
    """Test statistical primitives."""

    def test_hurst_of_ramp_is_persistent(self):
        """A monotone ramp has H > 0.5."""
        h = hurst_exponent([float(i) for i in range(20)])
        assert h == pytest.approx(np.log(50 / np.sqrt(35)) / np.log(20))
        assert h > 0.5

    def test_hurst_degenerate(self):
        """Constant or tiny series are neutral."""
        assert hurst_exponent([0.4] * 12) == 0.5
        assert hurst_exponent([0.1, 0.2]) == 0.5

    def test_periodicity(self):
        """Period-4 oscillation has a strong lag-2 anti-correlation."""
        values = [0.5 + 0.4 * np.sin(np.pi * i / 2) for i in range(32)]
        lag, strength = periodicity(values)
        assert lag == 2
        assert strength == pytest.approx(15 / 16)

    def test_self_similarity_of_ramp(self):
        """A ramp matches its own box averages."""
        assert self_similarity([float(i) for i in range(20)]) == pytest.approx(1.0)

    def test_quadratic_recurrence_recovers_c(self):
        """An exact z² + 0.2 orbit is recovered."""
        z = [0.1]
        for _ in range(15):
            z.append(z[-1] ** 2 + 0.2)
        c, fraction, quality = quadratic_recurrence_fit(z)
        assert c == pytest.approx(0.2)
        assert fraction == 1.0
        assert quality == pytest.approx(1.0)

    def test_feedback_strength_of_ramp(self):
        """Strong lagged autocorrelation counts as feedback."""
        assert feedback_strength([float(i) for i in range(20)]) > 0.5

    def test_feedback_strength_constant(self):
        """Constant series have no feedback."""
        assert feedback_strength([0.3] * 20) == 0.0

    def test_sample_entropy_constant(self):
        """A constant series is perfectly regular."""
        assert sample_entropy([0.5] * 20) == 0.0

    def test_scale_invariance_constant(self):
        """No variance means no invariance signal."""
        assert scale_invariance([0.5] * 32) == 0.0


class TestAnalyze:
    """Test the full detector."""

    def test_short_series_yields_nothing(self, detector):
        """Under eight points nothing is reported."""
        assert detector.analyze([0.1, 0.9, 0.1, 0.9, 0.1, 0.9, 0.1]) == []
        assert detector.analyze([CognitiveStateVector()] * 7) == []

    def test_ramp_is_persistent_trend(self, detector):
        """A linear ramp shows trend and fractal persistence."""
        patterns = detector.analyze([float(i) for i in range(20)])
        types = _types(patterns)
        assert PatternType.TREND in types
        assert PatternType.FRACTAL_PERSISTENCE in types
        trend = next(p for p in patterns if p.pattern_type == PatternType.TREND)
        assert trend.confidence == pytest.approx(1.0)

    def test_sorted_by_confidence(self, detector):
        """Highest confidence first."""
        patterns = detector.analyze([float(i) for i in range(20)])
        confidences = [p.confidence for p in patterns]
        assert confidences == sorted(confidences, reverse=True)

    def test_constant_series_has_no_trend(self, detector):
        """Flat input has neither trend nor periodicity."""
        types = _types(detector.analyze([0.5] * 20))
        assert PatternType.TREND not in types
        assert PatternType.PERIODIC not in types
        assert PatternType.FRACTAL_PERSISTENCE not in types

    def test_periodic_series(self, detector):
        """Oscillating input is periodic."""
        values = [0.5 + 0.4 * np.sin(np.pi * i / 2) for i in range(32)]
        assert PatternType.PERIODIC in _types(detector.analyze(values))

    def test_attention_patterns(self, detector):
        """Coupling, wandering and switching on state vectors."""
        states = [
            CognitiveStateVector(attention=a, recognition=a, wandering=0.8)
            for a in [0.2, 0.8] * 5
        ]
        types = _types(detector.analyze(states))
        assert PatternType.ATTENTION_RECOGNITION_COUPLING in types
        assert PatternType.MIND_WANDERING_EPISODE in types
        assert PatternType.FREQUENT_ATTENTION_SWITCHING in types

    def test_decoupling(self, detector):
        """Opposed attention and recognition are decoupled."""
        states = [
            CognitiveStateVector(attention=a, recognition=1.0 - a, wandering=0.1)
            for a in [0.2, 0.8] * 5
        ]
        types = _types(detector.analyze(states))
        assert PatternType.ATTENTION_RECOGNITION_DECOUPLING in types
        assert PatternType.ATTENTION_RECOGNITION_COUPLING not in types

    def test_attention_patterns_need_three_dimensions(self, detector):
        """Two-dimensional rows skip attention analysis."""
        rows = [[a, a] for a in [0.2, 0.8] * 5]
        types = _types(detector.analyze(rows))
        assert PatternType.FREQUENT_ATTENTION_SWITCHING not in types

    def test_confidences_bounded_and_scale_recorded(self, detector):
        """Random input stays in range and carries the scale index."""
        rng = np.random.default_rng(3)
        rows = rng.uniform(0.0, 1.0, size=(64, 3))
        patterns = detector.analyze(rows, scale=2)
        assert all(0.0 <= p.confidence <= 1.0 for p in patterns)
        assert all(p.scale == 2 for p in patterns)

    def test_deterministic(self, detector):
        """Same series, same patterns."""
        rng = np.random.default_rng(9)
        rows = rng.uniform(0.0, 1.0, size=(40, 3))
        assert detector.analyze(rows) == detector.analyze(rows)
