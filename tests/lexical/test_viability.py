"""Tests for the Lexical Viability Scorer."""
from unittest.mock import patch

import pytest

from cogscore.lexical import LEARNER_PROFILES, LearnerProfile, LexicalViabilityScorer, notation_preference
from cogscore.lexical.notation import NotationStyle
from cogscore.schemas import CognitiveStateVector


def _symbols(text: str) -> set[str]:
    return {ch for ch in text if ch in "∪∩×∅"}


class TestViability:
    """Test cached viability scores."""

    def test_bounded(self, scorer):
        """Scores lie in [0, 1] across states and expressions."""
        for expr in ("{1,2} ∪ {3,4}", "A ∩ B", "x + y", "{x | x > 0}", ""):
            for a in (0.0, 0.5, 1.0):
                for w in (0.0, 0.5, 1.0):
                    state = CognitiveStateVector(attention=a, recognition=0.5, wandering=w)
                    assert 0.0 <= scorer.viability(expr, state) <= 1.0

    def test_cached(self, scorer):
        """A second lookup in the same quantized state is served from cache."""
        state = CognitiveStateVector(attention=0.5, recognition=0.5, wandering=0.1)
        nearby = CognitiveStateVector(attention=0.501, recognition=0.5, wandering=0.1)
        with patch.object(scorer, "_compute", wraps=scorer._compute) as compute:
            first = scorer.viability("A ∪ B", state)
            second = scorer.viability("A ∪ B", nearby)
        assert first == second
        assert compute.call_count == 1
        assert scorer.cache_info() == {"hits": 1, "misses": 1, "size": 1}

    def test_different_state_recomputes(self, scorer):
        """A different quantized state is a different cache entry."""
        with patch.object(scorer, "_compute", wraps=scorer._compute) as compute:
            scorer.viability("A ∪ B", CognitiveStateVector(attention=0.2))
            scorer.viability("A ∪ B", CognitiveStateVector(attention=0.9))
        assert compute.call_count == 2

    def test_profile_update_invalidates(self, scorer):
        """Changing the learner profile clears the cache."""
        state = CognitiveStateVector()
        with patch.object(scorer, "_compute", wraps=scorer._compute) as compute:
            scorer.viability("A ∪ B", state)
            scorer.update_learner_profile("experience_level", 0.9)
            scorer.viability("A ∪ B", state)
        assert compute.call_count == 2
        assert scorer.learner_profile.experience_level == 0.9

    def test_set_profile_clears_cache(self, scorer):
        scorer.viability("A ∪ B", CognitiveStateVector())
        scorer.set_learner_profile("beginner")
        assert scorer.cache_info()["size"] == 0
        assert scorer.learner_profile == LEARNER_PROFILES["beginner"]

    def test_update_unknown_key(self, scorer):
        with pytest.raises(ValueError, match="Unknown learner profile key"):
            scorer.update_learner_profile("shoe_size", 0.5)

    def test_update_out_of_range(self, scorer):
        with pytest.raises(ValueError, match="attention_span"):
            scorer.update_learner_profile("attention_span", 1.5)

    def test_update_style(self, scorer):
        """Styles may be given by value."""
        scorer.update_learner_profile("preferred_style", "verbal")
        assert scorer.learner_profile.preferred_style == NotationStyle.VERBAL

    def test_unknown_profile_name(self, embedding_store):
        with pytest.raises(ValueError, match="Unknown learner profile"):
            LexicalViabilityScorer(embedding_store, learner_profile="wizard")

    def test_custom_profile(self, embedding_store):
        profile = LearnerProfile(experience_level=0.3, attention_span=0.5)
        scorer = LexicalViabilityScorer(embedding_store, learner_profile=profile)
        assert scorer.learner_profile.capacity == pytest.approx(0.4)


class TestWeights:
    """Test state-dependent weight shifts."""

    def test_weights_sum_to_one(self, scorer):
        for a in (0.0, 0.3, 0.7, 1.0):
            for w in (0.0, 0.5, 1.0):
                weights = scorer.weights(CognitiveStateVector(attention=a, wandering=w))
                assert sum(weights) == pytest.approx(1.0)

    def test_low_attention_shifts_to_attention(self, scorer):
        """Attention 0.2 moves 0.12 onto the attention sub-score."""
        state = CognitiveStateVector(attention=0.2, recognition=0.9, wandering=0.0)
        weights = scorer.weights(state)
        assert weights == pytest.approx((0.42, 0.19, 0.25, 0.14))

    def test_high_load_shifts_to_learner(self, scorer):
        """Full load moves 0.2 onto the learner sub-score."""
        state = CognitiveStateVector(attention=0.6, recognition=0.2, wandering=0.5)
        weights = scorer.weights(state)
        assert weights == pytest.approx((0.3, 0.15, 0.45, 0.1))

    def test_neutral_state_keeps_base(self, scorer):
        state = CognitiveStateVector(attention=0.8, recognition=0.8, wandering=0.1)
        assert scorer.weights(state) == pytest.approx((0.3, 0.25, 0.25, 0.2))


class TestSubScores:
    """Test individual sub-scores."""

    def test_attention_damped_by_volatility(self, scorer, make_result):
        """Volatile attention history halves the attention sub-score."""
        state = CognitiveStateVector(attention=0.8, wandering=0.1)
        steady = [make_result(0.8) for _ in range(4)]
        volatile = [make_result(a) for a in (0.0, 1.0, 0.0, 1.0)]
        assert scorer.attention_viability(state, steady) == pytest.approx(0.72)
        assert scorer.attention_viability(state, volatile) == pytest.approx(0.36)

    def test_embedding_neutral_without_context(self, scorer):
        """No neighbours and no tokens give 0.5."""
        assert scorer.embedding_viability("+") == 0.5

    def test_learner_prefers_short_text(self, scorer):
        """Short expressions are easier for a beginner than long ones."""
        scorer.set_learner_profile("beginner")
        short = scorer.learner_viability("A ∪ B")
        long = scorer.learner_viability(" ∪ ".join(f"{{{i},{i + 1}}}" for i in range(12)))
        assert short > long

    def test_notation_preference(self):
        """Set symbols score highest; term weights blend in."""
        assert notation_preference("A ∪ B") == pytest.approx(0.68)
        assert notation_preference("x + y") == pytest.approx(0.3 + 0.4 * (0.9 + 1.0 + 0.9) / 3)
        assert notation_preference("") == pytest.approx(0.5)


class TestOptimizeNotation:
    """Test notation rewrites driven by viability."""

    def test_low_viability_spells_out(self, scorer):
        with patch.object(scorer, "viability", return_value=0.2):
            assert scorer.optimize_notation("A ∪ B", CognitiveStateVector()) == "A union B"

    def test_high_viability_keeps_text(self, scorer):
        with patch.object(scorer, "viability", return_value=0.9):
            assert scorer.optimize_notation("A ∪ B", CognitiveStateVector()) == "A ∪ B"

    def test_wandering_adds_structure(self, scorer):
        state = CognitiveStateVector(attention=0.5, wandering=0.7)
        with patch.object(scorer, "viability", return_value=0.6):
            assert scorer.optimize_notation("A ∪ B", state) == "(A ∪ B)"

    def test_focused_learner_gets_compact(self, scorer):
        state = CognitiveStateVector(attention=0.9, wandering=0.1)
        with patch.object(scorer, "viability", return_value=0.6):
            assert scorer.optimize_notation("A union B", state) == "A ∪ B"

    def test_middle_band_unchanged(self, scorer):
        state = CognitiveStateVector(attention=0.6, wandering=0.3)
        with patch.object(scorer, "viability", return_value=0.6):
            assert scorer.optimize_notation("A union B", state) == "A union B"


class TestNotationFit:
    """Test how the learner's readiness shapes scores for symbols and words."""

    DISTRACTED = CognitiveStateVector(attention=0.2, recognition=0.4, wandering=0.7)
    OVERLOADED = CognitiveStateVector(attention=0.6, recognition=0.2, wandering=0.5)
    FOCUSED = CognitiveStateVector(attention=0.9, recognition=0.8, wandering=0.1)

    def test_readiness(self, scorer):
        """Focus is attention without wandering, cut off by overload."""
        assert scorer.readiness(self.FOCUSED) == pytest.approx(0.81)
        assert scorer.readiness(self.DISTRACTED) == 0.0
        assert scorer.readiness(self.OVERLOADED) == 0.0
        partial = CognitiveStateVector(attention=0.5, recognition=0.5, wandering=0.2)
        # load 0.7 is a quarter of the way from 0.6 to full load
        assert scorer.readiness(partial) == pytest.approx(0.4 * 0.75)

    def test_fit_follows_symbolic_share(self, scorer):
        """A focused learner fits symbols better than words; a distracted one the reverse."""
        assert scorer.notation_fit("A ∪ B", self.FOCUSED) == pytest.approx(0.648)
        assert scorer.notation_fit("A union B", self.FOCUSED) == pytest.approx(0.352)
        assert scorer.notation_fit("A ∪ B", self.DISTRACTED) == 0.0
        assert scorer.notation_fit("A union B", self.DISTRACTED) == 1.0

    @pytest.mark.parametrize("profile", sorted(LEARNER_PROFILES))
    @pytest.mark.parametrize("expression", ["A ∪ B", "A ∩ B", "{1,2} ∪ {3,4}", "A ∩ B ∪ C"])
    def test_compact_below_threshold_when_distracted(self, scorer, profile, expression):
        scorer.set_learner_profile(profile)
        assert scorer.viability(expression, self.DISTRACTED) < 0.4
        assert scorer.viability(expression, self.OVERLOADED) < 0.4

    @pytest.mark.parametrize("profile", sorted(LEARNER_PROFILES))
    @pytest.mark.parametrize("expression", ["A union B", "A intersect B", "{1,2} union {3,4}"])
    def test_spelled_out_middle_band_when_focused(self, scorer, profile, expression):
        scorer.set_learner_profile(profile)
        assert 0.4 <= scorer.viability(expression, self.FOCUSED) <= 0.8

    @pytest.mark.parametrize("original", ["A ∪ B", "A ∩ B", "{1,2} ∪ {3,4}", "A ∩ B ∪ C"])
    def test_spell_then_compact_restores_symbols(self, scorer, original):
        """Spelled out for a distracted learner, compacted again once focused."""
        spelled = scorer.optimize_notation(original, self.DISTRACTED)
        restored = scorer.optimize_notation(spelled, self.FOCUSED)
        assert not _symbols(spelled)
        assert _symbols(restored) == _symbols(original)
        assert restored == original


class TestRankNotations:
    """Test ranking alternative renderings."""

    def test_ranked_and_unique(self, scorer):
        ranked = scorer.rank_notations("{1,2} ∪ {3,4}", CognitiveStateVector())
        notations = [s.notation for s in ranked]
        assert len(notations) == len(set(notations))
        assert {s.transform for s in ranked} == {"original", "spelled_out", "structured"}
        scores = [s.score for s in ranked]
        assert scores == sorted(scores, reverse=True)

    def test_simplified_candidate(self, scorer):
        """A ∪ A offers its simplified form."""
        ranked = scorer.rank_notations("A ∪ A", CognitiveStateVector())
        assert any(s.transform == "simplified" and s.notation == "A" for s in ranked)
