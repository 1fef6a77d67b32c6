"""Tests for the engine facade and the CLI."""
import json
import threading

import pytest
from click.testing import CliRunner

from cogscore.cli import cli, parse_config_args
from cogscore.config import EmbeddingConfig, EngineConfig
from cogscore.errors import PipelineError
from cogscore.orchestrator import CognitiveScoringEngine
from cogscore.schemas import CognitiveStateVector


@pytest.fixture
def engine():
    eng = CognitiveScoringEngine(EngineConfig(embedding=EmbeddingConfig(dimension=16)))
    yield eng
    eng.close()


class TestSessions:
    """Test session management."""

    def test_sessions_share_store(self, engine):
        """Sessions own their state but share embeddings and scorer."""
        first = engine.open_session()
        second = engine.open_session()
        assert first.session_id != second.session_id
        assert first.embedding_store is second.embedding_store is engine.embedding_store
        assert first.scorer is second.scorer
        assert first.simulator is not second.simulator
        assert first.bias_adjuster is not second.bias_adjuster

    def test_reopen_by_id(self, engine):
        assert engine.open_session("abc") is engine.open_session("abc")
        assert engine.sessions() == ["abc"]

    def test_bias_profile(self, engine):
        session = engine.open_session(bias_profile="analytical")
        assert session.bias_adjuster.profile == "analytical"

    def test_close_session(self, engine):
        engine.open_session("abc")
        engine.close_session("abc")
        assert engine.sessions() == []

    @pytest.mark.asyncio
    async def test_optimize(self, engine):
        result = await engine.optimize("{1,2} ∪ {3,4}", session_id="s1")
        assert result.session_id == "s1"
        assert 0.0 <= result.psi <= 1.0

    @pytest.mark.asyncio
    async def test_anonymous_runs_release_sessions(self, engine):
        """Runs without a session id leave no session or worker threads behind."""
        threads_before = threading.active_count()
        for _ in range(10):
            result = await engine.optimize("A ∪ B")
            assert 0.0 <= result.psi <= 1.0
        assert engine.sessions() == []
        assert threading.active_count() <= threads_before

    @pytest.mark.asyncio
    async def test_anonymous_run_failure_closes_session(self, engine):
        threads_before = threading.active_count()
        with pytest.raises(PipelineError):
            await engine.optimize("   ")
        assert engine.sessions() == []
        assert threading.active_count() <= threads_before


class TestLearning:
    """Test feedback and notation ranking through the engine."""

    def test_record_feedback(self, engine):
        """Known tokens of the expression are updated."""
        state = CognitiveStateVector(attention=0.8, recognition=0.7, wandering=0.1)
        weight = engine.embedding_store.get("∪").adaptive_weight
        updated = engine.record_feedback("A ∪ B", state, success=True)
        assert updated >= 1
        assert engine.embedding_store.get("∪").adaptive_weight > weight

    def test_rank_notations(self, engine):
        ranked = engine.rank_notations("A ∪ B")
        assert ranked
        assert {s.transform for s in ranked} >= {"original", "spelled_out"}

    def test_set_learner_profile(self, engine):
        engine.set_learner_profile("advanced")
        assert engine.scorer.learner_profile.experience_level == 0.9


class TestParseConfigArgs:
    """Test key=value parsing."""

    def test_numbers(self):
        assert parse_config_args(["lambda1=0.5", "seed=7"]) == {"lambda1": 0.5, "seed": 7}

    def test_missing_equals(self):
        with pytest.raises(ValueError, match="key=value"):
            parse_config_args(["lambda1"])

    def test_non_numeric(self):
        with pytest.raises(ValueError, match="numeric"):
            parse_config_args(["lambda1=high"])


class TestCli:
    """Test the click commands."""

    def test_score_json(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["score", "{1,2} ∪ {3,4}", "--json", "-c", "seed=3"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["expression"] == "{1,2} ∪ {3,4}"
        assert 0.0 <= data["psi"] <= 1.0

    def test_score_text(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["score", "A ∩ B", "--learner", "beginner"])
        assert result.exit_code == 0, result.output
        assert "optimized" in result.stdout

    def test_score_output_file(self, tmp_path):
        runner = CliRunner()
        target = tmp_path / "out" / "result.json"
        result = runner.invoke(cli, ["score", "A ∪ B", "-o", str(target)])
        assert result.exit_code == 0, result.output
        assert json.loads(target.read_text())["expression"] == "A ∪ B"

    def test_unknown_config_key(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["score", "A ∪ B", "-c", "bogus=1"])
        assert result.exit_code == 2

    def test_suggest(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["suggest", "A ∪ B", "-a", "0.9", "-w", "0.1"])
        assert result.exit_code == 0, result.output
        assert "original" in result.stdout
        assert "spelled_out" in result.stdout
