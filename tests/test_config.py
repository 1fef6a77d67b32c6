"""Tests for engine configuration."""
import pytest

from cogscore.config import (
    EmbeddingConfig,
    EngineConfig,
    PipelineConfig,
    ViabilityConfig,
)


class TestDefaults:
    """Test default values and validation."""

    def test_defaults(self):
        config = EngineConfig()
        assert config.embedding.dimension == 128
        assert config.embedding.attention_weight == 0.7
        assert config.pipeline.lambda1 == 0.7
        assert config.pipeline.lambda2 == 0.3
        assert config.meta.drift_threshold == 0.3
        assert config.simulation.num_scales == 3

    def test_dimension_validated(self):
        with pytest.raises(ValueError):
            EmbeddingConfig(dimension=2)

    def test_weights_must_sum_to_one(self):
        with pytest.raises(ValueError):
            ViabilityConfig(base_weights=(0.5, 0.5, 0.5, 0.5))

    def test_initial_alpha_clamped(self):
        assert PipelineConfig(initial_alpha=0.95).initial_alpha == 0.9

    def test_invalid_ticks(self):
        with pytest.raises(ValueError, match="ticks"):
            PipelineConfig(ticks=0)


class TestFromMapping:
    """Test building configs from override bundles."""

    def test_flat_keys(self):
        config = EngineConfig.from_mapping(
            {"embedding_dimension": 64, "lambda1": 0.5, "critical_load": 0.9}
        )
        assert config.embedding.dimension == 64
        assert config.pipeline.lambda1 == 0.5
        assert config.meta.critical_load == 0.9

    def test_seed_shared(self):
        config = EngineConfig.from_mapping({"seed": 11})
        assert config.simulation.seed == 11
        assert config.embedding.seed == 11

    def test_nested_sections(self):
        config = EngineConfig.from_mapping({"meta": {"drift_threshold": 0.25}, "pipeline": {"ticks": 3}})
        assert config.meta.drift_threshold == 0.25
        assert config.pipeline.ticks == 3

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown configuration key"):
            EngineConfig.from_mapping({"bogus": 1})

    def test_unknown_nested_key(self):
        with pytest.raises(ValueError, match="section 'meta'"):
            EngineConfig.from_mapping({"meta": {"bogus": 1}})
