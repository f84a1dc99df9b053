"""
Unit tests for priority configuration.
Tests presets, overrides, environment variables and the settings file.
"""

import json
import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent))

from attention.core.config import (
    Config,
    DEFAULT_PRIORITY_CONFIG,
    PriorityConfig,
    PriorityConfigError,
    ScoringWeights,
    V1_PRIORITY_CONFIG,
)
from attention.core.models import SourceType


class TestPriorityConfig:
    """Tests for the immutable PriorityConfig value."""

    def test_defaults(self):
        """Default config should match the documented defaults."""
        config = PriorityConfig()
        assert config.weights == ScoringWeights(0.35, 0.30, 0.15, 0.20, 0.0)
        assert config.min_score == 0.3
        assert config.max_items == 10
        assert config.max_items_per_source == 3
        assert config.company_stale_threshold == 14
        assert config.strict_max_items is False

    def test_is_immutable(self):
        """Config should be frozen."""
        with pytest.raises(AttributeError):
            DEFAULT_PRIORITY_CONFIG.max_items = 3

    def test_cap_for_uses_override(self):
        """Per-source caps should override max_items_per_source."""
        config = PriorityConfig(source_caps={SourceType.INBOX: 1})
        assert config.cap_for(SourceType.INBOX) == 1
        assert config.cap_for(SourceType.TASK) == 3

    def test_with_overrides_ignores_none(self):
        """None overrides should leave fields unchanged."""
        config = DEFAULT_PRIORITY_CONFIG.with_overrides(max_items=5, min_score=None)
        assert config.max_items == 5
        assert config.min_score == 0.3
        assert DEFAULT_PRIORITY_CONFIG.max_items == 10

    def test_with_overrides_merges_weights(self):
        """A weights mapping should merge into the existing weights."""
        config = DEFAULT_PRIORITY_CONFIG.with_overrides(weights={"effort": 0.1})
        assert config.weights.effort == 0.1
        assert config.weights.urgency == 0.35

    def test_from_dict_round_trip(self):
        """from_dict should accept what to_dict produces."""
        config = PriorityConfig(source_caps={SourceType.READING_ITEM: 1}, strict_max_items=True)
        assert PriorityConfig.from_dict(config.to_dict()) == config

    def test_from_dict_rejects_bad_number(self):
        """Non-numeric values should raise PriorityConfigError."""
        with pytest.raises(PriorityConfigError):
            PriorityConfig.from_dict({"max_items": "many"})

    def test_from_dict_rejects_unknown_source(self):
        """Unknown source types in source_caps should raise."""
        with pytest.raises(PriorityConfigError):
            PriorityConfig.from_dict({"source_caps": {"newsletter": 2}})

    def test_from_dict_rejects_non_mapping_weights(self):
        """weights must be a mapping of dimension to number."""
        with pytest.raises(PriorityConfigError):
            PriorityConfig.from_dict({"weights": "heavy"})

    def test_from_dict_rejects_non_mapping_source_caps(self):
        """source_caps must be a mapping of source type to cap."""
        with pytest.raises(PriorityConfigError):
            PriorityConfig.from_dict({"source_caps": ["task"]})

    def test_from_dict_parses_string_flag(self):
        """strict_max_items given as "false" stays off."""
        assert PriorityConfig.from_dict({"strict_max_items": "false"}).strict_max_items is False
        assert PriorityConfig.from_dict({"strict_max_items": "true"}).strict_max_items is True

    def test_config_error_is_value_error(self):
        """Callers catching ValueError should also catch config errors."""
        assert issubclass(PriorityConfigError, ValueError)


class TestConfigStore:
    """Tests for the file and environment backed Config."""

    def test_creates_settings_file(self, tmp_path):
        """First load should write a settings file."""
        Config(tmp_path, environ={})
        assert (tmp_path / "priority.json").exists()

    def test_default_priority_config(self, tmp_path):
        """Without settings or environment the defaults apply."""
        config = Config(tmp_path, environ={}).priority_config()
        assert config == DEFAULT_PRIORITY_CONFIG

    def test_file_settings_apply(self, tmp_path):
        """Values in priority.json should override the preset."""
        (tmp_path / "priority.json").write_text(json.dumps({
            "max_items": 6,
            "weights": {"recency": 0.05},
        }))
        config = Config(tmp_path, environ={}).priority_config()
        assert config.max_items == 6
        assert config.weights.recency == 0.05
        assert config.weights.urgency == 0.35

    def test_preset(self, tmp_path):
        """A preset should replace the default values."""
        store = Config(tmp_path, environ={})
        store.set("preset", "v1")
        assert store.priority_config() == V1_PRIORITY_CONFIG

    def test_unknown_preset_raises(self, tmp_path):
        """An unknown preset name should raise PriorityConfigError."""
        (tmp_path / "priority.json").write_text(json.dumps({"preset": "v9"}))
        with pytest.raises(PriorityConfigError):
            Config(tmp_path, environ={}).priority_config()

    def test_set_persists(self, tmp_path):
        """set should save to disk."""
        Config(tmp_path, environ={}).set("min_score", 0.4)
        assert Config(tmp_path, environ={}).priority_config().min_score == 0.4

    def test_set_rejects_invalid_value(self, tmp_path):
        """set should not persist a value that cannot be parsed."""
        store = Config(tmp_path, environ={})
        with pytest.raises(PriorityConfigError):
            store.set("max_items", "lots")
        assert store.get("max_items") is None

    def test_environment_overrides_file(self, tmp_path):
        """ATTENTION_* variables should win over the settings file."""
        (tmp_path / "priority.json").write_text(json.dumps({"max_items": 6}))
        config = Config(tmp_path, environ={
            "ATTENTION_MAX_ITEMS": "4",
            "ATTENTION_WEIGHT_EFFORT": "0.1",
        }).priority_config()
        assert config.max_items == 4
        assert config.weights.effort == 0.1

    def test_bad_environment_value_ignored(self, tmp_path, caplog):
        """Invalid environment values should be logged and ignored."""
        config = Config(tmp_path, environ={"ATTENTION_MIN_SCORE": "high"}).priority_config()
        assert config.min_score == 0.3
        assert "ATTENTION_MIN_SCORE" in caplog.text

    def test_set_rejects_non_mapping_weights(self, tmp_path):
        """Unusable weights are refused and never reach the settings file."""
        store = Config(tmp_path, environ={})
        with pytest.raises(PriorityConfigError):
            store.set("weights", "heavy")
        assert "weights" not in json.loads((tmp_path / "priority.json").read_text())
        assert store.priority_config() == DEFAULT_PRIORITY_CONFIG

    def test_hand_edited_bad_weights_raise_config_error(self, tmp_path):
        """A settings file with bad weights fails with PriorityConfigError."""
        (tmp_path / "priority.json").write_text(json.dumps({"weights": "heavy"}))
        with pytest.raises(PriorityConfigError):
            Config(tmp_path, environ={}).priority_config()

    def test_settings_file_must_be_object(self, tmp_path):
        """A settings file that is not a JSON object is rejected."""
        (tmp_path / "priority.json").write_text("[]")
        with pytest.raises(PriorityConfigError):
            Config(tmp_path, environ={})
