"""
Unit tests for configuration loading.

Tests lenient pricing loading, default file creation, paths and
provider settings validation.
"""

import os
import tempfile
from pathlib import Path

import pytest
import yaml

from ai_savings_tracker.config.loader import (
    DEFAULT_HOME,
    HOME_ENV_VAR,
    ProviderSettings,
    TrackerPaths,
    default_pricing_document,
    load_pricing_config,
    write_default_pricing_config,
)
from ai_savings_tracker.core.pricing import DEFAULT_PRICING, TokenPricing


class TestPricingConfigLoading:
    """Test pricing configuration loading and fallbacks."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        """Clean up test environment."""
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_config(self, config_data, filename: str = "pricing.yaml") -> str:
        """Write configuration data to temporary file."""
        config_path = os.path.join(self.temp_dir, filename)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_data, f)
        return config_path

    def test_valid_config_loads_correctly(self):
        """Test that a valid configuration loads correctly."""
        config_path = self._write_config({
            "baseline": {"inputCostPerMillion": 3.0, "outputCostPerMillion": 15.0},
            "treated": {"inputCostPerMillion": 0.5, "outputCostPerMillion": 2},
        })
        config = load_pricing_config(config_path)

        assert config.baseline == TokenPricing(3.0, 15.0)
        assert config.treated == TokenPricing(0.5, 2)

    def test_json_file_accepted(self):
        """Test that a JSON pricing file parses too."""
        config_path = os.path.join(self.temp_dir, "pricing.json")
        with open(config_path, 'w', encoding='utf-8') as f:
            f.write('{"baseline": {"inputCostPerMillion": 8, "outputCostPerMillion": 4}}')

        config = load_pricing_config(config_path)
        assert config.baseline == TokenPricing(8, 4)
        assert config.treated == DEFAULT_PRICING.treated

    def test_missing_file_uses_defaults(self):
        """Test that a missing file yields default pricing."""
        assert load_pricing_config(os.path.join(self.temp_dir, "nope.yaml")) == DEFAULT_PRICING

    def test_invalid_yaml_uses_defaults(self):
        """Test that invalid YAML yields default pricing instead of raising."""
        config_path = os.path.join(self.temp_dir, "invalid.yaml")
        with open(config_path, 'w') as f:
            f.write("invalid: yaml: content: [")

        assert load_pricing_config(config_path) == DEFAULT_PRICING

    def test_empty_file_uses_defaults(self):
        """Test that an empty file yields default pricing."""
        config_path = os.path.join(self.temp_dir, "empty.yaml")
        Path(config_path).write_text("")
        assert load_pricing_config(config_path) == DEFAULT_PRICING

    def test_non_mapping_uses_defaults(self):
        """Test that a top-level list yields default pricing."""
        config_path = self._write_config([1, 2, 3])
        assert load_pricing_config(config_path) == DEFAULT_PRICING

    def test_invalid_block_falls_back_alone(self):
        """Test that one bad block doesn't discard the other."""
        config_path = self._write_config({
            "baseline": {"inputCostPerMillion": -3, "outputCostPerMillion": 15},
            "treated": {"inputCostPerMillion": 0.25, "outputCostPerMillion": 1},
        })
        config = load_pricing_config(config_path)

        assert config.baseline == DEFAULT_PRICING.baseline
        assert config.treated == TokenPricing(0.25, 1)

    def test_non_numeric_rate_falls_back(self):
        """Test that string rates are rejected."""
        config_path = self._write_config({
            "baseline": {"inputCostPerMillion": "ten", "outputCostPerMillion": 5},
        })
        assert load_pricing_config(config_path).baseline == DEFAULT_PRICING.baseline

    def test_oversized_rate_falls_back(self):
        """Test that a rate too large for a float is rejected, not raised."""
        config_path = self._write_config({
            "baseline": {"inputCostPerMillion": 10 ** 400, "outputCostPerMillion": 5},
        })
        config = load_pricing_config(config_path)

        assert config.baseline == DEFAULT_PRICING.baseline
        assert config.treated == DEFAULT_PRICING.treated

    def test_block_not_mapping_falls_back(self):
        """Test that a scalar pricing block is rejected."""
        config_path = self._write_config({"treated": 12})
        assert load_pricing_config(config_path).treated == DEFAULT_PRICING.treated

    def test_partial_block_fills_missing_rate(self):
        """Test that a missing rate takes the block default."""
        config_path = self._write_config({"treated": {"outputCostPerMillion": 9.5}})
        config = load_pricing_config(config_path)

        assert config.treated == TokenPricing(DEFAULT_PRICING.treated.input_cost_per_million, 9.5)

    def test_unknown_keys_ignored(self):
        """Test that extra settings don't affect pricing."""
        config_path = self._write_config({
            "savings_notifications": False,
            "interval_hours": 24,
            "baseline": {"inputCostPerMillion": 10, "outputCostPerMillion": 5},
        })
        assert load_pricing_config(config_path) == DEFAULT_PRICING


class TestDefaultPricingFile:
    """Test default pricing file creation."""

    def test_writes_defaults(self, tmp_path):
        """Test that the default file is created and loads back as defaults."""
        path = tmp_path / "savings" / "pricing.yaml"

        assert write_default_pricing_config(path) is True
        assert yaml.safe_load(path.read_text()) == default_pricing_document()
        assert load_pricing_config(path) == DEFAULT_PRICING

    def test_existing_file_untouched(self, tmp_path):
        """Test that user edits survive a second install."""
        path = tmp_path / "pricing.yaml"
        path.write_text("baseline:\n  inputCostPerMillion: 99\n")

        assert write_default_pricing_config(path) is False
        assert path.read_text() == "baseline:\n  inputCostPerMillion: 99\n"


class TestTrackerPaths:
    """Test file location resolution."""

    def test_derived_paths(self, tmp_path):
        """Test that all files live under the home directory."""
        paths = TrackerPaths(tmp_path)

        assert paths.config_path == tmp_path / "openclaw.json"
        assert paths.agents_dir == tmp_path / "agents"
        assert paths.pricing_path == tmp_path / "savings" / "pricing.yaml"
        assert paths.checkpoint_path == tmp_path / "savings" / "state.json"

    def test_env_override(self, tmp_path):
        """Test that the environment variable overrides the home directory."""
        paths = TrackerPaths.from_env({HOME_ENV_VAR: str(tmp_path)})
        assert paths.home == tmp_path

    def test_default_home(self):
        """Test the fallback home directory."""
        assert TrackerPaths.from_env({}).home == DEFAULT_HOME


class TestProviderSettings:
    """Test provider settings validation."""

    def test_defaults(self):
        """Test that defaults match the treated pricing."""
        settings = ProviderSettings(api_key="k")
        assert settings.input_cost_per_million == DEFAULT_PRICING.treated.input_cost_per_million
        assert settings.output_cost_per_million == DEFAULT_PRICING.treated.output_cost_per_million

    @pytest.mark.parametrize("api_key", ["", "   "])
    def test_empty_api_key_rejected(self, api_key):
        """Test that an API key is required."""
        with pytest.raises(ValueError, match="api_key is required"):
            ProviderSettings(api_key=api_key)

    def test_provider_id_with_slash_rejected(self):
        """Test that provider ids can't break the provider/model reference."""
        with pytest.raises(ValueError, match="provider_id"):
            ProviderSettings(api_key="k", provider_id="a/b")

    def test_limits_must_be_positive(self):
        """Test context window and max tokens validation."""
        with pytest.raises(ValueError, match="context_window must be > 0"):
            ProviderSettings(api_key="k", context_window=0)
        with pytest.raises(ValueError, match="max_tokens must be > 0"):
            ProviderSettings(api_key="k", max_tokens=-1)
