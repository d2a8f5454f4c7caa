"""
Configuration management and loading.

Handles file locations, environment variables, savings pricing and the
provider settings used to patch the agent runtime configuration.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import yaml

from ai_savings_tracker.core.pricing import (
    DEFAULT_BASELINE_PRICING,
    DEFAULT_PRICING,
    DEFAULT_TREATED_PRICING,
    PricingConfig,
    TokenPricing,
)

logger = logging.getLogger(__name__)

HOME_ENV_VAR = "AI_SAVINGS_HOME"
DEFAULT_HOME = Path.home() / ".openclaw"


@dataclass(frozen=True)
class TrackerPaths:
    """File locations derived from the agent runtime home directory."""
    home: Path

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "TrackerPaths":
        """Resolve the home directory from AI_SAVINGS_HOME, else ~/.openclaw."""
        env = os.environ if environ is None else environ
        override = env.get(HOME_ENV_VAR)
        if override:
            return cls(Path(override).expanduser())
        return cls(DEFAULT_HOME)

    @property
    def config_path(self) -> Path:
        """Main runtime configuration file (merge target)."""
        return self.home / "openclaw.json"

    @property
    def agents_dir(self) -> Path:
        """Root of the per-agent session logs."""
        return self.home / "agents"

    @property
    def data_dir(self) -> Path:
        return self.home / "savings"

    @property
    def pricing_path(self) -> Path:
        return self.data_dir / "pricing.yaml"

    @property
    def checkpoint_path(self) -> Path:
        return self.data_dir / "state.json"


@dataclass(frozen=True)
class ProviderSettings:
    """Provider endpoint and model definition merged into the runtime config."""
    api_key: str
    provider_id: str = "sansa-ai"
    base_url: str = "https://api.sansaml.com/v1"
    api: str = "openai-completions"
    model_id: str = "sansa-auto"
    model_name: str = "sansa-auto (Custom Provider)"
    alias: str = "Sansa"
    reasoning: bool = True
    input_modalities: Tuple[str, ...] = ("text", "image")
    input_cost_per_million: float = DEFAULT_TREATED_PRICING.input_cost_per_million
    output_cost_per_million: float = DEFAULT_TREATED_PRICING.output_cost_per_million
    context_window: int = 131072
    max_tokens: int = 32768

    def __post_init__(self):
        """Validate required provider fields."""
        if not self.api_key or not self.api_key.strip():
            raise ValueError("api_key is required and cannot be empty")
        if not self.provider_id or "/" in self.provider_id:
            raise ValueError("provider_id must be non-empty and cannot contain '/'")
        if not self.model_id:
            raise ValueError("model_id is required and cannot be empty")
        if self.context_window <= 0:
            raise ValueError("context_window must be > 0")
        if self.max_tokens <= 0:
            raise ValueError("max_tokens must be > 0")


def load_pricing_config(path: Union[str, Path]) -> PricingConfig:
    """Load savings pricing from a YAML (or JSON) file.

    Unlike other config files this one is lenient: the report must always
    be produced, so anything missing or malformed falls back to the
    built-in rates instead of raising.

    Args:
        path: Path to pricing file

    Returns:
        PricingConfig with any invalid section replaced by its default
    """
    config_path = Path(path)
    if not config_path.exists():
        logger.info(f"No pricing file at {config_path}, using default rates")
        return DEFAULT_PRICING

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            raw_config = yaml.safe_load(f)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        logger.warning(f"Unreadable pricing file {config_path}: {e}; using default rates")
        return DEFAULT_PRICING

    if not raw_config:
        return DEFAULT_PRICING
    if not isinstance(raw_config, dict):
        logger.warning(f"Pricing file {config_path} is not a mapping; using default rates")
        return DEFAULT_PRICING

    return PricingConfig(
        baseline=_parse_pricing_block(raw_config.get('baseline'), 'baseline', DEFAULT_BASELINE_PRICING),
        treated=_parse_pricing_block(raw_config.get('treated'), 'treated', DEFAULT_TREATED_PRICING)
    )


def _parse_pricing_block(data: Any, path: str, default: TokenPricing) -> TokenPricing:
    """Parse one pricing block, falling back to its default.

    Args:
        data: Raw block from the pricing file
        path: Block name for log messages
        default: Pricing used when the block is missing or invalid

    Returns:
        Parsed TokenPricing or the default
    """
    if data is None:
        return default
    if not isinstance(data, dict):
        logger.warning(f"'{path}' pricing must be a mapping; using defaults")
        return default

    try:
        return TokenPricing(
            input_cost_per_million=data.get('inputCostPerMillion', default.input_cost_per_million),
            output_cost_per_million=data.get('outputCostPerMillion', default.output_cost_per_million)
        )
    except ValueError as e:
        logger.warning(f"Invalid '{path}' pricing ({e}); using defaults")
        return default


def default_pricing_document() -> Dict[str, Any]:
    """Pricing file content written on first install."""
    return {
        "savings_notifications": True,
        "baseline": {
            "inputCostPerMillion": DEFAULT_BASELINE_PRICING.input_cost_per_million,
            "outputCostPerMillion": DEFAULT_BASELINE_PRICING.output_cost_per_million,
        },
        "treated": {
            "inputCostPerMillion": DEFAULT_TREATED_PRICING.input_cost_per_million,
            "outputCostPerMillion": DEFAULT_TREATED_PRICING.output_cost_per_million,
        },
    }


def write_default_pricing_config(path: Union[str, Path]) -> bool:
    """Create the pricing file if it doesn't already exist.

    An existing file is left untouched so user edits survive reinstalls.

    Args:
        path: Path to pricing file

    Returns:
        True if the file was written, False if one already existed

    Raises:
        OSError: If the file cannot be written
    """
    config_path = Path(path)
    if config_path.exists():
        return False

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(default_pricing_document(), f, sort_keys=False)
    logger.info(f"Wrote default pricing to {config_path}")
    return True
