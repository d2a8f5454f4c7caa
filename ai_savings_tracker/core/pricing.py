"""
Pricing calculations and savings comparison.

Computes what observed token usage costs under the baseline provider
pricing and under the treated (actually used) provider pricing.
"""

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Union

from .token_counter import TokenUsage

TOKENS_PER_MILLION = Decimal("1000000")

Rate = Union[int, float, Decimal]


@dataclass(frozen=True)
class TokenPricing:
    """Per-million-token pricing for a single provider."""
    input_cost_per_million: float  # USD per 1M input tokens
    output_cost_per_million: float  # USD per 1M output tokens

    def __post_init__(self):
        """Validate rates are non-negative numbers."""
        for name in ("input_cost_per_million", "output_cost_per_million"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
                raise ValueError(f"{name} must be a number")
            try:
                finite = math.isfinite(value)
            except OverflowError:
                raise ValueError(f"{name} is out of range") from None
            if not finite:
                raise ValueError(f"{name} must be finite")
            if value < 0:
                raise ValueError(f"{name} cannot be negative")


@dataclass(frozen=True)
class PricingConfig:
    """Baseline and treated pricing used for every savings comparison."""
    baseline: TokenPricing
    treated: TokenPricing


# Typical flagship provider rates the user would pay without routing
DEFAULT_BASELINE_PRICING = TokenPricing(
    input_cost_per_million=10.0,
    output_cost_per_million=5.0
)

DEFAULT_TREATED_PRICING = TokenPricing(
    input_cost_per_million=1.5,
    output_cost_per_million=6.0
)

DEFAULT_PRICING = PricingConfig(
    baseline=DEFAULT_BASELINE_PRICING,
    treated=DEFAULT_TREATED_PRICING
)


@dataclass(frozen=True)
class CostReport:
    """Cost comparison for a number of input and output tokens."""
    input_tokens: int
    output_tokens: int
    baseline_cost: float
    treated_cost: float
    saved: float

    def to_dict(self) -> dict:
        """Serialize with the field names used in the JSON report."""
        return {
            "inputTokens": self.input_tokens,
            "outputTokens": self.output_tokens,
            "baselineCost": self.baseline_cost,
            "treatedCost": self.treated_cost,
            "saved": self.saved,
        }


def _to_decimal(value: Rate) -> Decimal:
    # str() keeps 1.5 as Decimal("1.5") instead of its binary expansion
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def price_usage(usage: TokenUsage, pricing: TokenPricing) -> Decimal:
    """Total cost of the usage under one pricing table.

    Args:
        usage: Token usage to price
        pricing: Per-million-token rates

    Returns:
        Unrounded cost in USD
    """
    input_cost = (Decimal(usage.input_tokens) / TOKENS_PER_MILLION) * _to_decimal(
        pricing.input_cost_per_million
    )
    output_cost = (Decimal(usage.output_tokens) / TOKENS_PER_MILLION) * _to_decimal(
        pricing.output_cost_per_million
    )
    return input_cost + output_cost


def compute_costs(usage: TokenUsage, pricing: PricingConfig) -> CostReport:
    """Compare the cost of usage under baseline and treated pricing.

    Savings are reported truthfully: when the treated provider is more
    expensive for this token mix, ``saved`` is negative.

    Args:
        usage: Token usage for the period being reported
        pricing: Baseline and treated pricing tables

    Returns:
        CostReport with both costs and their difference
    """
    baseline_cost = price_usage(usage, pricing.baseline)
    treated_cost = price_usage(usage, pricing.treated)

    return CostReport(
        input_tokens=usage.input_tokens,
        output_tokens=usage.output_tokens,
        baseline_cost=float(baseline_cost),
        treated_cost=float(treated_cost),
        saved=float(baseline_cost - treated_cost)
    )
