"""
Report formatting.

Renders savings reports for people (text) and for tools (JSON-ready dict).
"""

from typing import Any, Dict, List

from .pricing import CostReport
from .savings import SavingsReport


def format_tokens(count: int) -> str:
    """Abbreviate a token count: 1.25M, 3.4k, 999."""
    if count >= 1_000_000:
        return f"{count / 1_000_000:.2f}M"
    if count >= 1_000:
        return f"{count / 1_000:.1f}k"
    return str(count)


def format_usd(amount: float) -> str:
    """Format currency with four decimal places, keeping the sign."""
    if amount < 0:
        return f"-${abs(amount):.4f}"
    return f"${amount:.4f}"


def report_to_dict(report: SavingsReport) -> Dict[str, Any]:
    """Machine-readable form of a savings report."""
    return {
        "period": report.period.to_dict(),
        "lifetime": report.lifetime.to_dict(),
        "checkpoint": report.checkpoint.to_dict(),
    }


def _section(title: str, costs: CostReport) -> List[str]:
    return [
        title,
        f"  Input tokens:  {format_tokens(costs.input_tokens)}",
        f"  Output tokens: {format_tokens(costs.output_tokens)}",
        f"  Baseline cost: {format_usd(costs.baseline_cost)}",
        f"  Actual cost:   {format_usd(costs.treated_cost)}",
        f"  Saved:         {format_usd(costs.saved)}",
    ]


def render_text_report(report: SavingsReport) -> str:
    """Human-readable savings report."""
    lines = ["--- Savings Report ---"]
    lines += _section("Period since last report:", report.period)
    lines.append("")
    lines += _section("Lifetime:", report.lifetime)
    lines.append("-" * 22)
    return "\n".join(lines)
