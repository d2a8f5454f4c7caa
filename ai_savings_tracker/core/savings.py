"""
Savings report generation.

Runs one scan-checkpoint-report cycle over the agent session logs.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

from .aggregator import scan
from .checkpoint import advance_checkpoint, scan_cutoff
from .pricing import CostReport, compute_costs
from .token_counter import TokenUsage
from ai_savings_tracker.config.loader import TrackerPaths, load_pricing_config
from ai_savings_tracker.storage.checkpoint_store import load_checkpoint, save_checkpoint
from ai_savings_tracker.storage.models import Checkpoint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SavingsReport:
    """Period and lifetime savings plus the checkpoint that was stored."""
    period: CostReport
    lifetime: CostReport
    checkpoint: Checkpoint


def generate_savings_report(
    paths: TrackerPaths,
    now_millis: Optional[int] = None,
    record_roots: Optional[Sequence[Union[str, Path]]] = None
) -> SavingsReport:
    """Report usage since the last run and persist the new checkpoint.

    The checkpoint is written before the report is returned, so a report
    the caller sees always corresponds to state that has been stored.
    A crash before the write only means the period is counted next time.

    Args:
        paths: Tracker file locations
        now_millis: Checkpoint timestamp (defaults to current time)
        record_roots: Session log roots (defaults to the agents directory)

    Returns:
        SavingsReport for this run

    Raises:
        OSError: If the checkpoint cannot be written
    """
    if now_millis is None:
        now_millis = int(time.time() * 1000)
    if record_roots is None:
        record_roots = [paths.agents_dir]

    pricing = load_pricing_config(paths.pricing_path)
    prior = load_checkpoint(paths.checkpoint_path)

    period_usage = scan(record_roots, scan_cutoff(prior), until_millis=now_millis)
    checkpoint = advance_checkpoint(prior, period_usage, now_millis)

    save_checkpoint(paths.checkpoint_path, checkpoint)

    lifetime_usage = TokenUsage(
        input_tokens=checkpoint.lifetime_input_tokens,
        output_tokens=checkpoint.lifetime_output_tokens
    )
    return SavingsReport(
        period=compute_costs(period_usage, pricing),
        lifetime=compute_costs(lifetime_usage, pricing),
        checkpoint=checkpoint
    )
