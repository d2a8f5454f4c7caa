"""
Checkpoint progression.

The only place lifetime counters change. Consecutive scans stay
non-overlapping because each one starts at the previous checkpoint.
"""

import logging

from .token_counter import TokenUsage
from ai_savings_tracker.storage.models import Checkpoint

logger = logging.getLogger(__name__)


def scan_cutoff(prior: Checkpoint) -> int:
    """Cutoff for the next scan: the previous checkpoint's timestamp (0 if none)."""
    return prior.last_checkpoint_millis


def advance_checkpoint(prior: Checkpoint, period: TokenUsage, now_millis: int) -> Checkpoint:
    """Fold a period's usage into the lifetime totals and move the cursor.

    The cursor never moves backwards: if the clock reads earlier than the
    prior checkpoint, the prior timestamp is kept.

    Args:
        prior: Checkpoint the period was scanned from
        period: Usage observed since the prior checkpoint
        now_millis: Current time in epoch milliseconds

    Returns:
        New checkpoint
    """
    last_checkpoint = now_millis
    if now_millis < prior.last_checkpoint_millis:
        logger.warning(
            f"Clock is behind the last checkpoint ({now_millis} < "
            f"{prior.last_checkpoint_millis}); keeping the previous cursor"
        )
        last_checkpoint = prior.last_checkpoint_millis

    return Checkpoint(
        last_checkpoint_millis=last_checkpoint,
        lifetime_input_tokens=prior.lifetime_input_tokens + period.input_tokens,
        lifetime_output_tokens=prior.lifetime_output_tokens + period.output_tokens
    )
