"""
Data models for storage layer.

Defines the persisted aggregation state.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Checkpoint:
    """Persisted cursor and lifetime totals for the savings tracker.

    The timestamp marks how far the session logs have been reported;
    lifetime counters only ever grow.
    """
    last_checkpoint_millis: int = 0
    lifetime_input_tokens: int = 0
    lifetime_output_tokens: int = 0

    def __post_init__(self):
        """Validate checkpoint values are non-negative."""
        if self.last_checkpoint_millis < 0:
            raise ValueError("last_checkpoint_millis cannot be negative")
        if self.lifetime_input_tokens < 0:
            raise ValueError("lifetime_input_tokens cannot be negative")
        if self.lifetime_output_tokens < 0:
            raise ValueError("lifetime_output_tokens cannot be negative")

    def to_dict(self) -> dict:
        """Serialize with the key names used in the state file."""
        return {
            "lastCheckpointMillis": self.last_checkpoint_millis,
            "lifetimeInputTokens": self.lifetime_input_tokens,
            "lifetimeOutputTokens": self.lifetime_output_tokens,
        }
