"""
Checkpoint persistence.

Loads and saves the savings tracker state file.
"""

import logging
import math
from typing import Any, Mapping

from .documents import PathLike, read_document, write_document
from .models import Checkpoint

logger = logging.getLogger(__name__)


def _non_negative_int(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key, 0)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        logger.warning(f"Checkpoint field '{key}' is not a number, using 0")
        return 0
    if (isinstance(value, float) and not math.isfinite(value)) or value < 0:
        logger.warning(f"Checkpoint field '{key}' is invalid, using 0")
        return 0
    return int(value)


def load_checkpoint(path: PathLike) -> Checkpoint:
    """Load the persisted checkpoint.

    Never fails: a missing or malformed state file yields the zero
    checkpoint, and each malformed field falls back to zero on its own.

    Args:
        path: Path to the JSON state file

    Returns:
        Checkpoint read from disk, or the default checkpoint
    """
    data = read_document(path)
    if data is None:
        return Checkpoint()

    return Checkpoint(
        last_checkpoint_millis=_non_negative_int(data, "lastCheckpointMillis"),
        lifetime_input_tokens=_non_negative_int(data, "lifetimeInputTokens"),
        lifetime_output_tokens=_non_negative_int(data, "lifetimeOutputTokens")
    )


def save_checkpoint(path: PathLike, checkpoint: Checkpoint) -> None:
    """Persist the checkpoint atomically.

    Args:
        path: Path to the JSON state file
        checkpoint: State to store

    Raises:
        OSError: If the state file cannot be written
    """
    write_document(path, checkpoint.to_dict())
    logger.info(
        f"Checkpoint saved at {checkpoint.last_checkpoint_millis} "
        f"(lifetime {checkpoint.lifetime_input_tokens} in / "
        f"{checkpoint.lifetime_output_tokens} out)"
    )
