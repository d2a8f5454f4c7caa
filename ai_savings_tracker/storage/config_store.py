"""
Runtime configuration patching.

Merges a patch into the agent runtime's configuration file, keeping a
timestamped copy of the previous file.
"""

import logging
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ai_savings_tracker.core.merge import deep_merge

from .documents import PathLike, read_document, write_document

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergeOutcome:
    """Result of patching a configuration file."""
    merged: Dict[str, Any]
    backup_path: Optional[Path] = None


def backup_path_for(config_path: PathLike, now_millis: int) -> Path:
    """Backup location for a config file: ``<path>.bak.<epoch-millis>``."""
    return Path(f"{config_path}.bak.{now_millis}")


def apply_config_patch(
    config_path: PathLike,
    patch: Mapping[str, Any],
    now_millis: Optional[int] = None
) -> MergeOutcome:
    """Merge a patch into a configuration file and write it back.

    A missing or unparseable configuration counts as empty. When a file
    already exists it is copied to a backup before being replaced.
    Write failures are not retried: a half-written primary config is worse
    than a clear error.

    Args:
        config_path: Configuration file to patch
        patch: Patch document; its values win on conflict
        now_millis: Backup timestamp (defaults to current time)

    Returns:
        MergeOutcome with the merged document and backup path, if any

    Raises:
        OSError: If the backup or the merged document cannot be written
        TypeError: If patch is not a mapping
    """
    path = Path(config_path)
    existing = read_document(path)
    if existing is None:
        existing = {}

    merged = deep_merge(existing, patch)

    backup = None
    if path.exists():
        if now_millis is None:
            now_millis = int(time.time() * 1000)
        backup = backup_path_for(path, now_millis)
        shutil.copy2(path, backup)
        logger.info(f"Backed up {path} to {backup}")

    write_document(path, merged)
    logger.info(f"Wrote merged configuration to {path}")

    return MergeOutcome(merged=merged, backup_path=backup)
