"""
JSON document persistence.

Reads are lenient so a fresh install with no prior files just works;
writes replace the target atomically and fail loudly.
"""

import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def read_document(path: PathLike) -> Optional[Dict[str, Any]]:
    """Read a JSON object from disk.

    Args:
        path: Path to JSON file

    Returns:
        The decoded mapping, or None when the file is missing, unreadable,
        not valid JSON, or does not hold an object at the top level
    """
    file_path = Path(path)
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.debug(f"No document at {file_path}")
        return None
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning(f"Ignoring unreadable document {file_path}: {e}")
        return None

    if not isinstance(data, dict):
        logger.warning(f"Ignoring {file_path}: top level is not an object")
        return None
    return data


def write_document(path: PathLike, data: Any) -> None:
    """Write a JSON document, creating parent directories as needed.

    The content goes to a temporary file in the same directory which then
    replaces the target, so readers see either the old or the new document.
    An existing target keeps its permission bits; a new one is created
    readable and writable by the owner only.

    Args:
        path: Destination path
        data: JSON-serializable document

    Raises:
        OSError: If the directory or file cannot be written
        TypeError: If data is not JSON-serializable
    """
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(data, indent=2) + "\n"

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{file_path.name}.", suffix=".tmp", dir=str(file_path.parent)
    )
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        if file_path.exists():
            shutil.copymode(file_path, tmp_name)
        os.replace(tmp_name, file_path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise

    logger.debug(f"Wrote {file_path}")
