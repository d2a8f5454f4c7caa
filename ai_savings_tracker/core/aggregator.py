"""
Usage aggregation from agent session logs.

Scans the runtime's append-only JSONL session logs and sums the token
usage recorded since a cutoff.

Layout scanned under each record root:
    <root>/<agent>/sessions/<session>.jsonl

Each line is one JSON entry; usage entries carry
``message.usage`` (token counts) and ``message.timestamp`` (epoch ms).
Logs are written by a long-running process and may be read mid-write,
so nothing found in them is allowed to abort the scan.
"""

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from .token_counter import TokenUsage

logger = logging.getLogger(__name__)

SESSIONS_DIR_NAME = "sessions"
RECORD_FILE_SUFFIX = ".jsonl"

# Alternate field names per direction, in precedence order
INPUT_TOKEN_FIELDS: Tuple[str, ...] = ("input", "input_tokens")
OUTPUT_TOKEN_FIELDS: Tuple[str, ...] = ("output", "output_tokens")


class MalformedRecordError(ValueError):
    """Raised when a log line cannot be decoded as a JSON object."""


@dataclass(frozen=True)
class UsageRecord:
    """Token usage observed for one agent turn."""
    timestamp_millis: Optional[int]  # None when missing or not numeric
    input_tokens: int
    output_tokens: int

    def is_before(self, cutoff_millis: int) -> bool:
        """Whether the record falls outside a scan starting at cutoff_millis.

        Records without a usable timestamp are always excluded.
        """
        if self.timestamp_millis is None:
            return True
        return self.timestamp_millis < cutoff_millis

    def in_window(self, cutoff_millis: int, until_millis: Optional[int] = None) -> bool:
        """Whether cutoff_millis <= timestamp < until_millis.

        An until_millis of None leaves the window open-ended.
        """
        if self.is_before(cutoff_millis):
            return False
        return until_millis is None or self.timestamp_millis < until_millis


@dataclass(frozen=True)
class FileScan:
    """Aggregation result for a single record file."""
    usage: TokenUsage
    included: int = 0     # Usage records inside the scan window
    excluded: int = 0     # Usage records outside the scan window
    ignored: int = 0      # Valid entries without a usage block
    malformed: int = 0    # Lines that failed to decode


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _token_count(usage: Mapping[str, Any], field_names: Tuple[str, ...]) -> int:
    """First numeric value among field_names; zero when none is usable."""
    for name in field_names:
        value = _as_number(usage.get(name))
        if value is not None:
            return max(int(value), 0)
    return 0


def decode_usage_record(line: str) -> Optional[UsageRecord]:
    """Decode one session log line.

    Args:
        line: Raw JSONL line

    Returns:
        UsageRecord, or None when the entry carries no usage block

    Raises:
        MalformedRecordError: If the line is not a JSON object
    """
    try:
        entry = json.loads(line)
    except json.JSONDecodeError as e:
        raise MalformedRecordError(f"invalid JSON: {e}") from e
    if not isinstance(entry, dict):
        raise MalformedRecordError("entry is not an object")

    message = entry.get("message")
    if not isinstance(message, dict):
        return None
    usage = message.get("usage")
    if not isinstance(usage, dict):
        return None

    timestamp = _as_number(message.get("timestamp"))
    return UsageRecord(
        timestamp_millis=int(timestamp) if timestamp is not None else None,
        input_tokens=_token_count(usage, INPUT_TOKEN_FIELDS),
        output_tokens=_token_count(usage, OUTPUT_TOKEN_FIELDS)
    )


def _sorted_children(directory: Path) -> List[Path]:
    try:
        return sorted(directory.iterdir())
    except OSError as e:
        logger.warning(f"Cannot list {directory}: {e}")
        return []


def iter_record_files(record_roots: Iterable[Union[str, Path]]) -> Iterator[Path]:
    """Yield every session log file under the given roots.

    Entries that don't match the agent/sessions/*.jsonl shape are skipped.
    A missing root is treated as an empty one.
    """
    for root in record_roots:
        root_path = Path(root)
        if not root_path.is_dir():
            logger.debug(f"Record root {root_path} does not exist, skipping")
            continue

        for agent_dir in _sorted_children(root_path):
            if not agent_dir.is_dir():
                continue
            sessions_dir = agent_dir / SESSIONS_DIR_NAME
            if not sessions_dir.is_dir():
                logger.debug(f"No sessions directory in {agent_dir}, skipping")
                continue

            for record_file in _sorted_children(sessions_dir):
                if record_file.suffix == RECORD_FILE_SUFFIX and record_file.is_file():
                    yield record_file


def _modified_millis(path: Path) -> int:
    return path.stat().st_mtime_ns // 1_000_000


def scan_file(
    path: Union[str, Path],
    cutoff_millis: int,
    until_millis: Optional[int] = None
) -> FileScan:
    """Sum token usage recorded in one session log within [cutoff, until).

    Files last modified before the cutoff are skipped without reading.
    Malformed lines are counted and skipped; an unreadable file yields an
    empty result.

    Args:
        path: Session log file
        cutoff_millis: Epoch milliseconds; earlier records are excluded
        until_millis: Epoch milliseconds; this and later records are excluded

    Returns:
        FileScan with the usage and per-line counts
    """
    file_path = Path(path)
    try:
        if _modified_millis(file_path) < cutoff_millis:
            return FileScan(usage=TokenUsage())
        with open(file_path, 'r', encoding='utf-8', errors='replace') as f:
            content = f.read()
    except OSError as e:
        logger.warning(f"Skipping unreadable session log {file_path}: {e}")
        return FileScan(usage=TokenUsage())

    input_tokens = 0
    output_tokens = 0
    included = excluded = ignored = malformed = 0

    for line_number, line in enumerate(content.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            record = decode_usage_record(line)
        except MalformedRecordError as e:
            logger.debug(f"{file_path}:{line_number}: {e}")
            malformed += 1
            continue

        if record is None:
            ignored += 1
        elif not record.in_window(cutoff_millis, until_millis):
            excluded += 1
        else:
            included += 1
            input_tokens += record.input_tokens
            output_tokens += record.output_tokens

    return FileScan(
        usage=TokenUsage(input_tokens=input_tokens, output_tokens=output_tokens),
        included=included,
        excluded=excluded,
        ignored=ignored,
        malformed=malformed
    )


def scan(
    record_roots: Iterable[Union[str, Path]],
    cutoff_millis: int,
    until_millis: Optional[int] = None
) -> TokenUsage:
    """Sum token usage across all session logs under the record roots.

    The cutoff must be the previous checkpoint's timestamp (0 on first run)
    and until_millis the timestamp the new checkpoint will store, so
    consecutive scans neither overlap nor leave gaps. Entries appended
    while a scan runs are stamped at or after until_millis and wait for
    the next scan.

    Args:
        record_roots: Directories holding one subdirectory per agent
        cutoff_millis: Epoch milliseconds; earlier records are excluded
        until_millis: Epoch milliseconds; this and later records are excluded

    Returns:
        Total TokenUsage of the included records
    """
    if isinstance(record_roots, (str, Path)):
        record_roots = [record_roots]

    total = TokenUsage()
    files = records = malformed = 0
    for record_file in iter_record_files(record_roots):
        result = scan_file(record_file, cutoff_millis, until_millis)
        total = total + result.usage
        files += 1
        records += result.included
        malformed += result.malformed

    logger.info(
        f"Scanned {files} session logs since {cutoff_millis}: {records} records, "
        f"{total.input_tokens} input / {total.output_tokens} output tokens"
    )
    if malformed:
        logger.info(f"Skipped {malformed} malformed log lines")
    return total
