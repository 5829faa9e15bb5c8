"""Decode czkawka JSON result files into normalized scan results."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from .aggregate import similarity_percentage, total_wasted_space
from .errors import MalformedOutputError
from .models import (
    DedupResult,
    DuplicateFile,
    DuplicateGroup,
    SimilarFile,
    SimilarGroup,
    SimilarResult,
)

logger = logging.getLogger(__name__)

# czkawka writes one of these when a scan finds nothing
EMPTY_PAYLOADS = ("", "[]", "{}")


def _is_empty_payload(text: str) -> bool:
    return text.strip() in EMPTY_PAYLOADS


def _decode(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedOutputError(f"Failed to parse JSON: {e}") from e


def _as_int(value: Any) -> Optional[int]:
    """Return value if it is a JSON integer (booleans excluded)."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def _as_uint(value: Any) -> Optional[int]:
    number = _as_int(value)
    if number is None or number < 0:
        return None
    return number


def _as_str(value: Any, default: str = "") -> str:
    return value if isinstance(value, str) else default


def format_modified_date(timestamp: int) -> str:
    """
    Convert a Unix timestamp (seconds) to a ``YYYY-MM-DD`` date in UTC.

    Falls back to the raw number when the timestamp is out of range.
    ``datetime`` stops at year 9999, so timestamps past the end of 9999
    are returned as numbers even though they denote a valid date.
    """
    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d")
    except (OverflowError, OSError, ValueError):
        return str(timestamp)


def _duplicate_file(record: Any) -> DuplicateFile:
    if not isinstance(record, dict):
        record = {}
    timestamp = _as_int(record.get("modified_date"))
    return DuplicateFile(
        path=_as_str(record.get("path")),
        size=_as_uint(record.get("size")) or 0,
        modified=format_modified_date(timestamp) if timestamp is not None else None,
    )


def parse_duplicate_json(text: str) -> DedupResult:
    """
    Parse czkawka duplicate-mode output.

    The payload is an object keyed by file size (the key itself is not
    used); each value is a list of groups and each group a list of file
    records::

        {"24576": [[{"path": ..., "size": ..., "modified_date": ...}, ...]]}

    Missing or mistyped fields fall back to defaults instead of failing the
    whole parse. Groups with fewer than two files are dropped.

    Args:
        text: Raw contents of the result file

    Returns:
        DedupResult with groups, group count and total wasted space

    Raises:
        MalformedOutputError: If the text is not valid JSON
    """
    if _is_empty_payload(text):
        return DedupResult()

    parsed = _decode(text)
    if not isinstance(parsed, dict):
        logger.warning(
            "Expected a JSON object of size buckets, got %s; no groups read",
            type(parsed).__name__,
        )
        return DedupResult()

    groups: List[DuplicateGroup] = []
    for size_groups in parsed.values():
        if not isinstance(size_groups, list):
            continue
        for group in size_groups:
            if not isinstance(group, list):
                continue

            files = [_duplicate_file(record) for record in group]
            if len(files) < 2:
                continue

            # Scanner groups only same-size files, so the last size is the group's
            groups.append(DuplicateGroup(files=files, size_bytes=files[-1].size))

    wasted = total_wasted_space(groups)
    logger.debug("Parsed %d duplicate groups, %d bytes wasted", len(groups), wasted)

    return DedupResult(
        duplicates=groups,
        total_groups=len(groups),
        total_wasted_space=wasted,
    )


def _similar_file(record: Any) -> SimilarFile:
    if not isinstance(record, dict):
        record = {}
    return SimilarFile(
        path=_as_str(record.get("path")),
        size=_as_uint(record.get("size")) or 0,
        width=_as_uint(record.get("width")),
        height=_as_uint(record.get("height")),
        similarity=_as_uint(record.get("similarity")) or 0,
    )


def parse_similar_json(text: str) -> SimilarResult:
    """
    Parse czkawka similar-image output.

    The payload is a list of groups, each a list of file records with
    ``path``, ``size``, optional ``width``/``height`` and a ``similarity``
    distance (0 = identical). A group's percentage is derived from the
    largest distance among its files.

    Args:
        text: Raw contents of the result file

    Returns:
        SimilarResult with groups and group count

    Raises:
        MalformedOutputError: If the text is not valid JSON
    """
    if _is_empty_payload(text):
        return SimilarResult()

    parsed = _decode(text)
    if not isinstance(parsed, list):
        logger.warning(
            "Expected a JSON array of groups, got %s; no groups read",
            type(parsed).__name__,
        )
        return SimilarResult()

    groups: List[SimilarGroup] = []
    for group in parsed:
        if not isinstance(group, list):
            continue

        files = [_similar_file(record) for record in group]
        if len(files) < 2:
            continue

        max_distance = max(f.similarity for f in files)
        groups.append(
            SimilarGroup(files=files, similarity=similarity_percentage(max_distance))
        )

    logger.debug("Parsed %d similar-image groups", len(groups))

    return SimilarResult(similar_groups=groups, total_groups=len(groups))
