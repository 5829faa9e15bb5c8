"""Move files to the platform's recoverable trash."""

import logging
from typing import List, Sequence, Tuple

from send2trash import send2trash
from tqdm import tqdm

from .errors import PartialDeleteFailure

logger = logging.getLogger(__name__)


def delete_to_trash(paths: Sequence[str], show_progress: bool = False) -> str:
    """
    Move each file to the trash, independently of the others.

    A failure for one path does not stop the remaining ones; files already
    trashed stay trashed.

    Args:
        paths: Absolute file paths
        show_progress: Draw a progress bar on stderr

    Returns:
        Success message with the number of files trashed

    Raises:
        PartialDeleteFailure: If any path could not be trashed
    """
    deleted = 0
    failures: List[Tuple[str, str]] = []

    for path in tqdm(paths, desc="Trashing", unit="file", disable=not show_progress):
        try:
            send2trash(path)
            deleted += 1
        except Exception as e:
            logger.warning("Could not move %s to trash: %s", path, e)
            failures.append((path, str(e)))

    if failures:
        raise PartialDeleteFailure(deleted, failures)

    return f"Deleted {deleted} files to Trash"
