"""Summary metrics computed from normalized scan groups."""

from typing import Iterable, Sequence, Union

from .models import DuplicateFile, DuplicateGroup

# czkawka reports similarity as a distance; every 10 points costs 1%.
SIMILARITY_DIVISOR = 10.0
MAX_PERCENTAGE = 100.0


def group_wasted_space(files: Sequence[DuplicateFile]) -> int:
    """
    Space recoverable from one duplicate group.

    One copy is kept; every file after the first (in scanner order) counts
    as waste. For N files of size S this is (N - 1) * S.

    Args:
        files: Files of a single duplicate group, in scanner order

    Returns:
        Recoverable bytes
    """
    return sum(f.size for f in files[1:])


def total_wasted_space(groups: Iterable[DuplicateGroup]) -> int:
    """Sum of recoverable bytes across all duplicate groups."""
    return sum(group_wasted_space(g.files) for g in groups)


def similarity_percentage(max_distance: int) -> float:
    """
    Convert a group's largest similarity distance to a percentage.

    Distance 0 maps to 100% (identical), 1000 or more maps to 0%.

    Args:
        max_distance: Largest distance reported for any file in the group

    Returns:
        Similarity percentage in [0, 100]
    """
    penalty = min(max_distance / SIMILARITY_DIVISOR, MAX_PERCENTAGE)
    return max(0.0, MAX_PERCENTAGE - penalty)


def format_file_size(size_bytes: Union[int, float]) -> str:
    """Format file size in human-readable format."""
    size_float = float(size_bytes)
    for unit in ["B", "KB", "MB", "GB"]:
        if size_float < 1024.0:
            return f"{size_float:.1f} {unit}"
        size_float /= 1024.0
    return f"{size_float:.1f} TB"
