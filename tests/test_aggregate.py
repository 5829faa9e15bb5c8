"""Tests for summary metrics."""

import pytest

from mediasweep.aggregate import (
    format_file_size,
    group_wasted_space,
    similarity_percentage,
    total_wasted_space,
)
from mediasweep.models import DuplicateFile, DuplicateGroup


def _group(count: int, size: int) -> DuplicateGroup:
    files = [DuplicateFile(path=f"/f{i}", size=size) for i in range(count)]
    return DuplicateGroup(files=files, size_bytes=size)


class TestWastedSpace:
    """Tests for wasted space accounting."""

    def test_pair(self) -> None:
        """Test that one of two copies is waste."""
        assert group_wasted_space(_group(2, 1000).files) == 1000

    def test_first_file_is_kept(self) -> None:
        """Test (N - 1) * S for larger groups."""
        assert group_wasted_space(_group(5, 300).files) == 4 * 300

    def test_single_file(self) -> None:
        """Test that a lone file wastes nothing."""
        assert group_wasted_space(_group(1, 300).files) == 0

    def test_total(self) -> None:
        """Test summing across groups."""
        groups = [_group(2, 1000), _group(3, 10)]
        assert total_wasted_space(groups) == 1000 + 20

    def test_total_empty(self) -> None:
        """Test that no groups means no waste."""
        assert total_wasted_space([]) == 0


class TestSimilarityPercentage:
    """Tests for distance to percentage conversion."""

    @pytest.mark.parametrize(
        "distance,expected",
        [(0, 100.0), (3, 99.7), (10, 99.0), (500, 50.0), (1000, 0.0), (99999, 0.0)],
    )
    def test_conversion(self, distance: int, expected: float) -> None:
        """Test the fixed divide-by-ten conversion."""
        assert similarity_percentage(distance) == pytest.approx(expected)

    def test_never_negative(self) -> None:
        """Test that the percentage is clamped at zero."""
        assert similarity_percentage(10**9) >= 0.0


class TestFormatFileSize:
    """Tests for human-readable sizes."""

    def test_units(self) -> None:
        """Test file size formatting."""
        assert format_file_size(500) == "500.0 B"
        assert format_file_size(1024) == "1.0 KB"
        assert format_file_size(1048576) == "1.0 MB"
        assert format_file_size(1073741824) == "1.0 GB"
        assert format_file_size(1024**4) == "1.0 TB"
