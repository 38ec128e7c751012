"""Tests for utility functions."""

import pytest

from pyoffload.utils import batched, format_size


class TestBatched:
    """Tests for batched."""

    def test_splits_with_remainder(self):
        assert list(batched(range(5), 2)) == [[0, 1], [2, 3], [4]]

    def test_empty(self):
        assert list(batched([], 3)) == []

    def test_invalid_size(self):
        with pytest.raises(ValueError, match="positive"):
            list(batched([1], 0))


class TestFormatSize:
    """Tests for format_size."""

    @pytest.mark.parametrize(
        "size_bytes,expected",
        [
            (0, "0 B"),
            (1023, "1023 B"),
            (1024, "1.0 KB"),
            (1536, "1.5 KB"),
            (5 * 1024 * 1024, "5.0 MB"),
            (3 * 1024**3, "3.0 GB"),
            (2 * 1024**4, "2.0 TB"),
            (2048 * 1024**4, "2048.0 TB"),
        ],
    )
    def test_format(self, size_bytes, expected):
        assert format_size(size_bytes) == expected
