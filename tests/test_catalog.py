"""
Frame Catalog Tests
===================

Tests for the immutable, sparse frame catalog.
"""

import pytest

from raster_playback.addressing import address
from raster_playback.probe import FrameCatalog

from conftest import BASE_TIME, make_catalog


class TestFrameCatalog:
    """Tests for FrameCatalog queries."""

    def test_indices_in_order(self):
        catalog = make_catalog([5, 0, 2], total_frames=6)

        assert catalog.indices_in_order() == (0, 2, 5)
        assert [frame.index for frame in catalog] == [0, 2, 5]

    def test_size_and_total_are_separate(self):
        catalog = make_catalog([1, 3], total_frames=12)

        assert catalog.size() == 2
        assert len(catalog) == 2
        assert catalog.total_frames == 12

    def test_membership_and_get(self):
        catalog = make_catalog([0, 2], total_frames=3)

        assert 2 in catalog
        assert 1 not in catalog
        assert catalog.get(1) is None
        assert catalog.get(2).locator.endswith("20250512_1700Z.zarrpyramid")

    def test_missing_indices(self):
        catalog = make_catalog([0, 2], total_frames=4)

        assert catalog.missing_indices() == [1, 3]

    def test_recommended_start_prefers_zero(self):
        assert make_catalog([0, 4], total_frames=6).recommended_start() == 0

    def test_recommended_start_falls_back_to_smallest(self):
        assert make_catalog([4, 3, 5], total_frames=6).recommended_start() == 3

    def test_recommended_start_empty(self):
        catalog = FrameCatalog.empty(4)

        assert catalog.recommended_start() is None
        assert not catalog
        assert catalog.total_frames == 4

    def test_rejects_out_of_range_index(self):
        with pytest.raises(ValueError):
            FrameCatalog([address(BASE_TIME, 3)], total_frames=3)

    def test_rejects_zero_total(self):
        with pytest.raises(ValueError):
            FrameCatalog([], total_frames=0)

    def test_returned_lists_do_not_alias(self):
        catalog = make_catalog([0, 1], total_frames=2)

        catalog.frames().clear()
        catalog.missing_indices().append(7)

        assert catalog.size() == 2
        assert catalog.missing_indices() == []

    def test_metrics(self):
        catalog = make_catalog([0, 1, 5], total_frames=8)

        assert catalog.metrics() == {"size": 3, "total_frames": 8, "missing": 5}
