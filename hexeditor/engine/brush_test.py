"""Tests for brush expansion."""

import pytest

from .axial import hex_distance
from .brush import disk_size, expand, expand_ordered, visible_cells
from .errors import InvalidRadius
from .types import AxialCoord


class TestExpand:
    @pytest.mark.parametrize("radius", range(0, 8))
    def test_disk_size(self, radius):
        cells = expand(AxialCoord(0, 0), radius)
        assert len(cells) == 3 * radius * radius + 3 * radius + 1
        assert disk_size(radius) == len(cells)

    @pytest.mark.parametrize("radius", [0, 1, 2, 5])
    def test_all_within_radius(self, radius):
        center = AxialCoord(4, -9)
        cells = expand(center, radius)
        assert center in cells
        assert all(hex_distance(center, c) <= radius for c in cells)

    def test_radius_zero_is_center_only(self):
        assert expand(AxialCoord(2, 3), 0) == {AxialCoord(2, 3)}

    def test_radius_one_is_center_plus_neighbors(self):
        cells = expand(AxialCoord(0, 0), 1)
        assert cells == {
            AxialCoord(0, 0),
            AxialCoord(1, 0),
            AxialCoord(-1, 0),
            AxialCoord(0, 1),
            AxialCoord(0, -1),
            AxialCoord(1, -1),
            AxialCoord(-1, 1),
        }

    def test_every_cell_at_radius_included(self):
        """No cell within the radius is missed (check a bounding box)."""
        center = AxialCoord(-3, 2)
        cells = expand(center, 3)
        for dq in range(-6, 7):
            for dr in range(-6, 7):
                c = center.offset(dq, dr)
                assert (c in cells) == (hex_distance(center, c) <= 3)

    def test_accepts_tuple_center(self):
        assert expand((1, 1), 0) == {AxialCoord(1, 1)}

    def test_negative_radius_rejected(self):
        with pytest.raises(InvalidRadius):
            expand(AxialCoord(0, 0), -1)
        with pytest.raises(InvalidRadius):
            disk_size(-2)


class TestExpandOrdered:
    def test_no_duplicates_and_matches_set(self):
        ordered = expand_ordered(AxialCoord(1, -1), 4)
        assert len(ordered) == len(set(ordered))
        assert set(ordered) == expand(AxialCoord(1, -1), 4)

    def test_sweep_order(self):
        """Sweeps q ascending, then r ascending within each column."""
        ordered = expand_ordered(AxialCoord(0, 0), 2)
        assert ordered == sorted(ordered)

    def test_deterministic(self):
        assert expand_ordered(AxialCoord(5, 5), 3) == expand_ordered(
            AxialCoord(5, 5), 3
        )


class TestVisibleCells:
    def test_grid_range(self):
        assert len(visible_cells(AxialCoord(0, 0), 10)) == disk_size(10)

    def test_negative_range_is_center(self):
        assert visible_cells(AxialCoord(2, 2), -1) == [AxialCoord(2, 2)]
