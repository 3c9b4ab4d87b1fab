"""Tests for grid planning."""

import pytest

from config.replicator_config import ConfigError, Direction, GridSpec
from core.grid import Instance, grid_footprint, plan_grid


class TestPlanGrid:
    def test_row_major_order(self):
        instances = plan_grid(GridSpec(spacing_x=10, spacing_y=20, rows=2, columns=3))
        assert [i.part_number for i in instances] == [1, 2, 3, 4, 5, 6]
        assert [(i.row, i.col) for i in instances] == [
            (1, 1), (1, 2), (1, 3), (2, 1), (2, 2), (2, 3),
        ]

    def test_offsets(self):
        instances = plan_grid(GridSpec(spacing_x=10, spacing_y=20, rows=2, columns=2))
        assert instances[0] == Instance(1, 1, 1, 0, 0)
        assert instances[1] == Instance(2, 1, 2, 10, 0)
        assert instances[2] == Instance(3, 2, 1, 0, 20)
        assert instances[3] == Instance(4, 2, 2, 10, 20)

    def test_negative_directions(self):
        spec = GridSpec(spacing_x=10, spacing_y=20, rows=2, columns=2,
                        row_direction=Direction.NEGATIVE, column_direction="negative")
        instances = plan_grid(spec)
        assert (instances[3].offset_x, instances[3].offset_y) == (-10, -20)

    def test_skipped_parts_keep_numbering(self):
        spec = GridSpec(spacing_x=10, spacing_y=10, rows=2, columns=3, skip={2, 6})
        instances = plan_grid(spec)
        assert [i.part_number for i in instances] == [1, 3, 4, 5]
        assert instances[1].offset_x == 20

    @pytest.mark.parametrize("rows, columns, skip", [
        (1, 1, set()),
        (3, 4, {1, 12}),
        (5, 2, set(range(1, 11))),
    ])
    def test_count(self, rows, columns, skip):
        spec = GridSpec(spacing_x=1, spacing_y=1, rows=rows, columns=columns, skip=skip)
        assert len(plan_grid(spec)) == rows * columns - len(skip)

    def test_single_cell_has_no_offset(self):
        instances = plan_grid(GridSpec(spacing_x=5, spacing_y=5, rows=1, columns=1))
        assert instances == [Instance(1, 1, 1, 0, 0)]


class TestGridSpecValidation:
    @pytest.mark.parametrize("kwargs", [
        {"rows": 0},
        {"columns": 0},
        {"rows": 1.5},
        {"spacing_x": 0},
        {"spacing_y": -1, "rows": 2},
        {"row_direction": "sideways"},
    ])
    def test_invalid(self, kwargs):
        values = {"spacing_x": 10, "spacing_y": 10}
        values.update(kwargs)
        with pytest.raises(ConfigError):
            GridSpec(**values)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            GridSpec(spacing_x=10, spacing_y=10, rows=-1)

    def test_zero_spacing_allowed_on_single_cell_axis(self):
        spec = GridSpec(spacing_x=10, spacing_y=0, rows=1, columns=2)
        assert [(i.offset_x, i.offset_y) for i in plan_grid(spec)] == [(0.0, 0.0), (10, 0.0)]

    def test_zero_spacing_rejected_on_repeated_axis(self):
        with pytest.raises(ConfigError):
            GridSpec(spacing_x=10, spacing_y=0, rows=2, columns=2)

    def test_total_parts(self):
        assert GridSpec(spacing_x=1, spacing_y=1, rows=3, columns=4).total_parts == 12


def test_grid_footprint():
    assert grid_footprint(10, 20, rows=2, columns=3, gap_x=5, gap_y=1) == (40, 41)
    assert grid_footprint(10, 20, rows=1, columns=1, gap_x=5, gap_y=5) == (10, 20)
