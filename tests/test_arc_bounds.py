"""Tests for arc bounding rectangles."""

import math

import pytest

from utils.geometry import calculate_arc_bounds, is_angle_in_sweep, normalize_angle


def _bounds(arc):
    return (arc.min_x, arc.min_y, arc.max_x, arc.max_y)


class TestNormalizeAngle:
    def test_negative_angle_wraps(self):
        assert normalize_angle(-math.pi / 2) == pytest.approx(3 * math.pi / 2)

    def test_full_turn_is_zero(self):
        assert normalize_angle(2 * math.pi) == pytest.approx(0.0)

    def test_range(self):
        for angle in (-7.0, -math.pi, 0.0, 3.0, 13.0):
            assert 0.0 <= normalize_angle(angle) < 2 * math.pi


class TestSweep:
    def test_ccw_quarter(self):
        assert is_angle_in_sweep(math.pi / 4, 0.0, math.pi / 2, clockwise=False)
        assert not is_angle_in_sweep(math.pi, 0.0, math.pi / 2, clockwise=False)

    def test_cw_quarter(self):
        assert is_angle_in_sweep(math.pi / 4, math.pi / 2, 0.0, clockwise=True)
        assert not is_angle_in_sweep(math.pi, math.pi / 2, 0.0, clockwise=True)

    def test_cw_wraps_through_zero(self):
        start, end = math.pi / 4, 7 * math.pi / 4
        assert is_angle_in_sweep(0.0, start, end, clockwise=True)
        assert not is_angle_in_sweep(math.pi, start, end, clockwise=True)

    def test_ccw_wraps_through_zero(self):
        start, end = 7 * math.pi / 4, math.pi / 4
        assert is_angle_in_sweep(0.0, start, end, clockwise=False)
        assert not is_angle_in_sweep(math.pi, start, end, clockwise=False)

    def test_equal_angles_cover_everything(self):
        for angle in (0.0, math.pi / 2, math.pi, 3 * math.pi / 2):
            assert is_angle_in_sweep(angle, 1.0, 1.0, clockwise=True)
            assert is_angle_in_sweep(angle, 1.0, 1.0, clockwise=False)


class TestArcBounds:
    def test_ccw_quarter_circle(self):
        arc = calculate_arc_bounds(0.0, 0.0, 10.0, 0.0, math.pi / 2, clockwise=False)
        assert _bounds(arc) == pytest.approx((0.0, 0.0, 10.0, 10.0), abs=1e-9)

    def test_cw_upper_half(self):
        arc = calculate_arc_bounds(0.0, 0.0, 5.0, math.pi, 0.0, clockwise=True)
        assert _bounds(arc) == pytest.approx((-5.0, 0.0, 5.0, 5.0), abs=1e-9)

    def test_ccw_lower_half(self):
        arc = calculate_arc_bounds(0.0, 0.0, 5.0, math.pi, 0.0, clockwise=False)
        assert _bounds(arc) == pytest.approx((-5.0, -5.0, 5.0, 0.0), abs=1e-9)

    def test_minor_arc_without_cardinals(self):
        start, end = math.radians(30), math.radians(60)
        arc = calculate_arc_bounds(0.0, 0.0, 2.0, start, end, clockwise=False)
        assert arc.min_x == pytest.approx(2 * math.cos(end))
        assert arc.max_x == pytest.approx(2 * math.cos(start))
        assert arc.min_y == pytest.approx(2 * math.sin(start))
        assert arc.max_y == pytest.approx(2 * math.sin(end))

    def test_major_arc_reaches_three_sides(self):
        # CW from 60 deg down through 0, 270 and 180 to 120 deg
        start, end = math.radians(60), math.radians(120)
        arc = calculate_arc_bounds(1.0, 1.0, 2.0, start, end, clockwise=True)
        assert arc.max_x == pytest.approx(3.0)
        assert arc.min_x == pytest.approx(-1.0)
        assert arc.min_y == pytest.approx(-1.0)
        assert arc.max_y == pytest.approx(1.0 + 2 * math.sin(start))

    def test_full_circle(self):
        arc = calculate_arc_bounds(0.0, 0.0, 5.0, math.pi, math.pi, clockwise=True)
        assert _bounds(arc) == pytest.approx((-5.0, -5.0, 5.0, 5.0))

    def test_offset_center(self):
        arc = calculate_arc_bounds(10.0, -3.0, 1.0, 0.0, 0.0, clockwise=False)
        assert _bounds(arc) == pytest.approx((9.0, -4.0, 11.0, -2.0))
