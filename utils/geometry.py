"""
Utility functions for geometric calculations, primarily for arcs.
Bounds an arc from its centre, radius and sweep without tessellating it.
"""
import math
from dataclasses import dataclass

TINY = 1e-9
TWO_PI = 2 * math.pi

# Cardinal angles and the extreme each one pushes out when swept
CARDINAL_ANGLES = (0.0, math.pi / 2, math.pi, 3 * math.pi / 2)


@dataclass
class ArcBounds:
    """Axis-aligned rectangle swept by an arc in the XY plane."""
    min_x: float
    min_y: float
    max_x: float
    max_y: float


def normalize_angle(angle):
    """Map an angle in radians onto [0, 2*pi)."""
    angle = math.fmod(angle, TWO_PI)
    if angle < 0:
        angle += TWO_PI
    if angle >= TWO_PI:
        angle -= TWO_PI
    return angle


def is_angle_in_sweep(angle, start, end, clockwise):
    """
    Check whether ``angle`` is covered when sweeping from ``start`` to ``end``.
    All three must already be normalized. Clockwise sweeps run through
    decreasing angles, counter-clockwise through increasing ones. Equal start
    and end angles mean a full circle.
    """
    if abs(start - end) < TINY:
        return True
    if clockwise:
        if start >= end:
            return end <= angle <= start
        return angle <= start or angle >= end
    if start <= end:
        return start <= angle <= end
    return angle >= start or angle <= end


def calculate_arc_bounds(center_x, center_y, radius, start_angle, end_angle, clockwise):
    """
    Calculates the bounding rectangle of an arc.
    The rectangle always holds both endpoints; each cardinal angle inside the
    sweep extends the matching side out to the full radius.
    """
    start = normalize_angle(start_angle)
    end = normalize_angle(end_angle)

    start_x = center_x + radius * math.cos(start_angle)
    start_y = center_y + radius * math.sin(start_angle)
    end_x = center_x + radius * math.cos(end_angle)
    end_y = center_y + radius * math.sin(end_angle)

    bounds = ArcBounds(
        min_x=min(start_x, end_x),
        min_y=min(start_y, end_y),
        max_x=max(start_x, end_x),
        max_y=max(start_y, end_y),
    )

    right, top, left, bottom = (
        is_angle_in_sweep(a, start, end, clockwise) for a in CARDINAL_ANGLES
    )
    if right:
        bounds.max_x = center_x + radius
    if top:
        bounds.max_y = center_y + radius
    if left:
        bounds.min_x = center_x - radius
    if bottom:
        bounds.min_y = center_y - radius

    return bounds
