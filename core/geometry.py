"""
Bounding box analysis of a G-code program.
Walks the program once with a fresh modal state and measures every cutting
move, arcs included. Rapid moves position the tool but are not part of the
workpiece footprint.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from core.lexer import LineInfo, classify_program
from core.machine_state import ModalState, MotionMode, Position
from utils.geometry import ArcBounds, calculate_arc_bounds

logger = logging.getLogger(__name__)

AXES = ('x', 'y', 'z')


@dataclass
class BoundingBox:
    """Axis-aligned bounds; untouched axes stay at +/- infinity until finalized."""
    min: Dict[str, float] = field(default_factory=lambda: {a: math.inf for a in AXES})
    max: Dict[str, float] = field(default_factory=lambda: {a: -math.inf for a in AXES})

    def include(self, axis: str, value: float):
        if value < self.min[axis]:
            self.min[axis] = value
        if value > self.max[axis]:
            self.max[axis] = value

    def include_arc(self, arc: ArcBounds):
        self.include('x', arc.min_x)
        self.include('x', arc.max_x)
        self.include('y', arc.min_y)
        self.include('y', arc.max_y)

    def finalize(self) -> 'BoundingBox':
        """Collapse axes that never saw a cutting move to 0."""
        for axis in AXES:
            if self.min[axis] == math.inf:
                self.min[axis] = 0.0
            if self.max[axis] == -math.inf:
                self.max[axis] = 0.0
        return self

    @property
    def min_point(self) -> Position:
        return Position(**self.min)

    @property
    def max_point(self) -> Position:
        return Position(**self.max)

    @property
    def width(self) -> float:
        return self.max['x'] - self.min['x']

    @property
    def height(self) -> float:
        return self.max['y'] - self.min['y']

    @property
    def depth(self) -> float:
        return self.max['z'] - self.min['z']

    def size(self) -> List[float]:
        return [self.width, self.height, self.depth]

    def as_tuple(self) -> Tuple[List[float], List[float]]:
        return self.min_point.to_list(), self.max_point.to_list()


class BoundsAnalyzer:
    """Modal interpreter that measures the cutting footprint of a program."""

    def __init__(self):
        self.state = ModalState()
        self.position = Position()
        self.bounds = BoundingBox()
        self.cutting_moves = 0
        self.arc_moves = 0

    def analyze(self, gcode_text: str) -> BoundingBox:
        for info in classify_program(gcode_text):
            self.process_line(info)
        self.bounds.finalize()
        logger.debug("Bounds: min=%s max=%s (%d cutting moves, %d arcs)",
                     self.bounds.min, self.bounds.max, self.cutting_moves, self.arc_moves)
        return self.bounds

    def process_line(self, info: LineInfo):
        if info.is_comment or info.is_blank:
            return

        # Mode words apply before the coordinates on the same line
        self.state = self.state.updated(info)

        if info.is_machine_move:
            return

        start = self.position
        end = self.state.resolve(start, info)

        if self.state.motion.is_arc and info.has_arc_center():
            self._include_arc(start, end, info)

        self.position = end

        # A cut sweeps from start to end on every axis it names
        if self.state.motion.is_cutting:
            if info.has_axis_words():
                self.cutting_moves += 1
            for axis in AXES:
                if getattr(info, axis) is not None:
                    self.bounds.include(axis, getattr(start, axis))
                    self.bounds.include(axis, getattr(end, axis))

    def _include_arc(self, start: Position, end: Position, info: LineInfo):
        i = info.i if info.i is not None else 0.0
        j = info.j if info.j is not None else 0.0

        if self.state.is_arc_absolute:
            center_x, center_y = i, j
        else:
            center_x, center_y = start.x + i, start.y + j

        radius = math.hypot(start.x - center_x, start.y - center_y)
        start_angle = math.atan2(start.y - center_y, start.x - center_x)
        end_angle = math.atan2(end.y - center_y, end.x - center_x)

        arc = calculate_arc_bounds(
            center_x, center_y, radius, start_angle, end_angle,
            clockwise=self.state.motion == MotionMode.ARC_CW,
        )
        self.bounds.include_arc(arc)
        self.arc_moves += 1


def analyze_bounds(gcode_text: str) -> BoundingBox:
    """Bounding box of all cutting motion in ``gcode_text``."""
    return BoundsAnalyzer().analyze(gcode_text)
