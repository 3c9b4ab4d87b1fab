"""
Modal state tracked while reading a program.
Only the modes that change how coordinates are interpreted are kept.
"""
from dataclasses import dataclass, replace
from enum import Enum

from core.lexer import LineInfo, INCREMENTAL, ARC_ABSOLUTE


class DistanceMode(Enum):
    ABSOLUTE = "G90"
    INCREMENTAL = "G91"


class ArcDistanceMode(Enum):
    ABSOLUTE = "G90.1"
    INCREMENTAL = "G91.1"


class MotionMode(Enum):
    RAPID = 0
    LINEAR = 1
    ARC_CW = 2
    ARC_CCW = 3

    @property
    def is_arc(self) -> bool:
        return self in (MotionMode.ARC_CW, MotionMode.ARC_CCW)

    @property
    def is_cutting(self) -> bool:
        return self != MotionMode.RAPID


@dataclass(frozen=True)
class Position:
    """Represents a position in XYZ space."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def to_list(self) -> list:
        return [self.x, self.y, self.z]


@dataclass(frozen=True)
class ModalState:
    """
    Sticky modes of one interpretation pass.
    Defaults: absolute positioning, incremental arc centres (I/J relative to
    the arc start), rapid motion.
    """
    distance: DistanceMode = DistanceMode.ABSOLUTE
    arc_distance: ArcDistanceMode = ArcDistanceMode.INCREMENTAL
    motion: MotionMode = MotionMode.RAPID

    @property
    def is_absolute(self) -> bool:
        return self.distance == DistanceMode.ABSOLUTE

    @property
    def is_arc_absolute(self) -> bool:
        return self.arc_distance == ArcDistanceMode.ABSOLUTE

    def updated(self, info: LineInfo) -> 'ModalState':
        """Return the state after the mode words on ``info`` are applied."""
        changes = {}

        positioning = info.positioning_mode
        if positioning is not None:
            changes['distance'] = (DistanceMode.INCREMENTAL if positioning == INCREMENTAL
                                   else DistanceMode.ABSOLUTE)

        arc_distance = info.arc_distance_mode
        if arc_distance is not None:
            changes['arc_distance'] = (ArcDistanceMode.ABSOLUTE if arc_distance == ARC_ABSOLUTE
                                       else ArcDistanceMode.INCREMENTAL)

        motion = info.motion_mode
        if motion is not None:
            changes['motion'] = MotionMode(motion)

        return replace(self, **changes) if changes else self

    def resolve(self, current: Position, info: LineInfo) -> Position:
        """Target position of the coordinate words on ``info``."""
        def axis(value, now):
            if value is None:
                return now
            return value if self.is_absolute else now + value

        return Position(
            x=axis(info.x, current.x),
            y=axis(info.y, current.y),
            z=axis(info.z, current.z),
        )
