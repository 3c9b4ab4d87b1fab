"""
Grid planning: which cells of the grid get a copy of the program, and where.
"""
import logging
from dataclasses import dataclass
from typing import List, Tuple

from config.replicator_config import GridSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Instance:
    """One placed copy of the program. Row and column are 1-based."""
    part_number: int
    row: int
    col: int
    offset_x: float
    offset_y: float


def plan_grid(spec: GridSpec) -> List[Instance]:
    """
    Enumerate grid cells in row-major order, leaving out skipped part numbers.
    Part numbers count every cell, skipped or not, so numbering is stable.
    """
    x_sign = spec.column_direction.sign
    y_sign = spec.row_direction.sign

    instances = []
    for row in range(spec.rows):
        for col in range(spec.columns):
            part_number = row * spec.columns + col + 1
            if part_number in spec.skip:
                continue
            instances.append(Instance(
                part_number=part_number,
                row=row + 1,
                col=col + 1,
                # First row/column sits at the origin (never -0.0)
                offset_x=col * spec.spacing_x * x_sign if col else 0.0,
                offset_y=row * spec.spacing_y * y_sign if row else 0.0,
            ))

    logger.debug("Planned %d of %d grid cells", len(instances), spec.total_parts)
    return instances


def grid_footprint(part_width: float, part_height: float,
                   rows: int, columns: int,
                   gap_x: float, gap_y: float) -> Tuple[float, float]:
    """Overall grid size: the parts plus the gaps between them."""
    width = columns * part_width + (columns - 1) * gap_x
    height = rows * part_height + (rows - 1) * gap_y
    return width, height
