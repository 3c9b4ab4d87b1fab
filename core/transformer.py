"""
Per-instance line rewriter that shifts X/Y coordinates by the instance offset.
"""
import re
from typing import Optional

from core.lexer import LineInfo, classify_line, format_coordinate, split_comments
from core.machine_state import ModalState


class LineOffsetTransformer:
    """
    Adds a fixed X/Y offset to absolute coordinates, one line at a time.

    Create one per grid instance: it tracks that instance's positioning mode,
    starting from absolute. Incremental lines are relative displacements and
    pass through untouched, as do comments and machine-coordinate (G53)
    moves. Z, I, J and every other word are never changed.
    """

    COORDINATE_PATTERN = re.compile(r'(?<![A-Z])([XY])([+-]?(?:\d+\.?\d*|\.\d+))', re.IGNORECASE)

    def __init__(self, offset_x: float, offset_y: float):
        self.offset_x = offset_x
        self.offset_y = offset_y
        self.state = ModalState()

    def __call__(self, line: str) -> str:
        return self.transform(line)

    def transform(self, line: str, info: Optional[LineInfo] = None) -> str:
        if info is None:
            info = classify_line(line)

        if info.is_comment or info.is_blank:
            return line

        self.state = self.state.updated(info)

        if info.is_machine_move or not self.state.is_absolute:
            return line
        if not info.has_xy():
            return line

        return ''.join(
            text if is_comment else self.COORDINATE_PATTERN.sub(self._shift, text)
            for text, is_comment in split_comments(line)
        )

    def _shift(self, match) -> str:
        letter = match.group(1).upper()
        offset = self.offset_x if letter == 'X' else self.offset_y
        return format_coordinate(letter, float(match.group(2)) + offset)
