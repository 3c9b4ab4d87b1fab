"""
Splits a program into tool segments, and a tool-less program into phases.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from core.lexer import classify_line, split_lines, strip_program_end

logger = logging.getLogger(__name__)


@dataclass
class ToolSegment:
    """
    A run of lines executed under one tool.
    ``tool_number`` is None for the header (everything before the first tool
    change). The tool-change line itself is not part of ``lines``.
    """
    tool_number: Optional[int]
    lines: List[str] = field(default_factory=list)

    @property
    def is_header(self) -> bool:
        return self.tool_number is None


@dataclass
class ProgramPhases:
    """Setup, cutting and teardown of a program that never changes tools."""
    preamble: List[str] = field(default_factory=list)
    cutting: List[str] = field(default_factory=list)
    postamble: List[str] = field(default_factory=list)


def segment_tools(gcode_text: str) -> List[ToolSegment]:
    """
    Split a program on tool changes.
    Empty segments are dropped, so the header is only present (and then
    first) when something precedes the first tool change. Program-end words
    are removed, and a line left with nothing else is dropped; the assembler
    writes its own program end.
    """
    segments = []
    current = ToolSegment(tool_number=None)

    for line in split_lines(gcode_text):
        info = classify_line(line)
        if info.is_program_end:
            line = strip_program_end(info)
            if line is None:
                continue
            info = classify_line(line)
        if info.is_tool_change:
            if current.lines:
                segments.append(current)
            current = ToolSegment(tool_number=info.tool_number)
        else:
            current.lines.append(line)

    if current.lines:
        segments.append(current)

    logger.debug("Segmented program into %d segments (%d tool changes)",
                 len(segments), sum(1 for s in segments if not s.is_header))
    return segments


def group_by_tool(segments: List[ToolSegment]) -> Dict[int, List[ToolSegment]]:
    """Tool segments grouped by tool number, in first-seen tool order."""
    groups: Dict[int, List[ToolSegment]] = {}
    for segment in segments:
        if segment.is_header:
            continue
        groups.setdefault(segment.tool_number, []).append(segment)
    return groups


def split_phases(lines: List[str]) -> ProgramPhases:
    """
    Split a tool-less program into preamble, cutting body and postamble.

    Cutting starts at the first spindle start or X/Y move outside machine
    coordinates. The postamble starts at the first machine-coordinate move
    or spindle stop after that.
    """
    phases = ProgramPhases()
    phase = phases.preamble

    for line in lines:
        info = classify_line(line)
        if info.is_program_end:
            line = strip_program_end(info)
            if line is None:
                continue
            info = classify_line(line)

        if phase is phases.preamble and not info.is_comment:
            if info.is_spindle_start or (info.has_xy() and not info.is_machine_move):
                phase = phases.cutting

        if phase is phases.cutting and not info.is_comment:
            if info.is_machine_move or info.is_spindle_stop:
                phase = phases.postamble

        phase.append(line)

    return phases
