"""
Replication assembler.

Builds the output program from the source program and the planned grid
instances. Two strategies:

* standard - every instance runs the whole program, tool changes included.
* sort by tool - every tool runs on all instances before the next tool,
  so the machine changes tools once per unique tool.

Programs without tool changes are split into preamble, cutting body and
postamble; only the cutting body is repeated.
"""
import logging
from enum import Enum
from typing import List, Optional, Sequence

from core.grid import Instance
from core.lexer import LineInfo, classify_line, is_operation_label
from core.segmenter import ToolSegment, group_by_tool, segment_tools, split_phases
from core.transformer import LineOffsetTransformer

logger = logging.getLogger(__name__)

PROGRAM_END_LINE = "M30 (Program end)"


def tool_change_line(tool_number: int) -> str:
    return f"M6 T{tool_number}"


class LabelState(Enum):
    IDLE = "idle"
    BUFFERING = "buffering"


class CommentRepositioner:
    """
    Keeps operation name comments next to the operation they describe.

    CAM posts often write ``(Contour2)`` right after the G53 retract that
    ends the previous operation. Once the program is repeated or reordered,
    that label would sit at the end of the wrong block. After a retract, a
    label is held back and written just before the next operation start
    (spindle start, or a G0/G1 X/Y move). A label still held when the
    segment ends is dropped.
    """

    def __init__(self):
        self.state = LabelState.IDLE
        self.pending: Optional[str] = None
        self.after_retract = False

    def feed(self, line: str, info: LineInfo, suppress: bool = False) -> List[str]:
        """Lines to write for ``line``; ``suppress`` drops the line itself."""
        if info.is_machine_move:
            self.after_retract = True

        if suppress:
            return []

        if self.after_retract and info.is_comment and is_operation_label(line):
            self.pending = line
            self.state = LabelState.BUFFERING
            return []

        emitted = []
        if self.state == LabelState.BUFFERING and info.is_operation_start():
            emitted.append(self.pending)
            self._reset()
        emitted.append(line)

        if not (info.is_comment or info.is_blank or info.is_machine_move):
            self.after_retract = False
        return emitted

    def finish(self):
        """End of segment: a held label has no operation left to describe."""
        if self.state == LabelState.BUFFERING:
            logger.debug("Dropping operation label with no following operation: %s",
                         self.pending.strip())
        self._reset()

    def _reset(self):
        self.state = LabelState.IDLE
        self.pending = None
        self.after_retract = False


class ReplicationAssembler:
    """Assembles one replicated program."""

    def __init__(self, instances: Sequence[Instance], sort_by_tool: bool = False,
                 total_parts: Optional[int] = None, banner: Optional[List[str]] = None):
        self.instances = list(instances)
        self.sort_by_tool = sort_by_tool
        self.total_parts = total_parts if total_parts is not None else len(self.instances)
        self.banner = list(banner or [])
        self.output: List[str] = []

    def assemble(self, gcode_text: str) -> str:
        self.output = list(self.banner)

        segments = segment_tools(gcode_text)
        header = next((s for s in segments if s.is_header), None)
        tool_segments = [s for s in segments if not s.is_header]

        if not tool_segments:
            logger.debug("No tool changes found, replicating cutting body only")
            self._assemble_without_tools(header.lines if header else [])
        elif self.sort_by_tool:
            self._assemble_sorted(header, tool_segments)
        else:
            self._assemble_standard(header, tool_segments)

        self.output.append(PROGRAM_END_LINE)
        return '\n'.join(self.output)

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def _assemble_without_tools(self, lines: List[str]):
        phases = split_phases(lines)

        self.output.append("(No tool changes detected, using standard replication)")
        self.output.append("")
        self.output.extend(phases.preamble)
        self.output.append("")

        for index, instance in enumerate(self.instances):
            is_last = index == len(self.instances) - 1
            self._part_comments(instance)
            self._replay(phases.cutting, LineOffsetTransformer(instance.offset_x, instance.offset_y),
                         suppress_spindle_stop=not is_last)
            self.output.append("")

        self.output.extend(phases.postamble)

    def _assemble_standard(self, header: Optional[ToolSegment], tool_segments: List[ToolSegment]):
        self.output.append("(Standard replication - all tools per part in original order)")
        self.output.append(f"(Tool changes per part: {len(tool_segments)})")
        self.output.append("")
        self._emit_header(header)

        for index, instance in enumerate(self.instances):
            is_last_instance = index == len(self.instances) - 1
            self._part_comments(instance)
            self.output.append("")

            # One transformer per instance: mode changes carry across its segments
            transformer = LineOffsetTransformer(instance.offset_x, instance.offset_y)
            for seg_index, segment in enumerate(tool_segments):
                is_last_segment = seg_index == len(tool_segments) - 1
                self.output.append(tool_change_line(segment.tool_number))
                self._replay(segment.lines, transformer,
                             suppress_spindle_stop=not (is_last_instance and is_last_segment))
                self.output.append("")

    def _assemble_sorted(self, header: Optional[ToolSegment], tool_segments: List[ToolSegment]):
        groups = group_by_tool(tool_segments)
        unique_tools = list(groups)
        unsorted_changes = len(tool_segments) * len(self.instances)

        self.output.append("(Tool order optimized to minimize tool changes)")
        self.output.append("(Unique tools: " + ", ".join(f"T{t}" for t in unique_tools) + ")")
        self.output.append(f"(Total tool changes: {len(unique_tools)}, reduced from {unsorted_changes})")
        self.output.append("")
        self._emit_header(header)

        for tool_number, segments in groups.items():
            lines = [line for segment in segments for line in segment.lines]

            self.output.append(f"(Tool T{tool_number} - All Parts)")
            self.output.append(tool_change_line(tool_number))
            self.output.append("")

            for index, instance in enumerate(self.instances):
                is_last = index == len(self.instances) - 1
                self.output.append(f"(T{tool_number} Part {instance.part_number}"
                                   f" - Row {instance.row}, Col {instance.col})")
                self._offset_comment(instance)
                self._replay(lines, LineOffsetTransformer(instance.offset_x, instance.offset_y),
                             suppress_spindle_stop=not is_last)
                self.output.append("")

        logger.debug("Sorted %d tool segments into %d tool groups", len(tool_segments), len(unique_tools))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _replay(self, lines: List[str], transformer: LineOffsetTransformer, suppress_spindle_stop: bool):
        """Write ``lines`` offset for one instance, spindle stops optionally removed."""
        repositioner = CommentRepositioner()
        for line in lines:
            info = classify_line(line)
            shifted = transformer.transform(line, info)
            suppress = suppress_spindle_stop and info.is_spindle_stop
            self.output.extend(repositioner.feed(shifted, info, suppress=suppress))
        repositioner.finish()

    def _emit_header(self, header: Optional[ToolSegment]):
        if header and header.lines:
            self.output.extend(header.lines)
            self.output.append("")

    def _part_comments(self, instance: Instance):
        self.output.append(f"(Part {instance.part_number} of {self.total_parts}"
                           f" - Row {instance.row}, Col {instance.col})")
        self._offset_comment(instance)

    def _offset_comment(self, instance: Instance):
        self.output.append(f"(Offset: X={instance.offset_x:.3f}, Y={instance.offset_y:.3f})")


def assemble(gcode_text: str, instances: Sequence[Instance], sort_by_tool: bool = False,
             total_parts: Optional[int] = None, banner: Optional[List[str]] = None) -> str:
    """Replicate ``gcode_text`` at every instance and return the new program."""
    assembler = ReplicationAssembler(instances, sort_by_tool=sort_by_tool,
                                     total_parts=total_parts, banner=banner)
    return assembler.assemble(gcode_text)
