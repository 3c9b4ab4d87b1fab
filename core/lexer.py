"""
G-code line lexer.

Every stage of the replicator (bounds analysis, offset rewriting, tool
segmentation, assembly) looks at a program one line at a time. This module
classifies a line once into a ``LineInfo`` so the stages share one set of
patterns instead of each sniffing the raw text.
"""
import re
from enum import Enum
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple


class LineKind(Enum):
    BLANK = "blank"
    COMMENT = "comment"
    CODE = "code"


# Program-level codes the replicator cares about
RAPID, LINEAR, ARC_CW, ARC_CCW = 0, 1, 2, 3
MOTION_CODES = {RAPID, LINEAR, ARC_CW, ARC_CCW}
ABSOLUTE, INCREMENTAL = 90, 91
ARC_ABSOLUTE, ARC_INCREMENTAL = 90.1, 91.1
MACHINE_COORDINATES = 53
SPINDLE_CW, SPINDLE_CCW, SPINDLE_STOP = 3, 4, 5
TOOL_CHANGE = 6
PROGRAM_END_CODES = {2, 30}

COMMENT_PREFIXES = ('(', ';', '%')
OPERATION_LABEL_MAX_LENGTH = 50
OPERATION_LABEL_MAX_CONTENT = 30


@dataclass
class Word:
    """A single letter/number pair found in the code part of a line."""
    letter: str
    value: float
    start: int
    end: int


@dataclass
class LineInfo:
    """Classification of one program line."""
    text: str
    kind: LineKind
    words: List[Word] = field(default_factory=list)
    g_codes: Set[float] = field(default_factory=set)
    m_codes: Set[float] = field(default_factory=set)

    # Coordinates (first occurrence of each letter)
    x: Optional[float] = None
    y: Optional[float] = None
    z: Optional[float] = None
    i: Optional[float] = None
    j: Optional[float] = None

    tool_number: Optional[int] = None

    @property
    def is_comment(self) -> bool:
        return self.kind == LineKind.COMMENT

    @property
    def is_blank(self) -> bool:
        return self.kind == LineKind.BLANK

    @property
    def positioning_mode(self) -> Optional[int]:
        """G90/G91 on this line; G91 wins when both appear."""
        if INCREMENTAL in self.g_codes:
            return INCREMENTAL
        if ABSOLUTE in self.g_codes:
            return ABSOLUTE
        return None

    @property
    def arc_distance_mode(self) -> Optional[float]:
        if ARC_INCREMENTAL in self.g_codes:
            return ARC_INCREMENTAL
        if ARC_ABSOLUTE in self.g_codes:
            return ARC_ABSOLUTE
        return None

    @property
    def motion_mode(self) -> Optional[int]:
        codes = [int(g) for g in self.g_codes if g in MOTION_CODES]
        return max(codes) if codes else None

    @property
    def is_machine_move(self) -> bool:
        """Line uses machine coordinates (G53) and is not workpiece geometry."""
        return MACHINE_COORDINATES in self.g_codes

    @property
    def is_tool_change(self) -> bool:
        return self.tool_number is not None

    @property
    def is_spindle_start(self) -> bool:
        return SPINDLE_CW in self.m_codes or SPINDLE_CCW in self.m_codes

    @property
    def is_spindle_stop(self) -> bool:
        return SPINDLE_STOP in self.m_codes

    @property
    def is_program_end(self) -> bool:
        return bool(PROGRAM_END_CODES & self.m_codes)

    def has_axis_words(self) -> bool:
        return any(v is not None for v in (self.x, self.y, self.z))

    def has_xy(self) -> bool:
        return self.x is not None or self.y is not None

    def has_arc_center(self) -> bool:
        return self.i is not None or self.j is not None

    def is_operation_start(self) -> bool:
        """Spindle start, or an explicit G0/G1 move in X/Y outside machine coordinates."""
        if self.is_spindle_start:
            return True
        explicit_move = RAPID in self.g_codes or LINEAR in self.g_codes
        return explicit_move and self.has_xy() and not self.is_machine_move


class GCodeLexer:
    """Classifies raw G-code lines."""

    # Letter/number words; a letter glued to a preceding letter is not a word
    WORD_PATTERN = re.compile(r'(?<![A-Z])([A-Z])([+-]?(?:\d+\.?\d*|\.\d+))', re.IGNORECASE)
    NUMBER_PATTERN = re.compile(r'[+-]?(?:\d+\.?\d*|\.\d+)')

    # Inline comments: parentheses anywhere, semicolon to end of line
    INLINE_COMMENT_PATTERN = re.compile(r'\([^)]*\)?|;.*$')

    OPERATION_LABEL_PATTERN = re.compile(r'^[A-Za-z0-9_ -]+$')

    COORDINATE_LETTERS = ('X', 'Y', 'Z', 'I', 'J')

    def classify(self, line: str) -> LineInfo:
        """Classify a single line of G-code."""
        trimmed = line.strip()
        if not trimmed:
            return LineInfo(text=line, kind=LineKind.BLANK)
        if trimmed.startswith(COMMENT_PREFIXES):
            return LineInfo(text=line, kind=LineKind.COMMENT)

        info = LineInfo(text=line, kind=LineKind.CODE)
        for start, chunk in self.code_chunks(line):
            for match in self.WORD_PATTERN.finditer(chunk):
                word = Word(
                    letter=match.group(1).upper(),
                    value=float(match.group(2)),
                    start=start + match.start(),
                    end=start + match.end(),
                )
                info.words.append(word)

        for word in info.words:
            if word.letter == 'G':
                info.g_codes.add(word.value)
            elif word.letter == 'M':
                info.m_codes.add(word.value)
            elif word.letter in self.COORDINATE_LETTERS:
                attr = word.letter.lower()
                if getattr(info, attr) is None:
                    setattr(info, attr, word.value)

        info.tool_number = self._tool_number(info)
        return info

    def _tool_number(self, info: LineInfo) -> Optional[int]:
        """Tool number for ``M6 Tn``, ``Tn M6`` or a standalone ``Tn`` line."""
        t_words = [w for w in info.words if w.letter == 'T']
        if not t_words:
            return None
        if TOOL_CHANGE in info.m_codes or len(info.words) == 1:
            return int(t_words[0].value)
        return None

    def code_chunks(self, line: str) -> List[Tuple[int, str]]:
        """Split a line into ``(offset, text)`` pieces that are outside comments."""
        chunks = []
        pos = 0
        for match in self.INLINE_COMMENT_PATTERN.finditer(line):
            if match.start() > pos:
                chunks.append((pos, line[pos:match.start()]))
            pos = match.end()
        if pos < len(line):
            chunks.append((pos, line[pos:]))
        return chunks

    def split_comments(self, line: str) -> List[Tuple[str, bool]]:
        """Split a line into ``(text, is_comment)`` pieces covering the whole line."""
        pieces = []
        pos = 0
        for match in self.INLINE_COMMENT_PATTERN.finditer(line):
            if match.start() > pos:
                pieces.append((line[pos:match.start()], False))
            if match.end() > match.start():
                pieces.append((match.group(0), True))
            pos = match.end()
        if pos < len(line):
            pieces.append((line[pos:], False))
        return pieces

    def strip_program_end(self, info: LineInfo) -> Optional[str]:
        """
        Remove M2/M30 words from a line, keeping everything else.
        Returns None when no other word is left.
        """
        line = info.text
        kept = 0
        for word in reversed(info.words):
            if word.letter == 'M' and word.value in PROGRAM_END_CODES:
                end = word.end
                while end < len(line) and line[end] in ' \t':
                    end += 1
                line = line[:word.start] + line[end:]
            elif word.letter != 'N':
                kept += 1
        if not kept:
            return None
        return line.rstrip()

    def is_operation_label(self, line: str) -> bool:
        """
        Heuristic for a standalone operation name comment such as ``(Bore2)``
        or ``(2D Contour1)``: short, parenthesised, no ``:`` or ``=``.
        """
        trimmed = line.strip()
        if not (trimmed.startswith('(') and trimmed.endswith(')')):
            return False
        if len(trimmed) > OPERATION_LABEL_MAX_LENGTH:
            return False
        content = trimmed[1:-1].strip()
        if len(content) < 2:
            return False
        if ':' in content or '=' in content:
            return False
        return bool(self.OPERATION_LABEL_PATTERN.match(content)) and len(content) < OPERATION_LABEL_MAX_CONTENT


_lexer = GCodeLexer()


def classify_line(line: str) -> LineInfo:
    return _lexer.classify(line)


def split_lines(gcode_text: str) -> List[str]:
    """Split program text into lines, accepting any newline convention."""
    return gcode_text.splitlines()


def classify_program(gcode_text: str) -> List[LineInfo]:
    """Classify every line of a program."""
    return [_lexer.classify(line) for line in split_lines(gcode_text)]


def is_operation_label(line: str) -> bool:
    return _lexer.is_operation_label(line)


def split_comments(line: str) -> List[Tuple[str, bool]]:
    return _lexer.split_comments(line)


def strip_program_end(info: LineInfo) -> Optional[str]:
    return _lexer.strip_program_end(info)


def format_coordinate(letter: str, value: float) -> str:
    """Coordinate word with exactly three fractional digits."""
    return f"{letter}{value:.3f}"
