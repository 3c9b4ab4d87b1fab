"""
G-code editor widget with replication-aware syntax highlighting and dark mode.
"""
from PySide6.QtWidgets import QPlainTextEdit, QWidget, QTextEdit
from PySide6.QtGui import (QColor, QTextFormat, QPainter, QFont, QSyntaxHighlighter,
                           QTextCharFormat, QPalette)
from PySide6.QtCore import Qt, QRect, QSize

from core.lexer import (GCodeLexer, PROGRAM_END_CODES, SPINDLE_CCW, SPINDLE_CW, SPINDLE_STOP,
                        TOOL_CHANGE)


def _char_format(color, bold=False, italic=False):
    font = QFont('Consolas', 11)
    font.setFixedPitch(True)
    fmt = QTextCharFormat()
    fmt.setForeground(QColor(color))
    fmt.setFont(font)
    if bold:
        fmt.setFontWeight(QFont.Weight.Bold)
    fmt.setFontItalic(italic)
    return fmt


class ReplicatorHighlighter(QSyntaxHighlighter):
    """Highlights the words that drive replication: motion, tools, spindle, program end."""

    def __init__(self, document):
        super().__init__(document)
        self.lexer = GCodeLexer()

        # Motion
        self.g0_format = _char_format('#ff6b6b', bold=True)     # Red for rapid (G0)
        self.g1_format = _char_format('#51cf66', bold=True)     # Green for linear feed (G1)
        self.g2g3_format = _char_format('#ffd43b', bold=True)   # Yellow for arcs (G2/G3)
        self.g53_format = _char_format('#f783ac', bold=True)    # Machine coordinates
        self.gcode_format = _char_format('#74c0fc')             # Other G-codes

        # Replication boundaries
        self.tool_format = _char_format('#20c997', bold=True)   # Tool change and T words
        self.spindle_format = _char_format('#ffa94d', bold=True)
        self.end_format = _char_format('#ff6b6b', bold=True, italic=True)
        self.mcode_format = _char_format('#ff8cc8')

        # Axis and parameter words
        self.x_format = _char_format('#ff9999')
        self.y_format = _char_format('#99ff99')
        self.z_format = _char_format('#9999ff')
        self.ijk_format = _char_format('#cc99ff')
        self.fs_format = _char_format('#ffff99')
        self.other_param_format = _char_format('#99ffcc')
        self.line_number_format = _char_format('#adb5bd')

        self.comment_format = _char_format('#6c757d', italic=True)
        self.label_format = _char_format('#e599f7', italic=True)  # Operation names

    def highlightBlock(self, text):
        """Apply syntax highlighting to a block of text."""
        if self.lexer.is_operation_label(text):
            self.setFormat(0, len(text), self.label_format)
            return

        position = 0
        for chunk, is_comment in self.lexer.split_comments(text):
            if is_comment:
                self.setFormat(position, len(chunk), self.comment_format)
            else:
                for word in self.lexer.WORD_PATTERN.finditer(chunk):
                    fmt = self.format_for(word.group(1).upper(), word.group(2))
                    if fmt is not None:
                        self.setFormat(position + word.start(), word.end() - word.start(), fmt)
            position += len(chunk)

    def format_for(self, letter, value_text):
        try:
            value = float(value_text)
        except ValueError:
            return None

        if letter == 'G':
            if value == 0:
                return self.g0_format
            if value == 1:
                return self.g1_format
            if value in (2, 3):
                return self.g2g3_format
            if value == 53:
                return self.g53_format
            return self.gcode_format
        if letter == 'M':
            if value == TOOL_CHANGE:
                return self.tool_format
            if value in (SPINDLE_CW, SPINDLE_CCW, SPINDLE_STOP):
                return self.spindle_format
            if value in PROGRAM_END_CODES:
                return self.end_format
            return self.mcode_format
        if letter == 'T':
            return self.tool_format
        if letter == 'X':
            return self.x_format
        if letter == 'Y':
            return self.y_format
        if letter == 'Z':
            return self.z_format
        if letter in ('I', 'J', 'K', 'R'):
            return self.ijk_format
        if letter in ('F', 'S'):
            return self.fs_format
        if letter == 'N':
            return self.line_number_format
        return self.other_param_format


class LineNumberArea(QWidget):
    """Line number area widget for the editor."""

    def __init__(self, editor):
        super().__init__(editor)
        self.editor = editor

    def sizeHint(self):
        return QSize(self.editor.lineNumberAreaWidth(), 0)

    def paintEvent(self, event):
        self.editor.lineNumberAreaPaintEvent(event)


class Editor(QPlainTextEdit):
    """G-code editor with line numbers and dark mode; used for the source and the output."""

    def __init__(self, parent=None, read_only=False):
        super().__init__(parent)

        self.setup_dark_mode()
        self.lineNumberArea = LineNumberArea(self)
        self.setup_editor()
        self.setReadOnly(read_only)

        self.highlighter = ReplicatorHighlighter(self.document())

        self.blockCountChanged.connect(self.updateLineNumberAreaWidth)
        self.updateRequest.connect(self.updateLineNumberArea)
        self.cursorPositionChanged.connect(self.highlight_current_line)

    def setup_dark_mode(self):
        palette = self.palette()
        palette.setColor(QPalette.Base, QColor('#2b2b2b'))  # Background
        palette.setColor(QPalette.Text, QColor('#f8f8f2'))  # Text
        palette.setColor(QPalette.Highlight, QColor('#44475a'))  # Selection
        palette.setColor(QPalette.HighlightedText, QColor('#f8f8f2'))
        self.setPalette(palette)

    def setup_editor(self):
        """Configure the editor appearance and behavior."""
        self.setLineWrapMode(QPlainTextEdit.NoWrap)

        font = QFont("Consolas", 11)
        if not font.exactMatch():
            font = QFont("Courier New", 11)
        font.setStyleHint(QFont.StyleHint.Monospace)
        font.setFixedPitch(True)
        self.setFont(font)

        tab_width = self.fontMetrics().horizontalAdvance(' ') * 4
        self.setTabStopDistance(tab_width)

        self.updateLineNumberAreaWidth(0)

    def highlight_current_line(self):
        selections = []
        if not self.isReadOnly():
            cursor = self.textCursor()
            if not cursor.hasSelection():
                selection = QTextEdit.ExtraSelection()
                selection.format.setBackground(QColor('#44475a'))
                selection.format.setProperty(QTextFormat.FullWidthSelection, True)
                selection.cursor = cursor
                selection.cursor.clearSelection()
                selections.append(selection)
        self.setExtraSelections(selections)

    # Line number area methods
    def lineNumberAreaWidth(self):
        digits = len(str(max(1, self.blockCount())))
        return 3 + self.fontMetrics().horizontalAdvance('9') * digits

    def updateLineNumberAreaWidth(self, _):
        self.setViewportMargins(self.lineNumberAreaWidth(), 0, 0, 0)

    def updateLineNumberArea(self, rect, dy):
        if dy:
            self.lineNumberArea.scroll(0, dy)
        else:
            self.lineNumberArea.update(0, rect.y(), self.lineNumberArea.width(), rect.height())

        if rect.contains(self.viewport().rect()):
            self.updateLineNumberAreaWidth(0)

    def resizeEvent(self, event):
        super().resizeEvent(event)
        cr = self.contentsRect()
        self.lineNumberArea.setGeometry(QRect(cr.left(), cr.top(), self.lineNumberAreaWidth(), cr.height()))

    def lineNumberAreaPaintEvent(self, event):
        painter = QPainter(self.lineNumberArea)
        painter.fillRect(event.rect(), QColor('#383838'))

        block = self.firstVisibleBlock()
        blockNumber = block.blockNumber()
        top = self.blockBoundingGeometry(block).translated(self.contentOffset()).top()
        bottom = top + self.blockBoundingRect(block).height()

        painter.setPen(QColor('#6c757d'))
        while block.isValid() and top <= event.rect().bottom():
            if block.isVisible() and bottom >= event.rect().top():
                painter.drawText(0, int(top), self.lineNumberArea.width() - 3,
                                 self.fontMetrics().height(), Qt.AlignRight, str(blockNumber + 1))

            block = block.next()
            top = bottom
            bottom = top + self.blockBoundingRect(block).height()
            blockNumber += 1
