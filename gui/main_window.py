"""
The main window for the G-code replicator.
Source program on the left, grid configuration and preview in the middle,
generated program and console at the bottom.
"""
import logging
from pathlib import Path

from PySide6.QtWidgets import (QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QFormLayout,
                               QPushButton, QFileDialog, QMessageBox, QTextEdit, QSplitter,
                               QLabel, QComboBox, QSpinBox, QDoubleSpinBox, QCheckBox, QLineEdit)
from PySide6.QtCore import Qt, QTimer, QObject, Signal, QRegularExpression
from PySide6.QtGui import QFont, QRegularExpressionValidator

from .editor import Editor
from .viewport import Viewport
from gcode_replicator import GCodeReplicator
from config.replicator_config import ConfigManager, Direction, ReplicatorSettings, UnitsPreference

logger = logging.getLogger(__name__)

SAMPLE_GCODE = """(Sample two-tool program)
G21 G90 G94
G53 G0 Z0
T1 M6
(Pocket1)
S12000 M3
G0 X5 Y5
G0 Z2
G1 Z-1 F300
G1 X35 Y5 F1200
G1 X35 Y25
G2 X25 Y35 I-10 J0
G1 X5 Y35
G1 X5 Y5
G0 Z5
M5
G53 G0 Z0
T2 M6
(Drill1)
S9000 M3
G0 X20 Y20
G1 Z-3 F200
G0 Z5
M5
G53 G0 Z0
M30"""


class LogEmitter(QObject):
    message = Signal(str)


class ConsoleLogHandler(logging.Handler):
    """Forwards log records to the console pane through a queued Qt signal."""

    def __init__(self):
        super().__init__()
        self.emitter = LogEmitter()
        self.setFormatter(logging.Formatter('%(levelname)s %(name)s: %(message)s'))

    def emit(self, record):
        self.emitter.message.emit(self.format(record))


class ReplicatorWindow(QMainWindow):
    def __init__(self, initial_file=None):
        super().__init__()
        self.setWindowTitle("G-Code Replicator")
        self.setGeometry(100, 100, 1600, 1000)

        self.replicator = GCodeReplicator()
        self.settings = ConfigManager.load_settings()
        self.limits = ConfigManager.load_machine_limits()
        self.units = UnitsPreference.METRIC
        self.current_file = "program.nc"
        self.source_file = None
        self.output_filename = ""

        # Re-measure the source 500ms after typing stops
        self.analyze_timer = QTimer()
        self.analyze_timer.setSingleShot(True)
        self.analyze_timer.timeout.connect(self.analyze_source)

        self.setup_ui()
        self.setup_logging()
        self.apply_settings(self.settings)
        self.connect_signals()

        if initial_file:
            self.load_program_file(initial_file)
        else:
            self.load_sample_gcode()

    def setup_ui(self):
        """Set up the user interface."""
        main_widget = QWidget()
        self.setCentralWidget(main_widget)
        main_layout = QVBoxLayout(main_widget)

        # Top toolbar
        toolbar_layout = QHBoxLayout()

        self.load_button = QPushButton("Load G-Code File")
        self.generate_button = QPushButton("Generate")
        self.save_button = QPushButton("Save Output")
        self.save_button.setEnabled(False)

        self.units_selector = QComboBox()
        for units in UnitsPreference:
            self.units_selector.addItem(units.distance_unit, units)

        self.status_label = QLabel("Ready")

        toolbar_layout.addWidget(self.load_button)
        toolbar_layout.addWidget(self.generate_button)
        toolbar_layout.addWidget(self.save_button)
        toolbar_layout.addStretch()
        toolbar_layout.addWidget(QLabel("Units:"))
        toolbar_layout.addWidget(self.units_selector)
        toolbar_layout.addWidget(self.status_label)

        main_layout.addLayout(toolbar_layout)

        main_splitter = QSplitter(Qt.Vertical)
        main_layout.addWidget(main_splitter)

        # Top pane: source, configuration, preview
        workspace_splitter = QSplitter(Qt.Horizontal)

        self.editor = Editor()
        workspace_splitter.addWidget(self.editor)
        workspace_splitter.addWidget(self.build_config_panel())

        self.viewport = Viewport()
        workspace_splitter.addWidget(self.viewport)

        # Bottom pane: generated program and console
        console_splitter = QSplitter(Qt.Horizontal)

        output_widget = QWidget()
        output_layout = QVBoxLayout(output_widget)
        output_layout.setContentsMargins(0, 0, 0, 0)
        self.output_label = QLabel("Generated Program:")
        output_layout.addWidget(self.output_label)
        self.output_editor = Editor(read_only=True)
        output_layout.addWidget(self.output_editor)
        console_splitter.addWidget(output_widget)

        console_widget = QWidget()
        console_layout = QVBoxLayout(console_widget)
        console_layout.setContentsMargins(0, 0, 0, 0)
        console_layout.addWidget(QLabel("Console Output:"))
        self.console = QTextEdit()
        self.console.setReadOnly(True)
        console_layout.addWidget(self.console)
        console_splitter.addWidget(console_widget)

        main_splitter.addWidget(workspace_splitter)
        main_splitter.addWidget(console_splitter)

        workspace_splitter.setSizes([550, 350, 700])
        console_splitter.setSizes([900, 700])
        main_splitter.setSizes([650, 350])

    def build_config_panel(self):
        panel = QWidget()
        layout = QVBoxLayout(panel)
        layout.setContentsMargins(5, 5, 5, 5)

        form = QFormLayout()

        self.columns_spin = QSpinBox()
        self.columns_spin.setRange(1, 100)
        self.column_direction = QComboBox()
        self.rows_spin = QSpinBox()
        self.rows_spin.setRange(1, 100)
        self.row_direction = QComboBox()
        for direction in Direction:
            self.column_direction.addItem(direction.value.capitalize(), direction)
            self.row_direction.addItem(direction.value.capitalize(), direction)

        self.gap_x_spin = QDoubleSpinBox()
        self.gap_y_spin = QDoubleSpinBox()
        for spin in (self.gap_x_spin, self.gap_y_spin):
            spin.setRange(-1000.0, 1000.0)
            spin.setDecimals(3)

        self.sort_checkbox = QCheckBox("Sort by tool")

        self.skip_edit = QLineEdit()
        self.skip_edit.setPlaceholderText("e.g. 1, 3-5")
        self.skip_edit.setValidator(QRegularExpressionValidator(QRegularExpression(r"[0-9,\- ]*")))

        form.addRow("Columns (X):", self.columns_spin)
        form.addRow("X direction:", self.column_direction)
        form.addRow("Rows (Y):", self.rows_spin)
        form.addRow("Y direction:", self.row_direction)
        form.addRow("X gap:", self.gap_x_spin)
        form.addRow("Y gap:", self.gap_y_spin)
        form.addRow("", self.sort_checkbox)
        form.addRow("Skip instances:", self.skip_edit)
        layout.addLayout(form)

        self.summary_label = QLabel("Summary:\nNo program loaded")
        self.summary_label.setFont(QFont("Courier", 9))
        self.summary_label.setStyleSheet("QLabel { background-color: #f0f0f0; padding: 5px; }")
        layout.addWidget(self.summary_label)

        self.validation_label = QLabel("")
        self.validation_label.setWordWrap(True)
        self.validation_label.setStyleSheet("QLabel { color: #c92a2a; }")
        layout.addWidget(self.validation_label)

        layout.addStretch()
        return panel

    def setup_logging(self):
        self.log_handler = ConsoleLogHandler()
        self.log_handler.emitter.message.connect(self.console.append)
        logging.getLogger().addHandler(self.log_handler)

    def closeEvent(self, event):
        logging.getLogger().removeHandler(self.log_handler)
        super().closeEvent(event)

    def connect_signals(self):
        """Connect all signal handlers."""
        self.load_button.clicked.connect(self.load_gcode_file)
        self.generate_button.clicked.connect(self.generate)
        self.save_button.clicked.connect(self.save_output_file)
        self.units_selector.currentIndexChanged.connect(self.change_units)
        self.editor.textChanged.connect(self.on_text_changed)

        # Changing the grid shape renumbers the parts
        self.columns_spin.valueChanged.connect(self.on_grid_shape_changed)
        self.rows_spin.valueChanged.connect(self.on_grid_shape_changed)

        self.column_direction.currentIndexChanged.connect(self.update_preview)
        self.row_direction.currentIndexChanged.connect(self.update_preview)
        self.gap_x_spin.valueChanged.connect(self.update_preview)
        self.gap_y_spin.valueChanged.connect(self.update_preview)
        self.sort_checkbox.toggled.connect(self.update_preview)
        self.skip_edit.textChanged.connect(self.update_preview)

    # Settings <-> form

    def apply_settings(self, settings: ReplicatorSettings):
        self.columns_spin.setValue(settings.columns)
        self.rows_spin.setValue(settings.rows)
        self.column_direction.setCurrentIndex(self.column_direction.findData(settings.column_direction))
        self.row_direction.setCurrentIndex(self.row_direction.findData(settings.row_direction))
        self.gap_x_spin.setValue(self.units.to_display(settings.gap_x))
        self.gap_y_spin.setValue(self.units.to_display(settings.gap_y))
        self.sort_checkbox.setChecked(settings.sort_by_tool)
        self.skip_edit.setText(settings.skip_instances)

    def read_settings(self) -> ReplicatorSettings:
        return ReplicatorSettings(
            rows=self.rows_spin.value(),
            columns=self.columns_spin.value(),
            row_direction=self.row_direction.currentData(),
            column_direction=self.column_direction.currentData(),
            gap_x=self.units.to_metric(self.gap_x_spin.value()),
            gap_y=self.units.to_metric(self.gap_y_spin.value()),
            sort_by_tool=self.sort_checkbox.isChecked(),
            skip_instances=self.skip_edit.text().strip(),
        )

    # Program loading

    def load_sample_gcode(self):
        self.editor.setPlainText(SAMPLE_GCODE)
        self.analyze_source()

    def load_gcode_file(self):
        """Load G-code from a file."""
        file_path, _ = QFileDialog.getOpenFileName(
            self, "Open G-Code File", "",
            "G-Code Files (*.nc *.ngc *.gcode *.tap *.txt);;All Files (*)"
        )
        if file_path:
            self.load_program_file(file_path)

    def load_program_file(self, file_path):
        try:
            with open(file_path, 'r') as f:
                content = f.read()
        except OSError as e:
            logger.error("Could not open %s: %s", file_path, e)
            QMessageBox.warning(self, "Open Failed", str(e))
            return

        self.current_file = Path(file_path).name
        self.source_file = None
        self.editor.blockSignals(True)
        self.editor.setPlainText(content)
        self.editor.blockSignals(False)
        self.analyze_source()

    def on_text_changed(self):
        self.analyze_timer.stop()
        self.analyze_timer.start(500)

    def analyze_source(self):
        self.replicator.load_program(self.editor.toPlainText(), filename=self.current_file,
                                     source_file=self.source_file)
        self.update_preview()

    # Preview

    def on_grid_shape_changed(self):
        self.skip_edit.clear()
        self.update_preview()

    def change_units(self):
        settings = self.read_settings()
        self.units = self.units_selector.currentData()
        for spin in (self.gap_x_spin, self.gap_y_spin):
            spin.blockSignals(True)
        self.gap_x_spin.setValue(self.units.to_display(settings.gap_x))
        self.gap_y_spin.setValue(self.units.to_display(settings.gap_y))
        for spin in (self.gap_x_spin, self.gap_y_spin):
            spin.blockSignals(False)
        self.update_preview()

    def update_preview(self):
        """Recompute the summary, validation and grid preview from the form."""
        settings = self.read_settings()
        summary = self.replicator.get_summary(settings, self.limits, self.units)
        self.update_summary(summary)
        self.update_validation()

        min_point, _ = self.replicator.get_bounding_box()
        self.viewport.set_preview(
            self.replicator.get_preview_cells(settings),
            min_point[:2],
            summary['part_size'],
            summary['machine_limits'],
        )

    def update_summary(self, summary):
        display = self.units.to_display
        unit = self.units.distance_unit
        part_w, part_h = summary['part_size']
        grid_w, grid_h = summary['grid_size']
        limit_x, limit_y = summary['machine_limits']

        lines = [
            "Summary:",
            f"Source: {summary['source_file']}",
            f"Part: {display(part_w):.1f} x {display(part_h):.1f} {unit}",
            f"Grid: {display(grid_w):.1f} x {display(grid_h):.1f} {unit}",
            f"Machine: {display(limit_x):.0f} x {display(limit_y):.0f} {unit}",
            f"Parts: {summary['total_parts']}",
        ]
        if summary['skipped']:
            lines.append(f"Skipped: {len(summary['skipped'])}")
            lines.append(f"Generating: {summary['generating']}")
        self.summary_label.setText("\n".join(lines))

    def update_validation(self):
        errors = self.replicator.get_all_errors()
        self.validation_label.setText(errors[0].message if errors else "")
        if self.replicator.has_warnings() and not self.replicator.has_errors():
            self.validation_label.setStyleSheet("QLabel { color: #e67700; }")
        else:
            self.validation_label.setStyleSheet("QLabel { color: #c92a2a; }")
        self.generate_button.setEnabled(not self.replicator.has_errors())

    # Generation

    def generate(self):
        settings = self.read_settings()
        output = self.replicator.generate(settings, self.limits)
        if output is None:
            self.status_label.setText("Generation blocked")
            QMessageBox.warning(self, "Cannot Generate", self.replicator.first_error_message() or "")
            return

        try:
            ConfigManager.save_settings(settings)
        except OSError as e:
            logger.warning("Could not save settings: %s", e)

        self.output_filename = self.replicator.get_output_filename(settings)
        self.output_editor.setPlainText(output)
        self.output_label.setText(f"Generated Program: {self.output_filename}")
        self.save_button.setEnabled(True)
        self.status_label.setText("Generated")

    def save_output_file(self):
        """Save the generated program to a file."""
        file_path, _ = QFileDialog.getSaveFileName(
            self, "Save G-Code File", self.output_filename,
            "G-Code Files (*.nc);;All Files (*)"
        )
        if not file_path:
            return

        try:
            with open(file_path, 'w') as f:
                f.write(self.output_editor.toPlainText())
        except OSError as e:
            logger.error("Could not save %s: %s", file_path, e)
            QMessageBox.warning(self, "Save Failed", str(e))
            return
        logger.info("Saved: %s", file_path)
