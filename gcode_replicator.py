"""
Main G-code replicator interface.
This is the primary entry point for hosts (the GUI, scripts, tests).
"""
import logging
import re
from pathlib import PurePath
from typing import Any, Dict, List, Optional, Tuple

from config.replicator_config import (ConfigError, MachineLimits, ReplicatorSettings,
                                      UnitsPreference)
from core.assembler import assemble
from core.geometry import BoundingBox, analyze_bounds
from core.grid import Instance, grid_footprint, plan_grid
from utils.errors import ErrorCollector, ErrorSeverity, ErrorType, ReplicatorError
from utils.skip_ranges import format_skip_set, parse_skip_spec

logger = logging.getLogger(__name__)

GENERATOR_LINE = "(Replicated G-code generated by G-code Replicator)"
SOURCE_PATTERN = re.compile(r'^\(Source: (.+)\)$')


def detect_source_file(gcode_text: str) -> Optional[str]:
    """Source name recorded in the banner of a program this tool generated."""
    lines = gcode_text.splitlines()
    if not lines or lines[0].strip() != GENERATOR_LINE:
        return None
    for line in lines[1:]:
        match = SOURCE_PATTERN.match(line.strip())
        if match:
            return match.group(1)
        if not line.strip().startswith('('):
            break
    return None


class GCodeReplicator:
    """
    Main interface for grid replication.
    Holds the loaded program and its measured part size; validation problems
    are collected rather than raised.
    """

    def __init__(self):
        self.error_collector = ErrorCollector()
        self.gcode_text = ""
        self.filename = "program.nc"
        self.source_file = "program.nc"
        self.bounds = BoundingBox().finalize()

    def load_program(self, gcode_text: str, filename: str = "program.nc",
                     source_file: Optional[str] = None):
        """
        Load a program and measure it.

        Args:
            gcode_text: Raw G-code text
            filename: Name of the loaded file
            source_file: Original file a replicated program was generated
                from, so replicating it again keeps the original name
        """
        self.gcode_text = gcode_text or ""
        self.filename = filename
        self.source_file = source_file or detect_source_file(self.gcode_text) or filename
        self.bounds = analyze_bounds(self.gcode_text)
        self.error_collector.clear()
        logger.info("Loaded %s: part size %.3f x %.3f mm", self.filename, *self.get_part_size())

    def get_bounding_box(self) -> Tuple[List[float], List[float]]:
        """Return (min_point, max_point) as [x, y, z] lists."""
        return self.bounds.as_tuple()

    def get_part_size(self) -> Tuple[float, float]:
        return self.bounds.width, self.bounds.height

    # Validation

    def validate(self, settings: ReplicatorSettings, limits: Optional[MachineLimits] = None,
                 units: UnitsPreference = UnitsPreference.METRIC) -> bool:
        """
        Check settings against the loaded program and the machine envelope.

        Returns:
            True when nothing blocks generation (warnings are allowed)
        """
        self.error_collector.clear()
        limits = limits or MachineLimits()

        _, skip_error = parse_skip_spec(settings.skip_instances, settings.total_parts)
        if skip_error:
            self.error_collector.add_error(skip_error.message, ErrorType.SKIP_SPEC, token=skip_error.token)

        try:
            self._grid_spec(settings)
        except ConfigError as e:
            self.error_collector.add_error(str(e), ErrorType.CONFIG)

        grid_width, grid_height = self.get_grid_size(settings)
        if grid_width > limits.x or grid_height > limits.y:
            unit = units.distance_unit
            self.error_collector.add_error(
                "Grid size exceeds machine limits! "
                f"Grid: {units.to_display(grid_width):.1f} x {units.to_display(grid_height):.1f} {unit}, "
                f"Machine: {units.to_display(limits.x):.0f} x {units.to_display(limits.y):.0f} {unit}",
                ErrorType.ENVELOPE)

        if settings.gap_x < 0 or settings.gap_y < 0:
            self.error_collector.add_error("Warning: Negative gap will cause parts to overlap.",
                                           ErrorType.WARNING, severity=ErrorSeverity.WARNING)

        return not self.error_collector.has_errors()

    def get_grid_size(self, settings: ReplicatorSettings) -> Tuple[float, float]:
        width, height = self.get_part_size()
        return grid_footprint(width, height, settings.rows, settings.columns,
                              settings.gap_x, settings.gap_y)

    def get_skipped(self, settings: ReplicatorSettings) -> List[int]:
        """Skipped part numbers, or nothing while the skip text is invalid."""
        skip_set, error = parse_skip_spec(settings.skip_instances, settings.total_parts)
        if error:
            return []
        return sorted(skip_set)

    def get_summary(self, settings: ReplicatorSettings, limits: Optional[MachineLimits] = None,
                    units: UnitsPreference = UnitsPreference.METRIC) -> Dict[str, Any]:
        """
        Summary of the planned replication for display purposes.
        Sizes are in millimetres; ``units`` only affects validation messages.
        """
        limits = limits or MachineLimits()
        can_generate = self.validate(settings, limits, units)
        skipped = self.get_skipped(settings)
        part_width, part_height = self.get_part_size()
        grid_width, grid_height = self.get_grid_size(settings)

        return {
            'source_file': self.source_file,
            'part_size': [part_width, part_height],
            'machine_limits': [limits.x, limits.y],
            'total_parts': settings.total_parts,
            'skipped': skipped,
            'generating': settings.total_parts - len(skipped),
            'grid_size': [grid_width, grid_height],
            'can_generate': can_generate,
        }

    # Generation

    def plan(self, settings: ReplicatorSettings) -> List[Instance]:
        """Planned instances; raises ConfigError for an invalid grid."""
        return plan_grid(self._grid_spec(settings))

    def generate(self, settings: ReplicatorSettings, limits: Optional[MachineLimits] = None) -> Optional[str]:
        """
        Generate the replicated program.

        Returns:
            The program text, or None when validation fails
        """
        if not self.validate(settings, limits):
            logger.warning("Generation blocked: %s", self.first_error_message())
            return None

        instances = self.plan(settings)
        output = assemble(
            self.gcode_text,
            instances,
            sort_by_tool=settings.sort_by_tool,
            total_parts=settings.total_parts,
            banner=self.build_banner(settings),
        )
        logger.info("Generated %d of %d parts (%s)", len(instances), settings.total_parts,
                    "sorted by tool" if settings.sort_by_tool else "standard")
        return output

    def build_banner(self, settings: ReplicatorSettings) -> List[str]:
        """Comment block describing how the program was generated."""
        skipped = self.get_skipped(settings)
        banner = [
            GENERATOR_LINE,
            f"(Source: {self.source_file})",
            f"(Grid: {settings.columns} columns x {settings.rows} rows = {settings.total_parts} parts)",
        ]
        if skipped:
            banner.append(f"(Skipped instances: {format_skip_set(skipped)})")
            banner.append(f"(Generating: {settings.total_parts - len(skipped)} parts)")
        banner.append(f"(Gap: X={settings.gap_x:.3f}mm, Y={settings.gap_y:.3f}mm)")
        banner.append(f"(X Direction: {settings.column_direction.value}, "
                      f"Y Direction: {settings.row_direction.value})")
        banner.append(f"(Sort by Tool: {'Yes' if settings.sort_by_tool else 'No'})")
        banner.append("")
        return banner

    def get_output_filename(self, settings: ReplicatorSettings) -> str:
        stem = PurePath(self.source_file).stem or "program"
        return f"{stem}_{settings.rows}x{settings.columns}.nc"

    def get_preview_cells(self, settings: ReplicatorSettings) -> List[Tuple[Instance, bool]]:
        """Every grid cell paired with whether it is skipped; empty for an invalid grid."""
        skipped = set(self.get_skipped(settings))
        part_width, part_height = self.get_part_size()
        try:
            cells = plan_grid(settings.to_grid_spec(part_width, part_height))
        except ConfigError:
            return []
        return [(instance, instance.part_number in skipped) for instance in cells]

    def _grid_spec(self, settings: ReplicatorSettings):
        part_width, part_height = self.get_part_size()
        return settings.to_grid_spec(part_width, part_height, frozenset(self.get_skipped(settings)))

    # Error handling methods for host integration

    def get_all_errors(self) -> List[ReplicatorError]:
        """Get all errors from the last validation."""
        return self.error_collector.get_all_errors()

    def has_errors(self) -> bool:
        """Check if there are any errors (excluding warnings)."""
        return self.error_collector.has_errors()

    def has_warnings(self) -> bool:
        return self.error_collector.has_warnings()

    def first_error_message(self) -> Optional[str]:
        error = self.error_collector.first_error()
        return error.message if error else None
