"""Tests for the GCodeReplicator facade."""

import pytest

from config.replicator_config import Direction, MachineLimits, ReplicatorSettings, UnitsPreference
from gcode_replicator import GENERATOR_LINE, GCodeReplicator, detect_source_file
from utils.errors import ErrorSeverity, ErrorType


class TestLoadProgram:
    def test_part_size(self, replicator):
        assert replicator.get_part_size() == (10, 10)

    def test_bounding_box(self, replicator):
        assert replicator.get_bounding_box() == ([0, 0, -2], [10, 10, 0])

    def test_source_defaults_to_filename(self, replicator):
        assert replicator.source_file == "bracket.nc"

    def test_explicit_source_file(self, two_tool_program):
        replicator = GCodeReplicator()
        replicator.load_program(two_tool_program, filename="bracket_2x2.nc", source_file="bracket.nc")
        assert replicator.source_file == "bracket.nc"

    def test_source_detected_from_banner(self, replicator):
        output = replicator.generate(ReplicatorSettings(rows=1, columns=2))
        again = GCodeReplicator()
        again.load_program(output, filename="bracket_1x2.nc")
        assert again.source_file == "bracket.nc"
        assert again.get_output_filename(ReplicatorSettings(rows=2, columns=2)) == "bracket_2x2.nc"


class TestValidate:
    def test_valid(self, replicator):
        assert replicator.validate(ReplicatorSettings(), MachineLimits())
        assert replicator.get_all_errors() == []
        assert not replicator.has_warnings()

    def test_invalid_skip(self, replicator):
        assert not replicator.validate(ReplicatorSettings(skip_instances="5-3"))
        errors = replicator.get_all_errors()
        assert errors[0].error_type == ErrorType.SKIP_SPEC
        assert errors[0].token == "5-3"
        assert replicator.first_error_message() == "Range end must be >= start: 5-3"

    def test_envelope(self, replicator):
        settings = ReplicatorSettings(rows=1, columns=10, gap_x=5)
        assert not replicator.validate(settings, MachineLimits(100, 100))
        error = replicator.get_all_errors()[0]
        assert error.error_type == ErrorType.ENVELOPE
        assert error.message == ("Grid size exceeds machine limits! "
                                 "Grid: 145.0 x 10.0 mm, Machine: 100 x 100 mm")

    def test_envelope_in_inches(self, replicator):
        settings = ReplicatorSettings(rows=1, columns=10, gap_x=5)
        replicator.validate(settings, MachineLimits(100, 100), UnitsPreference.IMPERIAL)
        assert "in, Machine: 4 x 4 in" in replicator.first_error_message()

    def test_negative_gap_is_only_a_warning(self, replicator):
        assert replicator.validate(ReplicatorSettings(gap_x=-2))
        errors = replicator.get_all_errors()
        assert len(errors) == 1
        assert errors[0].severity == ErrorSeverity.WARNING
        assert errors[0].message == "Warning: Negative gap will cause parts to overlap."
        assert not replicator.has_errors()
        assert replicator.has_warnings()

    def test_overlapping_spacing_is_config_error(self, replicator):
        assert not replicator.validate(ReplicatorSettings(gap_x=-10))
        types = {e.error_type for e in replicator.get_all_errors()}
        assert ErrorType.CONFIG in types

    def test_validation_resets(self, replicator):
        replicator.validate(ReplicatorSettings(skip_instances="x"))
        assert replicator.has_errors()
        replicator.validate(ReplicatorSettings())
        assert not replicator.has_errors()


class TestSummary:
    def test_summary(self, replicator):
        settings = ReplicatorSettings(rows=2, columns=3, gap_x=5, gap_y=2, skip_instances="2, 5-6")
        summary = replicator.get_summary(settings, MachineLimits())
        assert summary == {
            'source_file': "bracket.nc",
            'part_size': [10, 10],
            'machine_limits': [400.0, 400.0],
            'total_parts': 6,
            'skipped': [2, 5, 6],
            'generating': 3,
            'grid_size': [40, 22],
            'can_generate': True,
        }

    def test_invalid_skip_is_not_partially_applied(self, replicator):
        settings = ReplicatorSettings(rows=2, columns=2, skip_instances="1, 9")
        summary = replicator.get_summary(settings)
        assert summary['skipped'] == []
        assert summary['generating'] == 4
        assert summary['can_generate'] is False


class TestGenerate:
    def test_blocked_on_error(self, replicator):
        assert replicator.generate(ReplicatorSettings(skip_instances="0")) is None
        assert replicator.has_errors()

    def test_banner(self, replicator):
        settings = ReplicatorSettings(rows=2, columns=2, skip_instances="4",
                                      gap_x=5, gap_y=2.5, sort_by_tool=True)
        lines = replicator.generate(settings).split("\n")
        assert lines[:9] == [
            GENERATOR_LINE,
            "(Source: bracket.nc)",
            "(Grid: 2 columns x 2 rows = 4 parts)",
            "(Skipped instances: 4)",
            "(Generating: 3 parts)",
            "(Gap: X=5.000mm, Y=2.500mm)",
            "(X Direction: positive, Y Direction: positive)",
            "(Sort by Tool: Yes)",
            "",
        ]

    def test_banner_without_skips(self, replicator):
        lines = replicator.generate(ReplicatorSettings()).split("\n")
        assert not any(line.startswith("(Skipped") for line in lines)
        assert "(Sort by Tool: No)" in lines

    def test_skipped_parts_not_generated(self, replicator):
        settings = ReplicatorSettings(rows=2, columns=2, skip_instances="2-3")
        lines = replicator.generate(settings).split("\n")
        parts = [line for line in lines if line.startswith("(Part ")]
        assert parts == ["(Part 1 of 4 - Row 1, Col 1)", "(Part 4 of 4 - Row 2, Col 2)"]

    def test_offsets_use_part_size_plus_gap(self, replicator):
        settings = ReplicatorSettings(rows=2, columns=2, gap_x=5, gap_y=5)
        output = replicator.generate(settings)
        assert "(Offset: X=15.000, Y=15.000)" in output
        assert "G1 X25.000 Y15.000" in output

    def test_negative_directions(self, replicator):
        settings = ReplicatorSettings(rows=1, columns=2, column_direction=Direction.NEGATIVE)
        output = replicator.generate(settings)
        assert "(Offset: X=-15.000, Y=0.000)" in output

    def test_flat_part_in_single_row(self):
        replicator = GCodeReplicator()
        replicator.load_program("G0 X0 Y0\nG1 X10", filename="slot.nc")
        assert replicator.get_part_size() == (10, 0)

        output = replicator.generate(ReplicatorSettings(rows=1, columns=2, gap_x=0, gap_y=0))
        assert output is not None
        assert "G0 X10.000 Y0.000" in output.split("\n")
        assert "G1 X20.000" in output.split("\n")

    def test_flat_part_in_several_rows_is_blocked(self):
        replicator = GCodeReplicator()
        replicator.load_program("G0 X0 Y0\nG1 X10", filename="slot.nc")
        assert replicator.generate(ReplicatorSettings(rows=2, columns=2, gap_x=0, gap_y=0)) is None
        assert replicator.get_all_errors()[0].error_type == ErrorType.CONFIG

    def test_generate_logs(self, replicator, caplog):
        with caplog.at_level("INFO", logger="gcode_replicator"):
            replicator.generate(ReplicatorSettings())
        assert "Generated 2 of 2 parts" in caplog.text


class TestOutputFilename:
    @pytest.mark.parametrize("source, expected", [
        ("bracket.nc", "bracket_3x2.nc"),
        ("part.v2.gcode", "part.v2_3x2.nc"),
        ("noext", "noext_3x2.nc"),
    ])
    def test_name(self, source, expected):
        replicator = GCodeReplicator()
        replicator.load_program("G1 X1 Y1", filename=source)
        assert replicator.get_output_filename(ReplicatorSettings(rows=3, columns=2)) == expected


class TestDetectSourceFile:
    def test_plain_program(self):
        assert detect_source_file("G1 X1") is None
        assert detect_source_file("") is None

    def test_generated_program(self):
        text = f"{GENERATOR_LINE}\n(Source: a b.nc)\n(Grid: 1 columns x 1 rows = 1 parts)"
        assert detect_source_file(text) == "a b.nc"
