"""
Shared fixtures for the replicator test suite.
"""

import pytest

from config.replicator_config import GridSpec
from core.grid import plan_grid
from gcode_replicator import GCodeReplicator


TWO_TOOL_PROGRAM = """(Header comment)
G21 G90
G53 G0 Z0
T1 M6
S12000 M3
G0 X0 Y0
G1 Z-1 F300
G1 X10 Y0
G1 X10 Y10
M5
G53 G0 Z0
T2 M6
(Drill1)
S9000 M3
G0 X5 Y5
G1 Z-2
G0 Z5
M5
G53 G0 Z0
M30"""


# Tool 1 comes back after tool 2
REPEATED_TOOL_PROGRAM = """G21 G90
T1 M6
S12000 M3
G0 X0 Y0
G1 X10 Y0
M5
T2 M6
S9000 M3
G0 X5 Y5
G1 X5 Y8
M5
T1 M6
S12000 M3
G0 X0 Y10
G1 X10 Y10
M5
M30"""


NO_TOOL_PROGRAM = """G21 G90
G0 Z5
S10000 M3
G0 X0 Y0
G1 Z-1 F300
G1 X10 Y0
G1 X10 Y10
G0 Z5
M5
G53 G0 Z0
M30"""


@pytest.fixture
def two_tool_program():
    """Two tools, one segment each, with an operation label after a retract."""
    return TWO_TOOL_PROGRAM


@pytest.fixture
def repeated_tool_program():
    """Three tool segments using two unique tools."""
    return REPEATED_TOOL_PROGRAM


@pytest.fixture
def no_tool_program():
    """Single-tool program without any tool change."""
    return NO_TOOL_PROGRAM


@pytest.fixture
def two_columns():
    """Two instances side by side, 20mm apart in X."""
    return plan_grid(GridSpec(spacing_x=20.0, spacing_y=20.0, rows=1, columns=2))


@pytest.fixture
def two_by_two():
    return plan_grid(GridSpec(spacing_x=20.0, spacing_y=15.0, rows=2, columns=2))


@pytest.fixture
def replicator(two_tool_program):
    """Replicator with the two-tool program loaded (part size 10 x 10)."""
    replicator = GCodeReplicator()
    replicator.load_program(two_tool_program, filename="bracket.nc")
    return replicator
