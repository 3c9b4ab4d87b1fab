"""
Replicator configuration.
Grid layout, persisted user settings, units and machine travel limits.
"""
import json
import logging
import os
import platform
from dataclasses import dataclass, fields, asdict
from enum import Enum
from pathlib import Path
from typing import Any, Dict, FrozenSet, Mapping, Optional

logger = logging.getLogger(__name__)

APP_NAME = "gcode-replicator"
SETTINGS_FILE = "replicator.json"
FIRMWARE_FILE = "firmware.json"

MM_PER_INCH = 25.4

# GRBL travel settings ($130 = X max travel, $131 = Y max travel)
FIRMWARE_X_TRAVEL = "130"
FIRMWARE_Y_TRAVEL = "131"


class ConfigError(ValueError):
    """Raised when a configuration object is structurally invalid."""


class Direction(Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"

    @property
    def sign(self) -> int:
        return 1 if self == Direction.POSITIVE else -1

    @classmethod
    def parse(cls, value) -> 'Direction':
        if isinstance(value, Direction):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ConfigError(f"Direction must be 'positive' or 'negative', got {value!r}")


class UnitsPreference(Enum):
    METRIC = "metric"
    IMPERIAL = "imperial"

    @property
    def distance_unit(self) -> str:
        return "in" if self == UnitsPreference.IMPERIAL else "mm"

    def to_display(self, value_mm: float) -> float:
        """Convert millimetres to the display unit."""
        if self == UnitsPreference.IMPERIAL:
            return round(value_mm / MM_PER_INCH, 3)
        return value_mm

    def to_metric(self, value: float) -> float:
        """Convert a display value back to millimetres."""
        if self == UnitsPreference.IMPERIAL:
            return value * MM_PER_INCH
        return value


@dataclass(frozen=True)
class GridSpec:
    """
    Layout of the replicated grid.

    Spacing is centre to centre (part size plus gap) in millimetres. ``skip``
    holds 1-based, row-major part numbers that are left out.
    """
    spacing_x: float
    spacing_y: float
    rows: int = 1
    columns: int = 2
    row_direction: Direction = Direction.POSITIVE
    column_direction: Direction = Direction.POSITIVE
    skip: FrozenSet[int] = frozenset()

    def __post_init__(self):
        if int(self.rows) != self.rows or self.rows < 1:
            raise ConfigError(f"Rows must be a whole number >= 1, got {self.rows}")
        if int(self.columns) != self.columns or self.columns < 1:
            raise ConfigError(f"Columns must be a whole number >= 1, got {self.columns}")
        # Spacing only matters along an axis with more than one cell
        if self.columns > 1 and self.spacing_x <= 0:
            raise ConfigError(f"X spacing must be positive, got {self.spacing_x:.3f}")
        if self.rows > 1 and self.spacing_y <= 0:
            raise ConfigError(f"Y spacing must be positive, got {self.spacing_y:.3f}")
        object.__setattr__(self, 'rows', int(self.rows))
        object.__setattr__(self, 'columns', int(self.columns))
        object.__setattr__(self, 'row_direction', Direction.parse(self.row_direction))
        object.__setattr__(self, 'column_direction', Direction.parse(self.column_direction))
        object.__setattr__(self, 'skip', frozenset(self.skip))

    @property
    def total_parts(self) -> int:
        return self.rows * self.columns


@dataclass
class ReplicatorSettings:
    """User settings for one replication, persisted between sessions. Gaps are in mm."""
    rows: int = 1
    columns: int = 2
    row_direction: Direction = Direction.POSITIVE
    column_direction: Direction = Direction.POSITIVE
    gap_x: float = 5.0
    gap_y: float = 5.0
    sort_by_tool: bool = False
    skip_instances: str = ""

    @property
    def total_parts(self) -> int:
        return self.rows * self.columns

    def to_grid_spec(self, part_width: float, part_height: float,
                     skip: Optional[FrozenSet[int]] = None) -> GridSpec:
        """Grid layout with centre-to-centre spacing derived from the part size."""
        return GridSpec(
            spacing_x=part_width + self.gap_x,
            spacing_y=part_height + self.gap_y,
            rows=self.rows,
            columns=self.columns,
            row_direction=self.row_direction,
            column_direction=self.column_direction,
            skip=frozenset(skip or ()),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['row_direction'] = self.row_direction.value
        data['column_direction'] = self.column_direction.value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ReplicatorSettings':
        """Build settings from saved data; unknown keys are ignored, missing keys use defaults."""
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        settings = cls(**values)
        settings.row_direction = Direction.parse(settings.row_direction)
        settings.column_direction = Direction.parse(settings.column_direction)
        settings.rows = int(settings.rows)
        settings.columns = int(settings.columns)
        settings.gap_x = float(settings.gap_x)
        settings.gap_y = float(settings.gap_y)
        settings.sort_by_tool = bool(settings.sort_by_tool)
        settings.skip_instances = str(settings.skip_instances or "")
        return settings


@dataclass
class MachineLimits:
    """Machine travel envelope in mm."""
    x: float = 400.0
    y: float = 400.0

    @classmethod
    def from_firmware_settings(cls, firmware: Mapping[str, Any]) -> 'MachineLimits':
        """Read X/Y max travel from a firmware settings dump, keeping defaults for bad values."""
        limits = cls()
        settings = (firmware or {}).get('settings') or {}
        for key, axis in ((FIRMWARE_X_TRAVEL, 'x'), (FIRMWARE_Y_TRAVEL, 'y')):
            entry = settings.get(key) or {}
            try:
                value = float(entry.get('value'))
            except (TypeError, ValueError):
                continue
            if value > 0:
                setattr(limits, axis, value)
        return limits


class ConfigManager:
    """Loads and saves replicator configuration."""

    @staticmethod
    def user_data_dir() -> Path:
        """Per-platform application data directory."""
        home = Path.home()
        system = platform.system()
        if system == "Windows":
            return Path(os.environ.get("APPDATA", home / "AppData" / "Roaming")) / APP_NAME
        if system == "Darwin":
            return home / "Library" / "Application Support" / APP_NAME
        if system == "Linux":
            return Path(os.environ.get("XDG_CONFIG_HOME", home / ".config")) / APP_NAME
        return home / f".{APP_NAME}"

    @staticmethod
    def default_settings_path() -> Path:
        return ConfigManager.user_data_dir() / SETTINGS_FILE

    @staticmethod
    def default_firmware_path() -> Path:
        return ConfigManager.user_data_dir() / FIRMWARE_FILE

    @staticmethod
    def save_settings(settings: ReplicatorSettings, filepath=None):
        """Save settings to a JSON file."""
        path = Path(filepath) if filepath else ConfigManager.default_settings_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(settings.to_dict(), f, indent=2)

    @staticmethod
    def load_settings(filepath=None) -> ReplicatorSettings:
        """Load settings from a JSON file, falling back to defaults."""
        path = Path(filepath) if filepath else ConfigManager.default_settings_path()
        try:
            with open(path, 'r') as f:
                data = json.load(f)
            return ReplicatorSettings.from_dict(data)
        except FileNotFoundError:
            return ReplicatorSettings()
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Failed to read settings from %s, using defaults: %s", path, e)
            return ReplicatorSettings()

    @staticmethod
    def load_machine_limits(filepath=None) -> MachineLimits:
        """Load travel limits from a firmware settings file, falling back to defaults."""
        path = Path(filepath) if filepath else ConfigManager.default_firmware_path()
        try:
            with open(path, 'r') as f:
                data = json.load(f)
            return MachineLimits.from_firmware_settings(data)
        except FileNotFoundError:
            return MachineLimits()
        except (OSError, ValueError, AttributeError) as e:
            logger.warning("Failed to read firmware settings from %s, using defaults: %s", path, e)
            return MachineLimits()
