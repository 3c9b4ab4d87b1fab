"""
Error definitions and handling for the G-code replicator.
Errors are data returned to the host, never thrown past the facade.
"""
from enum import Enum
from dataclasses import dataclass
from typing import Optional, List


class ErrorType(Enum):
    SKIP_SPEC = "skip_spec"
    ENVELOPE = "envelope"
    CONFIG = "config"
    WARNING = "warning"


class ErrorSeverity(Enum):
    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"


@dataclass
class ReplicatorError:
    """A validation problem with the offending input text, if any."""
    message: str
    error_type: ErrorType
    token: Optional[str] = None
    severity: ErrorSeverity = ErrorSeverity.ERROR

    def __str__(self):
        return self.message


class ErrorCollector:
    """Collects and manages errors during validation and generation."""

    def __init__(self):
        self.errors: List[ReplicatorError] = []

    def add_error(self, message: str, error_type: ErrorType,
                  token: Optional[str] = None,
                  severity: ErrorSeverity = ErrorSeverity.ERROR) -> ReplicatorError:
        """Add an error to the collection."""
        error = ReplicatorError(message, error_type, token, severity)
        self.errors.append(error)
        return error

    def has_fatal_errors(self) -> bool:
        """Check if there are any fatal errors."""
        return any(error.severity == ErrorSeverity.FATAL for error in self.errors)

    def has_errors(self) -> bool:
        """Check if there are any errors (excluding warnings)."""
        return any(error.severity in [ErrorSeverity.ERROR, ErrorSeverity.FATAL]
                   for error in self.errors)

    def has_warnings(self) -> bool:
        return any(error.severity == ErrorSeverity.WARNING for error in self.errors)

    def first_error(self) -> Optional[ReplicatorError]:
        """First blocking error in insertion order, or None."""
        for error in self.errors:
            if error.severity != ErrorSeverity.WARNING:
                return error
        return None

    def clear(self):
        """Clear all errors."""
        self.errors.clear()

    def get_all_errors(self) -> List[ReplicatorError]:
        """Get all errors, blocking ones first."""
        order = {ErrorSeverity.FATAL: 0, ErrorSeverity.ERROR: 1, ErrorSeverity.WARNING: 2}
        return sorted(self.errors, key=lambda e: order[e.severity])
