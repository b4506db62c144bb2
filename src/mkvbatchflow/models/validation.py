"""Validation result data models."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ValidationSeverity(Enum):
    """Severity of a batch validation check."""

    OFF = "off"  # Check is not run
    INFO = "info"  # Non-blocking
    WARNING = "warning"  # Non-blocking
    ERROR = "error"  # Blocks batch submission


class StrictnessMode(Enum):
    """Named severity presets."""

    STRICT = "strict"
    LENIENT = "lenient"
    CUSTOM = "custom"


@dataclass(frozen=True)
class ValidationResult:
    """A single diagnostic produced by a validation rule."""

    severity: ValidationSeverity
    message: str
    file_path: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.severity == ValidationSeverity.ERROR

    @property
    def is_warning(self) -> bool:
        return self.severity == ValidationSeverity.WARNING

    @property
    def is_info(self) -> bool:
        return self.severity == ValidationSeverity.INFO

    @property
    def is_blocking(self) -> bool:
        return self.is_error

    def __str__(self) -> str:
        """Human-readable representation."""
        return f"[{self.severity.value.upper()}] {self.message}"
