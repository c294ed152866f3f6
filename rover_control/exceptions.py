"""Custom exception types for the rover command executor."""

from typing import Any, Optional


class RoverControlError(Exception):
    """Base class for domain-specific errors."""


class OutOfBoundsError(RoverControlError):
    """Raised when a position outside the grid is fed to the grid or rover."""

    def __init__(self, position: Any, message: Optional[str] = None) -> None:
        if message is None:
            message = f"Position {position} lies outside the grid."
        super().__init__(message)
        self.position = position


class LayoutError(RoverControlError):
    """Raised when a layout document cannot be parsed."""


__all__ = ["RoverControlError", "OutOfBoundsError", "LayoutError"]
