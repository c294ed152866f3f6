"""Rover kinematic model on the grid.

This module provides the value types the executor works with: grid
positions, the four headings with their turn transitions, the command
alphabet, and the mutable rover state.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple

from .config import GRID_HEIGHT, GRID_WIDTH, START_HEADING, START_POSITION
from .exceptions import OutOfBoundsError

# Command alphabet
MOVE = "M"  # Advance one cell in the current heading
TURN_LEFT = "L"  # Rotate 90 degrees counter-clockwise
TURN_RIGHT = "R"  # Rotate 90 degrees clockwise

COMMANDS = frozenset((MOVE, TURN_LEFT, TURN_RIGHT))


def is_command(char: str) -> bool:
    """Return True if char is a recognized command (case-sensitive)."""
    return char in COMMANDS


@dataclass(frozen=True)
class Position:
    """Integer grid cell. x is the column, y is the row (row 0 at the bottom)."""

    x: int
    y: int

    def offset(self, dx: int, dy: int) -> "Position":
        return Position(self.x + dx, self.y + dy)

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y}

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"


class Heading(Enum):
    """Facing direction of the rover.

    Members are declared in clockwise order, so a right turn is one step
    forward in the cycle and a left turn is one step back.
    """

    UP = (0, 1)
    RIGHT = (1, 0)
    DOWN = (0, -1)
    LEFT = (-1, 0)

    @property
    def delta(self) -> Tuple[int, int]:
        """Unit step (dx, dy) for a move in this heading."""
        return self.value

    def turned_right(self) -> "Heading":
        """Heading after a clockwise turn: UP -> RIGHT -> DOWN -> LEFT -> UP."""
        return _CYCLE[(_CYCLE.index(self) + 1) % len(_CYCLE)]

    def turned_left(self) -> "Heading":
        """Heading after a counter-clockwise turn: UP -> LEFT -> DOWN -> RIGHT -> UP."""
        return _CYCLE[(_CYCLE.index(self) - 1) % len(_CYCLE)]


_CYCLE = tuple(Heading)


def _start_position() -> Position:
    return Position(*START_POSITION)


@dataclass
class RoverState:
    """Position and heading of the rover.

    Only the executor mutates this during a run; everything else treats it
    as read-only.

    Attributes:
        position: Current grid cell.
        heading: Current facing direction.
    """

    position: Position = field(default_factory=_start_position)
    heading: Heading = Heading[START_HEADING]

    def reset(self) -> None:
        """Return the rover to the start position facing the start heading."""
        self.position = _start_position()
        self.heading = Heading[START_HEADING]

    def set_start(
        self, position: Position, width: int = GRID_WIDTH, height: int = GRID_HEIGHT
    ) -> None:
        """Place the rover before a run.

        The cell is not checked against obstacles; that is the caller's
        responsibility.

        Args:
            position: Start cell.
            width: Grid width the cell must fit in. Default: GRID_WIDTH.
            height: Grid height the cell must fit in. Default: GRID_HEIGHT.

        Raises:
            OutOfBoundsError: If position lies outside the grid. The rover
                is left where it was.
        """
        if not (0 <= position.x < width and 0 <= position.y < height):
            raise OutOfBoundsError(position, f"Start position {position} lies outside the grid.")
        self.position = position

    def advance(self) -> Position:
        """Return the cell one step ahead in the current heading.

        Pure: the rover does not move.
        """
        dx, dy = self.heading.delta
        return self.position.offset(dx, dy)

    def to_dict(self) -> Dict[str, Any]:
        return {"position": self.position.to_dict(), "heading": self.heading.name}
