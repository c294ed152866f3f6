"""Grid model: obstacle occupancy over a fixed-size lattice.

Occupancy is held in a numpy boolean matrix indexed ``blocked[y, x]``
(row = y, column = x). Dimensions are fixed when the grid is created.
"""

from typing import Any, Dict, Iterable, List

import numpy as np

from .config import GRID_HEIGHT, GRID_WIDTH
from .exceptions import OutOfBoundsError
from .model import Position


class Grid:
    """Fixed-size occupancy grid.

    Attributes:
        width: Number of columns (x in [0, width - 1]).
        height: Number of rows (y in [0, height - 1]).
        blocked: Boolean occupancy matrix of shape (height, width).
    """

    def __init__(self, width: int = GRID_WIDTH, height: int = GRID_HEIGHT) -> None:
        """Initialize an empty grid.

        Args:
            width: Number of columns. Default: GRID_WIDTH.
            height: Number of rows. Default: GRID_HEIGHT.

        Raises:
            ValueError: If either dimension is not positive.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {width}x{height}")

        self.width = width
        self.height = height
        self.blocked: np.ndarray = np.zeros((height, width), dtype=bool)

    @property
    def shape(self):
        return self.blocked.shape

    def is_in_bounds(self, position: Position) -> bool:
        """Return True if position lies on the grid."""
        return 0 <= position.x < self.width and 0 <= position.y < self.height

    def is_occupied(self, position: Position) -> bool:
        """Return True if position holds an obstacle.

        Positions off the grid are never occupied; use is_in_bounds to tell
        a wall from free space.
        """
        if not self.is_in_bounds(position):
            return False
        return bool(self.blocked[position.y, position.x])

    def load_obstacles(self, positions: Iterable[Position]) -> None:
        """Mark each position as occupied.

        Additive: previously loaded obstacles are kept. The whole batch is
        validated before any cell is marked, so a bad batch leaves the grid
        unchanged.

        Args:
            positions: Cells to mark as occupied.

        Raises:
            OutOfBoundsError: If any position lies outside the grid.
        """
        positions = list(positions)
        for position in positions:
            if not self.is_in_bounds(position):
                raise OutOfBoundsError(
                    position,
                    f"Obstacle {position} lies outside the "
                    f"{self.width}x{self.height} grid.",
                )

        for position in positions:
            self.blocked[position.y, position.x] = True

    def reset(self) -> None:
        """Clear all occupancy."""
        self.blocked[:, :] = False

    def obstacles(self) -> List[Position]:
        """Return occupied cells sorted by row, then column."""
        return [Position(int(x), int(y)) for y, x in np.argwhere(self.blocked)]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "obstacles": [p.to_dict() for p in self.obstacles()],
        }
