"""Layout documents: rover start position and obstacle list.

A layout is a JSON object of the form::

    {
        "start": {"x": 0, "y": 0},
        "obstacles": [{"x": 3, "y": 4}, {"x": 3, "y": 5}]
    }

Both keys are optional; the start defaults to the configured start
position and the obstacle list to empty. Bounds are not checked here;
the grid rejects out-of-range cells when the layout is applied.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

from .config import START_POSITION
from .exceptions import LayoutError
from .model import Position


@dataclass
class Layout:
    """Start position and obstacles to feed CommandExecutor.update_layout."""

    start: Position = field(default_factory=lambda: Position(*START_POSITION))
    obstacles: List[Position] = field(default_factory=list)


def parse_position(item: Any) -> Position:
    """Parse a position from a {"x": int, "y": int} mapping.

    Args:
        item: Decoded JSON value.

    Returns:
        The position.

    Raises:
        LayoutError: If item is not a mapping with integer x and y.
    """
    if not isinstance(item, dict):
        raise LayoutError(f"Expected an object with 'x' and 'y', got {item!r}")
    try:
        x, y = item["x"], item["y"]
    except KeyError as e:
        raise LayoutError(f"Position {item!r} is missing key {e}") from e
    # bool is an int subclass; reject it explicitly
    for value in (x, y):
        if not isinstance(value, int) or isinstance(value, bool):
            raise LayoutError(f"Position coordinates must be integers, got {item!r}")
    return Position(x, y)


def parse_obstacles(items: Any) -> List[Position]:
    """Parse a JSON list of obstacle positions."""
    if not isinstance(items, list):
        raise LayoutError(f"Obstacles must be a list, got {type(items).__name__}")
    return [parse_position(item) for item in items]


def parse_layout(data: Dict[str, Any]) -> Layout:
    """Build a Layout from a decoded JSON document."""
    if not isinstance(data, dict):
        raise LayoutError(f"Layout must be a JSON object, got {type(data).__name__}")

    layout = Layout()
    if "start" in data:
        layout.start = parse_position(data["start"])
    if "obstacles" in data:
        layout.obstacles = parse_obstacles(data["obstacles"])
    return layout


def load_layout(path: Union[str, Path]) -> Layout:
    """Read a layout document from a JSON file.

    Args:
        path: Path to the JSON file.

    Returns:
        The parsed layout.

    Raises:
        LayoutError: If the file cannot be read or is not a valid layout.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise LayoutError(f"Cannot read layout file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise LayoutError(f"Invalid JSON in layout file {path}: {e}") from e
    return parse_layout(data)
