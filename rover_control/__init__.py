"""Rover Control - Paced Command Execution on an Obstacle Grid

Simulates a rover on a bounded 10x20 grid with static obstacles. The rover
executes command strings (M = move one cell, L = turn left, R = turn right)
one command per cadence interval, stops when a move would hit a wall or an
obstacle, and can be cancelled mid-sequence with the unexecuted remainder
recorded for resumption.

## Architecture Overview

### Grid Model (grid.py)
Obstacle occupancy over a fixed lattice, held as a numpy boolean matrix.
- Additive obstacle loading with all-or-nothing bounds validation
- Bounds and occupancy queries

### Rover State (model.py)
Position, heading, and the command alphabet.
- Heading turns via modular arithmetic over the UP/RIGHT/DOWN/LEFT cycle
- Pure look-ahead of the next cell

### Command Executor (executor.py)
The state machine that runs a command string.
- asyncio worker task paces the run (default 500ms per command)
- Command effects are posted back to the state-owning event loop
- Path checks classify the next cell as clear, wall, or obstacle
- Cooperative cancel() and immediate stop_process()
- Partial command recorded when a run ends early

### Notification Interface (notifications.py, ws_notifier.py)
Sinks that receive redraw, haptic, blocking, and run-result events.
- Console logging sink
- WebSocket bridge to an external renderer

## Quick Start

```python
import asyncio

from rover_control import CommandExecutor, Position

async def run():
    executor = CommandExecutor(interval=0.1)
    executor.update_layout(Position(0, 0), [Position(0, 3)])
    await executor.process_command("MMMRM")
    return await executor.wait()

result = asyncio.run(run())
```

Or use the command-line interface:
```bash
python -m rover_control --obstacle 0,3 MMMRM
```

## Configuration

Grid size, cadence, haptic durations, and renderer settings live in
`config.py`.
"""

__version__ = "0.1.0"

from .exceptions import LayoutError, OutOfBoundsError, RoverControlError
from .executor import (
    CommandExecutor,
    ExecutionRun,
    ExecutorState,
    PathCheck,
    PathVerdict,
    RunOutcome,
    RunResult,
    check_path,
)
from .grid import Grid
from .layout import Layout, load_layout
from .model import Heading, Position, RoverState
from .notifications import BlockKind, CompositeNotifier, LoggingNotifier, NotificationSink

__all__ = [
    "CommandExecutor",
    "ExecutionRun",
    "ExecutorState",
    "RunOutcome",
    "RunResult",
    "PathCheck",
    "PathVerdict",
    "check_path",
    "Grid",
    "Heading",
    "Position",
    "RoverState",
    "Layout",
    "load_layout",
    "BlockKind",
    "NotificationSink",
    "LoggingNotifier",
    "CompositeNotifier",
    "RoverControlError",
    "OutOfBoundsError",
    "LayoutError",
]
