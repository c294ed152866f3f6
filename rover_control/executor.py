"""Command executor: runs a command string against the rover and the grid.

This module implements the executor state machine:

    IDLE -> RUNNING -> {COMPLETED, BLOCKED, CANCELLED, STOPPED}

A run consumes the command string left to right, one slot per cadence
interval. The worker is an asyncio task that only sequences timing; the
effect of each command is posted back to the event loop that started the
run with ``loop.call_soon`` and applied there, so the rover state and the
grid are only ever mutated from that loop. Every posted effect carries its
ExecutionRun, and effects whose run is no longer current or has already
terminated are dropped.

Two ways to end a run early:
- cancel(): cooperative. The flag is checked before each slot, so the run
  ends CANCELLED within one interval and the rover stays where it is.
- stop_process(): immediate. The worker task is cancelled mid-sleep, the
  run ends STOPPED, and the rover and grid are reset.

Whichever terminal path reaches the run first wins; later ones are no-ops.

Partial command: a run that ends before its last slot records the suffix
of the command string starting at the last dispatched slot, i.e. the
command that was blocked or was executing when the run was interrupted.
If no slot was dispatched yet, the whole command string is recorded.
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional

from .config import BLOCKED_HAPTIC_MS, MOVE_HAPTIC_MS, STEP_INTERVAL_SECONDS
from .exceptions import OutOfBoundsError
from .grid import Grid
from .model import MOVE, TURN_LEFT, TURN_RIGHT, Heading, Position, RoverState, is_command
from .notifications import BlockKind, NotificationSink


class PathVerdict(Enum):
    """Classification of the cell ahead of the rover."""

    CLEAR = "clear"
    WALL = "wall"
    OBSTACLE = "obstacle"


@dataclass(frozen=True)
class PathCheck:
    """Result of check_path.

    Attributes:
        verdict: CLEAR, WALL, or OBSTACLE.
        candidate: The cell the rover would move into.
    """

    verdict: PathVerdict
    candidate: Position

    @property
    def is_clear(self) -> bool:
        return self.verdict is PathVerdict.CLEAR

    @property
    def block_kind(self) -> Optional[BlockKind]:
        if self.verdict is PathVerdict.WALL:
            return BlockKind.WALL
        if self.verdict is PathVerdict.OBSTACLE:
            return BlockKind.OBSTACLE
        return None

    @property
    def obstacle(self) -> Optional[Position]:
        """Position of the blocking obstacle, None unless verdict is OBSTACLE."""
        return self.candidate if self.verdict is PathVerdict.OBSTACLE else None


def check_path(grid: Grid, rover: RoverState) -> PathCheck:
    """Classify the cell one step ahead of the rover.

    Pure: neither the grid nor the rover is modified.

    Args:
        grid: Occupancy grid.
        rover: Current rover position and heading.

    Returns:
        PathCheck with verdict WALL if the cell is off the grid, OBSTACLE if
        it is occupied, CLEAR otherwise.
    """
    candidate = rover.advance()
    if not grid.is_in_bounds(candidate):
        return PathCheck(PathVerdict.WALL, candidate)
    if grid.is_occupied(candidate):
        return PathCheck(PathVerdict.OBSTACLE, candidate)
    return PathCheck(PathVerdict.CLEAR, candidate)


class RunOutcome(Enum):
    """How a run ended."""

    COMPLETED = "completed"  # Every slot was consumed
    BLOCKED = "blocked"  # A move hit a wall or an obstacle
    CANCELLED = "cancelled"  # cancel() observed at a slot boundary
    STOPPED = "stopped"  # Worker interrupted by stop_process() or a new run


class ExecutorState(Enum):
    """Public state of the executor, derived from its latest run."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    BLOCKED = "blocked"
    CANCELLED = "cancelled"
    STOPPED = "stopped"


@dataclass(frozen=True)
class RunResult:
    """Terminal report of a run.

    Attributes:
        run_id: Identifier of the run (increasing per executor).
        outcome: How the run ended.
        commands: The command string the run was started with.
        partial_command: Unexecuted suffix for resumption, None on COMPLETED.
        position: Rover position when the run ended.
        heading: Rover heading when the run ended.
        applied: Number of commands whose effect was committed.
        block_kind: WALL or OBSTACLE for BLOCKED runs, else None.
        obstacle: Blocking obstacle position for OBSTACLE blocks, else None.
    """

    run_id: int
    outcome: RunOutcome
    commands: str
    partial_command: Optional[str]
    position: Position
    heading: Heading
    applied: int
    block_kind: Optional[BlockKind] = None
    obstacle: Optional[Position] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "outcome": self.outcome.value,
            "commands": self.commands,
            "partial_command": self.partial_command,
            "position": self.position.to_dict(),
            "heading": self.heading.name,
            "applied": self.applied,
            "block_kind": self.block_kind.value if self.block_kind is not None else None,
            "obstacle": self.obstacle.to_dict() if self.obstacle is not None else None,
        }


class ExecutionRun:
    """Mutable session state of a single run.

    Created by CommandExecutor.process_command and never reused. The
    cancellation flag belongs to this run only, so a stale request can
    never leak into the next run.

    Attributes:
        run_id: Identifier of the run.
        commands: Command string being executed.
        cursor: Index of the last dispatched slot, None before the first.
        applied: Number of committed command effects.
        task: Worker task sequencing the run.
    """

    def __init__(self, run_id: int, commands: str, loop: asyncio.AbstractEventLoop) -> None:
        self.run_id = run_id
        self.commands = commands
        self.loop = loop
        self.cursor: Optional[int] = None
        self.applied: int = 0
        self.task: Optional[asyncio.Task] = None
        self._cancel_requested = False
        self._result: asyncio.Future = loop.create_future()

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_requested

    def request_cancel(self) -> None:
        self._cancel_requested = True

    @property
    def done(self) -> bool:
        return self._result.done()

    @property
    def result(self) -> Optional[RunResult]:
        return self._result.result() if self._result.done() else None

    def partial_command(self) -> str:
        """Suffix starting at the last dispatched slot (whole string if none)."""
        return self.commands[self.cursor or 0:]

    async def wait(self) -> RunResult:
        """Wait for the run to reach a terminal state."""
        return await asyncio.shield(self._result)

    def _set_result(self, result: RunResult) -> None:
        self._result.set_result(result)


class CommandExecutor:
    """Executes rover command strings on a grid with obstacles.

    The executor owns the rover state and the grid for the lifetime of the
    simulation. At most one run is active at a time; starting a new run
    first interrupts and joins the previous one.

    Attributes:
        grid: Obstacle occupancy.
        rover: Rover position and heading.
        notifier: Sink receiving redraw, haptic, blocking, and result events.
        interval: Cadence between command slots (seconds).
        partial_command: Suffix recorded by the last run that ended early.
    """

    def __init__(
        self,
        grid: Optional[Grid] = None,
        rover: Optional[RoverState] = None,
        notifier: Optional[NotificationSink] = None,
        interval: float = STEP_INTERVAL_SECONDS,
        move_haptic_ms: int = MOVE_HAPTIC_MS,
        blocked_haptic_ms: int = BLOCKED_HAPTIC_MS,
    ) -> None:
        """Initialize the executor.

        Args:
            grid: Grid to run on. Default: empty grid of the configured size.
            rover: Rover state. Default: rover at the start position.
            notifier: Event sink. Default: a sink that ignores everything.
            interval: Delay between command slots in seconds. Default:
                STEP_INTERVAL_SECONDS (0.5s).
            move_haptic_ms: Haptic cue after a turn or committed move.
            blocked_haptic_ms: Haptic cue when a move is blocked.

        Raises:
            ValueError: If interval is negative.
        """
        if interval < 0:
            raise ValueError(f"Interval must be non-negative, got {interval}")

        self.grid = grid if grid is not None else Grid()
        self.rover = rover if rover is not None else RoverState()
        self.notifier = notifier if notifier is not None else NotificationSink()
        self.interval = interval
        self.move_haptic_ms = move_haptic_ms
        self.blocked_haptic_ms = blocked_haptic_ms

        self.partial_command: Optional[str] = None
        self._run: Optional[ExecutionRun] = None
        self._run_ids = itertools.count(1)
        self._start_lock = asyncio.Lock()

    @property
    def current_run(self) -> Optional[ExecutionRun]:
        return self._run

    @property
    def state(self) -> ExecutorState:
        if self._run is None:
            return ExecutorState.IDLE
        if not self._run.done:
            return ExecutorState.RUNNING
        return ExecutorState[self._run.result.outcome.name]

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def update_layout(self, start: Position, obstacles: Iterable[Position]) -> None:
        """Load obstacles and place the rover before a run.

        Obstacles are added to those already on the grid. The start cell is
        not checked against obstacles.

        Args:
            start: Rover start position.
            obstacles: Cells to mark as occupied.

        Raises:
            OutOfBoundsError: If the start or any obstacle is off the grid.
                Nothing is changed in that case.
            RuntimeError: If a run is active.
        """
        if self.state is ExecutorState.RUNNING:
            raise RuntimeError("Cannot change the layout while a run is active")

        previous = self.rover.position
        self.rover.set_start(start, self.grid.width, self.grid.height)
        try:
            self.grid.load_obstacles(obstacles)
        except OutOfBoundsError:
            self.rover.position = previous
            raise
        self._notify("on_redraw_needed")

    def reset(self) -> None:
        """Clear obstacles, put the rover at the origin facing UP, redraw."""
        self.grid.reset()
        self.rover.reset()
        self._notify("on_redraw_needed")

    # ------------------------------------------------------------------
    # Run control
    # ------------------------------------------------------------------

    async def process_command(self, commands: str) -> ExecutionRun:
        """Start executing a command string.

        Any active run is interrupted (ends STOPPED, without a reset) and
        its worker is joined before the new run starts, so no effect from
        the old run can land after this call returns. The previously
        recorded partial command is discarded.

        Args:
            commands: Command string. M moves, L and R turn; any other
                character is skipped but still costs one interval.

        Returns:
            The new ExecutionRun. Await run.wait() or executor.wait() for
            its RunResult.
        """
        async with self._start_lock:
            previous = self._run
            if previous is not None:
                if not previous.done:
                    logging.debug(f"Run {previous.run_id} superseded by a new command")
                    self._interrupt(previous)
                await self._join(previous)

            self.partial_command = None
            loop = asyncio.get_running_loop()
            run = ExecutionRun(next(self._run_ids), commands, loop)
            self._run = run
            run.task = loop.create_task(self._drive(run))
            logging.debug(f"Run {run.run_id} started: {commands!r}")
            return run

    def cancel(self) -> bool:
        """Request cooperative cancellation of the active run.

        The run ends CANCELLED at the next slot boundary; the rover keeps
        its position.

        Returns:
            True if a run was active and the request was recorded.
        """
        run = self._run
        if run is None or run.done:
            return False
        run.request_cancel()
        return True

    def stop_process(self) -> None:
        """Hard stop: interrupt the active run, then reset rover and grid.

        The worker's pending sleep is cancelled immediately. The run ends
        STOPPED with the rover position it had at the moment of the stop.
        Its RunResult keeps the partial command, but the executor forgets
        it, so resume() has nothing to replay on the reset grid.
        """
        run = self._run
        if run is not None and not run.done:
            self._interrupt(run)
        self.partial_command = None
        self.reset()

    async def wait(self) -> Optional[RunResult]:
        """Wait for the current run to finish and return its result."""
        if self._run is None:
            return None
        return await self._run.wait()

    async def resume(self) -> Optional[ExecutionRun]:
        """Start a new run from the recorded partial command.

        Returns:
            The new ExecutionRun, or None if there is nothing to resume.
        """
        if not self.partial_command:
            return None
        return await self.process_command(self.partial_command)

    def snapshot(self) -> Dict[str, Any]:
        """Return the state a renderer needs, as plain data."""
        return {
            "state": self.state.name,
            "run_id": self._run.run_id if self._run is not None else None,
            "rover": self.rover.to_dict(),
            "grid": self.grid.to_dict(),
            "partial_command": self.partial_command,
        }

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    async def _drive(self, run: ExecutionRun) -> None:
        """Sequence the run: one slot per interval, effects posted to the loop."""
        try:
            for index, command in enumerate(run.commands):
                if run.done:
                    return
                if run.cancel_requested:
                    self._finish(run, RunOutcome.CANCELLED)
                    return

                run.cursor = index
                if is_command(command):
                    run.loop.call_soon(self._apply, run, command)
                await asyncio.sleep(self.interval)

            self._finish(run, RunOutcome.COMPLETED)
        except asyncio.CancelledError:
            # Interruption is how stop_process ends a run; not an error
            logging.debug(f"Run {run.run_id} worker interrupted")
            self._finish(run, RunOutcome.STOPPED)

    def _apply(self, run: ExecutionRun, command: str) -> None:
        """Apply one command effect. Runs on the state-owning loop."""
        if run is not self._run or run.done:
            logging.debug(f"Dropping stale {command!r} from run {run.run_id}")
            return

        if command == MOVE:
            self._move(run)
        elif command == TURN_RIGHT:
            self.rover.heading = self.rover.heading.turned_right()
            self._committed(run)
        elif command == TURN_LEFT:
            self.rover.heading = self.rover.heading.turned_left()
            self._committed(run)

    def _move(self, run: ExecutionRun) -> None:
        check = check_path(self.grid, self.rover)
        if not check.is_clear:
            logging.debug(
                f"Run {run.run_id} blocked by {check.verdict.value} at slot {run.cursor}"
            )
            self._notify("on_blocked", check.block_kind, check.obstacle)
            self._notify("on_haptic_cue", self.blocked_haptic_ms)
            self._finish(run, RunOutcome.BLOCKED, check)
            return

        self.rover.position = check.candidate
        self._committed(run)

    def _committed(self, run: ExecutionRun) -> None:
        run.applied += 1
        self._notify("on_haptic_cue", self.move_haptic_ms)
        self._notify("on_redraw_needed")

    def _interrupt(self, run: ExecutionRun) -> None:
        self._finish(run, RunOutcome.STOPPED)
        if run.task is not None:
            run.task.cancel()

    async def _join(self, run: ExecutionRun) -> None:
        # A finished run may still be sleeping out its last interval
        task = run.task
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait({task})

    def _finish(
        self, run: ExecutionRun, outcome: RunOutcome, check: Optional[PathCheck] = None
    ) -> None:
        """Move the run to a terminal state. Only the first call has effect."""
        if run.done:
            return

        partial = None if outcome is RunOutcome.COMPLETED else run.partial_command()
        result = RunResult(
            run_id=run.run_id,
            outcome=outcome,
            commands=run.commands,
            partial_command=partial,
            position=self.rover.position,
            heading=self.rover.heading,
            applied=run.applied,
            block_kind=check.block_kind if check is not None else None,
            obstacle=check.obstacle if check is not None else None,
        )
        run._set_result(result)
        if run is self._run:
            self.partial_command = partial

        logging.debug(f"Run {run.run_id} {outcome.value}, partial={partial!r}")
        self._notify("on_run_finished", result)

    def _notify(self, hook: str, *args: Any) -> None:
        """Call a notifier hook; sink failures are logged, never raised."""
        try:
            getattr(self.notifier, hook)(*args)
        except Exception as e:
            logging.error(f"Notifier {hook} failed: {e}", exc_info=True)
