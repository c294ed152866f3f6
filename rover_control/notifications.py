"""Notification sinks for rover state changes.

The executor never renders, vibrates, or shows dialogs itself. It reports
each transition to a NotificationSink, and whoever owns the display or the
haptics reacts. Sinks are called on the event loop that owns the rover
state, so they may read the executor's state directly.
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Iterable, List, Optional

from .config import TERM_BLUE, TERM_ORANGE, TERM_RESET
from .model import Position

if TYPE_CHECKING:
    from .executor import RunResult


class BlockKind(Enum):
    """Why a move was rejected."""

    WALL = "wall"
    OBSTACLE = "obstacle"


class NotificationSink:
    """Base sink. Every hook is a no-op; subclasses override what they need."""

    def on_redraw_needed(self) -> None:
        """Rover or grid state changed and should be re-rendered."""

    def on_haptic_cue(self, duration_ms: int) -> None:
        """A physical feedback pulse of duration_ms milliseconds is due."""

    def on_blocked(self, kind: BlockKind, obstacle_position: Optional[Position]) -> None:
        """A run stopped because the next move hit a wall or an obstacle.

        obstacle_position is set only for BlockKind.OBSTACLE.
        """

    def on_run_finished(self, result: "RunResult") -> None:
        """A run reached a terminal state. Called exactly once per run."""


class LoggingNotifier(NotificationSink):
    """Sink that reports events through the logging module.

    Redraws and haptic cues are logged at DEBUG. Blocking and run results
    are logged at INFO so they show up on the console by default.
    """

    def __init__(self, state_provider=None) -> None:
        """Initialize the notifier.

        Args:
            state_provider: Optional callable returning a snapshot dict; when
                given, redraw events log the rover position and heading.
        """
        self.state_provider = state_provider

    def on_redraw_needed(self) -> None:
        if self.state_provider is None:
            logging.debug("Redraw requested")
            return
        rover = self.state_provider()["rover"]
        position = rover["position"]
        logging.debug(
            f"Rover at ({position['x']}, {position['y']}) facing {rover['heading']}"
        )

    def on_haptic_cue(self, duration_ms: int) -> None:
        logging.debug(f"Haptic cue: {duration_ms}ms")

    def on_blocked(self, kind: BlockKind, obstacle_position: Optional[Position]) -> None:
        if kind is BlockKind.OBSTACLE:
            logging.info(f"{TERM_ORANGE}✗ Obstacle ahead at {obstacle_position}{TERM_RESET}")
        else:
            logging.info(f"{TERM_ORANGE}✗ Wall ahead{TERM_RESET}")

    def on_run_finished(self, result: "RunResult") -> None:
        logging.info(
            f"{TERM_BLUE}→ Run {result.run_id} {result.outcome.name.lower()}: "
            f"{result.position} facing {result.heading.name}{TERM_RESET}"
        )
        if result.partial_command:
            logging.info(f"{TERM_BLUE}→ Remaining commands: {result.partial_command}{TERM_RESET}")


class CompositeNotifier(NotificationSink):
    """Fans every event out to several sinks, in registration order."""

    def __init__(self, sinks: Iterable[NotificationSink] = ()) -> None:
        self.sinks: List[NotificationSink] = list(sinks)

    def add(self, sink: NotificationSink) -> None:
        self.sinks.append(sink)

    def on_redraw_needed(self) -> None:
        for sink in self.sinks:
            sink.on_redraw_needed()

    def on_haptic_cue(self, duration_ms: int) -> None:
        for sink in self.sinks:
            sink.on_haptic_cue(duration_ms)

    def on_blocked(self, kind: BlockKind, obstacle_position: Optional[Position]) -> None:
        for sink in self.sinks:
            sink.on_blocked(kind, obstacle_position)

    def on_run_finished(self, result: "RunResult") -> None:
        for sink in self.sinks:
            sink.on_run_finished(result)
