#!/usr/bin/env python3
"""
Command-line client for the rover command executor.

This module wires a CommandExecutor to its notification sinks (console
logging and, optionally, a WebSocket renderer), applies a layout, runs one
command string, and reports the result. SIGINT and SIGTERM trigger a hard
stop of the active run.
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Optional, Sequence

from rover_control.config import STEP_INTERVAL_SECONDS, TERM_BLUE, TERM_RESET
from rover_control.exceptions import RoverControlError
from rover_control.executor import CommandExecutor, RunOutcome, RunResult
from rover_control.layout import Layout, load_layout
from rover_control.model import Position
from rover_control.notifications import CompositeNotifier, LoggingNotifier
from rover_control.ws_notifier import WebSocketNotifier


class CustomFormatter(logging.Formatter):
    """Custom logging formatter that removes timestamps from INFO messages.

    This formatter provides clean console output by showing INFO messages without
    timestamps while preserving full context for WARNING, ERROR, and DEBUG messages.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record based on its level.

        Args:
            record: The log record to format.

        Returns:
            Formatted log message string.
        """
        if record.levelno == logging.INFO:
            return record.getMessage()
        else:
            return f"{self.formatTime(record, self.datefmt)} - {record.levelname} - {record.getMessage()}"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbose: If True, show all levels with timestamps. If False, show INFO
                 without timestamps and WARNING/ERROR with timestamps.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        handler = logging.StreamHandler()
        formatter = CustomFormatter(datefmt="%Y-%m-%d %H:%M:%S")
        handler.setFormatter(formatter)
        logger = logging.getLogger()
        logger.setLevel(logging.INFO)
        logger.addHandler(handler)


class RoverController:
    """One CLI session: executor, sinks, and layout.

    Attributes:
        executor: The command executor.
        notifier: Composite sink the executor reports to.
        ws_notifier: Renderer bridge, None when no renderer URI was given.
        layout: Layout applied before the run.
    """

    def __init__(
        self,
        layout: Optional[Layout] = None,
        interval: float = STEP_INTERVAL_SECONDS,
        ws_uri: Optional[str] = None,
    ) -> None:
        """Initialize the controller.

        Args:
            layout: Start position and obstacles. Default: empty grid, rover at origin.
            interval: Cadence between command slots (seconds).
            ws_uri: Renderer WebSocket URI, or None to run without a renderer.

        Raises:
            ValueError: If interval is negative or ws_uri is malformed.
        """
        self.layout = layout if layout is not None else Layout()
        self.notifier = CompositeNotifier()
        self.executor = CommandExecutor(notifier=self.notifier, interval=interval)
        self.notifier.add(LoggingNotifier(self.executor.snapshot))

        self.ws_notifier: Optional[WebSocketNotifier] = None
        if ws_uri:
            self.ws_notifier = WebSocketNotifier(ws_uri, self.executor.snapshot)
            self.notifier.add(self.ws_notifier)

    async def run(self, commands: str) -> RunResult:
        """Apply the layout, execute commands, and wait for the result."""
        if self.ws_notifier is not None:
            self.ws_notifier.start()

        self.executor.update_layout(self.layout.start, self.layout.obstacles)
        logging.info(
            f"{TERM_BLUE}✓ Rover at {self.executor.rover.position} facing "
            f"{self.executor.rover.heading.name}, {len(self.layout.obstacles)} obstacles{TERM_RESET}"
        )

        await self.executor.process_command(commands)
        return await self.executor.wait()

    def stop(self) -> None:
        """Signal the controller to stop."""
        self.executor.stop_process()

    async def close(self) -> None:
        if self.ws_notifier is not None:
            await self.ws_notifier.stop()


async def main(
    commands: str,
    layout: Optional[Layout] = None,
    interval: float = STEP_INTERVAL_SECONDS,
    ws_uri: Optional[str] = None,
) -> RunResult:
    """Main entry point for the client.

    Creates a RoverController, sets up signal handlers for a hard stop, and
    runs the command string to completion.

    Args:
        commands: Command string to execute.
        layout: Start position and obstacles.
        interval: Cadence between command slots (seconds).
        ws_uri: Renderer WebSocket URI, or None.

    Returns:
        The RunResult of the run.
    """
    controller = RoverController(layout, interval=interval, ws_uri=ws_uri)
    loop = asyncio.get_running_loop()

    def signal_handler() -> None:
        """Handle shutdown signals (SIGINT, SIGTERM)."""
        logging.info("\nStop signal received...")
        controller.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        return await controller.run(commands)
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        await controller.close()


def parse_xy(text: str) -> Position:
    """Parse an "X,Y" command-line value into a Position."""
    try:
        x_str, y_str = text.split(",")
        return Position(int(x_str), int(y_str))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected X,Y with integer coordinates, got {text!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rover_control",
        description="Execute rover commands (M = move, L = turn left, R = turn right) on a grid",
    )
    parser.add_argument("commands", help="Command string, e.g. MMRMLM")
    parser.add_argument("--layout", help="JSON layout file with start and obstacles")
    parser.add_argument(
        "--start", type=parse_xy, metavar="X,Y", help="Rover start position (overrides layout)"
    )
    parser.add_argument(
        "--obstacle",
        type=parse_xy,
        action="append",
        default=[],
        metavar="X,Y",
        help="Obstacle position (repeatable, added to layout obstacles)",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=STEP_INTERVAL_SECONDS,
        help=f"Seconds between commands (default: {STEP_INTERVAL_SECONDS})",
    )
    parser.add_argument("--ws-uri", help="Renderer WebSocket URI, e.g. ws://localhost:8765")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging with timestamps"
    )
    return parser


def layout_from_args(args: argparse.Namespace) -> Layout:
    """Combine the layout file and command-line overrides."""
    layout = load_layout(args.layout) if args.layout else Layout()
    if args.start is not None:
        layout.start = args.start
    layout.obstacles = layout.obstacles + list(args.obstacle)
    return layout


def cli(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command-line client.

    Returns:
        Exit code: 0 if the run completed, 1 if it ended early, 2 on bad input.
    """
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        layout = layout_from_args(args)
        result = asyncio.run(
            main(args.commands, layout=layout, interval=args.interval, ws_uri=args.ws_uri)
        )
    except (RoverControlError, ValueError) as e:
        logging.error(f"{e}")
        return 2
    except KeyboardInterrupt:
        logging.info("\nExiting...")
        return 1

    return 0 if result.outcome is RunOutcome.COMPLETED else 1


if __name__ == "__main__":
    sys.exit(cli())
