"""Configuration parameters for the rover command executor.

This module centralizes all configuration parameters including:
- Grid geometry
- Command cadence and haptic cue durations
- Terminal output colors
- WebSocket renderer connection parameters

Other modules import these names and use them as constructor defaults.
"""

# ============================================================================
# Grid Geometry
# ============================================================================

GRID_WIDTH = 10
"""Number of columns in the grid (x axis).
Valid x coordinates are [0, GRID_WIDTH - 1]."""

GRID_HEIGHT = 20
"""Number of rows in the grid (y axis).
Valid y coordinates are [0, GRID_HEIGHT - 1]. Row 0 is the bottom row."""

START_POSITION = (0, 0)
"""Rover position after a reset (x, y)."""

START_HEADING = "UP"
"""Rover heading after a reset. Must be a Heading member name."""


# ============================================================================
# Execution Cadence
# ============================================================================

STEP_INTERVAL_SECONDS = 0.5
"""Fixed delay between successive command effects (seconds).

The worker sleeps for this interval after dispatching each command slot,
including slots holding unrecognized characters. Cancellation requested
with cancel() is observed at the start of the next slot, so its latency
is bounded by one interval. stop_process() interrupts the sleep directly.
"""


# ============================================================================
# Haptic Feedback
# ============================================================================

MOVE_HAPTIC_MS = 100
"""Haptic pulse duration after a turn or a committed move (milliseconds)."""

BLOCKED_HAPTIC_MS = 1000
"""Haptic pulse duration when a move is blocked (milliseconds).
Longer than MOVE_HAPTIC_MS so the operator can tell the two apart."""


# ============================================================================
# Terminal Colors
# ============================================================================

TERM_ORANGE = "\033[38;2;247;72;35m"
"""Terminal color code for warnings about blocked moves (RGB: 247, 72, 35)."""

TERM_BLUE = "\033[38;2;35;116;247m"
"""Terminal color code for status lines (RGB: 35, 116, 247)."""

TERM_RESET = "\033[0m"
"""Terminal color reset code."""


# ============================================================================
# WebSocket Renderer Configuration
# ============================================================================

WS_URI = "ws://localhost:8765"
"""WebSocket URI of the external renderer that receives rover events."""

WS_RETRY_DELAY_SECONDS = 1
"""Initial retry delay for failed renderer connections (seconds)."""

WS_MAX_RETRY_DELAY_SECONDS = 60
"""Maximum retry delay with exponential backoff (seconds)."""

WS_SEND_TIMEOUT_SECONDS = 5.0
"""Timeout for sending a single event to the renderer (seconds)."""
