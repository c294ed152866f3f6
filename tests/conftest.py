"""Shared fixtures for the rover executor tests.

Async scenarios are driven with asyncio.run and a zero cadence interval,
so every command slot costs exactly one event-loop iteration.
"""

import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from rover_control.notifications import NotificationSink


class RecordingNotifier(NotificationSink):
    """Sink that records every event as a tuple.

    Events: ("redraw",), ("haptic", ms), ("blocked", kind, position),
    ("finished", result). An optional hook is called after each event
    with the event tuple, which lets a test act at an exact point of a run.
    """

    def __init__(self, hook=None):
        self.events = []
        self.hook = hook

    def _record(self, event):
        self.events.append(event)
        if self.hook is not None:
            self.hook(event)

    def on_redraw_needed(self):
        self._record(("redraw",))

    def on_haptic_cue(self, duration_ms):
        self._record(("haptic", duration_ms))

    def on_blocked(self, kind, obstacle_position):
        self._record(("blocked", kind, obstacle_position))

    def on_run_finished(self, result):
        self._record(("finished", result))

    def count(self, name):
        return sum(1 for event in self.events if event[0] == name)

    def finished(self):
        return [event[1] for event in self.events if event[0] == "finished"]


@pytest.fixture
def recorder():
    return RecordingNotifier()


@pytest.fixture
def make_recorder():
    """Factory for recorders that run a hook after each event."""
    return RecordingNotifier
