import asyncio
import json
import logging

import pytest
import websockets

from rover_control.client import main
from rover_control.config import BLOCKED_HAPTIC_MS
from rover_control.executor import CommandExecutor, RunOutcome, RunResult
from rover_control.layout import Layout
from rover_control.model import Heading, Position
from rover_control.notifications import BlockKind
from rover_control.ws_notifier import WebSocketNotifier, encode_event


def drain(notifier):
    messages = []
    while not notifier.queue.empty():
        messages.append(json.loads(notifier.queue.get_nowait()))
    return messages


def test_encode_event():
    assert json.loads(encode_event("haptic", {"duration_ms": 100})) == {
        "message_type": "haptic",
        "duration_ms": 100,
    }
    assert json.loads(encode_event("redraw")) == {"message_type": "redraw"}


@pytest.mark.parametrize("uri", ["", "http://localhost:8765", "localhost:8765"])
def test_invalid_uri(uri):
    with pytest.raises(ValueError):
        WebSocketNotifier(uri)


def test_hooks_enqueue_json_messages():
    notifier = WebSocketNotifier("ws://localhost:8765", lambda: {"state": "IDLE"})
    notifier.on_redraw_needed()
    notifier.on_haptic_cue(1000)
    notifier.on_blocked(BlockKind.OBSTACLE, Position(0, 1))
    notifier.on_blocked(BlockKind.WALL, None)

    assert drain(notifier) == [
        {"message_type": "redraw", "snapshot": {"state": "IDLE"}},
        {"message_type": "haptic", "duration_ms": 1000},
        {"message_type": "blocked", "kind": "obstacle", "obstacle": {"x": 0, "y": 1}},
        {"message_type": "blocked", "kind": "wall", "obstacle": None},
    ]


def test_full_queue_drops_events(caplog):
    notifier = WebSocketNotifier("ws://localhost:8765", max_queue=1)
    with caplog.at_level(logging.WARNING):
        notifier.on_haptic_cue(100)
        notifier.on_haptic_cue(100)

    assert notifier.queue.qsize() == 1
    assert "dropping haptic event" in caplog.text


def test_full_queue_keeps_terminal_events():
    notifier = WebSocketNotifier("ws://localhost:8765", max_queue=1)
    notifier.on_haptic_cue(100)
    notifier.on_redraw_needed()
    notifier.on_blocked(BlockKind.WALL, None)
    notifier.on_run_finished(
        RunResult(
            run_id=1,
            outcome=RunOutcome.BLOCKED,
            commands="M",
            partial_command="M",
            position=Position(0, 0),
            heading=Heading.DOWN,
            applied=0,
            block_kind=BlockKind.WALL,
        )
    )

    types = [m["message_type"] for m in drain(notifier)]
    assert types == ["haptic", "blocked", "run_finished"]


def test_run_events_reach_the_queue():
    async def scenario():
        executor = CommandExecutor(interval=0.0)
        notifier = WebSocketNotifier("ws://localhost:8765", executor.snapshot)
        executor.notifier = notifier
        await executor.process_command("RM")
        await executor.wait()
        return drain(notifier)

    messages = asyncio.run(scenario())
    types = [m["message_type"] for m in messages]
    assert types == ["haptic", "redraw", "haptic", "redraw", "run_finished"]
    assert messages[-1]["result"]["outcome"] == RunOutcome.COMPLETED.value
    assert messages[-2]["snapshot"]["rover"] == {"position": {"x": 1, "y": 0}, "heading": "RIGHT"}


def test_sender_delivers_to_renderer():
    async def scenario():
        received = []
        got_all = asyncio.Event()

        async def renderer(websocket):
            async for message in websocket:
                received.append(json.loads(message))
                if len(received) == 2:
                    got_all.set()

        async with websockets.serve(renderer, "localhost", 0) as server:
            port = server.sockets[0].getsockname()[1]
            notifier = WebSocketNotifier(f"ws://localhost:{port}")
            notifier.start()
            notifier.on_haptic_cue(100)
            notifier.on_blocked(BlockKind.WALL, None)
            await asyncio.wait_for(got_all.wait(), timeout=5.0)
            await notifier.stop()
        return received

    received = asyncio.run(scenario())
    assert received == [
        {"message_type": "haptic", "duration_ms": 100},
        {"message_type": "blocked", "kind": "wall", "obstacle": None},
    ]


def test_blocked_run_through_main_delivers_final_events():
    async def scenario():
        received = []
        finished = asyncio.Event()

        async def renderer(websocket):
            async for message in websocket:
                received.append(json.loads(message))
                if received[-1]["message_type"] == "run_finished":
                    finished.set()

        async with websockets.serve(renderer, "localhost", 0) as server:
            port = server.sockets[0].getsockname()[1]
            layout = Layout(obstacles=[Position(0, 2)])
            result = await main("MM", layout=layout, interval=0.0, ws_uri=f"ws://localhost:{port}")
            await asyncio.wait_for(finished.wait(), timeout=5.0)
        return result, received

    result, received = asyncio.run(scenario())

    assert result.outcome is RunOutcome.BLOCKED
    assert [m["message_type"] for m in received] == [
        "redraw",
        "haptic",
        "redraw",
        "blocked",
        "haptic",
        "run_finished",
    ]
    assert received[4]["duration_ms"] == BLOCKED_HAPTIC_MS
    assert received[-1]["result"]["outcome"] == "blocked"
    assert received[-1]["result"]["obstacle"] == {"x": 0, "y": 2}
