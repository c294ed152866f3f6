"""WebSocket bridge to an external renderer.

Rover events are encoded as JSON messages and pushed to a renderer over a
WebSocket connection. Hooks are called synchronously on the state-owning
loop and only enqueue messages; a background sender task drains the queue
and keeps the connection alive with exponential backoff.

Message format (one JSON object per event)::

    {"message_type": "redraw", "snapshot": {...}}
    {"message_type": "haptic", "duration_ms": 100}
    {"message_type": "blocked", "kind": "obstacle", "obstacle": {"x": 0, "y": 1}}
    {"message_type": "run_finished", "result": {...}}
"""

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

import websockets

from .config import (
    TERM_BLUE,
    TERM_RESET,
    WS_MAX_RETRY_DELAY_SECONDS,
    WS_RETRY_DELAY_SECONDS,
    WS_SEND_TIMEOUT_SECONDS,
    WS_URI,
)
from .model import Position
from .notifications import BlockKind, NotificationSink

if TYPE_CHECKING:
    from .executor import RunResult

TERMINAL_EVENTS = frozenset(("blocked", "run_finished"))
"""Event types that are never dropped when the renderer falls behind."""


def encode_event(message_type: str, payload: Optional[Dict[str, Any]] = None) -> str:
    """Encode one event as a JSON message string."""
    message: Dict[str, Any] = {"message_type": message_type}
    if payload:
        message.update(payload)
    return json.dumps(message)


class WebSocketNotifier(NotificationSink):
    """Sink that forwards rover events to a WebSocket renderer.

    Attributes:
        uri: WebSocket URI of the renderer.
        state_provider: Callable returning the snapshot sent with redraws.
        queue: Outgoing messages not yet sent.
        should_stop: Flag indicating whether the sender loop should exit.
    """

    def __init__(
        self,
        uri: str = WS_URI,
        state_provider: Optional[Callable[[], Dict[str, Any]]] = None,
        max_queue: int = 1000,
    ) -> None:
        """Initialize the notifier.

        Args:
            uri: WebSocket URI to connect to (must start with ws:// or wss://).
            state_provider: Optional callable returning the renderer snapshot,
                typically CommandExecutor.snapshot.
            max_queue: Backlog at which redraw and haptic events are dropped
                with a warning until the renderer catches up. Blocked and
                run_finished events are always queued.

        Raises:
            ValueError: If URI format is invalid.
        """
        if not uri or not uri.startswith(("ws://", "wss://")):
            raise ValueError(f"Invalid WebSocket URI: {uri}. Must start with 'ws://' or 'wss://'")

        self.uri: str = uri
        self.state_provider = state_provider
        self.max_queue = max_queue
        self.queue: asyncio.Queue = asyncio.Queue()
        self.should_stop: bool = False
        self._sender: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Notification hooks
    # ------------------------------------------------------------------

    def on_redraw_needed(self) -> None:
        payload = {"snapshot": self.state_provider()} if self.state_provider else None
        self._enqueue("redraw", payload)

    def on_haptic_cue(self, duration_ms: int) -> None:
        self._enqueue("haptic", {"duration_ms": duration_ms})

    def on_blocked(self, kind: BlockKind, obstacle_position: Optional[Position]) -> None:
        self._enqueue(
            "blocked",
            {
                "kind": kind.value,
                "obstacle": obstacle_position.to_dict() if obstacle_position else None,
            },
        )

    def on_run_finished(self, result: "RunResult") -> None:
        self._enqueue("run_finished", {"result": result.to_dict()})

    def _enqueue(self, message_type: str, payload: Optional[Dict[str, Any]] = None) -> None:
        if message_type not in TERMINAL_EVENTS and self.queue.qsize() >= self.max_queue:
            logging.warning(f"Renderer queue full, dropping {message_type} event")
            return
        self.queue.put_nowait(encode_event(message_type, payload))

    # ------------------------------------------------------------------
    # Sender
    # ------------------------------------------------------------------

    def start(self) -> asyncio.Task:
        """Start the background sender on the running loop."""
        if self._sender is None or self._sender.done():
            self.should_stop = False
            self._sender = asyncio.get_running_loop().create_task(self.run_sender())
        return self._sender

    async def stop(self) -> None:
        """Flush queued messages, then stop the sender and wait for it to exit.

        The flush is bounded by WS_SEND_TIMEOUT_SECONDS; messages still
        unsent after that are dropped with a warning.
        """
        if self._sender is None or self._sender.done():
            self.should_stop = True
            return

        try:
            await asyncio.wait_for(self.queue.join(), timeout=WS_SEND_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            logging.warning(f"Renderer flush timed out, dropping {self.queue.qsize()} messages")

        self.should_stop = True
        self._sender.cancel()
        await asyncio.wait({self._sender})

    async def run_sender(self) -> None:
        """Connect to the renderer and send queued messages until stopped.

        Maintains the connection with automatic retry and exponential
        backoff. A message whose send failed is retried on the next
        connection.
        """
        retry_delay = WS_RETRY_DELAY_SECONDS
        pending: Optional[str] = None

        while not self.should_stop:
            try:
                async with websockets.connect(self.uri) as websocket:
                    logging.info(f"{TERM_BLUE}✓ Connected to renderer{TERM_RESET}")
                    retry_delay = WS_RETRY_DELAY_SECONDS  # Reset on successful connection

                    while not self.should_stop:
                        if pending is None:
                            pending = await self.queue.get()
                        try:
                            await asyncio.wait_for(
                                websocket.send(pending), timeout=WS_SEND_TIMEOUT_SECONDS
                            )
                            pending = None
                            self.queue.task_done()
                        except asyncio.TimeoutError:
                            logging.warning("Renderer send timed out, reconnecting")
                            break
                        except websockets.exceptions.ConnectionClosed:
                            logging.warning("Connection closed by renderer")
                            break

            except asyncio.CancelledError:
                break
            except Exception as e:
                if self.should_stop:
                    break
                logging.error(f"Renderer connection error: {e}")
                logging.info(f"Retrying in {retry_delay} seconds...")
                await asyncio.sleep(retry_delay)
                retry_delay = min(retry_delay * 2, WS_MAX_RETRY_DELAY_SECONDS)
