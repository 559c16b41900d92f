import asyncio
import json
import logging
from typing import Callable, List, Optional
import websockets
from websockets.exceptions import WebSocketException
from game.model import GameState

LOGGER = logging.getLogger("client.push")

Listener = Callable[[GameState], None]

class PushChannel:
    """Fan-out of the engine's game-update events to in-process listeners."""

    def __init__(self):
        self._listeners: List[Listener] = []
        self.delivered = 0

    def listen(self, fn: Listener) -> Callable[[], None]:
        self._listeners.append(fn)

        def _unlisten():
            if fn in self._listeners:
                self._listeners.remove(fn)
        return _unlisten

    def publish(self, state: GameState) -> None:
        self.delivered += 1
        for fn in list(self._listeners):
            try:
                fn(state)
            except Exception:
                LOGGER.exception("[Push] listener failed")

class WebSocketPushListener:
    """Feeds a PushChannel from the engine's websocket stream of full snapshots.

    A dropped or refused connection is retried after `reconnect_s`; meanwhile
    the polling tasks keep the snapshot current.
    """

    def __init__(self, url: str, channel: PushChannel, reconnect_s: float = 2.0):
        self.url = url
        self.channel = channel
        self.reconnect_s = reconnect_s
        self.connected = False
        self._task: Optional[asyncio.Task] = None

    async def start(self):
        if self._task:
            return
        self._task = asyncio.create_task(self._loop())

    async def stop(self):
        if not self._task:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        self.connected = False

    def handle_message(self, raw) -> GameState:
        """Decode one game-update frame and publish it."""
        msg = json.loads(raw)
        state = GameState.from_dict(msg.get("payload", msg))
        self.channel.publish(state)
        return state

    async def _loop(self):
        while True:
            try:
                async with websockets.connect(self.url) as ws:
                    self.connected = True
                    LOGGER.info("[Push] subscribed to %s", self.url)
                    async for raw in ws:
                        try:
                            self.handle_message(raw)
                        except (ValueError, KeyError) as e:
                            LOGGER.error("[Push] bad game-update frame: %s", e)
            except (OSError, WebSocketException) as e:
                LOGGER.warning("[Push] subscription to %s failed: %s", self.url, e)
            self.connected = False
            await asyncio.sleep(self.reconnect_s)
