"""The client's single owned context: canonical snapshot, consumers, sync, and tasks.

Nothing here is module-global; every task receives the session (or the piece
of it it needs) explicitly.
"""
import asyncio
import logging
from typing import List, Optional
from api.schemas import HealthResponse, PlayerSummary, RegisterResponse
from client.config import AppConfig, ClientSettings
from client.consumers import MainView, WidgetView
from client.engine_link import EngineError, EngineLink, HttpEngineLink
from client.multiplayer import MultiplayerClient, MultiplayerError
from client.push import PushChannel, WebSocketPushListener
from game.economy import field_name
from .eventlog import EventLog
from .reconciler import StateReconciler
from .runner import PeriodicTask
from .sync import MultiplayerSyncCycle

LOGGER = logging.getLogger("runtime.session")

class ClientSession:
    def __init__(self, engine: EngineLink, settings: Optional[ClientSettings] = None,
                 multiplayer: Optional[MultiplayerClient] = None,
                 push: Optional[PushChannel] = None,
                 push_listener: Optional[WebSocketPushListener] = None):
        self.settings = settings or ClientSettings()
        self.engine = engine
        self.events = EventLog()
        self.reconciler = StateReconciler()
        self.push = push or PushChannel()
        self.push_listener = push_listener
        self._unlisten = self.push.listen(self.reconciler.apply_push)
        self.main_view = MainView(self.reconciler)
        self.widget = WidgetView(self.reconciler)
        self.multiplayer = multiplayer or MultiplayerClient(timeout_s=self.settings.request_timeout_s)
        self.sync = MultiplayerSyncCycle(self.reconciler, self.multiplayer, self.events, engine)
        self.config = AppConfig()

        s = self.settings
        self.tasks: List[PeriodicTask] = [
            PeriodicTask("render-poll", self.poll_snapshot, s.render_interval_s),
            PeriodicTask("widget-poll", self.poll_snapshot, s.widget_interval_s),
            PeriodicTask("multiplayer-sync", self.sync.tick, s.sync_interval_s),
            PeriodicTask("auto-buy-status", self.refresh_auto_buy, s.auto_buy_interval_s),
        ]

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> "ClientSession":
        """Session talking to a real engine over HTTP, with websocket push when configured."""
        engine = HttpEngineLink(settings.engine_url, settings.request_timeout_s)
        push = PushChannel()
        listener = None
        if settings.engine_ws_url:
            listener = WebSocketPushListener(settings.engine_ws_url, push, settings.push_reconnect_s)
        return cls(engine, settings, push=push, push_listener=listener)

    async def start(self):
        """Load config, fetch an initial snapshot, then start push and every timer."""
        await self.load_config()
        await self.poll_snapshot()
        if self.push_listener is not None:
            await self.push_listener.start()
        for task in self.tasks:
            await task.start()
        LOGGER.info("[Session] started %d tasks", len(self.tasks))

    async def stop(self):
        for task in self.tasks:
            await task.stop()
        if self.push_listener is not None:
            await self.push_listener.stop()
        self._unlisten()
        self.main_view.close()
        self.widget.close()
        await self.multiplayer.aclose()
        await self.engine.aclose()

    # ---- engine intake ----

    async def poll_snapshot(self) -> bool:
        """Poll intake; the ticket is taken before the request goes out."""
        ticket = self.reconciler.issue_ticket()
        try:
            state = await self.engine.get_snapshot()
        except EngineError as e:
            LOGGER.warning("[Session] snapshot poll failed: %s", e)
            self.events.record("engine", f"Failed to get game state: {e}")
            return False
        return self.reconciler.apply_poll(state, ticket)

    async def refresh_auto_buy(self) -> Optional[str]:
        try:
            status = await self.engine.get_auto_buy()
        except EngineError as e:
            LOGGER.warning("[Session] auto-buy status failed: %s", e)
            self.events.record("engine", f"Failed to get auto buy status: {e}")
            return None
        text = status.describe()
        if text != self.events.status("auto_buy"):
            self.events.record("auto_buy", text, remaining_time=status.remaining_time)
        return text

    # ---- user commands (fire-and-forget; the next snapshot shows the outcome) ----

    async def purchase_upgrade(self, upgrade_type: str, unit_type: str = "") -> bool:
        field_name(upgrade_type, unit_type)
        try:
            await self.engine.purchase_upgrade(upgrade_type, unit_type)
        except EngineError as e:
            LOGGER.error("[Session] purchase %s/%s failed: %s", upgrade_type, unit_type, e)
            self.events.record("engine", f"Failed to purchase upgrade: {e}")
            return False
        return True

    async def start_auto_buy(self, upgrade_type: str, unit_type: str, duration_s: float) -> bool:
        field_name(upgrade_type, unit_type)
        try:
            await self.engine.start_auto_buy(upgrade_type, unit_type, duration_s)
        except EngineError as e:
            self.events.record("auto_buy", f"Failed to start auto-buy: {e}")
            return False
        self.events.record("auto_buy", f"Auto-buy started for {duration_s:g} seconds!")
        return True

    async def stop_auto_buy(self) -> bool:
        try:
            await self.engine.stop_auto_buy()
        except EngineError as e:
            self.events.record("auto_buy", f"Failed to stop auto-buy: {e}")
            return False
        self.events.record("auto_buy", "Auto-buy stopped!")
        return True

    async def exit(self):
        try:
            await self.engine.exit()
        except EngineError as e:
            LOGGER.warning("[Session] exit request failed: %s", e)
        await self.stop()

    # ---- configuration ----

    async def load_config(self) -> AppConfig:
        try:
            self.config = await self.engine.get_config()
        except EngineError as e:
            LOGGER.warning("[Session] using default config: %s", e)
            self.events.record("engine", f"Failed to load settings: {e}")
        self._adopt_config(self.config)
        return self.config

    async def save_config(self, config: AppConfig) -> bool:
        self._adopt_config(config)
        try:
            await self.engine.save_config(config)
        except EngineError as e:
            self.events.record("engine", f"Failed to save settings: {e}")
            return False
        return True

    async def apply_config(self, config: AppConfig) -> bool:
        if not await self.save_config(config):
            return False
        try:
            await self.engine.apply_config(config)
        except EngineError as e:
            self.events.record("engine", f"Failed to apply settings: {e}")
            return False
        return True

    def _adopt_config(self, config: AppConfig) -> None:
        self.config = config
        self.multiplayer.set_server_url(config.multiplayer_server_url)
        self.widget.unit_size = config.widget_unit_size

    # ---- multiplayer ----

    async def register_player(self, player_name: str) -> RegisterResponse:
        """User-initiated handshake; failures are reported and re-raised to the caller."""
        self.events.record("multiplayer", "Connecting to server...")
        try:
            result = await self.sync.register(player_name)
        except MultiplayerError as e:
            self.events.record("multiplayer", f"Failed to connect: {e}")
            raise
        identity = {"multiplayer_player_name": result.player_name,
                    "multiplayer_player_id": result.player_id}
        await self.save_config(self.config.model_copy(update=identity))
        return result

    async def health_check(self) -> Optional[HealthResponse]:
        self.events.record("multiplayer", "Pinging server...")
        try:
            health = await self.multiplayer.health_check()
        except MultiplayerError as e:
            self.events.record("multiplayer", f"Server error: {e}")
            return None
        self.events.record("multiplayer", "Server reachable ✔")
        return health

    async def list_players(self) -> List[PlayerSummary]:
        try:
            return await self.multiplayer.get_all_players()
        except MultiplayerError as e:
            self.events.record("multiplayer", f"Failed to get players: {e}")
            return []

async def run(settings: ClientSettings) -> None:
    session = ClientSession.from_settings(settings)
    await session.start()
    try:
        await asyncio.Event().wait()
    finally:
        await session.stop()

def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    try:
        asyncio.run(run(ClientSettings.from_env()))
    except KeyboardInterrupt:
        pass

if __name__ == "__main__":
    main()
