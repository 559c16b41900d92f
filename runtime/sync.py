import logging
import time
from typing import Optional
from api.schemas import RegisterResponse
from client.engine_link import EngineError, EngineLink
from client.multiplayer import MultiplayerClient, MultiplayerError
from game.model import Progress
from .eventlog import EventLog
from .reconciler import StateReconciler

LOGGER = logging.getLogger("runtime.sync")

# Parity value on which a connected tick also pulls (every second tick).
PULL_PARITY = 0

class MultiplayerSyncCycle:
    """Pushes progression to the multiplayer service every tick, pulls every other tick.

    Only `Progress` (stage, coins, upgrade levels) crosses the wire in either
    direction. Units, knockback and base HP stay session-local, and a pulled
    record is merged through StateReconciler.merge_progress, which leaves them
    untouched.
    """

    def __init__(self, reconciler: StateReconciler, client: MultiplayerClient,
                 events: EventLog, engine: Optional[EngineLink] = None):
        self.reconciler = reconciler
        self.client = client
        self.events = events
        self.engine = engine
        self.parity = 0
        self.pushes = 0
        self.pulls = 0
        self.remote_applied = 0
        self._last_pushed: Optional[Progress] = None
        self._pull_generation = 0

    async def tick(self) -> None:
        if not self.client.is_connected():
            return
        await self.push()
        self.parity = (self.parity + 1) % 2
        if self.parity == PULL_PARITY:
            await self.pull()

    async def push(self) -> bool:
        state = self.reconciler.current
        if state is None:
            LOGGER.debug("[Sync] no snapshot yet, nothing to push")
            return False
        progress = state.progress()
        self.pushes += 1
        try:
            await self.client.push_progress(progress)
        except MultiplayerError as e:
            LOGGER.warning("[Sync] push failed, staying local this tick: %s", e)
            self.events.record("multiplayer", f"Sync failed: {e}")
            return False
        self._last_pushed = progress
        self._label("Last push")
        return True

    async def pull(self) -> bool:
        """Fetch the remote record; merge it if another session moved it on."""
        self._pull_generation += 1
        generation = self._pull_generation
        self.pulls += 1
        try:
            profile = await self.client.fetch_profile()
        except MultiplayerError as e:
            LOGGER.warning("[Sync] pull failed, staying local this tick: %s", e)
            self.events.record("multiplayer", f"Sync failed: {e}")
            return False
        if generation != self._pull_generation:
            LOGGER.debug("[Sync] discarding superseded pull %d", generation)
            return False
        remote = profile.progress.to_progress()
        reference = self._last_pushed
        if reference is None and self.reconciler.current is not None:
            reference = self.reconciler.current.progress()
        if remote == reference:
            return False
        await self.adopt(remote)
        self.remote_applied += 1
        self.events.record("multiplayer", "Remote progress applied ✔")
        self._label("Last pull")
        return True

    async def register(self, player_name: str) -> RegisterResponse:
        """One-time handshake; the returned progress becomes local progress at once."""
        result = await self.client.register_player(player_name)
        await self.adopt(result.progress.to_progress())
        self.events.record("multiplayer", f"{result.message} (Stage {result.stage}, Coins {result.coins})")
        self._label("Last sync")
        return result

    async def adopt(self, progress: Progress) -> None:
        self.reconciler.merge_progress(progress)
        self._last_pushed = progress
        if self.engine is None:
            return
        try:
            await self.engine.import_progress(progress)
        except EngineError as e:
            LOGGER.error("[Sync] engine rejected imported progress: %s", e)
            self.events.record("engine", f"Failed to import progress: {e}")

    def _label(self, prefix: str) -> None:
        self.events.record("last_sync", f"{prefix}: {time.strftime('%H:%M:%S')}")
