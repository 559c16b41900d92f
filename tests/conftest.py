import asyncio
from typing import List, Optional, Set, Tuple
import pytest
from client.config import AppConfig, AutoBuyStatus
from client.engine_link import EngineError, EngineLink
from game.model import GameState, Progress, Unit


def make_unit(uid: int, unit_type: str = "Small", is_player: bool = True, position: float = 0.0,
              hp: float = 10.0, max_hp: float = 10.0, **knockback) -> Unit:
    return Unit(id=uid, unit_type=unit_type, position=position, hp=hp, max_hp=max_hp,
                attack=5.0, speed=100.0, is_player=is_player, **knockback)


def make_state(**overrides) -> GameState:
    """A small battlefield with one unit per side."""
    fields = dict(
        player_units=(make_unit(1, "Small", True, 120.0),),
        enemy_units=(make_unit(2, "Medium", False, 880.0, hp=30.0, max_hp=30.0),),
        player_base_hp=1000.0,
        enemy_base_hp=500.0,
        coins=0,
        stage=1,
    )
    fields.update(overrides)
    return GameState(**fields)


class FakeEngine(EngineLink):
    """In-memory engine double; set `fail` to make every command raise, or
    name single commands in `fail_on`."""

    def __init__(self, state: Optional[GameState] = None):
        self.state = state or make_state()
        self.config = AppConfig()
        self.auto_buy = AutoBuyStatus()
        self.fail = False
        self.fail_on: Set[str] = set()
        self.gate: Optional[asyncio.Event] = None
        self.calls: List[Tuple] = []
        self.imported: List[Progress] = []

    def _check(self, name: str, *args):
        self.calls.append((name, *args))
        if self.fail or name in self.fail_on:
            raise EngineError(f"{name}: engine unavailable")

    async def get_snapshot(self) -> GameState:
        state = self.state
        if self.gate is not None:
            await self.gate.wait()
        self._check("get_snapshot")
        return state

    async def purchase_upgrade(self, upgrade_type: str, unit_type: str = "") -> None:
        self._check("purchase_upgrade", upgrade_type, unit_type)

    async def get_config(self) -> AppConfig:
        self._check("get_config")
        return self.config

    async def save_config(self, config: AppConfig) -> None:
        self._check("save_config", config)
        self.config = config

    async def apply_config(self, config: AppConfig) -> None:
        self._check("apply_config", config)

    async def get_auto_buy(self) -> AutoBuyStatus:
        self._check("get_auto_buy")
        return self.auto_buy

    async def start_auto_buy(self, upgrade_type: str, unit_type: str, duration_s: float) -> None:
        self._check("start_auto_buy", upgrade_type, unit_type, duration_s)

    async def stop_auto_buy(self) -> None:
        self._check("stop_auto_buy")

    async def import_progress(self, progress: Progress) -> None:
        self._check("import_progress", progress)
        self.imported.append(progress)

    async def exit(self) -> None:
        self._check("exit")


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def fresh_store(monkeypatch):
    """Point the multiplayer API at an empty in-memory store."""
    from api import app as app_module
    from api.store import PlayerStore
    store = PlayerStore()
    monkeypatch.setattr(app_module, "store", store)
    return store
