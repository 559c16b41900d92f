"""Read-only consumers of the reconciled snapshot.

Each surface turns a GameState into a frame: plain numbers a drawing layer
can paint without further game knowledge. Frames are rebuilt from one
immutable snapshot at a time, so a frame never mixes two snapshots.
"""
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import partial
from typing import List, Optional, Tuple
from game.animation import displacement, main_view_amplitude, widget_amplitude, widget_unit_size
from game.economy import all_tracks, can_afford, level_for, upgrade_cost
from game.model import GameState, Unit
from runtime.reconciler import StateReconciler, fill_ratio

MAIN_UNIT_SIZE = {"Small": 8, "Medium": 12, "Large": 16}

@dataclass(frozen=True)
class Sprite:
    unit_id: int
    unit_type: str
    is_player: bool
    x: float
    y: float
    size: float
    hp_ratio: float
    bar_width: float = 0.0

@dataclass(frozen=True)
class UpgradeButton:
    track: str
    unit: str
    level: int
    cost: int
    enabled: bool

@dataclass(frozen=True)
class MainFrame:
    sprites: Tuple[Sprite, ...]
    player_base_fill: float
    enemy_base_fill: float
    player_base_text: str
    enemy_base_text: str
    stage: int
    coins: int
    type_count: int
    click_count: int
    buttons: Tuple[UpgradeButton, ...]

@dataclass(frozen=True)
class WidgetFrame:
    sprites: Tuple[Sprite, ...]
    header: str

def upgrade_buttons(state: GameState) -> Tuple[UpgradeButton, ...]:
    """Cost and enabled flag for every purchase control."""
    buttons = []
    for track, unit in all_tracks():
        level = level_for(state.upgrades, track, unit)
        buttons.append(UpgradeButton(track, unit, level, upgrade_cost(level), can_afford(state.coins, level)))
    return tuple(buttons)

def _hp_ratio(unit: Unit) -> float:
    return unit.hp / unit.max_hp if unit.max_hp > 0 else 0.0

class _Consumer(ABC):
    def __init__(self, reconciler: StateReconciler):
        self.reconciler = reconciler
        self.redraws = 0
        self._unsubscribe = reconciler.subscribe(self.on_snapshot)

    def on_snapshot(self, state: GameState) -> None:
        self.redraws += 1
        self.last_frame = self.build(state)

    def refresh(self):
        """Rebuild from whatever the reconciler holds now (timer-driven redraw)."""
        state = self.reconciler.current
        if state is None:
            return None
        self.last_frame = self.build(state)
        return self.last_frame

    def close(self) -> None:
        self._unsubscribe()

    @abstractmethod
    def build(self, state: GameState):
        raise NotImplementedError

class MainView(_Consumer):
    """Primary game surface: lane, bases with HP bars, HUD, upgrade buttons."""

    def __init__(self, reconciler: StateReconciler, width: int = 800, height: int = 400):
        self.width = width
        self.height = height
        self.last_frame: Optional[MainFrame] = None
        super().__init__(reconciler)

    def lane_x(self, position: float) -> float:
        return 100 + (position / 1000) * (self.width - 200)

    def _sprite(self, unit: Unit) -> Sprite:
        size = MAIN_UNIT_SIZE[unit.unit_type]
        # wider HP bar for tougher units, at most double
        multiplier = min(1 + math.log10(max(1.0, unit.max_hp / 100)), 2)
        return Sprite(
            unit_id=unit.id,
            unit_type=unit.unit_type,
            is_player=unit.is_player,
            x=self.lane_x(unit.position),
            y=(self.height - 150) - displacement(unit, main_view_amplitude),
            size=size,
            hp_ratio=_hp_ratio(unit),
            bar_width=(size + 4) * multiplier,
        )

    def build(self, state: GameState) -> MainFrame:
        rec = self.reconciler
        sprites = [self._sprite(u) for u in state.player_units]
        sprites += [self._sprite(u) for u in state.enemy_units]
        return MainFrame(
            sprites=tuple(sprites),
            player_base_fill=fill_ratio(state.player_base_hp, rec.max_player_base_hp),
            enemy_base_fill=fill_ratio(state.enemy_base_hp, rec.max_enemy_base_hp),
            player_base_text=_base_text(state.player_base_hp, rec.max_player_base_hp),
            enemy_base_text=_base_text(state.enemy_base_hp, rec.max_enemy_base_hp),
            stage=state.stage,
            coins=state.coins,
            type_count=state.type_count,
            click_count=state.click_count,
            buttons=upgrade_buttons(state),
        )

class WidgetView(_Consumer):
    """Always-on-top strip: unit squares and a unit-count header."""

    def __init__(self, reconciler: StateReconciler, width: int = 1920, height: int = 80,
                 unit_size: int = 6):
        self.width = width
        self.height = height
        self.unit_size = unit_size
        self.last_frame: Optional[WidgetFrame] = None
        super().__init__(reconciler)

    def _sprite(self, unit: Unit) -> Sprite:
        size = widget_unit_size(unit.unit_type, self.unit_size)
        amp = partial(widget_amplitude, unit_size=self.unit_size)
        return Sprite(
            unit_id=unit.id,
            unit_type=unit.unit_type,
            is_player=unit.is_player,
            x=(unit.position / 1000) * self.width,
            y=self.height / 2 - displacement(unit, amp),
            size=size,
            hp_ratio=_hp_ratio(unit),
        )

    def build(self, state: GameState) -> WidgetFrame:
        sprites: List[Sprite] = [self._sprite(u) for u in state.player_units]
        sprites += [self._sprite(u) for u in state.enemy_units]
        header = f"P:{len(state.player_units)} E:{len(state.enemy_units)}"
        return WidgetFrame(sprites=tuple(sprites), header=header)

def _base_text(hp: float, baseline: Optional[float]) -> str:
    ceiling = baseline if baseline is not None else hp
    return f"{round(hp)}/{ceiling:g}"
