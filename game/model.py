from dataclasses import dataclass, field, fields, replace
from typing import Dict, Literal, Optional, Tuple

UnitType = Literal["Small", "Medium", "Large"]
UNIT_TYPES: Tuple[str, ...] = ("Small", "Medium", "Large")

@dataclass(frozen=True)
class Unit:
    id: int
    unit_type: UnitType
    position: float  # lane coordinate, 0 (player base) .. 1000 (enemy base)
    hp: float
    max_hp: float
    attack: float
    speed: float
    is_player: bool
    target_id: Optional[int] = None  # weak reference, echoed only
    knockback_velocity: Optional[float] = None
    knockback_time: Optional[float] = None  # remaining seconds
    knockback_total: Optional[float] = None  # original duration

    @classmethod
    def from_dict(cls, d: Dict) -> "Unit":
        unit_type = d["unit_type"]
        if unit_type not in UNIT_TYPES:
            raise ValueError(f"unknown unit_type {unit_type!r}")
        return cls(
            id=int(d["id"]),
            unit_type=unit_type,
            position=float(d["position"]),
            hp=float(d["hp"]),
            max_hp=float(d["max_hp"]),
            attack=float(d["attack"]),
            speed=float(d["speed"]),
            is_player=bool(d["is_player"]),
            target_id=d.get("target_id"),
            knockback_velocity=d.get("knockback_velocity"),
            knockback_time=d.get("knockback_time"),
            knockback_total=d.get("knockback_total"),
        )

    def to_dict(self) -> Dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

@dataclass(frozen=True)
class Upgrades:
    """Upgrade levels; every field is a non-negative integer."""
    small_attack: int = 0
    medium_attack: int = 0
    large_attack: int = 0
    small_hp: int = 0
    medium_hp: int = 0
    large_hp: int = 0
    small_speed: int = 0
    medium_speed: int = 0
    large_speed: int = 0
    coin_rate: int = 0
    base_hp: int = 0

    @classmethod
    def from_dict(cls, d: Dict) -> "Upgrades":
        return cls(**{f.name: int(d.get(f.name, 0)) for f in fields(cls)})

    def to_dict(self) -> Dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

@dataclass(frozen=True)
class Progress:
    """Progression fields: the only state shared with the multiplayer service."""
    stage: int = 1
    coins: int = 0
    upgrades: Upgrades = field(default_factory=Upgrades)

    def to_dict(self) -> Dict:
        return {"stage": self.stage, "coins": self.coins, "upgrades": self.upgrades.to_dict()}

@dataclass(frozen=True)
class GameState:
    """Canonical snapshot as emitted by the engine. Never patched in place."""
    player_units: Tuple[Unit, ...] = ()
    enemy_units: Tuple[Unit, ...] = ()
    player_base_hp: float = 1000.0
    enemy_base_hp: float = 500.0
    coins: int = 0
    stage: int = 1
    click_count: int = 0
    type_count: int = 0
    upgrades: Upgrades = field(default_factory=Upgrades)
    seq: Optional[int] = None  # engine-stamped origin sequence, if the engine provides one

    @classmethod
    def from_dict(cls, d: Dict) -> "GameState":
        seq = d.get("seq")
        return cls(
            player_units=tuple(Unit.from_dict(u) for u in d["player_units"]),
            enemy_units=tuple(Unit.from_dict(u) for u in d["enemy_units"]),
            player_base_hp=float(d["player_base_hp"]),
            enemy_base_hp=float(d["enemy_base_hp"]),
            coins=int(d["coins"]),
            stage=int(d["stage"]),
            click_count=int(d["click_count"]),
            type_count=int(d["type_count"]),
            upgrades=Upgrades.from_dict(d["upgrades"]),
            seq=int(seq) if seq is not None else None,
        )

    def to_dict(self) -> Dict:
        return {
            "player_units": [u.to_dict() for u in self.player_units],
            "enemy_units": [u.to_dict() for u in self.enemy_units],
            "player_base_hp": self.player_base_hp,
            "enemy_base_hp": self.enemy_base_hp,
            "coins": self.coins,
            "stage": self.stage,
            "click_count": self.click_count,
            "type_count": self.type_count,
            "upgrades": self.upgrades.to_dict(),
            "seq": self.seq,
        }

    def progress(self) -> Progress:
        return Progress(stage=self.stage, coins=self.coins, upgrades=self.upgrades)

    def with_progress(self, progress: Progress) -> "GameState":
        """New snapshot with only the progression fields replaced."""
        return replace(self, stage=progress.stage, coins=progress.coins, upgrades=progress.upgrades)

@dataclass
class Event:
    kind: str
    ts_ms: int
    data: Dict
