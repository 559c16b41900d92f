import math
from fractions import Fraction
from typing import List, Literal, Tuple
from .model import Upgrades

Track = Literal["attack", "hp", "speed", "coin_rate", "base_hp"]

UNIT_TRACKS: Tuple[str, ...] = ("attack", "hp", "speed")
GLOBAL_TRACKS: Tuple[str, ...] = ("coin_rate", "base_hp")
UNIT_QUALIFIERS: Tuple[str, ...] = ("small", "medium", "large")

BASE_PRICE = 3000
GROWTH_RATE = Fraction(6, 5)  # 1.2, kept exact so floor() never lands one coin low

def upgrade_cost(level: int) -> int:
    """Price of the next purchase on a track currently at `level`: floor(3000 * 1.2^level)."""
    if level < 0:
        raise ValueError(f"level must be non-negative, got {level}")
    return math.floor(BASE_PRICE * GROWTH_RATE ** level)

def can_afford(coins: int, level: int) -> bool:
    """Optimistic affordability used only to enable/disable purchase controls."""
    return coins >= upgrade_cost(level)

def field_name(track: str, unit: str = "") -> str:
    """Map a purchase request (track, unit qualifier) to its Upgrades field."""
    if track in GLOBAL_TRACKS:
        return track
    if track in UNIT_TRACKS:
        if unit not in UNIT_QUALIFIERS:
            raise ValueError(f"track {track!r} needs a unit qualifier, got {unit!r}")
        return f"{unit}_{track}"
    raise ValueError(f"unknown upgrade track {track!r}")

def level_for(upgrades: Upgrades, track: str, unit: str = "") -> int:
    return getattr(upgrades, field_name(track, unit))

def all_tracks() -> List[Tuple[str, str]]:
    """Every purchasable (track, unit) pair, unit-specific tracks first."""
    pairs = [(t, u) for t in UNIT_TRACKS for u in UNIT_QUALIFIERS]
    pairs += [(t, "") for t in GLOBAL_TRACKS]
    return pairs
