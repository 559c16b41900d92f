import math
from typing import Callable, Dict, Optional
from .model import Unit

# Main view: 12px arc, heavier units bounce higher.
MAIN_VIEW_BASE = 12.0
MAIN_VIEW_SIZE_BONUS: Dict[str, float] = {"Small": 0.0, "Medium": 4.0, "Large": 8.0}

# Widget: amplitude follows the drawn square, which scales with unit type.
WIDGET_BASE = 6.0
WIDGET_SIZE_MULTIPLIER: Dict[str, float] = {"Small": 0.7, "Medium": 1.0, "Large": 1.4}

def knockback_progress(knockback_time: Optional[float], knockback_total: Optional[float]) -> Optional[float]:
    """Fraction of the knockback elapsed, or None when no knockback is running."""
    if not knockback_time or not knockback_total or knockback_total <= 0:
        return None
    return 1.0 - knockback_time / knockback_total

def arc(progress: float, amplitude: float) -> float:
    """Symmetric rise-and-fall: 0 at both ends, `amplitude` at the midpoint."""
    return amplitude * math.sin(progress * math.pi)

def main_view_amplitude(unit_type: str) -> float:
    return MAIN_VIEW_BASE + MAIN_VIEW_SIZE_BONUS[unit_type]

def widget_unit_size(unit_type: str, unit_size: float) -> float:
    return unit_size * WIDGET_SIZE_MULTIPLIER[unit_type]

def widget_amplitude(unit_type: str, unit_size: float) -> float:
    return WIDGET_BASE + widget_unit_size(unit_type, unit_size) / 2

def displacement(unit: Unit, amplitude_for: Callable[[str], float]) -> float:
    """Vertical offset of a unit this frame; restarts cleanly on a fresh knockback."""
    progress = knockback_progress(unit.knockback_time, unit.knockback_total)
    if progress is None:
        return 0.0
    return arc(progress, amplitude_for(unit.unit_type))
