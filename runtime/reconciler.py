import logging
from typing import Callable, List, Optional
from game.model import GameState, Progress

LOGGER = logging.getLogger("runtime.reconciler")

# Base HP within 1% of the remembered ceiling counts as "at full", which absorbs
# float noise while still catching base-HP upgrades that raise the ceiling.
RATCHET_THRESHOLD = 0.99

Subscriber = Callable[[GameState], None]

def fill_ratio(hp: float, baseline: Optional[float]) -> float:
    """HP bar fill normalised to the ratcheted baseline."""
    if not baseline or baseline <= 0:
        return 0.0
    return hp / baseline

class StateReconciler:
    """Owns the canonical snapshot and the HP baselines derived from it.

    Writers never patch the held snapshot: every accepted write swaps in a
    whole new immutable GameState, so readers always see a complete one.

    Every write is tagged with a generation drawn from one counter at its
    origin (poll: when the request is issued, push: when the event arrives).
    A write whose generation is not newer than the held one is stale and is
    dropped, as is a snapshot whose engine `seq` is older than the held one.
    """

    def __init__(self):
        self._state: Optional[GameState] = None
        self._issued = 0
        self._held_generation = 0
        self._subscribers: List[Subscriber] = []
        self.max_player_base_hp: Optional[float] = None
        self.max_enemy_base_hp: Optional[float] = None
        self.applied = 0
        self.stale_dropped = 0

    @property
    def current(self) -> Optional[GameState]:
        return self._state

    def subscribe(self, fn: Subscriber) -> Callable[[], None]:
        """Register a redraw callback; returns an unsubscribe function."""
        self._subscribers.append(fn)

        def _unsubscribe():
            if fn in self._subscribers:
                self._subscribers.remove(fn)
        return _unsubscribe

    def issue_ticket(self) -> int:
        """Reserve the generation for an outbound snapshot request."""
        self._issued += 1
        return self._issued

    def apply_push(self, state: GameState) -> bool:
        """Push intake: the event's arrival is its origin."""
        return self._replace(state, self.issue_ticket(), "push")

    def apply_poll(self, state: GameState, ticket: int) -> bool:
        """Poll intake: `ticket` must come from issue_ticket() taken before the request."""
        return self._replace(state, ticket, "poll")

    def merge_progress(self, progress: Progress) -> GameState:
        """Adopt remote progression without touching units or base HP.

        Takes a fresh generation: polls issued before the merge are stale.
        """
        base = self._state if self._state is not None else GameState()
        merged = base.with_progress(progress)
        self._state = merged
        self._held_generation = self.issue_ticket()
        LOGGER.info("[Reconciler] merged remote progress: stage=%d coins=%d", progress.stage, progress.coins)
        self._notify(merged)
        return merged

    def player_fill(self) -> float:
        if self._state is None:
            return 0.0
        return fill_ratio(self._state.player_base_hp, self.max_player_base_hp)

    def enemy_fill(self) -> float:
        if self._state is None:
            return 0.0
        return fill_ratio(self._state.enemy_base_hp, self.max_enemy_base_hp)

    def _is_stale(self, state: GameState, generation: int) -> bool:
        if generation <= self._held_generation:
            return True
        held = self._state
        if held is not None and held.seq is not None and state.seq is not None:
            return state.seq < held.seq
        return False

    def _replace(self, state: GameState, generation: int, source: str) -> bool:
        if self._is_stale(state, generation):
            self.stale_dropped += 1
            LOGGER.debug("[Reconciler] dropped stale %s snapshot (gen %d, held %d)",
                         source, generation, self._held_generation)
            return False
        self._state = state
        self._held_generation = generation
        self.applied += 1
        self._ratchet(state)
        self._notify(state)
        return True

    def _ratchet(self, state: GameState) -> None:
        self.max_player_base_hp = _raise_baseline(self.max_player_base_hp, state.player_base_hp)
        self.max_enemy_base_hp = _raise_baseline(self.max_enemy_base_hp, state.enemy_base_hp)

    def _notify(self, state: GameState) -> None:
        for fn in list(self._subscribers):
            try:
                fn(state)
            except Exception:
                LOGGER.exception("[Reconciler] consumer callback failed")

def _raise_baseline(baseline: Optional[float], hp: float) -> float:
    if baseline is None:
        return hp
    if hp > baseline * RATCHET_THRESHOLD:
        return max(baseline, hp)
    return baseline
