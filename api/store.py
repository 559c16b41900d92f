import logging
import os
import time
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from pydantic import ValidationError
from .schemas import PlayerProfile, PlayerSummary, ProgressIn

LOGGER = logging.getLogger("api.store")

def normalize_name(name: str) -> str:
    return name.strip().lower()

class PlayerStore:
    """Player profiles keyed by id, with a case-insensitive name index.

    When `data_dir` is set every profile is mirrored to `<data_dir>/<id>.json`
    and reloaded on construction.
    """

    def __init__(self, data_dir: Optional[Path] = None, clock=time.time):
        self.data_dir = data_dir
        self._clock = clock
        self._players: Dict[str, PlayerProfile] = {}
        self._name_index: Dict[str, str] = {}
        if data_dir is not None:
            self._load()

    @classmethod
    def from_env(cls) -> "PlayerStore":
        """Persist under $LANEBATTLER_DATA_DIR when set, else keep profiles in memory."""
        data_dir = os.environ.get("LANEBATTLER_DATA_DIR")
        return cls(Path(data_dir) if data_dir else None)

    def _now(self) -> int:
        return int(self._clock())

    def _load(self) -> None:
        if not self.data_dir.is_dir():
            return
        for path in sorted(self.data_dir.glob("*.json")):
            try:
                profile = PlayerProfile.model_validate_json(path.read_text(encoding="utf-8"))
            except (OSError, ValidationError) as e:
                LOGGER.warning("[Store] skipping unreadable profile %s: %s", path.name, e)
                continue
            self._index(profile)
        LOGGER.info("[Store] loaded %d player profiles", len(self._players))

    def _save(self, profile: PlayerProfile) -> None:
        if self.data_dir is None:
            return
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            path = self.data_dir / f"{profile.player_id}.json"
            path.write_text(profile.model_dump_json(indent=2), encoding="utf-8")
        except OSError as e:
            LOGGER.error("[Store] failed to save profile %s: %s", profile.player_id, e)

    def _index(self, profile: PlayerProfile) -> None:
        self._players[profile.player_id] = profile
        self._name_index[normalize_name(profile.player_name)] = profile.player_id

    def register(self, name: str) -> Tuple[PlayerProfile, bool]:
        """Return (profile, created). A known name, in any case, logs back in."""
        requested = name.strip()
        if not requested:
            raise ValueError("Player name is required")
        existing_id = self._name_index.get(normalize_name(requested))
        if existing_id is not None and existing_id in self._players:
            return self._players[existing_id], False
        profile = PlayerProfile(
            player_id=str(uuid.uuid4()),
            player_name=requested,
            progress=ProgressIn(),
            last_update=self._now(),
        )
        self._index(profile)
        self._save(profile)
        return profile, True

    def get(self, player_id: str) -> Optional[PlayerProfile]:
        return self._players.get(player_id)

    def update(self, player_id: str, progress: ProgressIn) -> Optional[PlayerProfile]:
        """Overwrite a player's progress; identical pushes only refresh last_update."""
        current = self._players.get(player_id)
        if current is None:
            return None
        profile = current.model_copy(update={"progress": progress, "last_update": self._now()})
        self._players[player_id] = profile
        self._save(profile)
        return profile

    def summaries(self) -> List[PlayerSummary]:
        return [
            PlayerSummary(player_id=p.player_id, player_name=p.player_name,
                          stage=p.progress.stage, last_update=p.last_update)
            for p in self._players.values()
        ]

    def __len__(self) -> int:
        return len(self._players)
