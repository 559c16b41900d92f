import time
from typing import Dict, List, Optional
from game.model import Event

class EventLog:
    """Append-only status log: transient status strings for the UI plus sync history."""

    def __init__(self, clock=time.monotonic):
        self._log: List[Event] = []
        self._latest: Dict[str, Event] = {}
        self._clock = clock

    def record(self, kind: str, message: str, **data) -> Event:
        """Append one status event and make it the latest of its kind."""
        evt = Event(kind, int(self._clock() * 1000), {"message": message, **data})
        self._log.append(evt)
        self._latest[kind] = evt
        return evt

    def since(self, offset: int, limit: int = 1000) -> tuple[list[Event], int]:
        """Return events starting from offset, up to limit."""
        offset = max(0, offset)
        chunk = self._log[offset: offset + limit]
        return chunk, offset + len(chunk)

    def latest(self, kind: str) -> Optional[Event]:
        return self._latest.get(kind)

    def status(self, kind: str, default: str = "") -> str:
        """Message of the newest event of `kind`, or `default`."""
        evt = self._latest.get(kind)
        return evt.data["message"] if evt else default

    def __len__(self) -> int:
        return len(self._log)
