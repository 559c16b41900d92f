"""HTTP client for the optional multiplayer progress service."""
import logging
from dataclasses import dataclass
from typing import List, Optional, Type
import httpx
from pydantic import BaseModel, ValidationError
from api.schemas import HealthResponse, PlayerProfile, PlayerSummary, ProgressIn, RegisterResponse
from game.model import Progress

LOGGER = logging.getLogger("client.multiplayer")

class MultiplayerError(Exception):
    """The multiplayer service could not be reached or answered with an error."""

class NotConnectedError(MultiplayerError):
    """No server URL configured, or this session has not registered yet."""

@dataclass
class PlayerInfo:
    player_id: str
    player_name: str

class MultiplayerClient:
    def __init__(self, server_url: str = "", timeout_s: float = 3.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.server_url = server_url.rstrip("/")
        self.player: Optional[PlayerInfo] = None
        self._http = httpx.AsyncClient(timeout=timeout_s, transport=transport)

    def set_server_url(self, url: str) -> None:
        url = url.strip().rstrip("/")
        if url != self.server_url:
            LOGGER.info("[Multiplayer] server url set to %r", url)
        self.server_url = url

    def is_connected(self) -> bool:
        return bool(self.server_url) and self.player is not None

    def _url(self, path: str) -> str:
        if not self.server_url:
            raise NotConnectedError("No server URL configured")
        return f"{self.server_url}{path}"

    def _player_id(self) -> str:
        if self.player is None:
            raise NotConnectedError("Not registered to server")
        return self.player.player_id

    async def _call(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = self._url(path)
        try:
            resp = await self._http.request(method, url, **kwargs)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise MultiplayerError(f"Server returned error: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise MultiplayerError(f"Failed to reach server: {e}") from e
        return resp

    @staticmethod
    def _parse(model: Type[BaseModel], data):
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise MultiplayerError(f"Failed to parse response: {e}") from e

    async def register_player(self, player_name: str) -> RegisterResponse:
        """Register (or log back in) and remember the assigned identity."""
        resp = await self._call("POST", "/api/player/register", json={"name": player_name})
        result = self._parse(RegisterResponse, resp.json())
        self.player = PlayerInfo(player_id=result.player_id, player_name=result.player_name)
        LOGGER.info("[Multiplayer] registered as %s (%s)", result.player_name, result.player_id)
        return result

    async def push_progress(self, progress: Progress) -> PlayerProfile:
        """Set this player's progress on the server; repeating it only refreshes last_update."""
        player_id = self._player_id()
        body = {"progress": ProgressIn.from_progress(progress).model_dump()}
        resp = await self._call("POST", f"/api/player/{player_id}/update", json=body)
        return self._parse(PlayerProfile, resp.json())

    async def fetch_profile(self) -> PlayerProfile:
        player_id = self._player_id()
        resp = await self._call("GET", f"/api/player/{player_id}")
        return self._parse(PlayerProfile, resp.json())

    async def get_all_players(self) -> List[PlayerSummary]:
        resp = await self._call("GET", "/api/players")
        return [self._parse(PlayerSummary, p) for p in resp.json()]

    async def health_check(self) -> HealthResponse:
        resp = await self._call("GET", "/health")
        return self._parse(HealthResponse, resp.json())

    async def aclose(self) -> None:
        await self._http.aclose()
