"""Command surface of the engine that owns the simulation.

Every call is asynchronous and may fail; failures surface as EngineError so
callers can turn them into status text without caring about the transport.
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional
import httpx
from game.economy import field_name
from game.model import GameState, Progress
from .config import AppConfig, AutoBuyStatus

LOGGER = logging.getLogger("client.engine")

class EngineError(Exception):
    """An engine command failed (transport, status, or payload)."""

class EngineLink(ABC):
    """Interface the client uses to reach the engine."""

    @abstractmethod
    async def get_snapshot(self) -> GameState:
        raise NotImplementedError

    @abstractmethod
    async def purchase_upgrade(self, upgrade_type: str, unit_type: str = "") -> None:
        raise NotImplementedError

    @abstractmethod
    async def get_config(self) -> AppConfig:
        raise NotImplementedError

    @abstractmethod
    async def save_config(self, config: AppConfig) -> None:
        raise NotImplementedError

    @abstractmethod
    async def apply_config(self, config: AppConfig) -> None:
        raise NotImplementedError

    @abstractmethod
    async def get_auto_buy(self) -> AutoBuyStatus:
        raise NotImplementedError

    @abstractmethod
    async def start_auto_buy(self, upgrade_type: str, unit_type: str, duration_s: float) -> None:
        raise NotImplementedError

    @abstractmethod
    async def stop_auto_buy(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def import_progress(self, progress: Progress) -> None:
        raise NotImplementedError

    @abstractmethod
    async def exit(self) -> None:
        raise NotImplementedError

    async def aclose(self) -> None:
        pass

class HttpEngineLink(EngineLink):
    """EngineLink over the engine's HTTP API."""

    def __init__(self, base_url: str, timeout_s: float = 2.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout_s, transport=transport)

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            resp = await self._http.request(method, path, **kwargs)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise EngineError(f"{method} {path}: engine returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise EngineError(f"{method} {path}: {e}") from e
        return resp

    async def get_snapshot(self) -> GameState:
        resp = await self._request("GET", "/game/state")
        return GameState.from_dict(resp.json())

    async def purchase_upgrade(self, upgrade_type: str, unit_type: str = "") -> None:
        field_name(upgrade_type, unit_type)  # reject unknown tracks before sending
        await self._request("POST", "/game/upgrades",
                            json={"upgrade_type": upgrade_type, "unit_type": unit_type})

    async def get_config(self) -> AppConfig:
        resp = await self._request("GET", "/config")
        return AppConfig.model_validate(resp.json())

    async def save_config(self, config: AppConfig) -> None:
        await self._request("PUT", "/config", json=config.model_dump())

    async def apply_config(self, config: AppConfig) -> None:
        await self._request("POST", "/config/apply", json=config.model_dump())

    async def get_auto_buy(self) -> AutoBuyStatus:
        resp = await self._request("GET", "/auto-buy")
        return AutoBuyStatus.model_validate(resp.json())

    async def start_auto_buy(self, upgrade_type: str, unit_type: str, duration_s: float) -> None:
        field_name(upgrade_type, unit_type)
        await self._request("POST", "/auto-buy/start", json={
            "upgrade_type": upgrade_type,
            "unit_type": unit_type,
            "duration_seconds": duration_s,
        })

    async def stop_auto_buy(self) -> None:
        await self._request("POST", "/auto-buy/stop")

    async def import_progress(self, progress: Progress) -> None:
        await self._request("POST", "/game/progress", json=progress.to_dict())

    async def exit(self) -> None:
        LOGGER.info("[Engine] requesting exit")
        await self._request("POST", "/exit")

    async def aclose(self) -> None:
        await self._http.aclose()
