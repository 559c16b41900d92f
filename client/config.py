import os
from typing import Mapping, Optional, get_args
from pydantic import BaseModel, Field

class AppConfig(BaseModel):
    """Configuration record owned by the engine (get/save/apply config)."""
    widget_y_offset: int = 100
    widget_unit_size: int = 6
    multiplayer_server_url: str = ""  # empty disables multiplayer
    multiplayer_player_name: str = ""
    multiplayer_player_id: str = ""

class AutoBuyStatus(BaseModel):
    enabled: bool = False
    upgrade_type: str = ""
    unit_type: str = ""
    remaining_time: float = Field(default=0.0, ge=0.0)

    def describe(self) -> str:
        """Status line shown next to the auto-buy controls."""
        if self.enabled and self.remaining_time > 0:
            minutes = int(self.remaining_time // 60)
            seconds = int(self.remaining_time % 60)
            return f"Active: {minutes}m {seconds}s remaining"
        return "Inactive"

class ClientSettings(BaseModel):
    """Process-local settings: where the engine lives and how often each task runs."""
    engine_url: str = "http://127.0.0.1:8765"
    engine_ws_url: Optional[str] = "ws://127.0.0.1:8765/ws/game-updates"
    request_timeout_s: float = 2.0
    render_interval_s: float = 1 / 60
    widget_interval_s: float = 0.1
    sync_interval_s: float = 5.0
    auto_buy_interval_s: float = 1.0
    push_reconnect_s: float = 2.0

    @classmethod
    def from_env(cls, env: Mapping[str, str] = os.environ) -> "ClientSettings":
        """Build settings from LANEBATTLER_* environment variables."""
        overrides = {}
        for name, info in cls.model_fields.items():
            key = f"LANEBATTLER_{name.upper()}"
            value = env.get(key)
            if value is None:
                continue
            if value == "":
                # blank clears an Optional setting; other fields keep their default
                if type(None) not in get_args(info.annotation):
                    continue
                value = None
            overrides[name] = value
        return cls.model_validate(overrides)
