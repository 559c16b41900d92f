from pydantic import BaseModel, Field
from game.model import Progress, Upgrades

class UpgradesIn(BaseModel):
    """Upgrade levels schema."""
    small_attack: int = Field(default=0, ge=0)
    medium_attack: int = Field(default=0, ge=0)
    large_attack: int = Field(default=0, ge=0)
    small_hp: int = Field(default=0, ge=0)
    medium_hp: int = Field(default=0, ge=0)
    large_hp: int = Field(default=0, ge=0)
    small_speed: int = Field(default=0, ge=0)
    medium_speed: int = Field(default=0, ge=0)
    large_speed: int = Field(default=0, ge=0)
    coin_rate: int = Field(default=0, ge=0)
    base_hp: int = Field(default=0, ge=0)

class ProgressIn(BaseModel):
    """Progression fields exchanged with the service; nothing battlefield-local."""
    stage: int = Field(default=1, ge=1)
    coins: int = Field(default=0, ge=0)
    upgrades: UpgradesIn = Field(default_factory=UpgradesIn)

    @classmethod
    def from_progress(cls, p: Progress) -> "ProgressIn":
        return cls(stage=p.stage, coins=p.coins, upgrades=UpgradesIn(**p.upgrades.to_dict()))

    def to_progress(self) -> Progress:
        return Progress(stage=self.stage, coins=self.coins,
                        upgrades=Upgrades(**self.upgrades.model_dump()))

class RegisterRequest(BaseModel):
    """Registration request schema."""
    name: str

class RegisterResponse(BaseModel):
    player_id: str
    player_name: str
    message: str
    stage: int
    coins: int
    progress: ProgressIn
    last_update: int

class UpdateRequest(BaseModel):
    """Progress update request schema."""
    progress: ProgressIn

class PlayerProfile(BaseModel):
    player_id: str
    player_name: str
    progress: ProgressIn = Field(default_factory=ProgressIn)
    last_update: int

class PlayerSummary(BaseModel):
    player_id: str
    player_name: str
    stage: int
    last_update: int

class HealthResponse(BaseModel):
    status: str
    timestamp: int
    player_count: int
