import logging
import time
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from .schemas import (HealthResponse, PlayerProfile, PlayerSummary, RegisterRequest,
                      RegisterResponse, UpdateRequest)
from .store import PlayerStore

LOGGER = logging.getLogger("api.app")

app = FastAPI(title="Lane Battler Multiplayer API")
store: PlayerStore = PlayerStore.from_env()

# Game clients call from desktop webviews with arbitrary origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/health")
async def health() -> HealthResponse:
    """Liveness probe used by the client's "test server" action."""
    return HealthResponse(status="ok", timestamp=int(time.time()), player_count=len(store))

@app.post("/api/player/register")
async def register_player(req: RegisterRequest) -> RegisterResponse:
    """Create a player, or log back in when the name (case-insensitive) is taken."""
    try:
        profile, created = store.register(req.name)
    except ValueError as e:
        raise HTTPException(400, str(e))
    message = "Account created!" if created else "Welcome back! Progress loaded."
    LOGGER.info("[API] register %r -> %s (%s)", req.name, profile.player_id,
                "new" if created else "existing")
    return RegisterResponse(
        player_id=profile.player_id,
        player_name=profile.player_name,
        message=message,
        stage=profile.progress.stage,
        coins=profile.progress.coins,
        progress=profile.progress,
        last_update=profile.last_update,
    )

@app.get("/api/player/{player_id}")
async def get_player(player_id: str) -> PlayerProfile:
    """Get one player's stored progress."""
    profile = store.get(player_id)
    if profile is None:
        raise HTTPException(404, "Player not found")
    return profile

@app.post("/api/player/{player_id}/update")
async def update_player(player_id: str, req: UpdateRequest) -> PlayerProfile:
    """Set a player's current progress."""
    profile = store.update(player_id, req.progress)
    if profile is None:
        raise HTTPException(404, "Player not found")
    return profile

@app.get("/api/players")
async def list_players() -> list[PlayerSummary]:
    """List every known player with their stage."""
    return store.summaries()

def main() -> None:
    import uvicorn
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=8080)
