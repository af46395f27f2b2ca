from contextlib import asynccontextmanager
from fastapi import FastAPI
import logging
import sys
import uvicorn

from gate.routers import games, ws
from referee.config import Settings
from referee.game_orchestrator import GameOrchestrator

settings = Settings.from_env()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)
game_orchestrator: GameOrchestrator = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - handles startup and shutdown"""
    global game_orchestrator

    # Startup
    game_orchestrator = GameOrchestrator(settings.game)
    games.set_game_orchestrator(game_orchestrator)
    ws.set_game_orchestrator(game_orchestrator)

    if settings.player_ids:
        game_orchestrator.create_game(settings.player_ids, settings.game_id)
        logger.info(
            f"Started game {settings.game_id} for players {settings.player_ids}")

    logger.info("Application started successfully")

    yield

    # Shutdown
    logger.info("Application shutting down")
    await game_orchestrator.shutdown()

app = FastAPI(lifespan=lifespan)

# Include routers
app.include_router(games.router)
app.include_router(ws.ws_router)


@app.get("/health-check")
async def health_check():
    return {"status": "healthy", "games": len(game_orchestrator.games) if game_orchestrator else 0}


def run():
    """Console entry point"""
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
