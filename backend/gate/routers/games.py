from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
import asyncio
import logging
import uuid

from gate.serialization import encode_value
from referee.debug import BOARD_REQUEST, HANDS_REQUEST
from referee.errors import GameAlreadyExistsError, GameNotFoundError
from referee.game_orchestrator import GameOrchestrator
from referee.messages import Board
from referee.tuple_space import Formal

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/games", tags=["games"])

# Initialized from main app
game_orchestrator: Optional[GameOrchestrator] = None

DEBUG_REPLY_TIMEOUT = 5.0


class CreateGameRequest(BaseModel):
    player_ids: List[str] = Field(min_length=2)
    game_id: Optional[str] = None


class GameResponse(BaseModel):
    game_id: str
    player_ids: List[str]


@router.post("/", response_model=GameResponse, status_code=status.HTTP_201_CREATED)
async def create_game(request: CreateGameRequest):
    """Create a game and wait for its players to connect"""
    try:
        game = game_orchestrator.create_game(request.player_ids, request.game_id)
    except GameAlreadyExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return GameResponse(game_id=game.game_id, player_ids=list(game.player_ids))


@router.get("/", response_model=List[str])
async def list_games():
    return game_orchestrator.list_games()


async def _debug_request(game_id: str, command: str) -> Any:
    try:
        responder = game_orchestrator.get_debug_responder(game_id)
    except GameNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    request_id = str(uuid.uuid4())
    responder.space.put(request_id, command)
    try:
        _, reply = await responder.space.get(
            request_id, Formal((Board, dict)), timeout=DEBUG_REPLY_TIMEOUT)
    except asyncio.TimeoutError:
        # Drop the request if nobody picked it up
        responder.space.getp(request_id, command)
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail="Debug responder did not answer")
    return reply


@router.get("/{game_id}/debug/board")
async def debug_board(game_id: str) -> Dict[str, Any]:
    return encode_value(await _debug_request(game_id, BOARD_REQUEST))


@router.get("/{game_id}/debug/hands")
async def debug_hands(game_id: str) -> Dict[str, Any]:
    return encode_value(await _debug_request(game_id, HANDS_REQUEST))


def set_game_orchestrator(orchestrator):
    """Set the game orchestrator instance (called from main app setup)"""
    global game_orchestrator
    game_orchestrator = orchestrator
