from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
import asyncio
import json
import logging
from typing import List, Optional

from gate.serialization import decode_client_message, encode_server_message, ProtocolError
from referee.errors import GameNotFoundError, SpaceClosedError
from referee.game_orchestrator import GameOrchestrator
from referee.game_manager import UnoGame
from referee.messages import SERVER_MESSAGE_SHAPES
from referee.tuple_space import Formal

logger = logging.getLogger(__name__)
ws_router = APIRouter()

# Initialized from main app
game_orchestrator: Optional[GameOrchestrator] = None


async def forward_messages(websocket: WebSocket, game: UnoGame, player_id: str, pattern: tuple):
    """Send every tuple matching pattern to the player's socket"""
    try:
        while True:
            fields = await game.space.get(*pattern)
            await websocket.send_json(encode_server_message(fields))
    except SpaceClosedError:
        logger.debug(f"Space closed, stopped forwarding {pattern[1]} to {player_id}")


def start_forwarders(websocket: WebSocket, game: UnoGame, player_id: str) -> List[asyncio.Task]:
    """One forwarding task per kind of server to client message"""
    tasks = []
    for command, payload_size in SERVER_MESSAGE_SHAPES:
        pattern = (player_id, command) + tuple(Formal() for _ in range(payload_size))
        tasks.append(asyncio.create_task(
            forward_messages(websocket, game, player_id, pattern)))
    return tasks


@ws_router.websocket("/ws/{game_id}/{player_id}")
async def websocket_endpoint(websocket: WebSocket, game_id: str, player_id: str):
    """Bridge between one player's socket and the game's tuple space"""
    try:
        game = game_orchestrator.get_game(game_id)
    except GameNotFoundError:
        await websocket.close(code=4004, reason="Game not found")
        return

    if player_id not in game.player_ids:
        await websocket.close(code=4003, reason="Not a player of this game")
        return

    await websocket.accept()
    logger.info(f"Player {player_id} connected to game {game_id}")

    forwarders = start_forwarders(websocket, game, player_id)
    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = decode_client_message(player_id, json.loads(data))
            except (json.JSONDecodeError, ValidationError, ProtocolError) as e:
                await websocket.send_json({"command": "error", "payload": [str(e)]})
                continue

            logger.debug(f"Received {message[1]} from {player_id}")
            game.space.put(*message)

    except WebSocketDisconnect:
        logger.info(f"Player {player_id} disconnected from game {game_id}")
    except SpaceClosedError:
        logger.info(f"Game {game_id} closed, disconnecting {player_id}")
        await websocket.close(code=1000)
    finally:
        for task in forwarders:
            task.cancel()
        await asyncio.gather(*forwarders, return_exceptions=True)


def set_game_orchestrator(orchestrator):
    """Set the game orchestrator instance (called from main app setup)"""
    global game_orchestrator
    game_orchestrator = orchestrator
