import asyncio
import logging
from typing import Dict, List, Optional, Sequence

from referee.config import GameConfig
from referee.debug import DebugResponder
from referee.errors import GameAbortedError, GameAlreadyExistsError, GameNotFoundError
from referee.game_manager import UnoGame
from referee.turn_engine import TurnEngine
from referee.watchers import UnoWatcher, MissingUnoWatcher

logger = logging.getLogger(__name__)


async def play_game(game: UnoGame) -> str:
    """Run the turn engine and both watchers until the game is decided.

    The watchers are cancelled when the engine returns. If any loop fails
    the others are cancelled and the failure is raised as GameAbortedError.
    """
    engine = asyncio.create_task(
        TurnEngine(game).run(), name=f"turn-engine:{game.game_id}")
    watchers = [
        asyncio.create_task(UnoWatcher(game).run(),
                            name=f"uno-watcher:{game.game_id}"),
        asyncio.create_task(MissingUnoWatcher(game).run(),
                            name=f"missing-uno-watcher:{game.game_id}"),
    ]
    tasks = [engine, *watchers]

    try:
        while not engine.done():
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                if task.cancelled():
                    raise GameAbortedError(
                        game.game_id, f"{task.get_name()} was cancelled")
                error = task.exception()
                if error is not None:
                    if isinstance(error, GameAbortedError):
                        raise error
                    raise GameAbortedError(
                        game.game_id, f"{task.get_name()} failed: {error!r}") from error
            tasks = [task for task in tasks if not task.done()]
        return engine.result()
    finally:
        game.state.game_over = True
        for task in (engine, *watchers):
            task.cancel()
        await asyncio.gather(engine, *watchers, return_exceptions=True)


class GameOrchestrator:
    """Creates games and owns the tasks that run them"""

    def __init__(self, config: Optional[GameConfig] = None):
        self.config = config or GameConfig()
        self.games: Dict[str, UnoGame] = {}
        self.debug_responders: Dict[str, DebugResponder] = {}
        # game_id -> task running the game
        self.processing_tasks: Dict[str, asyncio.Task] = {}
        self.debug_tasks: Dict[str, asyncio.Task] = {}
        # game_id -> task ending a finished game after the retention delay
        self.retirement_tasks: Dict[str, asyncio.Task] = {}

    def create_game(self, player_ids: Sequence[str], game_id: Optional[str] = None) -> UnoGame:
        """Create a game and start running it in the background"""
        if game_id is not None and game_id in self.games:
            raise GameAlreadyExistsError(game_id)

        game = UnoGame(player_ids, config=self.config, game_id=game_id)
        self.games[game.game_id] = game

        responder = DebugResponder(game)
        self.debug_responders[game.game_id] = responder
        self.debug_tasks[game.game_id] = asyncio.create_task(
            responder.run(), name=f"debug:{game.game_id}")

        self.processing_tasks[game.game_id] = asyncio.create_task(
            self.run_game(game), name=f"game:{game.game_id}")

        logger.info(
            f"Created game {game.game_id} with players {list(game.player_ids)}")
        return game

    def get_game(self, game_id: str) -> UnoGame:
        game = self.games.get(game_id)
        if game is None:
            raise GameNotFoundError(game_id)
        return game

    def get_debug_responder(self, game_id: str) -> DebugResponder:
        responder = self.debug_responders.get(game_id)
        if responder is None:
            raise GameNotFoundError(game_id)
        return responder

    def list_games(self) -> List[str]:
        return list(self.games)

    async def run_game(self, game: UnoGame) -> Optional[str]:
        """Lobby, then play. Returns the winner's id."""
        logger.info(f"Waiting for players to be ready in game {game.game_id}")
        try:
            await game.start()
            winner = await play_game(game)
            logger.info(f"Game {game.game_id} finished, winner {winner}")
            return winner
        except asyncio.CancelledError:
            logger.info(f"Game {game.game_id} cancelled")
            raise
        except GameAbortedError:
            logger.exception(f"Game {game.game_id} aborted")
            raise
        except Exception as e:
            logger.exception(f"Fatal error in game {game.game_id}")
            raise GameAbortedError(game.game_id, repr(e)) from e
        finally:
            game.state.game_over = True
            self._schedule_retirement(game)

    async def wait_for_game(self, game_id: str) -> Optional[str]:
        task = self.processing_tasks.get(game_id)
        if task is None:
            raise GameNotFoundError(game_id)
        return await task

    async def end_game(self, game_id: str):
        """Stop a game's tasks and close its spaces"""
        game = self.games.pop(game_id, None)
        if game is None:
            raise GameNotFoundError(game_id)

        retirement = self.retirement_tasks.pop(game_id, None)
        if retirement is not None and retirement is not asyncio.current_task():
            retirement.cancel()

        tasks = [task for task in (self.processing_tasks.pop(game_id, None),
                                   self.debug_tasks.pop(game_id, None)) if task]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        responder = self.debug_responders.pop(game_id, None)
        if responder:
            responder.space.close()
        game.space.close()
        logger.info(f"Ended game {game_id}")

    async def shutdown(self):
        for game_id in list(self.games):
            await self.end_game(game_id)

    def _schedule_retirement(self, game: UnoGame):
        # Ended or shut down games are already gone
        if self.games.get(game.game_id) is not game:
            return
        if self.config.finished_game_retention is None:
            return
        self.retirement_tasks[game.game_id] = asyncio.create_task(
            self._retire_game(game), name=f"retire:{game.game_id}")

    async def _retire_game(self, game: UnoGame):
        """End a finished game once its retention delay has passed"""
        await asyncio.sleep(self.config.finished_game_retention)
        if self.games.get(game.game_id) is game:
            logger.info(f"Retiring finished game {game.game_id}")
            await self.end_game(game.game_id)
