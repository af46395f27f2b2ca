"""
Background loops that run next to the turn engine for the whole game and
handle UNO calls and missing UNO accusations.
"""
import asyncio
import logging

from referee.game_manager import UnoGame
from referee.messages import Command
from referee.tuple_space import Formal

logger = logging.getLogger(__name__)


class UnoWatcher:
    """Accepts UNO calls from the current player"""

    def __init__(self, game: UnoGame):
        self.game = game
        self.space = game.space
        self.state = game.state

    async def run(self):
        while not self.state.game_over:
            player_id, _ = await self.space.get(Formal(str), Command.UNO)
            await self.check_uno(player_id)

    async def check_uno(self, player_id: str) -> bool:
        """Accept the call if the caller just acted and holds exactly one card"""
        async with self.game.lock:
            if self.state.game_over:
                return False
            if not self.game.is_current_player(player_id):
                return False
            if not self.state.turn_action_taken:
                return False
            if self.state.uno_called:
                return False
            if len(self.game.hands[player_id]) != 1:
                return False

            self.state.uno_called = True
            self.game.broadcast(Command.UNO, player_id)

        logger.info(f"Game {self.game.game_id}: UNO called by {player_id}")
        return True


class MissingUnoWatcher:
    """Penalizes the previous player when caught without calling UNO"""

    def __init__(self, game: UnoGame):
        self.game = game
        self.space = game.space
        self.state = game.state

    async def run(self):
        while not self.state.game_over:
            accuser_id, _ = await self.space.get(Formal(str), Command.MISSING_UNO)
            await self.check_missing_uno(accuser_id)

    async def check_missing_uno(self, accuser_id: str) -> bool:
        if accuser_id not in self.game.player_ids:
            logger.debug(
                f"Game {self.game.game_id}: ignoring missing UNO from unknown player {accuser_id}")
            return False

        async with self.game.lock:
            if self.state.game_over or not self.state.missing_uno_window_open:
                return False

            accused_id = self.game.previous_player_id
            self.game.give_player_cards(accused_id, 1)
            self.state.missing_uno_window_open = False
            self.game.broadcast(Command.UNO, accused_id, accuser_id)

        logger.info(
            f"Game {self.game.game_id}: missing UNO called by {accuser_id} on {accused_id}")

        # Give clients time to show the notice before the board changes
        await asyncio.sleep(self.game.config.missing_uno_notice_delay)

        async with self.game.lock:
            if not self.state.game_over:
                self.game.send_board()
        return True
