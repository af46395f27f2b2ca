import asyncio
import logging
from typing import Any, Optional, Tuple

from referee.cards import Card, REVERSE, SKIP, DRAW
from referee.errors import TurnTimeoutError
from referee.game_manager import UnoGame, Direction
from referee.messages import Command, PlayAction, DrawAction, STATUS_ALIVE
from referee.tuple_space import Formal

logger = logging.getLogger(__name__)


class TurnEngine:
    """Main game loop.

    Each round goes through three waits: the current player takes the turn,
    performs exactly one accepted action (rejected actions may be retried)
    and ends the turn. The loop stops as soon as a hand is empty.
    """

    def __init__(self, game: UnoGame):
        self.game = game
        self.space = game.space
        self.state = game.state

    async def run(self) -> str:
        """Play rounds until someone wins, returns the winner's id"""
        while True:
            await self.take_turn()

            while not await self.take_action():
                pass

            winner = await self.check_game_done()
            if winner is not None:
                return winner

            await self.next_player()

    async def _receive(self, *pattern: Any) -> Tuple[Any, ...]:
        timeout = self.game.config.turn_timeout
        try:
            return await self.space.get(*pattern, timeout=timeout)
        except asyncio.TimeoutError:
            raise TurnTimeoutError(
                self.game.game_id,
                f"{self.game.current_player_id} did not answer {pattern[1]} within {timeout}s")

    async def take_turn(self):
        """Wait for the current player to take the turn and apply any pending penalty"""
        while True:
            player_id, _ = await self._receive(Formal(str), Command.TAKEN)
            if self.game.is_current_player(player_id):
                break
            logger.debug(
                f"Game {self.game.game_id}: ignoring taken from {player_id}, waiting for {self.game.current_player_id}")

        self.game.broadcast(Command.TAKES, player_id)
        logger.info(f"Game {self.game.game_id}: {player_id} took the turn")

        async with self.game.lock:
            if self.state.pending_penalty > 0:
                given = self.game.give_player_cards(
                    player_id, self.state.pending_penalty)
                logger.info(
                    f"Game {self.game.game_id}: {player_id} draws {len(given)} penalty cards")
                self.state.pending_penalty = 0
                self.game.send_board()

    async def take_action(self) -> bool:
        """Handle one action message. Returns True once an action was accepted."""
        player_id, _, action = await self._receive(
            Formal(str), Command.ACTION, Formal(object))

        if self.state.turn_action_taken or not self.game.is_current_player(player_id):
            self.space.put(player_id, Command.INVALID)
            return False

        async with self.game.lock:
            # An action by the next player closes the missing UNO window
            self.state.missing_uno_window_open = False

            if isinstance(action, PlayAction):
                success = self.play_card(player_id, action.card)
            elif isinstance(action, DrawAction):
                success = self.draw_card(player_id)
            else:
                logger.warning(
                    f"Game {self.game.game_id}: unknown action {action!r} from {player_id}")
                self.space.put(player_id, Command.INVALID)
                success = False

            if success:
                self.state.turn_action_taken = True

        return success

    def play_card(self, player_id: str, card: Card) -> bool:
        """Play a card from the player's hand. Caller holds the lock."""
        if not self.game.player_has_card(player_id, card) or not self.game.is_move_valid(card):
            logger.debug(
                f"Game {self.game.game_id}: {player_id} cannot play {card} on {self.game.top_card}")
            self.space.put(player_id, Command.INVALID)
            return False

        self.game.discard.push(card)
        self.game.remove_card_from_player(player_id, card)
        self.apply_card_effect(card)
        logger.info(f"Game {self.game.game_id}: {player_id} played {card}")

        # The end of game check announces the winner instead of a board
        if self.game.hands[player_id]:
            self.game.send_board()

        self.space.put(player_id, Command.SUCCESS)
        return True

    def apply_card_effect(self, card: Card):
        if card.value == REVERSE:
            self.state.direction = (Direction.REVERSED if self.state.direction == Direction.NORMAL
                                    else Direction.NORMAL)
        elif card.value == SKIP:
            self.state.skip_next = True
        elif card.value == DRAW:
            self.state.pending_penalty = 4 if card.is_wild else 2

    def draw_card(self, player_id: str) -> bool:
        """Draw one card for a player without a legal play. Caller holds the lock."""
        if self.game.player_has_moves(player_id):
            logger.debug(
                f"Game {self.game.game_id}: {player_id} tried to draw with a legal play in hand")
            self.space.put(player_id, Command.INVALID)
            return False

        card = self.game.draw_random_card()
        if card is not None:
            self.space.put(player_id, Command.CARD, card)
            self.game.hands[player_id].append(card)
            logger.info(f"Game {self.game.game_id}: {player_id} drew a card")
        else:
            logger.info(
                f"Game {self.game.game_id}: nothing left to draw, {player_id} passes")

        self.game.send_board()
        self.space.put(player_id, Command.SUCCESS)
        return True

    async def check_game_done(self) -> Optional[str]:
        """Announce the winner if a hand is empty"""
        async with self.game.lock:
            winner = self.game.find_winner()
            if winner is None:
                return None
            self.state.game_over = True
            self.state.winner = winner

        self.game.broadcast(Command.TAKE, winner)
        logger.info(f"Game {self.game.game_id}: {winner} won")
        return winner

    async def next_player(self):
        """Wait for the current player to end the turn and hand it to the next one.

        The round's action has already been accepted, so any action sent
        meanwhile is answered with invalid instead of staying queued for a
        later round.
        """
        rejecter = asyncio.create_task(
            self.reject_actions(), name=f"reject-actions:{self.game.game_id}")
        try:
            await self._await_ended()
        finally:
            rejecter.cancel()
            await asyncio.gather(rejecter, return_exceptions=True)

        # Actions that arrived after the rejecter's last receive
        self.reject_queued_actions()
        self.space.put(self.game.current_player_id, Command.TAKE, STATUS_ALIVE)

    async def _await_ended(self):
        while True:
            player_id, _ = await self._receive(Formal(str), Command.ENDED)

            async with self.game.lock:
                if not self.game.is_current_player(player_id):
                    logger.debug(
                        f"Game {self.game.game_id}: ignoring ended from {player_id}")
                    continue

                if len(self.game.hands[player_id]) == 1 and not self.state.uno_called:
                    self.state.missing_uno_window_open = True
                self.state.uno_called = False

                self.state.previous_player_index = self.state.current_player_index
                self.state.current_player_index = self.game.next_player_index()
                self.state.turn_action_taken = False
                return

    async def reject_actions(self):
        while True:
            player_id, _, _ = await self.space.get(
                Formal(str), Command.ACTION, Formal(object))
            logger.debug(
                f"Game {self.game.game_id}: action from {player_id} after the round's action")
            self.space.put(player_id, Command.INVALID)

    def reject_queued_actions(self):
        while True:
            stale = self.space.getp(Formal(str), Command.ACTION, Formal(object))
            if stale is None:
                return
            logger.debug(
                f"Game {self.game.game_id}: action from {stale[0]} after the round's action")
            self.space.put(stale[0], Command.INVALID)
