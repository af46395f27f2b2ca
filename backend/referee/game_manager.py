from enum import Enum
from typing import List, Optional, Dict, Any, Sequence
from dataclasses import dataclass
import asyncio
import logging
import random
import uuid

from referee.cards import Card, Deck, DiscardStack
from referee.config import GameConfig
from referee.messages import Board, Command, STATUS_ALIVE
from referee.tuple_space import TupleSpace, Formal

logger = logging.getLogger(__name__)


class Direction(Enum):
    NORMAL = 1
    REVERSED = -1


@dataclass
class GameState:
    """Turn bookkeeping shared by the turn engine and the UNO watchers.

    Only read or written while holding UnoGame.lock.
    """
    current_player_index: int = 0
    previous_player_index: Optional[int] = None
    direction: Direction = Direction.NORMAL
    skip_next: bool = False
    pending_penalty: int = 0  # 0, 2 or 4
    turn_action_taken: bool = False
    uno_called: bool = False
    missing_uno_window_open: bool = False
    game_over: bool = False
    winner: Optional[str] = None


class UnoGame:
    """Hidden state of one game: hands, deck, discard stack and turn state"""

    def __init__(self, player_ids: Sequence[str], space: Optional[TupleSpace] = None,
                 config: Optional[GameConfig] = None, deck: Optional[Deck] = None,
                 rng: Optional[random.Random] = None, game_id: Optional[str] = None):
        if len(player_ids) < 2:
            raise ValueError("A game needs at least two players")
        if len(set(player_ids)) != len(player_ids):
            raise ValueError("Player ids must be unique")

        self.game_id = game_id or str(uuid.uuid4())
        self.player_ids = tuple(player_ids)
        self.config = config or GameConfig()
        self.space = space or TupleSpace(f"game:{self.game_id}")
        self.deck = deck or Deck(rng=rng)
        self.discard = DiscardStack()
        self.hands: Dict[str, List[Card]] = {
            player_id: [] for player_id in self.player_ids}
        self.state = GameState()
        self.lock = asyncio.Lock()

        self._deal_initial_cards()

    def _deal_initial_cards(self):
        """Flip the first card onto the discard stack and deal every hand"""
        self.discard.push(self.draw_random_card())
        for player_id in self.player_ids:
            self.give_player_cards(player_id, self.config.hand_size)

    # Lobby

    async def start(self):
        """Show the table, wait for every player to be ready and open the first turn"""
        self.send_board()
        self.send_player_list()

        ready = set()
        while len(ready) < len(self.player_ids):
            player_id, _ = await self.space.get(Formal(str), Command.READY)
            if player_id not in self.player_ids:
                logger.debug(f"Ignoring ready from unknown player {player_id}")
                continue
            ready.add(player_id)
            logger.info(
                f"Game {self.game_id}: {player_id} ready ({len(ready)}/{len(self.player_ids)})")

        self.broadcast(Command.ALL_READY)
        self.space.put(self.current_player_id, Command.TAKE, STATUS_ALIVE)

    # Players and turns

    @property
    def current_player_id(self) -> str:
        return self.player_ids[self.state.current_player_index]

    @property
    def previous_player_id(self) -> Optional[str]:
        if self.state.previous_player_index is None:
            return None
        return self.player_ids[self.state.previous_player_index]

    def is_current_player(self, player_id: str) -> bool:
        return player_id == self.current_player_id

    def next_player_index(self) -> int:
        """Index of the player after the current one. Consumes a pending skip."""
        step = 1
        if self.state.skip_next:
            step += 1
            self.state.skip_next = False
        return (self.state.current_player_index + step * self.state.direction.value) % len(self.player_ids)

    def find_winner(self) -> Optional[str]:
        """First player in seating order whose hand is empty"""
        for player_id in self.player_ids:
            if not self.hands[player_id]:
                return player_id
        return None

    # Cards

    @property
    def top_card(self) -> Card:
        return self.discard.top()

    def is_move_valid(self, card: Card) -> bool:
        return card.can_be_played_on(self.top_card)

    def player_has_card(self, player_id: str, card: Card) -> bool:
        return card in self.hands[player_id]

    def player_has_moves(self, player_id: str) -> bool:
        return any(self.is_move_valid(card) for card in self.hands[player_id])

    def remove_card_from_player(self, player_id: str, card: Card):
        self.hands[player_id].remove(card)

    def draw_random_card(self) -> Optional[Card]:
        """Draw a random card, recycling the discard stack if the deck is empty.

        Returns None only when every card except the top one is held by players.
        """
        if self.deck.size() < 1:
            recycled = self.discard.drain_below_top()
            for card in recycled:
                self.deck.put(card)
            logger.info(
                f"Game {self.game_id}: deck empty, recycled {len(recycled)} cards from the discard stack")
        return self.deck.draw()

    def give_player_cards(self, player_id: str, count: int) -> List[Card]:
        given = []
        for _ in range(count):
            card = self.draw_random_card()
            if card is None:
                logger.warning(
                    f"Game {self.game_id}: no cards left to give {player_id}")
                break
            self.hands[player_id].append(card)
            given.append(card)
        return given

    def total_cards(self) -> int:
        return self.deck.size() + self.discard.size() + sum(len(hand) for hand in self.hands.values())

    # Snapshots and broadcasts

    def get_board(self) -> Board:
        return Board(
            top_card=self.top_card,
            hand_sizes={player_id: len(self.hands[player_id])
                        for player_id in self.player_ids},
        )

    def get_hands_table(self) -> Dict[str, List[Dict[str, Any]]]:
        return {player_id: [card.to_dict() for card in self.hands[player_id]]
                for player_id in self.player_ids}

    def broadcast(self, command: Command, *payload: Any):
        for player_id in self.player_ids:
            self.space.put(player_id, command, *payload)

    def send_board(self):
        """Send the public board to everyone and each player their own hand"""
        board = self.get_board()
        for player_id in self.player_ids:
            self.space.put(player_id, Command.BOARD, board)
            self.space.put(player_id, Command.CARDS,
                           tuple(self.hands[player_id]))

    def send_player_list(self):
        self.broadcast(Command.PLAYERS, self.player_ids)

