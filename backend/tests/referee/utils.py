"""Test utilities for referee tests"""

import random
from typing import Any, Dict, List, Optional, Tuple
from referee.cards import Card, Color, DECK_SIZE
from referee.config import GameConfig
from referee.game_manager import UnoGame
from referee.messages import Command


PLAYERS = ["A", "B", "C"]


def create_test_game(player_ids: Optional[List[str]] = None, seed: int = 0,
                     hand_size: int = 7, turn_timeout: Optional[float] = None) -> UnoGame:
    """Create a game with test players and a seeded deck"""
    if player_ids is None:
        player_ids = list(PLAYERS)

    config = GameConfig(hand_size=hand_size, turn_timeout=turn_timeout,
                        missing_uno_notice_delay=0.0)
    return UnoGame(player_ids, config=config, rng=random.Random(seed), game_id="test")


def red(value: str) -> Card:
    return Card(Color.RED, value)


def blue(value: str) -> Card:
    return Card(Color.BLUE, value)


def green(value: str) -> Card:
    return Card(Color.GREEN, value)


def yellow(value: str) -> Card:
    return Card(Color.YELLOW, value)


def black(value: str) -> Card:
    return Card(Color.BLACK, value)


def set_table(game: UnoGame, top_card: Card, hands: Dict[str, List[Card]],
              discard_below: Optional[List[Card]] = None):
    """Rearrange every card of the game while keeping the 52 cards.

    The top card, the given hands and the cards below the top come out of the
    pool of all cards. Players not mentioned get an empty hand. Whatever is
    left goes back into the deck.
    """
    pool = list(game.deck.cards) + list(game.discard.cards)
    for hand in game.hands.values():
        pool.extend(hand)

    def take(wanted: Card) -> Card:
        assert wanted in pool, f"{wanted} is not available in the pool"
        pool.remove(wanted)
        return wanted

    below = [take(c) for c in (discard_below or [])]
    top = take(top_card)
    game.discard.cards = below + [top]
    for player_id in game.player_ids:
        game.hands[player_id] = [take(c) for c in hands.get(player_id, [])]
    game.deck.cards = pool

    assert game.total_cards() == DECK_SIZE


def set_current_player(game: UnoGame, player_index: int):
    """Set the current player"""
    game.state.current_player_index = player_index


def clear_space(game: UnoGame):
    """Drop every message in the game's space"""
    game.space._tuples.clear()


def messages_for(game: UnoGame, player_id: str, command: Optional[Command] = None) -> List[Tuple[Any, ...]]:
    """Messages waiting in the space for a player, optionally of one command"""
    return [fields for fields in game.space.snapshot()
            if fields[0] == player_id and (command is None or fields[1] == command)]


def assert_current_player(game: UnoGame, expected_player_id: str):
    """Assert the current player is as expected"""
    assert game.current_player_id == expected_player_id, \
        f"Current player is {game.current_player_id}, expected {expected_player_id}"


def assert_player_hand_size(game: UnoGame, player_id: str, expected_size: int):
    """Assert a player has the expected hand size"""
    actual_size = len(game.hands[player_id])
    assert actual_size == expected_size, f"Player {player_id} hand size {actual_size}, expected {expected_size}"


def assert_discard_top(game: UnoGame, expected_card: Card):
    """Assert the top of discard pile is the expected card"""
    assert game.top_card == expected_card, \
        f"Discard top is {game.top_card}, expected {expected_card}"


def assert_reply(game: UnoGame, player_id: str, command: Command):
    """Assert the player received exactly one reply of the given kind"""
    replies = messages_for(game, player_id, command)
    assert len(replies) == 1, f"Expected one {command.value} for {player_id}, got {replies}"


def assert_no_reply(game: UnoGame, player_id: str, command: Command):
    replies = messages_for(game, player_id, command)
    assert not replies, f"Unexpected {command.value} for {player_id}: {replies}"


def assert_card_count_conserved(game: UnoGame):
    assert game.total_cards() == DECK_SIZE, \
        f"{game.total_cards()} cards in play, expected {DECK_SIZE}"
