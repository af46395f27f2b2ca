from enum import Enum
from typing import List, Optional
from dataclasses import dataclass
import random


class Color(Enum):
    RED = "Red"
    YELLOW = "Yellow"
    BLUE = "Blue"
    GREEN = "Green"
    BLACK = "Black"  # Wild cards


SKIP = "Skip"
REVERSE = "Reverse"
DRAW = "Draw"
WILD = "Color"

NUMBER_VALUES = [str(n) for n in range(1, 10)]
COLORED_VALUES = NUMBER_VALUES + [SKIP, DRAW, REVERSE]
CARD_VALUES = COLORED_VALUES + [WILD]
DECK_SIZE = 52


@dataclass(frozen=True)
class Card:
    color: Color
    value: str

    @property
    def is_wild(self) -> bool:
        return self.color == Color.BLACK

    def can_be_played_on(self, top_card: "Card") -> bool:
        """Returns True if this card is a legal play on top of top_card"""
        if top_card.is_wild or self.is_wild:
            return True
        return self.color == top_card.color or self.value == top_card.value

    def to_dict(self) -> dict:
        return {"color": self.color.value, "value": self.value}

    def __str__(self) -> str:
        return f"{self.color.value} {self.value}"


def build_deck() -> List[Card]:
    """Build the 52-card deck: 12 cards per color plus 4 black wild cards"""
    cards: List[Card] = []
    for color in Color:
        if color == Color.BLACK:
            continue
        for value in COLORED_VALUES:
            cards.append(Card(color, value))

    cards.extend([
        Card(Color.BLACK, WILD),
        Card(Color.BLACK, WILD),
        Card(Color.BLACK, DRAW),
        Card(Color.BLACK, DRAW),
    ])
    return cards


class Deck:
    """Undrawn cards. Has no order: every draw removes a random card."""

    def __init__(self, cards: Optional[List[Card]] = None, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self.cards: List[Card] = list(cards) if cards is not None else build_deck()

    def put(self, card: Card):
        self.cards.append(card)

    def draw(self) -> Optional[Card]:
        if not self.cards:
            return None
        return self.cards.pop(self.rng.randrange(len(self.cards)))

    def size(self) -> int:
        return len(self.cards)


class DiscardStack:
    """Played cards, last one on top"""

    def __init__(self, cards: Optional[List[Card]] = None):
        self.cards: List[Card] = list(cards) if cards else []

    def push(self, card: Card):
        self.cards.append(card)

    def top(self) -> Optional[Card]:
        return self.cards[-1] if self.cards else None

    def drain_below_top(self) -> List[Card]:
        """Remove and return every card except the top one"""
        if len(self.cards) <= 1:
            return []
        drained = self.cards[:-1]
        self.cards = self.cards[-1:]
        return drained

    def size(self) -> int:
        return len(self.cards)
