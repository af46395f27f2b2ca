"""
Message vocabulary exchanged over a game's tuple space.

Every message is a tuple (player_id, command, *payload). For server to client
messages player_id is the receiver, for client to server messages it is the
sender.
"""
from enum import Enum
from typing import Dict, Any, Union, List, Tuple
from dataclasses import dataclass, field

from referee.cards import Card


class Command(str, Enum):
    # Client to server
    READY = "ready"
    TAKEN = "taken"
    ACTION = "action"
    ENDED = "ended"
    MISSING_UNO = "missingUNO"

    # Server to client
    ALL_READY = "allReady"
    TAKE = "take"
    PLAYERS = "players"
    TAKES = "takes"
    INVALID = "invalid"
    SUCCESS = "success"
    BOARD = "board"
    CARDS = "cards"
    CARD = "card"

    # Both directions, told apart by payload length
    UNO = "UNO"


# Status carried by a "take" message while nobody has won
STATUS_ALIVE = "alive"


# Number of payload fields of every server to client message
SERVER_MESSAGE_SHAPES: List[Tuple[Command, int]] = [
    (Command.ALL_READY, 0),
    (Command.TAKE, 1),
    (Command.PLAYERS, 1),
    (Command.TAKES, 1),
    (Command.INVALID, 0),
    (Command.SUCCESS, 0),
    (Command.BOARD, 1),
    (Command.CARDS, 1),
    (Command.CARD, 1),
    (Command.UNO, 1),  # UNO called by a player
    (Command.UNO, 2),  # missing UNO applied: (accused, accuser)
]

# Client to server commands that carry no payload
CLIENT_SIGNALS = {
    Command.READY,
    Command.TAKEN,
    Command.ENDED,
    Command.UNO,
    Command.MISSING_UNO,
}


class ActionKind(Enum):
    PLAY = "PLAY"
    DRAW = "DRAW"


@dataclass(frozen=True)
class PlayAction:
    card: Card
    kind: ActionKind = field(default=ActionKind.PLAY, init=False)


@dataclass(frozen=True)
class DrawAction:
    kind: ActionKind = field(default=ActionKind.DRAW, init=False)


Action = Union[PlayAction, DrawAction]


@dataclass(frozen=True)
class Board:
    """Public snapshot of the table"""
    top_card: Card
    hand_sizes: Dict[str, int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topCard": self.top_card.to_dict(),
            "hands": dict(self.hand_sizes),
        }
