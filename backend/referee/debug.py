import logging

from referee.game_manager import UnoGame
from referee.tuple_space import TupleSpace, Formal

logger = logging.getLogger(__name__)

BOARD_REQUEST = "board"
HANDS_REQUEST = "hands"


class DebugResponder:
    """Answers introspection requests on a space separate from the game's.

    A request is (requester_id, "board" | "hands"); the reply is
    (requester_id, Board) or (requester_id, {player_id: [card, ...]}).
    """

    def __init__(self, game: UnoGame, space: TupleSpace = None):
        self.game = game
        self.space = space or TupleSpace(f"debug:{game.game_id}")

    async def run(self):
        while True:
            requester_id, command = await self.space.get(Formal(str), Formal(str))
            await self.handle_request(requester_id, command)

    async def handle_request(self, requester_id: str, command: str):
        async with self.game.lock:
            if command == BOARD_REQUEST:
                self.space.put(requester_id, self.game.get_board())
            elif command == HANDS_REQUEST:
                self.space.put(requester_id, self.game.get_hands_table())
            else:
                logger.warning(
                    f"Unknown debug request {command!r} from {requester_id}")
