class RefereeError(Exception):
    """Base exception for referee errors"""
    pass


class SpaceClosedError(RefereeError):
    """Raised by a tuple space once it has been closed"""
    pass


class GameAbortedError(RefereeError):
    """A game loop failed and the game cannot continue"""

    def __init__(self, game_id: str, message: str):
        self.game_id = game_id
        self.message = message
        super().__init__(f"[{game_id}] {message}")


class TurnTimeoutError(GameAbortedError):
    """A player did not answer within the configured turn timeout"""
    pass


class GameAlreadyExistsError(RefereeError):
    def __init__(self, game_id: str):
        self.game_id = game_id
        super().__init__(f"Game {game_id} already exists")


class GameNotFoundError(RefereeError):
    def __init__(self, game_id: str):
        self.game_id = game_id
        super().__init__(f"Game {game_id} not found")
