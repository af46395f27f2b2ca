import os
from typing import List, Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

load_dotenv()


@dataclass
class GameConfig:
    """Per-game knobs"""
    hand_size: int = 7
    # None blocks forever waiting for the current player
    turn_timeout: Optional[float] = None
    # Pause between a missing UNO notice and the board refresh
    missing_uno_notice_delay: float = 1.0
    # Seconds a finished game stays queryable before it is ended. None keeps
    # it until shutdown.
    finished_game_retention: Optional[float] = 60.0


def _optional_float(raw: Optional[str]) -> Optional[float]:
    if raw is None or raw.strip() == "":
        return None
    return float(raw)


def _split_ids(raw: str) -> List[str]:
    return [player_id.strip() for player_id in raw.split(",") if player_id.strip()]


@dataclass
class Settings:
    """Process settings read from the environment"""
    host: str = "0.0.0.0"
    port: int = 31415
    log_level: str = "INFO"
    # Players of the game started at boot. Empty means games are only
    # created through the HTTP API.
    player_ids: List[str] = field(default_factory=list)
    game_id: str = "default"
    game: GameConfig = field(default_factory=GameConfig)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "31415")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            player_ids=_split_ids(os.getenv("PLAYER_IDS", "")),
            game_id=os.getenv("GAME_ID", "default"),
            game=GameConfig(
                hand_size=int(os.getenv("HAND_SIZE", "7")),
                turn_timeout=_optional_float(os.getenv("TURN_TIMEOUT")),
                missing_uno_notice_delay=float(
                    os.getenv("MISSING_UNO_NOTICE_DELAY", "1.0")),
                finished_game_retention=_optional_float(
                    os.getenv("FINISHED_GAME_RETENTION", "60")),
            ),
        )
