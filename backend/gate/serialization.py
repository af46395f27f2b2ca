"""JSON encoding of tuple space messages for WebSocket clients"""
from typing import Annotated, Any, Dict, Literal, Optional, Tuple, Union
from pydantic import BaseModel, Field

from referee.cards import Card, Color
from referee.messages import Board, Command, PlayAction, DrawAction, CLIENT_SIGNALS


class CardModel(BaseModel):
    color: Color
    value: str

    def to_card(self) -> Card:
        return Card(self.color, self.value)


class PlayActionModel(BaseModel):
    kind: Literal["PLAY"]
    card: CardModel


class DrawActionModel(BaseModel):
    kind: Literal["DRAW"]


ActionModel = Annotated[Union[PlayActionModel, DrawActionModel], Field(discriminator="kind")]


class ClientMessage(BaseModel):
    command: Literal["ready", "taken", "action", "ended", "UNO", "missingUNO"]
    action: Optional[ActionModel] = None


class ProtocolError(ValueError):
    """A client frame that cannot be turned into a tuple"""
    pass


def decode_client_message(player_id: str, data: Dict[str, Any]) -> Tuple[Any, ...]:
    """Turn a validated client frame into the tuple put on the game's space"""
    message = ClientMessage.model_validate(data)
    command = Command(message.command)

    if command in CLIENT_SIGNALS:
        return (player_id, command)

    if message.action is None:
        raise ProtocolError("action message without an action")
    if isinstance(message.action, PlayActionModel):
        return (player_id, command, PlayAction(message.action.card.to_card()))
    return (player_id, command, DrawAction())


def encode_value(value: Any) -> Any:
    if isinstance(value, (Card, Board)):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [encode_value(item) for item in value]
    if isinstance(value, dict):
        return {key: encode_value(item) for key, item in value.items()}
    return value


def encode_server_message(fields: Tuple[Any, ...]) -> Dict[str, Any]:
    """Encode (player_id, command, *payload) as a JSON-ready dict"""
    _, command, *payload = fields
    return {
        "command": command.value if isinstance(command, Command) else command,
        "payload": [encode_value(item) for item in payload],
    }
