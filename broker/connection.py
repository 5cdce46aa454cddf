"""Connection records and the client channel capability.

The broker never talks to a transport directly. Every connection carries a
``ClientChannel`` that exposes ``send`` and ``close``; sends are
fire-and-forget from the broker's point of view.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol


class ConnectionState(str, Enum):
    IDLE = "idle"
    QUEUED = "queued"
    MATCHED = "matched"


class ClientChannel(Protocol):
    def send(self, message: dict) -> None:
        ...

    def close(self) -> None:
        ...


@dataclass
class Connection:
    id: str
    channel: ClientChannel
    state: ConnectionState = ConnectionState.IDLE
    # non-owning back reference, the room table owns the room
    room_id: Optional[str] = None

    def notify(self, event: str, data: Any = None):
        self.channel.send(make_message(event, data))

    def reset(self):
        self.state = ConnectionState.IDLE
        self.room_id = None


def make_message(event: str, data: Any = None) -> dict:
    return {"event": event, "data": data}
