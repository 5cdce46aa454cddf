import secrets
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from logging_config import get_logger

logger = get_logger(__name__)

INITIATOR = "initiator"
RECEIVER = "receiver"

ROOM_ID_DERIVED = "derived"
ROOM_ID_TOKEN = "token"


class InvariantViolation(Exception):
    """Raised when a room operation would break pairing invariants."""


@dataclass(frozen=True)
class Room:
    id: str
    initiator: str
    receiver: str

    @property
    def members(self) -> Tuple[str, str]:
        return (self.initiator, self.receiver)

    def has_member(self, connection_id: str) -> bool:
        return connection_id in self.members

    def other(self, connection_id: str) -> Optional[str]:
        if connection_id == self.initiator:
            return self.receiver
        if connection_id == self.receiver:
            return self.initiator
        return None

    def role_of(self, connection_id: str) -> Optional[str]:
        if connection_id == self.initiator:
            return INITIATOR
        if connection_id == self.receiver:
            return RECEIVER
        return None


def make_room_id(initiator: str, receiver: str, mode: str = ROOM_ID_DERIVED) -> str:
    # derived ids put the partner that waited longer first
    if mode == ROOM_ID_TOKEN:
        return secrets.token_urlsafe(16)
    if mode != ROOM_ID_DERIVED:
        raise ValueError(f"Unknown room id mode: {mode}")
    return f"{receiver}#{initiator}"


class RoomTable:
    def __init__(self):
        self._rooms: Dict[str, Room] = {}
        self._member_index: Dict[str, str] = {}

    def create(self, initiator: str, receiver: str, room_id: str) -> Room:
        if initiator == receiver:
            raise InvariantViolation(f"Connection {initiator} cannot be paired with itself")
        for member in (initiator, receiver):
            if member in self._member_index:
                raise InvariantViolation(f"Connection {member} is already in room {self._member_index[member]}")
        if room_id in self._rooms:
            raise InvariantViolation(f"Room id {room_id} is already in use")

        room = Room(id=room_id, initiator=initiator, receiver=receiver)
        self._rooms[room_id] = room
        self._member_index[initiator] = room_id
        self._member_index[receiver] = room_id
        logger.debug(f"Room {room_id} created (active rooms: {len(self._rooms)})")
        return room

    def lookup(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def room_of(self, connection_id: str) -> Optional[Room]:
        room_id = self._member_index.get(connection_id)
        return self._rooms.get(room_id) if room_id else None

    def destroy(self, room_id: str) -> Optional[Room]:
        room = self._rooms.pop(room_id, None)
        if room is None:
            return None
        for member in room.members:
            if self._member_index.get(member) == room_id:
                del self._member_index[member]
        logger.debug(f"Room {room_id} destroyed (active rooms: {len(self._rooms)})")
        return room

    def __contains__(self, room_id: str) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)
