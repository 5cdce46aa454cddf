from dataclasses import dataclass, field

from broker.registry import ConnectionRegistry
from broker.rooms import ROOM_ID_DERIVED, RoomTable
from broker.waiting_queue import WaitingQueue


@dataclass
class BrokerState:
    """All mutable broker state, passed explicitly to every operation."""

    registry: ConnectionRegistry = field(default_factory=ConnectionRegistry)
    queue: WaitingQueue = field(default_factory=WaitingQueue)
    rooms: RoomTable = field(default_factory=RoomTable)
    room_id_mode: str = ROOM_ID_DERIVED
