from typing import Any, Callable, List, Optional

from pydantic import ValidationError

from broker import lifecycle, matchmaker, relay
from broker.connection import ClientChannel, ConnectionState
from broker.rooms import ROOM_ID_DERIVED
from broker.state import BrokerState
from logging_config import get_logger
from schemas.messages import ClientMessage, LeaveRoomRequest, SignalRequest

logger = get_logger(__name__)

# called with (lobby event name, stats snapshot)
BrokerListener = Callable[[str, dict], None]


class Broker:
    """Entry point used by the transport layer.

    Every method runs to completion without awaiting, so on a single event
    loop each client event is applied atomically to the broker state.
    """

    def __init__(self, room_id_mode: str = ROOM_ID_DERIVED):
        self.state = BrokerState(room_id_mode=room_id_mode)
        self._listeners: List[BrokerListener] = []
        self._handlers = {
            "find_partner": self._on_find_partner,
            "signal": self._on_signal,
            "leave_room": self._on_leave_room,
        }

    def add_listener(self, listener: BrokerListener):
        self._listeners.append(listener)

    def connect(self, channel: ClientChannel) -> str:
        connection_id = self.state.registry.register(channel)
        self.state.registry.get(connection_id).notify("connected", {"connectionId": connection_id})
        logger.info(f"User connected: {connection_id}")
        self._emit("connected")
        return connection_id

    def disconnect(self, connection_id: str):
        if lifecycle.disconnect(self.state, connection_id):
            self._emit("disconnected")

    def handle(self, connection_id: str, raw: Any):
        """Dispatch one decoded client frame."""
        try:
            message = ClientMessage.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Malformed message from {connection_id}: {e.errors()}")
            return

        handler = self._handlers.get(message.event)
        if handler is None:
            logger.warning(f"Unknown event '{message.event}' from {connection_id}")
            return
        if not self.state.registry.exists(connection_id):
            logger.debug(f"Event '{message.event}' from unregistered connection {connection_id} dropped")
            return
        handler(connection_id, message.data)

    def find_partner(self, connection_id: str) -> Optional[str]:
        outcome = matchmaker.request_pairing(self.state, connection_id)
        if outcome is not None:
            self._emit(outcome)
        return outcome

    def leave_room(self, connection_id: str, room_id: Optional[str]) -> bool:
        if room_id is not None and lifecycle.leave(self.state, connection_id, room_id):
            self._emit("left")
            return True
        connection = self.state.registry.get(connection_id)
        if connection is not None and connection.state == ConnectionState.QUEUED:
            # leaving while still searching cancels the pairing request
            if lifecycle.cancel_waiting(self.state, connection_id):
                self._emit("left")
                return True
        return False

    def stats(self) -> dict:
        return {
            "online": self.state.registry.count(),
            "waiting": len(self.state.queue),
            "rooms": len(self.state.rooms),
        }

    def _on_find_partner(self, connection_id: str, data: Any):
        self.find_partner(connection_id)

    def _on_signal(self, connection_id: str, data: Any):
        try:
            signal = SignalRequest.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Malformed signal from {connection_id}: {e.errors()}")
            return
        relay.relay(self.state, signal.room, connection_id, signal.type, signal.payload)

    def _on_leave_room(self, connection_id: str, data: Any):
        room_id = None
        if isinstance(data, str):
            room_id = data
        elif data is not None:
            try:
                room_id = LeaveRoomRequest.model_validate(data).room_id
            except ValidationError as e:
                logger.warning(f"Malformed leave_room from {connection_id}: {e.errors()}")
                return
        self.leave_room(connection_id, room_id)

    def _emit(self, event: str):
        if not self._listeners:
            return
        snapshot = self.stats()
        for listener in self._listeners:
            try:
                listener(event, snapshot)
            except Exception as e:
                logger.error(f"Broker listener failed on '{event}': {e}", exc_info=True)
