from typing import Any

from broker.state import BrokerState
from logging_config import get_logger

logger = get_logger(__name__)


def relay(state: BrokerState, room_id: str, sender_id: str, message_type: Any, payload: Any) -> bool:
    """Forward a signaling message to the sender's partner in ``room_id``.

    ``payload`` is passed through untouched. Messages for unknown rooms or
    from non-members are dropped, the sender may be mid-teardown.
    """
    room = state.rooms.lookup(room_id) if isinstance(room_id, str) else None
    if room is None or not room.has_member(sender_id):
        logger.debug(f"Dropped signal from {sender_id} for room {room_id}")
        return False

    recipient = state.registry.get(room.other(sender_id))
    if recipient is None:
        logger.debug(f"Dropped signal from {sender_id}, partner in room {room_id} is gone")
        return False

    recipient.notify("signal", {"type": message_type, "payload": payload, "sender": sender_id})
    return True
