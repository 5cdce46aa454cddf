"""Room teardown on explicit leave and on transport disconnect."""
from broker.state import BrokerState
from logging_config import get_logger

logger = get_logger(__name__)


def leave(state: BrokerState, connection_id: str, room_id: str) -> bool:
    """Tear down ``room_id`` if ``connection_id`` is one of its members.

    The remaining member gets ``partner_left`` and both connections return to
    idle. Calling it again for the same room is a no-op.
    """
    room = state.rooms.lookup(room_id) if isinstance(room_id, str) else None
    if room is None or not room.has_member(connection_id):
        logger.debug(f"Leave from {connection_id} for room {room_id} ignored")
        return False

    state.rooms.destroy(room.id)
    for member_id in room.members:
        member = state.registry.get(member_id)
        if member is not None:
            member.reset()

    partner = state.registry.get(room.other(connection_id))
    if partner is not None:
        partner.notify("partner_left")
    logger.info(f"Connection {connection_id} left room {room.id}")
    return True


def cancel_waiting(state: BrokerState, connection_id: str) -> bool:
    """Withdraw a queued connection's pending pairing request."""
    removed = state.queue.remove(connection_id)
    connection = state.registry.get(connection_id)
    if connection is not None and connection.room_id is None:
        connection.reset()
    if removed:
        logger.info(f"Connection {connection_id} removed from queue (waiting: {len(state.queue)})")
    return removed


def disconnect(state: BrokerState, connection_id: str) -> bool:
    """Remove every trace of ``connection_id``. Safe in any state."""
    room = state.rooms.room_of(connection_id)
    if room is not None:
        leave(state, connection_id, room.id)
    cancel_waiting(state, connection_id)
    removed = state.registry.unregister(connection_id) is not None
    if removed:
        logger.info(f"Connection {connection_id} disconnected (online: {state.registry.count()})")
    return removed
